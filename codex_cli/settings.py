"""Project configuration settings.

Only constants required by the CLI are kept here. Paths that depend on the
environment are resolved lazily by the callers so tests can override them.
"""

APP_NAME = "codex"

# Credential store
DEFAULT_CONFIG_DIRNAME = ".codex"  # under the user home directory
DEFAULT_CONFIG_FILE = "config.json"
CONFIG_PATH_ENV = "CODEX_CONFIG_PATH"
JSON_INDENT = 2

# Status output
MASK_VISIBLE_CHARS = 4

# Logging
LOG_LEVEL_ENV = "CODEX_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

__all__ = [
	'APP_NAME','DEFAULT_CONFIG_DIRNAME','DEFAULT_CONFIG_FILE','CONFIG_PATH_ENV','JSON_INDENT',
	'MASK_VISIBLE_CHARS','LOG_LEVEL_ENV','DEFAULT_LOG_LEVEL'
]
