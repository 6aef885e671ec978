"""Program entry point (CLI dispatcher).

Sets up logging from $CODEX_LOG_LEVEL; all routing lives in the CLI commands.
"""
from __future__ import annotations
import os, logging
from codex_cli.settings import LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL
from codex_cli.cli.commands import cli

def configure_logging() -> None:
	name = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
	level = logging.getLevelName(name)
	if not isinstance(level, int):
		level = logging.WARNING
	logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

def main():  # pragma: no cover - thin wrapper
	configure_logging()
	cli()

if __name__ == '__main__':  # pragma: no cover
	main()
