"""codex: local credential store and command launcher."""

__version__ = "0.1.0"
