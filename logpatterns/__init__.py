"""Group log messages into patterns, guess severity and join multi-line entries."""

__version__ = "0.1.0"
__all__ = ["cli", "decoder", "level", "multiline", "parser", "pattern", "timestamp"]