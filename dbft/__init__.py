"""dBFT consensus building blocks: message types, configuration, future-message cache and epoch state."""

__version__ = "0.1.0"
__all__ = ["types", "config", "cache", "context"]