"""Tag-aware cache groups on top of a tagged key-value store."""

__version__ = "0.1.0"
