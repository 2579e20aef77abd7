"""Identity-document intake pipeline."""

__version__ = "1.0.0"
