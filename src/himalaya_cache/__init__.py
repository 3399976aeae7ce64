"""himalaya-cache: local on-disk mirror of mail fetched through the himalaya CLI."""

__version__ = "0.1.0"
