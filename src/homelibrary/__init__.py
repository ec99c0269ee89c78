"""homelibrary - a personal library catalog with lending tracking."""

__version__ = "0.1.0"
