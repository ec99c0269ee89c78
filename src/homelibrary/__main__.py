"""Main entry point for the homelibrary package."""

from homelibrary.cli import app


if __name__ == "__main__":
    app()
