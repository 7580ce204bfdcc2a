"""Main entry point for ``python -m readtrack``."""

from readtrack.cli import app

if __name__ == "__main__":
    app()
