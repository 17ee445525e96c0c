"""Allow ``python -m sflogs``."""

from sflogs.cli import app

if __name__ == "__main__":
    app()
