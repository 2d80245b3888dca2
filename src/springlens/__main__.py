"""Entry point for running SpringLens as a module.

Usage:
    python -m springlens [command] [options]

Example:
    python -m springlens analyze path/to/project --format json
"""

from springlens.cli import app

if __name__ == "__main__":
    app()
