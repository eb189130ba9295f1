"""Main entry point for the PageCov command-line interface."""

from .cli import app

if __name__ == "__main__":
    app(prog_name="pagecov")
