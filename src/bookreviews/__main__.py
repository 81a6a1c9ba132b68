"""Main entry point for the bookreviews package."""

from bookreviews.cli import app


def main():
    """Run the command-line interface."""
    app()


if __name__ == "__main__":
    main()
