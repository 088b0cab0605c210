"""Module entry point for `python -m docscan`."""

from docscan.cli import main

if __name__ == "__main__":
    main()
