"""Main entry point when executing pterocli as a package.

This allows running the package using python -m pterocli.
"""

from pterocli.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
