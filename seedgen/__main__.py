# File: seedgen/__main__.py
"""
SeedGen — Module entry point.

Allows running the seeder directly via::

    python -m seedgen generate -r src/api/domain/entities -o seed.json

This module simply delegates to the CLI entry point defined in ``seedgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from seedgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
