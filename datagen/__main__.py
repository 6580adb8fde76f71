# File: datagen/__main__.py
"""
NexaFlow DataGen - Module entry point.

Allows running the generator directly via::

    python -m datagen --structure customer.json --count 25

This module simply delegates to the CLI entry point defined in ``datagen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from datagen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
