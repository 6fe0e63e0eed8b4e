"""
zodgen — Module entry point.

Allows running the generator directly via::

    python -m zodgen --metadata metadata.yaml --output ./src/generated

This module simply delegates to the CLI entry point defined in ``zodgen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from zodgen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
