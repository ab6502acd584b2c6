"""Entry point for running vigil as a module.

This allows the CLI to be invoked with ``python -m vigil``.
"""

from .cli import cli

if __name__ == "__main__":  # pragma: no cover
    cli()
