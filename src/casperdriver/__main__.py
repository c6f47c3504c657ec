"""Entry point for ``python -m casperdriver``."""

from .cli import cli

if __name__ == "__main__":
    cli(prog_name="casperdriver")
