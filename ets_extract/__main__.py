"""
Module entry point for: python -m ets_extract

    python -m ets_extract extract <paper_dir> [options]
    python -m ets_extract papers [resource_dir]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
