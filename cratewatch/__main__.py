"""CLI entry point: python -m cratewatch"""

from cratewatch.cli import main

main()
