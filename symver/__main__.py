"""Allow ``python -m symver``."""

from symver.cli import main

main()
