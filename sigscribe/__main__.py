"""Allow ``python -m sigscribe``."""

from .cli import main

main()
