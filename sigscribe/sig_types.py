"""Type definitions and constants for sigscribe."""

from typing import Literal, NamedTuple

# Colors for terminal output
RED = "\033[0;31m"
YELLOW = "\033[1;33m"
GREEN = "\033[0;32m"
NC = "\033[0m"  # No Color

Shape = Literal["function", "class"]


class SignatureParts(NamedTuple):
    """Pieces of a signature recovered from source text."""

    shape: Shape
    name: str
    params: str

    @property
    def text(self) -> str:
        """Canonical form: ``function name(params)`` or ``class Name(params)``."""
        return f"{self.shape} {self.name}({self.params})".strip()
