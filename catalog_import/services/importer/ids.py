"""Product id generation."""
import random
import string
from typing import Callable, Optional, Set

ID_LETTERS = 2
ID_DIGITS = 5

IdFactory = Callable[[], str]


def generate_product_id() -> str:
    """Generate a random product id.

    Format: two uppercase letters followed by five digits.
    Example: KQ40317
    """
    letters = ''.join(random.choices(string.ascii_uppercase, k=ID_LETTERS))
    digits = ''.join(random.choices(string.digits, k=ID_DIGITS))
    return f"{letters}{digits}"


class IdAllocator:
    """Hands out generated ids that are unique within one import run."""

    def __init__(self, factory: Optional[IdFactory] = None):
        self._factory = factory or generate_product_id
        self.issued: Set[str] = set()
        self.redraws = 0

    def claim(self, candidate: str) -> str:
        """Keep ``candidate`` if unused this run, otherwise draw a fresh id."""
        while candidate in self.issued:
            self.redraws += 1
            candidate = self._factory()
        self.issued.add(candidate)
        return candidate

    def next(self) -> str:
        return self.claim(self._factory())
