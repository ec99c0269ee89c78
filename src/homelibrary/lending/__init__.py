"""Book lending lifecycle.

Provides functionality for:
- Lending books to borrowers
- Recording returns
- Lending history per book
"""

from .manager import LendingManager
from .schemas import LendRequest, ReturnRequest

__all__ = [
    "LendingManager",
    "LendRequest",
    "ReturnRequest",
]
