"""
Hanafuda Errors

Exception taxonomy shared by the card containers and the Koi-Koi engine.
All of them are local, synchronous failures the caller can recover from.
"""

from typing import Optional


class HanafudaError(Exception):
    """Base class for every error raised by the engine"""


class InvalidCardIndex(HanafudaError, ValueError):
    """Card identifier outside 0-47 or not an integer"""

    def __init__(self, index: object):
        super().__init__(f"Invalid card index: {index!r}")
        self.index = index


class DuplicateCard(HanafudaError):
    """Card placed onto a collection that already holds it"""

    def __init__(self, index: int, collection: Optional[str] = None):
        where = f" in {collection}" if collection else ""
        super().__init__(f"Card {index} already present{where}")
        self.index = index


class InvalidPhaseAction(HanafudaError):
    """Action attempted while the game is not in a compatible phase"""


class InvalidSelection(HanafudaError):
    """Chosen cards do not satisfy the capture rule for the source card"""


class InvalidStateData(HanafudaError):
    """Round state snapshot breaks the partition or card-count invariants"""
