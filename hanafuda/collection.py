"""
Hanafuda Card Set

A collection of distinct card identifiers with utility methods.
Used to represent hands, the field and captured piles.
"""

from typing import Dict, Iterable, Iterator, List, Optional
import numpy as np

from .cards import (
    CARDS,
    NUM_CARDS,
    NUM_MONTHS,
    CardType,
    is_valid_card_index,
)
from .errors import DuplicateCard, InvalidCardIndex


class CardSet:
    """
    Mutable set of card identifiers (0-47).

    Iteration follows insertion order so that anything computed from a
    CardSet (match lists, scoring results, JSON) is deterministic.
    """

    def __init__(self, cards: Optional[Iterable[int]] = None, name: Optional[str] = None):
        """
        Initialize card set with optional cards.

        Args:
            cards: Initial card identifiers
            name: Label used in error messages (e.g. "field")

        Raises:
            InvalidCardIndex: if any identifier is out of range
            DuplicateCard: if an identifier appears twice
        """
        self.name = name
        self._cards: Dict[int, None] = {}
        if cards is not None:
            self.add_many(cards)

    def _validate_new(self, index: int) -> None:
        if not is_valid_card_index(index):
            raise InvalidCardIndex(index)
        if index in self._cards:
            raise DuplicateCard(index, self.name)

    def add(self, index: int) -> None:
        """Add a card to the set"""
        self._validate_new(index)
        self._cards[index] = None

    def add_many(self, indices: Iterable[int]) -> None:
        """Add several cards. Nothing is added if any of them is rejected."""
        indices = list(indices)
        seen = set()
        for index in indices:
            self._validate_new(index)
            if index in seen:
                raise DuplicateCard(index, self.name)
            seen.add(index)
        for index in indices:
            self._cards[index] = None

    def remove(self, index: int) -> bool:
        """
        Remove a card from the set.
        Returns True if removed, False if not found.
        """
        if index in self._cards:
            del self._cards[index]
            return True
        return False

    def remove_many(self, indices: Iterable[int]) -> int:
        """Remove several cards, returning how many were present"""
        return sum(1 for index in list(indices) if self.remove(index))

    def contains(self, index: int) -> bool:
        """Check if card is in the set"""
        return index in self._cards

    def find_by_type(self, card_type: CardType) -> List[int]:
        """Cards of the given type, in set order"""
        return [i for i in self._cards if CARDS[i].card_type == card_type]

    def find_by_month(self, month: int) -> List[int]:
        """Cards of the given month, in set order"""
        return [i for i in self._cards if CARDS[i].month == month]

    def count_type(self, card_type: CardType) -> int:
        return len(self.find_by_type(card_type))

    def without(self, *indices: int) -> 'CardSet':
        """Copy of this set with the given cards left out"""
        excluded = set(indices)
        return CardSet((i for i in self._cards if i not in excluded), name=self.name)

    def to_count_array(self) -> np.ndarray:
        """
        Convert to a 12-element array counting cards per month.
        Element 0 is January.
        """
        if not self._cards:
            return np.zeros(NUM_MONTHS, dtype=np.int8)
        months = np.fromiter((CARDS[i].month - 1 for i in self._cards), dtype=np.int64)
        return np.bincount(months, minlength=NUM_MONTHS).astype(np.int8)

    def to_binary_array(self) -> np.ndarray:
        """Convert to a 48-element membership array"""
        binary = np.zeros(NUM_CARDS, dtype=np.int8)
        if self._cards:
            binary[list(self._cards)] = 1
        return binary

    def to_list(self) -> List[int]:
        return list(self._cards)

    def clear(self) -> None:
        self._cards.clear()

    def copy(self) -> 'CardSet':
        """Create a copy of this card set"""
        return CardSet(self._cards, name=self.name)

    @property
    def is_empty(self) -> bool:
        return not self._cards

    def __contains__(self, index: object) -> bool:
        return index in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._cards))

    def __eq__(self, other) -> bool:
        """Two sets are equal if they hold the same cards, in any order"""
        if not isinstance(other, CardSet):
            return NotImplemented
        return self._cards.keys() == other._cards.keys()

    def __repr__(self) -> str:
        label = f"{self.name}: " if self.name else ""
        return f"CardSet({label}{', '.join(str(i) for i in self._cards)})"


def as_card_set(cards: Iterable[int]) -> CardSet:
    """Return cards as a CardSet, copying only when it is not one already"""
    if isinstance(cards, CardSet):
        return cards
    return CardSet(cards)
