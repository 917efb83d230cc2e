"""
Hanafuda Draw Pile

Handles the draw pile: shuffling, dealing and drawing from the top.
"""

import random
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .cards import NUM_CARDS, is_valid_card_index
from .errors import DuplicateCard, InvalidCardIndex


@dataclass(eq=False)
class DrawPile:
    """
    Ordered pile of card identifiers. The top of the pile is the end of
    the list.

    Attributes:
        cards: Remaining cards, bottom first
        seed: Random seed used for the last shuffle
    """
    cards: Optional[List[int]] = None
    seed: Optional[int] = None
    shuffled: bool = True
    _rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self):
        if self.seed is not None:
            self._rng.seed(self.seed)
        if self.cards is None:
            self._create_pile()
        else:
            cards = list(self.cards)
            self.cards = []
            for index in cards:
                self.place_on_top(index)

    def _create_pile(self) -> None:
        """Create a full 48-card pile, shuffled unless disabled"""
        self.cards = list(range(NUM_CARDS))
        if self.shuffled:
            self.shuffle()

    def shuffle(self) -> None:
        """Shuffle the pile"""
        self._rng.shuffle(self.cards)

    def draw(self) -> Optional[int]:
        """
        Draw the top card.
        Returns None if the pile is empty.
        """
        if not self.cards:
            return None
        return self.cards.pop()

    def draw_many(self, count: int) -> List[int]:
        """
        Draw several cards from the top.
        Returns fewer cards if the pile runs out.
        """
        drawn = []
        for _ in range(count):
            index = self.draw()
            if index is None:
                break
            drawn.append(index)
        return drawn

    def _check_placement(self, index: int) -> None:
        if not is_valid_card_index(index):
            raise InvalidCardIndex(index)
        if index in self.cards:
            raise DuplicateCard(index, "draw pile")

    def place_on_top(self, index: int) -> None:
        self._check_placement(index)
        self.cards.append(index)

    def place_on_bottom(self, index: int) -> None:
        self._check_placement(index)
        self.cards.insert(0, index)

    def reset(self, seed: Optional[int] = None) -> None:
        """Rebuild the full pile with optional random seed"""
        if seed is not None:
            self.seed = seed
            self._rng.seed(seed)
        self._create_pile()

    @property
    def remaining(self) -> int:
        """Number of cards left in the pile"""
        return len(self.cards)

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def to_list(self) -> List[int]:
        return list(self.cards)

    def copy(self) -> 'DrawPile':
        """Create a copy of the pile (same order, no reshuffle)"""
        return DrawPile(cards=list(self.cards), seed=self.seed, shuffled=self.shuffled)

    def __contains__(self, index: object) -> bool:
        return index in self.cards

    def __iter__(self) -> Iterator[int]:
        return iter(list(self.cards))

    def __len__(self) -> int:
        return len(self.cards)

    def __eq__(self, other) -> bool:
        """Piles are equal when they hold the same cards in the same order"""
        if not isinstance(other, DrawPile):
            return NotImplemented
        return self.cards == other.cards

    def __repr__(self) -> str:
        return f"DrawPile({self.remaining} cards remaining)"
