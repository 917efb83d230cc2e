"""
Hanafuda Card Table

Defines the 48 cards of the Hanafuda deck:
- 12 months, one flower per month
- 4 cards per month
- Card types: Bright (光), Animal (タネ), Ribbon (短冊), Chaff (カス)

Card identifiers are the indices 0-47 into CARDS. The order is fixed:
months ascending, and within a month the traditional table order.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .errors import InvalidCardIndex


class CardType(IntEnum):
    """Card types, ordered by sort rank (Chaff lowest)"""
    CHAFF = 0   # カス (Kasu)
    RIBBON = 1  # 短冊 (Tanzaku)
    ANIMAL = 2  # タネ (Tane)
    BRIGHT = 3  # 光 (Hikari)

    @property
    def label(self) -> str:
        return self.name.lower()


class Flower(IntEnum):
    """Flowers of the deck. The value is the flower's month."""
    PINE = 1            # 松 (Matsu)
    PLUM = 2            # 梅 (Ume)
    CHERRY = 3          # 桜 (Sakura)
    WISTERIA = 4        # 藤 (Fuji)
    IRIS = 5            # 菖蒲 (Ayame)
    PEONY = 6           # 牡丹 (Botan)
    BUSH_CLOVER = 7     # 萩 (Hagi)
    SUSUKI = 8          # 芒 (Susuki)
    CHRYSANTHEMUM = 9   # 菊 (Kiku)
    MAPLE = 10          # 紅葉 (Momiji)
    WILLOW = 11         # 柳 (Yanagi)
    PAULOWNIA = 12      # 桐 (Kiri)

    @property
    def slug(self) -> str:
        return self.name.lower().replace("_", "-")


NUM_CARDS = 48
NUM_MONTHS = 12
CARDS_PER_MONTH = 4


@dataclass(frozen=True)
class Card:
    """
    A single Hanafuda card.

    Attributes:
        index: Card identifier (0-47)
        name: Short name within its month (e.g. "crane", "chaff-1")
        card_type: Bright, Animal, Ribbon or Chaff
        flower: Flower of the card's month
        month: Month (1-12)
    """
    index: int
    name: str
    card_type: CardType
    flower: Flower
    month: int

    def __post_init__(self):
        if not 0 <= self.index < NUM_CARDS:
            raise InvalidCardIndex(self.index)
        if self.flower.value != self.month:
            raise ValueError(f"Flower {self.flower.name} does not belong to month {self.month}")

    @property
    def id(self) -> str:
        """Textual identifier, e.g. 'willow-rain-man'"""
        return f"{self.flower.slug}-{self.name}"

    def __str__(self) -> str:
        return f"{self.id} ({self.month}, {self.card_type.label})"


_CARD_DATA: Tuple[Tuple[str, CardType, Flower], ...] = (
    # January - Pine
    ("crane", CardType.BRIGHT, Flower.PINE),                     # 0
    ("poetry-ribbon", CardType.RIBBON, Flower.PINE),             # 1
    ("chaff-1", CardType.CHAFF, Flower.PINE),                    # 2
    ("chaff-2", CardType.CHAFF, Flower.PINE),                    # 3
    # February - Plum
    ("bush-warbler", CardType.ANIMAL, Flower.PLUM),              # 4
    ("poetry-ribbon", CardType.RIBBON, Flower.PLUM),             # 5
    ("chaff-1", CardType.CHAFF, Flower.PLUM),                    # 6
    ("chaff-2", CardType.CHAFF, Flower.PLUM),                    # 7
    # March - Cherry
    ("curtain", CardType.BRIGHT, Flower.CHERRY),                 # 8
    ("poetry-ribbon", CardType.RIBBON, Flower.CHERRY),           # 9
    ("chaff-1", CardType.CHAFF, Flower.CHERRY),                  # 10
    ("chaff-2", CardType.CHAFF, Flower.CHERRY),                  # 11
    # April - Wisteria
    ("cuckoo", CardType.ANIMAL, Flower.WISTERIA),                # 12
    ("red-ribbon", CardType.RIBBON, Flower.WISTERIA),            # 13
    ("chaff-1", CardType.CHAFF, Flower.WISTERIA),                # 14
    ("chaff-2", CardType.CHAFF, Flower.WISTERIA),                # 15
    # May - Iris
    ("bridge", CardType.ANIMAL, Flower.IRIS),                    # 16
    ("red-ribbon", CardType.RIBBON, Flower.IRIS),                # 17
    ("chaff-1", CardType.CHAFF, Flower.IRIS),                    # 18
    ("chaff-2", CardType.CHAFF, Flower.IRIS),                    # 19
    # June - Peony
    ("butterfly", CardType.ANIMAL, Flower.PEONY),                # 20
    ("blue-ribbon", CardType.RIBBON, Flower.PEONY),              # 21
    ("chaff-1", CardType.CHAFF, Flower.PEONY),                   # 22
    ("chaff-2", CardType.CHAFF, Flower.PEONY),                   # 23
    # July - Bush Clover
    ("boar", CardType.ANIMAL, Flower.BUSH_CLOVER),               # 24
    ("red-ribbon", CardType.RIBBON, Flower.BUSH_CLOVER),         # 25
    ("chaff-1", CardType.CHAFF, Flower.BUSH_CLOVER),             # 26
    ("chaff-2", CardType.CHAFF, Flower.BUSH_CLOVER),             # 27
    # August - Susuki Grass
    ("moon", CardType.BRIGHT, Flower.SUSUKI),                    # 28
    ("geese", CardType.ANIMAL, Flower.SUSUKI),                   # 29
    ("chaff-1", CardType.CHAFF, Flower.SUSUKI),                  # 30
    ("chaff-2", CardType.CHAFF, Flower.SUSUKI),                  # 31
    # September - Chrysanthemum
    ("sake-cup", CardType.ANIMAL, Flower.CHRYSANTHEMUM),         # 32
    ("blue-ribbon", CardType.RIBBON, Flower.CHRYSANTHEMUM),      # 33
    ("chaff-1", CardType.CHAFF, Flower.CHRYSANTHEMUM),           # 34
    ("chaff-2", CardType.CHAFF, Flower.CHRYSANTHEMUM),           # 35
    # October - Maple
    ("deer", CardType.ANIMAL, Flower.MAPLE),                     # 36
    ("blue-ribbon", CardType.RIBBON, Flower.MAPLE),              # 37
    ("chaff-1", CardType.CHAFF, Flower.MAPLE),                   # 38
    ("chaff-2", CardType.CHAFF, Flower.MAPLE),                   # 39
    # November - Willow
    ("rain-man", CardType.BRIGHT, Flower.WILLOW),                # 40
    ("swallow", CardType.ANIMAL, Flower.WILLOW),                 # 41
    ("red-ribbon", CardType.RIBBON, Flower.WILLOW),              # 42
    ("chaff", CardType.CHAFF, Flower.WILLOW),                    # 43
    # December - Paulownia
    ("phoenix", CardType.BRIGHT, Flower.PAULOWNIA),              # 44
    ("chaff-1", CardType.CHAFF, Flower.PAULOWNIA),               # 45
    ("chaff-2", CardType.CHAFF, Flower.PAULOWNIA),               # 46
    ("chaff-3", CardType.CHAFF, Flower.PAULOWNIA),               # 47
)

CARDS: Tuple[Card, ...] = tuple(
    Card(index, name, card_type, flower, flower.value)
    for index, (name, card_type, flower) in enumerate(_CARD_DATA)
)


# Cards referenced by the scoring rules
CRANE = 0
CURTAIN = 8
MOON = 28
RAIN_MAN = 40
PHOENIX = 44

BUTTERFLY = 20
BOAR = 24
SAKE_CUP = 32
DEER = 36

POETRY_RIBBONS: Tuple[int, ...] = (1, 5, 9)
BLUE_RIBBONS: Tuple[int, ...] = (21, 33, 37)
RED_RIBBONS: Tuple[int, ...] = (13, 17, 25, 42)

BRIGHTS: Tuple[int, ...] = (CRANE, CURTAIN, MOON, RAIN_MAN, PHOENIX)
ANIMALS: Tuple[int, ...] = (4, 12, 16, BUTTERFLY, BOAR, 29, SAKE_CUP, DEER, 41)


def is_valid_card_index(index: object) -> bool:
    """Check if a value is a usable card identifier (bools are rejected)"""
    return (
        isinstance(index, int)
        and not isinstance(index, bool)
        and 0 <= index < NUM_CARDS
    )


def get_card(index: int) -> Card:
    """
    Look up a card by identifier.

    Raises:
        InvalidCardIndex: if index is not 0-47
    """
    if not is_valid_card_index(index):
        raise InvalidCardIndex(index)
    return CARDS[index]


def card_indices_by_type(card_type: CardType) -> List[int]:
    """All card identifiers of a given type"""
    return [card.index for card in CARDS if card.card_type == card_type]


def card_indices_by_month(month: int) -> List[int]:
    """All card identifiers of a given month"""
    return [card.index for card in CARDS if card.month == month]


def is_match(index1: int, index2: int) -> bool:
    """Two cards match when they share a month"""
    if not is_valid_card_index(index1) or not is_valid_card_index(index2):
        return False
    return CARDS[index1].month == CARDS[index2].month


def sort_key(index: int) -> Tuple[int, int, int]:
    """Sort by month, then Bright > Animal > Ribbon > Chaff, then identifier"""
    card = get_card(index)
    return (card.month, -card.card_type, card.index)


def sort_cards(indices: Iterable[int]) -> List[int]:
    return sorted(indices, key=sort_key)


def card_label(index: int) -> str:
    """Human-readable label used by the command-line front end"""
    card = get_card(index)
    return f"[{index:2d}] {card.id:<28} {card.month:2d}-{card.card_type.label}"
