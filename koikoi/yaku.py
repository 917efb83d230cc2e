"""
Koi-Koi Yaku Library

The fixed catalogue of scoring combinations. Each yaku is plain data: a
name, base points and a tuple of card-pattern clauses. Rule variants
(extra points, wildcards, seasons) are applied by the category checkers,
never here.

Scoring results and the per-call scoring context live here as well so
that the checkers and the scoring manager share one definition.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Dict, Iterable, Optional, Tuple

from hanafuda.cards import (
    CARDS,
    CardType,
    Flower,
    RAIN_MAN,
    CURTAIN,
    MOON,
    SAKE_CUP,
    BOAR,
    DEER,
    BUTTERFLY,
    POETRY_RIBBONS,
    BLUE_RIBBONS,
    Card,
)
from hanafuda.collection import as_card_set


class YakuCategory(IntEnum):
    """Scoring categories, in the order the scoring manager runs them"""
    BRIGHT = 0
    ANIMAL = 1
    RIBBON = 2
    VIEWING = 3
    CHAFF = 4
    MONTH = 5
    HAND = 6


@dataclass(frozen=True)
class CardPattern:
    """
    One clause of a yaku pattern.

    A clause either names one specific card, or asks for at least
    `count` cards sharing every attribute it sets.
    """
    card: Optional[int] = None
    card_type: Optional[CardType] = None
    flower: Optional[Flower] = None
    month: Optional[int] = None
    count: int = 1

    @property
    def is_bound(self) -> bool:
        """False for templates still waiting for a month"""
        return any(
            value is not None
            for value in (self.card, self.card_type, self.flower, self.month)
        )

    def accepts(self, card: Card) -> bool:
        """Check a single card against the clause's attributes"""
        if self.card is not None and card.index != self.card:
            return False
        if self.card_type is not None and card.card_type != self.card_type:
            return False
        if self.flower is not None and card.flower != self.flower:
            return False
        if self.month is not None and card.month != self.month:
            return False
        return True

    def matches(self, cards: Iterable[int]) -> bool:
        """
        Existence check against a whole card set. Having more matching
        cards than required still satisfies the clause.
        """
        if not self.is_bound:
            raise ValueError("Pattern has no card, type, flower or month to match")
        if self.card is not None:
            return self.card in as_card_set(cards)
        found = sum(1 for index in cards if self.accepts(CARDS[index]))
        return found >= self.count


@dataclass(frozen=True)
class YakuInstance:
    """
    A named scoring combination.

    Attributes:
        name: Identifier used in results and in the completed-yaku set
        description: Display name
        points: Base points
        category: Category checker responsible for this yaku
        pattern: Clauses that must all hold
    """
    name: str
    description: str
    points: int
    category: YakuCategory
    pattern: Tuple[CardPattern, ...] = ()

    def check(self, cards: Iterable[int]) -> int:
        """
        Return the base points if every clause is satisfied, else 0.

        Each clause is tested on its own against the whole set, so one
        card may satisfy several clauses. Yaku without clauses (the
        hand yaku) are decided by their checker and always return 0.
        """
        if not self.pattern:
            return 0
        cards = as_card_set(cards)
        for clause in self.pattern:
            if not clause.matches(cards):
                return 0
        return self.points

    def for_month(self, month: int) -> 'YakuInstance':
        """Bind every month-less template clause to a concrete month"""
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {month}")
        pattern = tuple(
            clause if clause.is_bound else replace(clause, month=month)
            for clause in self.pattern
        )
        return replace(self, pattern=pattern)

    @property
    def required_count(self) -> int:
        """Cards needed by the largest clause (the threshold for count yaku)"""
        return max((clause.count for clause in self.pattern), default=0)

    def __repr__(self) -> str:
        return f"Yaku({self.name}, {self.points})"


def _cards(*indices: int) -> Tuple[CardPattern, ...]:
    return tuple(CardPattern(card=index) for index in indices)


# Brights (光札)
FIVE_BRIGHTS = YakuInstance(
    "5-bright", "Five Brights", 15, YakuCategory.BRIGHT,
    (CardPattern(card_type=CardType.BRIGHT, count=5),),
)
FOUR_BRIGHTS = YakuInstance(
    "4-bright", "Four Brights", 8, YakuCategory.BRIGHT,
    (CardPattern(card_type=CardType.BRIGHT, count=4),),
)
RAINY_FOUR_BRIGHTS = YakuInstance(
    "4-bright-with-wildcard", "Rainy Four Brights", 7, YakuCategory.BRIGHT,
    (CardPattern(card=RAIN_MAN), CardPattern(card_type=CardType.BRIGHT, count=3)),
)
THREE_BRIGHTS = YakuInstance(
    "3-bright", "Three Brights", 6, YakuCategory.BRIGHT,
    (CardPattern(card_type=CardType.BRIGHT, count=3),),
)

# Animals (タネ)
BOAR_DEER_BUTTERFLY = YakuInstance(
    "boar-deer-butterfly", "Boar, Deer and Butterfly", 5, YakuCategory.ANIMAL,
    _cards(BOAR, DEER, BUTTERFLY),
)
FIVE_ANIMALS = YakuInstance(
    "5-animals", "Five Animals", 1, YakuCategory.ANIMAL,
    (CardPattern(card_type=CardType.ANIMAL, count=5),),
)

# Ribbons (短冊)
POETRY_RIBBONS_YAKU = YakuInstance(
    "poetry-ribbons", "Red Poetry Ribbons", 5, YakuCategory.RIBBON,
    _cards(*POETRY_RIBBONS),
)
BLUE_RIBBONS_YAKU = YakuInstance(
    "blue-ribbons", "Blue Ribbons", 5, YakuCategory.RIBBON,
    _cards(*BLUE_RIBBONS),
)
FIVE_RIBBONS = YakuInstance(
    "5-ribbons", "Five Ribbons", 1, YakuCategory.RIBBON,
    (CardPattern(card_type=CardType.RIBBON, count=5),),
)

# Viewing (見)
FLOWER_VIEWING = YakuInstance(
    "flower-viewing", "Flower Viewing Sake", 3, YakuCategory.VIEWING,
    _cards(CURTAIN, SAKE_CUP),
)
MOON_VIEWING = YakuInstance(
    "moon-viewing", "Moon Viewing Sake", 3, YakuCategory.VIEWING,
    _cards(MOON, SAKE_CUP),
)

# Chaff (カス)
TEN_CHAFF = YakuInstance(
    "10-chaff", "Ten Chaff", 1, YakuCategory.CHAFF,
    (CardPattern(card_type=CardType.CHAFF, count=10),),
)

# Month cards (月札), bound to the round's month with for_month()
MONTH_CARDS = YakuInstance(
    "4-cards-of-month", "Four Cards of the Month", 4, YakuCategory.MONTH,
    (CardPattern(count=4),),
)

# Hand yaku (手役), only checked on the dealt hand
FOUR_OF_A_MONTH = YakuInstance(
    "4-of-a-month", "Four of a Month in Hand", 6, YakuCategory.HAND,
)
FOUR_PAIRS = YakuInstance(
    "four-pairs", "Four Pairs in Hand", 6, YakuCategory.HAND,
)


# Home months of the viewing yaku
VIEWING_SEASONS: Dict[str, int] = {
    FLOWER_VIEWING.name: 3,
    MOON_VIEWING.name: 8,
}

ALL_YAKU: Tuple[YakuInstance, ...] = (
    FIVE_BRIGHTS,
    FOUR_BRIGHTS,
    RAINY_FOUR_BRIGHTS,
    THREE_BRIGHTS,
    BOAR_DEER_BUTTERFLY,
    FIVE_ANIMALS,
    POETRY_RIBBONS_YAKU,
    BLUE_RIBBONS_YAKU,
    FIVE_RIBBONS,
    FLOWER_VIEWING,
    MOON_VIEWING,
    TEN_CHAFF,
    MONTH_CARDS,
    FOUR_OF_A_MONTH,
    FOUR_PAIRS,
)

YAKU_BY_NAME: Dict[str, YakuInstance] = {yaku.name: yaku for yaku in ALL_YAKU}


def get_yaku(name: str) -> YakuInstance:
    """Look up a catalogue entry by name"""
    try:
        return YAKU_BY_NAME[name]
    except KeyError:
        raise ValueError(f"Unknown yaku: {name}") from None


def category_of(name: str) -> Optional[YakuCategory]:
    """Category of a yaku name, or None for names outside the catalogue"""
    yaku = YAKU_BY_NAME.get(name)
    return yaku.category if yaku else None


@dataclass(frozen=True)
class YakuResult:
    """A scored yaku: name and final points after rule modifiers"""
    name: str
    points: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "points": self.points}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'YakuResult':
        return cls(name=str(data["name"]), points=int(data["points"]))


# Weather values understood by the viewing rules
RAINY = "rainy"
FOGGY = "foggy"


@dataclass(frozen=True)
class ScoringContext:
    """
    Per-call scoring input.

    Attributes:
        current_month: Month of the round (1-12), used by the month and
            viewing rules
        weather: Optional weather string ("rainy", "foggy", ...)
        check_teyaku: Score the dealt hand instead of a captured pile
        completed_yaku: Yaku already announced earlier in the round
    """
    current_month: Optional[int] = None
    weather: Optional[str] = None
    check_teyaku: bool = False
    completed_yaku: Tuple[YakuResult, ...] = field(default_factory=tuple)
