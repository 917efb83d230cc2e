"""
Hanafuda Card Primitives
The 48-card table, card sets and the draw pile shared by Hanafuda games
"""

from .cards import (
    Card,
    CardType,
    Flower,
    CARDS,
    NUM_CARDS,
    get_card,
    is_match,
    is_valid_card_index,
)
from .collection import CardSet
from .deck import DrawPile
from .errors import (
    HanafudaError,
    InvalidCardIndex,
    DuplicateCard,
    InvalidPhaseAction,
    InvalidSelection,
    InvalidStateData,
)

__version__ = "0.1.0"
__all__ = [
    "Card",
    "CardType",
    "Flower",
    "CARDS",
    "NUM_CARDS",
    "get_card",
    "is_match",
    "is_valid_card_index",
    "CardSet",
    "DrawPile",
    "HanafudaError",
    "InvalidCardIndex",
    "DuplicateCard",
    "InvalidPhaseAction",
    "InvalidSelection",
    "InvalidStateData",
]
