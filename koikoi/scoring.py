"""
Koi-Koi Scoring System

Runs the category checkers under one rule configuration.
"""

from typing import Iterable, List, Optional

from hanafuda.collection import CardSet

from .rules import RuleConfig, KOIKOI_RULES
from .checkers import (
    Checker,
    create_bright_checker,
    create_animal_checker,
    create_ribbon_checker,
    create_viewing_checker,
    create_chaff_checker,
    create_month_checker,
    create_hand_checker,
)
from .yaku import ScoringContext, YakuResult, RAINY, FOGGY


class ScoringManager:
    """
    Scores a card set against every yaku category.

    Teyaku mode (context.check_teyaku) only runs the hand checker; play
    mode runs Bright, Animal, Ribbon, Viewing, Chaff and Month in that
    order and concatenates their results.
    """

    def __init__(self, config: Optional[RuleConfig] = None):
        self.config = config or KOIKOI_RULES
        self.hand_checker = create_hand_checker()
        self.play_checkers: List[Checker] = [
            create_bright_checker(self.config.bright),
            create_animal_checker(self.config.animal),
            create_ribbon_checker(self.config.ribbon),
            create_viewing_checker(self.config.viewing),
            create_chaff_checker(self.config.chaff),
            create_month_checker(self.config.month),
        ]

    def score(self, cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        """
        Score a card set.

        Every checker receives the caller's context unchanged; yaku found
        earlier in this call are never added to context.completed_yaku.

        Args:
            cards: Card identifiers (captured pile or dealt hand)
            context: Month, weather, teyaku flag and already-announced yaku

        Returns:
            Results in checker order (empty if nothing scores)
        """
        context = context or ScoringContext()
        cards = CardSet(cards)

        if context.check_teyaku:
            return self.hand_checker(cards, context)

        results: List[YakuResult] = []
        for checker in self.play_checkers:
            results.extend(checker(cards, context))
        return results

    @staticmethod
    def total_points(results: Iterable[YakuResult]) -> int:
        """Sum of the points of a result list"""
        return sum(result.points for result in results)

    def __repr__(self) -> str:
        return f"ScoringManager({self.config.name})"


__all__ = [
    "ScoringManager",
    "ScoringContext",
    "YakuResult",
    "RAINY",
    "FOGGY",
]
