"""
Koi-Koi Category Checkers

One factory per yaku category. Each factory takes that category's rule
sub-config and returns a checker:

    checker(cards, context=None) -> List[YakuResult]

Checkers never mutate their input and keep no state between calls.
"""

from typing import Callable, Iterable, List, Optional

import numpy as np

from hanafuda.cards import CardType, RAIN_MAN, SAKE_CUP, NUM_MONTHS
from hanafuda.collection import CardSet

from .rules import (
    BrightRules,
    AnimalRules,
    RibbonRules,
    ViewingRules,
    ChaffRules,
    MonthRules,
    ViewingMode,
)
from .yaku import (
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
    VIEWING_SEASONS,
    RAINY,
    FOGGY,
    ScoringContext,
    YakuCategory,
    YakuInstance,
    YakuResult,
    category_of,
)


Checker = Callable[..., List[YakuResult]]

_EMPTY_CONTEXT = ScoringContext()


def _card_set(cards: Iterable[int]) -> CardSet:
    # Always a private copy so checkers can drop wildcards freely
    return CardSet(cards)


def create_bright_checker(rules: Optional[BrightRules] = None) -> Checker:
    """
    Brights are checked 5 -> 4 -> 4 with rain-man -> 3. The plain four
    and three patterns are evaluated without the rain-man, so a set that
    needs the rain-man only ever scores the rainy four.
    """
    rules = rules or BrightRules()

    def check_brights(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        full = _card_set(cards)
        without_rain_man = full.without(RAIN_MAN)
        candidates = (
            (FIVE_BRIGHTS, full),
            (FOUR_BRIGHTS, without_rain_man),
            (RAINY_FOUR_BRIGHTS, full),
            (THREE_BRIGHTS, without_rain_man),
        )

        results = []
        for yaku, effective in candidates:
            points = yaku.check(effective)
            if points > 0:
                results.append(YakuResult(yaku.name, points))
                if not rules.allow_multiple:
                    break
        return results

    return check_brights


def create_animal_checker(rules: Optional[AnimalRules] = None) -> Checker:
    rules = rules or AnimalRules()

    def check_animals(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        effective = _card_set(cards)
        if not rules.count_sake_cup:
            effective.remove(SAKE_CUP)
        animal_count = effective.count_type(CardType.ANIMAL)

        results = []
        points = BOAR_DEER_BUTTERFLY.check(effective)
        if points > 0:
            extra = max(0, animal_count - 3) * rules.extra_points
            results.append(YakuResult(BOAR_DEER_BUTTERFLY.name, points + extra))
            if not rules.allow_multiple:
                return results

        points = FIVE_ANIMALS.check(effective)
        if points > 0:
            extra = max(0, animal_count - FIVE_ANIMALS.required_count) * rules.extra_points
            results.append(YakuResult(FIVE_ANIMALS.name, points + extra))
        return results

    return check_animals


def create_ribbon_checker(rules: Optional[RibbonRules] = None) -> Checker:
    rules = rules or RibbonRules()

    def check_ribbons(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        cards = _card_set(cards)
        results = []

        for yaku in (POETRY_RIBBONS_YAKU, BLUE_RIBBONS_YAKU, FIVE_RIBBONS):
            points = yaku.check(cards)
            if points <= 0:
                continue
            if yaku is FIVE_RIBBONS:
                ribbon_count = cards.count_type(CardType.RIBBON)
                points += max(0, ribbon_count - yaku.required_count) * rules.extra_points
            results.append(YakuResult(yaku.name, points))
            if not rules.allow_multiple:
                break
        return results

    return check_ribbons


def _has_other_category_yaku(completed: Iterable[YakuResult]) -> bool:
    return any(category_of(result.name) != YakuCategory.VIEWING for result in completed)


def _viewing_points(yaku: YakuInstance, base_points: int, context: ScoringContext, rules: ViewingRules) -> int:
    """Apply the season and weather knobs to one viewing yaku"""
    home_month = VIEWING_SEASONS[yaku.name]
    in_season = context.current_month == home_month

    if rules.seasonal_only and context.current_month and not in_season:
        return 0

    if rules.weather_dependent and context.weather:
        if yaku is FLOWER_VIEWING and context.weather == RAINY:
            return 0
        if yaku is MOON_VIEWING and context.weather == FOGGY:
            return 0

    if rules.seasonal_bonus and in_season:
        return base_points * 2
    return base_points


def create_viewing_checker(rules: Optional[ViewingRules] = None) -> Checker:
    """
    Flower and moon viewing. In LIMITED mode they only count when the
    caller's context already lists a yaku from another category; results
    found earlier in the same scoring call are not visible here.
    """
    rules = rules or ViewingRules()

    def check_viewing(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        context = context or _EMPTY_CONTEXT
        if rules.mode == ViewingMode.NEVER:
            return []
        if rules.mode == ViewingMode.LIMITED and not _has_other_category_yaku(context.completed_yaku):
            return []

        cards = _card_set(cards)
        results = []
        for yaku in (FLOWER_VIEWING, MOON_VIEWING):
            base_points = yaku.check(cards)
            if base_points <= 0:
                continue
            points = _viewing_points(yaku, base_points, context, rules)
            if points > 0:
                results.append(YakuResult(yaku.name, points))
        return results

    return check_viewing


def create_chaff_checker(rules: Optional[ChaffRules] = None) -> Checker:
    rules = rules or ChaffRules()

    def check_chaff(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        cards = _card_set(cards)
        chaff_count = cards.count_type(CardType.CHAFF)
        if rules.count_sake_cup and SAKE_CUP in cards:
            chaff_count += 1

        threshold = TEN_CHAFF.required_count
        if chaff_count < threshold:
            return []
        extra = (chaff_count - threshold) * rules.extra_points
        return [YakuResult(TEN_CHAFF.name, TEN_CHAFF.points + extra)]

    return check_chaff


def create_month_checker(rules: Optional[MonthRules] = None) -> Checker:
    rules = rules or MonthRules()

    def check_month(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        context = context or _EMPTY_CONTEXT
        if not context.current_month:
            return []

        cards = _card_set(cards)
        results = []
        month_yaku = MONTH_CARDS.for_month(context.current_month)
        points = month_yaku.check(cards)
        if points > 0:
            results.append(YakuResult(MONTH_CARDS.name, points))

        if rules.allow_multiple_months:
            counts = cards.to_count_array()
            for month in range(1, NUM_MONTHS + 1):
                if month != context.current_month and counts[month - 1] == MONTH_CARDS.required_count:
                    results.append(YakuResult(MONTH_CARDS.name, MONTH_CARDS.points))
        return results

    return check_month


def create_hand_checker() -> Checker:
    """
    Teyaku on the dealt 8-card hand. Only runs when the context asks for
    it; four of a month is tested before four pairs.
    """

    def check_hand(cards: Iterable[int], context: Optional[ScoringContext] = None) -> List[YakuResult]:
        context = context or _EMPTY_CONTEXT
        if not context.check_teyaku:
            return []

        cards = _card_set(cards)
        if len(cards) != 8:
            return []

        counts = cards.to_count_array()
        present = counts[counts > 0]
        if np.any(present == 4):
            return [YakuResult(FOUR_OF_A_MONTH.name, FOUR_OF_A_MONTH.points)]
        if np.all(present == 2):
            return [YakuResult(FOUR_PAIRS.name, FOUR_PAIRS.points)]
        return []

    return check_hand
