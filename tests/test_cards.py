"""
Tests for the Hanafuda card table, card sets and draw pile
"""

import pytest
import numpy as np

from hanafuda.cards import (
    CARDS,
    NUM_CARDS,
    CardType,
    Flower,
    CRANE,
    CURTAIN,
    MOON,
    RAIN_MAN,
    PHOENIX,
    SAKE_CUP,
    BRIGHTS,
    ANIMALS,
    POETRY_RIBBONS,
    BLUE_RIBBONS,
    get_card,
    is_match,
    is_valid_card_index,
    card_indices_by_type,
    card_indices_by_month,
    sort_cards,
)
from hanafuda.collection import CardSet
from hanafuda.deck import DrawPile
from hanafuda.errors import DuplicateCard, InvalidCardIndex


class TestCardTable:
    """Test the static card table"""

    def test_table_shape(self):
        """Test 48 cards, 4 per month"""
        assert len(CARDS) == NUM_CARDS
        for month in range(1, 13):
            assert len(card_indices_by_month(month)) == 4

    def test_card_indices_match_position(self):
        """Test each card's index is its position in the table"""
        for i, card in enumerate(CARDS):
            assert card.index == i
            assert card.flower.value == card.month

    def test_type_counts(self):
        """Test the traditional split: 5 brights, 9 animals, 10 ribbons, 24 chaff"""
        assert card_indices_by_type(CardType.BRIGHT) == list(BRIGHTS)
        assert card_indices_by_type(CardType.ANIMAL) == list(ANIMALS)
        assert len(card_indices_by_type(CardType.RIBBON)) == 10
        assert len(card_indices_by_type(CardType.CHAFF)) == 24

    def test_named_cards(self):
        """Test the cards referenced by the scoring rules"""
        assert get_card(CRANE).id == "pine-crane"
        assert get_card(CURTAIN).id == "cherry-curtain"
        assert get_card(MOON).id == "susuki-moon"
        assert get_card(RAIN_MAN).id == "willow-rain-man"
        assert get_card(PHOENIX).id == "paulownia-phoenix"

        sake_cup = get_card(SAKE_CUP)
        assert sake_cup.month == 9
        assert sake_cup.card_type == CardType.ANIMAL
        assert sake_cup.flower == Flower.CHRYSANTHEMUM

        for index in POETRY_RIBBONS + BLUE_RIBBONS:
            assert get_card(index).card_type == CardType.RIBBON

    def test_invalid_index(self):
        """Test out-of-range and non-integer identifiers are rejected"""
        for bad in (-1, 48, 100, "3", 2.0, True, None):
            assert not is_valid_card_index(bad)
            with pytest.raises(InvalidCardIndex):
                get_card(bad)

    def test_invalid_index_is_value_error(self):
        """Test InvalidCardIndex can be caught as ValueError"""
        with pytest.raises(ValueError):
            get_card(48)

    def test_is_match(self):
        """Test cards match by month"""
        assert is_match(0, 1)
        assert is_match(40, 43)
        assert not is_match(0, 4)
        assert not is_match(0, 99)

    def test_sort_cards(self):
        """Test sorting by month, then brights before chaff"""
        assert sort_cards([3, 40, 0, 8, 1]) == [0, 1, 3, 8, 40]
        assert sort_cards([43, 42, 41, 40]) == [40, 41, 42, 43]


class TestCardSet:
    """Test CardSet operations"""

    def test_add_remove(self):
        """Test adding and removing cards"""
        cards = CardSet()
        cards.add(0)
        cards.add(8)

        assert len(cards) == 2
        assert cards.contains(0)
        assert 8 in cards

        assert cards.remove(0)
        assert not cards.remove(0)
        assert len(cards) == 1

    def test_add_rejects_bad_cards(self):
        """Test duplicate and out-of-range cards are rejected"""
        cards = CardSet([1, 2], name="field")
        with pytest.raises(DuplicateCard):
            cards.add(1)
        with pytest.raises(InvalidCardIndex):
            cards.add(48)
        assert cards.to_list() == [1, 2]

    def test_add_many_is_atomic(self):
        """Test nothing is added when one card of a batch is rejected"""
        cards = CardSet([1])
        with pytest.raises(DuplicateCard):
            cards.add_many([2, 3, 1])
        with pytest.raises(DuplicateCard):
            cards.add_many([4, 4])
        assert cards.to_list() == [1]

    def test_insertion_order(self):
        """Test iteration follows insertion order"""
        cards = CardSet([40, 0, 28])
        assert list(cards) == [40, 0, 28]

    def test_filters(self):
        """Test filtering by type and month"""
        cards = CardSet([0, 1, 2, 8, 40, 41])
        assert cards.find_by_type(CardType.BRIGHT) == [0, 8, 40]
        assert cards.find_by_month(1) == [0, 1, 2]
        assert cards.count_type(CardType.ANIMAL) == 1

    def test_without(self):
        """Test without() leaves the original untouched"""
        cards = CardSet([0, 8, 40])
        reduced = cards.without(40)
        assert reduced.to_list() == [0, 8]
        assert len(cards) == 3

    def test_equality_ignores_order(self):
        """Test set equality"""
        assert CardSet([1, 2, 3]) == CardSet([3, 2, 1])
        assert CardSet([1, 2]) != CardSet([1, 2, 3])

    def test_copy_is_independent(self):
        """Test copies do not share storage"""
        cards = CardSet([1, 2])
        copied = cards.copy()
        copied.add(3)
        assert len(cards) == 2

    def test_to_count_array(self):
        """Test month count encoding"""
        cards = CardSet([0, 1, 2, 40, 47])
        counts = cards.to_count_array()

        assert counts.shape == (12,)
        assert counts[0] == 3   # January
        assert counts[10] == 1  # November
        assert counts[11] == 1  # December
        assert counts.sum() == 5

    def test_empty_count_array(self):
        """Test an empty set encodes to zeros"""
        assert not CardSet().to_count_array().any()

    def test_to_binary_array(self):
        """Test membership encoding"""
        binary = CardSet([0, 47]).to_binary_array()
        assert binary.shape == (48,)
        assert binary[0] == 1 and binary[47] == 1
        assert np.sum(binary) == 2


class TestDrawPile:
    """Test the draw pile"""

    def test_full_pile(self):
        """Test a new pile holds all 48 cards"""
        pile = DrawPile(seed=1)
        assert pile.remaining == 48
        assert sorted(pile.to_list()) == list(range(48))

    def test_seed_reproducible(self):
        """Test the same seed gives the same order"""
        assert DrawPile(seed=7) == DrawPile(seed=7)
        assert DrawPile(seed=7) != DrawPile(seed=8)

    def test_unshuffled(self):
        """Test shuffling can be disabled"""
        pile = DrawPile(shuffled=False)
        assert pile.draw() == 47

    def test_draw_from_top(self):
        """Test draw pops from the end of the list"""
        pile = DrawPile(cards=[5, 6, 7])
        assert pile.draw() == 7
        assert pile.draw_many(5) == [6, 5]
        assert pile.draw() is None
        assert pile.is_empty

    def test_place(self):
        """Test placing cards on top and bottom"""
        pile = DrawPile(cards=[5])
        pile.place_on_top(6)
        pile.place_on_bottom(4)
        assert pile.to_list() == [4, 5, 6]

        with pytest.raises(DuplicateCard):
            pile.place_on_top(5)
        with pytest.raises(InvalidCardIndex):
            pile.place_on_bottom(-1)

    def test_rejects_duplicate_cards(self):
        """Test a pile cannot be built with a card twice"""
        with pytest.raises(DuplicateCard):
            DrawPile(cards=[1, 1])

    def test_reset(self):
        """Test reset rebuilds a full pile"""
        pile = DrawPile(seed=3)
        pile.draw_many(10)
        pile.reset(seed=3)
        assert pile == DrawPile(seed=3)

    def test_copy_keeps_order(self):
        """Test copying does not reshuffle"""
        pile = DrawPile(seed=11)
        copied = pile.copy()
        assert copied == pile
        copied.draw()
        assert copied != pile
