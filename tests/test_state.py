"""
Tests for round state snapshots and their validation
"""

import json

import pytest

from hanafuda.errors import HanafudaError, InvalidStateData
from koikoi.game import KoiKoiGame
from koikoi.state import (
    GamePhase,
    RoundEndReason,
    RoundResult,
    RoundState,
    load_state_file,
    save_state,
)
from koikoi.yaku import YakuResult


def valid_state(make_state, **extra):
    return make_state({"p1": [4, 45], "p2": [46, 47]}, field=[5, 8, 12], top=[30], **extra)


class TestRoundTrip:
    """Test snapshot serialization"""

    def test_dealt_round(self):
        """Test a freshly dealt round survives to_dict / from_dict"""
        state = KoiKoiGame(seed=9).start_round().state
        data = state.to_dict()

        restored = RoundState.from_dict(data)
        assert restored.to_dict() == data
        assert restored.deck == state.deck
        assert restored.phase == state.phase

    def test_json_keys(self, make_state):
        """Test the snapshot uses the documented keys"""
        data = RoundState.from_dict(valid_state(make_state)).to_dict()
        assert set(data) == {
            "deck", "field", "players", "currentPlayer", "currentMonth", "weather",
            "completedYaku", "phase", "isKoiKoiCalled", "koiKoiCount", "koiKoiPlayer",
            "drawnCard", "selectedHandCard", "selectedFieldCards",
        }
        assert data["players"]["p1"] == {"hand": [4, 45], "captured": []}
        assert data["phase"] == "MATCHING_HAND"

    def test_mid_round(self, make_state):
        """Test koi-koi bookkeeping and a pending draw are kept"""
        data = make_state(
            {"p1": [45], "p2": [46]},
            field=[8, 9, 10],
            captured={"p1": [24, 36, 20, 21]},
            phase="WAITING_FOR_DECK_MATCH",
            drawnCard=8,
            weather="rainy",
            isKoiKoiCalled=True,
            koiKoiCount=2,
            koiKoiPlayer="p1",
            completedYaku=[{"name": "boar-deer-butterfly", "points": 5}],
        )
        state = RoundState.from_dict(data)

        assert state.phase == GamePhase.WAITING_FOR_DECK_MATCH
        assert state.drawn_card == 8
        assert state.koi_koi_count == 2
        assert state.completed_yaku == [YakuResult("boar-deer-butterfly", 5)]
        assert RoundState.from_dict(state.to_dict()).to_dict() == state.to_dict()

    def test_optional_keys(self, make_state):
        """Test missing optional keys fall back to defaults"""
        data = valid_state(make_state)
        del data["phase"]
        state = RoundState.from_dict(data)
        assert state.phase == GamePhase.MATCHING_HAND
        assert state.weather is None
        assert not state.is_koi_koi_called
        assert state.completed_yaku == []

    def test_file(self, tmp_path):
        """Test save_state / load_state_file"""
        state = KoiKoiGame(seed=4).start_round(weather="foggy").state
        path = tmp_path / "round.json"

        save_state(path, state)
        assert json.loads(path.read_text())["weather"] == "foggy"
        assert load_state_file(path).to_dict() == state.to_dict()

    def test_copy_is_independent(self, make_state):
        """Test copies share no collections"""
        state = RoundState.from_dict(valid_state(make_state))
        copied = state.copy()
        copied.deck.draw()
        copied.players["p1"].hand.clear()
        copied.completed_yaku.append(YakuResult("5-bright", 15))

        assert state.deck.remaining == copied.deck.remaining + 1
        assert len(state.players["p1"].hand) == 2
        assert state.completed_yaku == []


class TestValidation:
    """Test malformed snapshots are rejected"""

    def check_rejected(self, data):
        with pytest.raises(InvalidStateData):
            RoundState.from_dict(data)

    def test_invalid_card_values(self, make_state):
        """Test out-of-range, boolean and non-integer cards"""
        for bad in (48, -1, True, "5", 5.0):
            data = valid_state(make_state)
            data["field"] = data["field"] + [bad]
            self.check_rejected(data)

    def test_duplicate_across_collections(self, make_state):
        """Test one card in two places"""
        data = valid_state(make_state)
        data["field"].append(data["deck"][0])
        self.check_rejected(data)

    def test_duplicate_within_collection(self, make_state):
        """Test one card twice in the same place"""
        data = valid_state(make_state)
        data["players"]["p1"]["hand"].append(4)
        self.check_rejected(data)

    def test_missing_card(self, make_state):
        """Test 47 cards"""
        data = valid_state(make_state)
        data["deck"].pop()
        self.check_rejected(data)

    def test_player_count(self, make_state):
        """Test one or three players"""
        data = valid_state(make_state)
        data["players"]["p3"] = {"hand": [], "captured": []}
        self.check_rejected(data)

        data = valid_state(make_state)
        del data["players"]["p2"]
        self.check_rejected(data)

    def test_current_player(self, make_state):
        """Test the active player must be one of the two"""
        self.check_rejected(valid_state(make_state, currentPlayer="p3"))
        self.check_rejected(valid_state(make_state, currentPlayer=1))
        self.check_rejected(valid_state(make_state, koiKoiPlayer="p3"))

    def test_month(self, make_state):
        """Test months outside 1-12 and non-integers"""
        for month in (0, 13, True, "3", 3.5):
            self.check_rejected(valid_state(make_state, currentMonth=month))

    def test_phase(self, make_state):
        """Test unknown phases"""
        self.check_rejected(valid_state(make_state, phase="PLAYING"))

    def test_drawn_card(self, make_state):
        """Test the drawn card must be waiting on the field"""
        self.check_rejected(valid_state(make_state, drawnCard=4, phase="WAITING_FOR_DECK_MATCH"))
        self.check_rejected(valid_state(make_state, phase="WAITING_FOR_DECK_MATCH"))

    def test_selection(self, make_state):
        """Test selections must point at the hand and field"""
        self.check_rejected(valid_state(make_state, selectedHandCard=46))
        self.check_rejected(valid_state(make_state, selectedFieldCards=[4]))
        state = RoundState.from_dict(valid_state(
            make_state, phase="WAITING_FOR_FIELD_CARDS", selectedHandCard=4, selectedFieldCards=[5]))
        assert state.selected_field_cards == [5]

    def test_koi_koi_bookkeeping(self, make_state):
        """Test the koi-koi count, flag and caller must agree"""
        for extra in (
            {"koiKoiCount": -3, "isKoiKoiCalled": True, "koiKoiPlayer": "p1"},
            {"koiKoiCount": 1, "isKoiKoiCalled": True, "koiKoiPlayer": None},
            {"koiKoiCount": 2, "isKoiKoiCalled": False, "koiKoiPlayer": "p1"},
            {"koiKoiCount": 0, "isKoiKoiCalled": False, "koiKoiPlayer": "p1"},
            {"koiKoiCount": 0, "isKoiKoiCalled": True, "koiKoiPlayer": "p1"},
        ):
            self.check_rejected(valid_state(make_state, **extra))

        state = RoundState.from_dict(valid_state(
            make_state, koiKoiCount=1, isKoiKoiCalled=True, koiKoiPlayer="p2"))
        assert state.koi_koi_player == "p2"

    def test_pending_choice(self, make_state):
        """Test waiting phases need a source card with the right matches"""
        # 45 has no match on the field, 4 matches 5
        self.check_rejected(valid_state(make_state, phase="WAITING_FOR_FIELD_CARDS", selectedHandCard=45))
        self.check_rejected(valid_state(make_state, phase="WAITING_FOR_FIELD_CARDS"))
        self.check_rejected(valid_state(make_state, phase="NO_MATCHES_DISCARD", selectedHandCard=4))
        self.check_rejected(valid_state(make_state, phase="NO_MATCHES_DISCARD"))
        self.check_rejected(make_state(
            {"p1": [4], "p2": [46]}, field=[8, 45], phase="WAITING_FOR_DECK_MATCH", drawnCard=45))
        self.check_rejected(make_state(
            {"p1": [4], "p2": [46]}, field=[8, 9], phase="WAITING_FOR_DECK_MATCH", drawnCard=8))

        state = RoundState.from_dict(valid_state(make_state, phase="NO_MATCHES_DISCARD", selectedHandCard=45))
        assert state.selected_hand_card == 45

    def test_malformed_payload(self, make_state):
        """Test wrong shapes and missing keys"""
        self.check_rejected([])
        data = valid_state(make_state)
        del data["currentMonth"]
        self.check_rejected(data)
        self.check_rejected(valid_state(make_state, completedYaku=[{"name": "5-bright"}]))
        self.check_rejected(valid_state(make_state, weather=3))

        data = valid_state(make_state)
        data["deck"] = "0,1,2"
        self.check_rejected(data)

        with pytest.raises(InvalidStateData):
            RoundState.from_json("{not json")

    def test_error_hierarchy(self):
        """Test InvalidStateData is an engine error"""
        assert issubclass(InvalidStateData, HanafudaError)


class TestRoundResult:
    """Test the round result record"""

    def test_to_dict(self):
        """Test the JSON form"""
        result = RoundResult(
            round_number=3,
            winner="p1",
            points=10,
            multiplier=2,
            reason=RoundEndReason.SHOBU,
            yaku=(YakuResult("poetry-ribbons", 5),),
            scores={"p1": 10, "p2": 4},
        )
        assert result.to_dict() == {
            "roundNumber": 3,
            "winner": "p1",
            "points": 10,
            "multiplier": 2,
            "reason": "shobu",
            "yaku": [{"name": "poetry-ribbons", "points": 5}],
            "scores": {"p1": 10, "p2": 4},
        }
        assert not result.is_draw

    def test_draw(self):
        """Test a drawn round has no winner"""
        result = RoundResult(1, None, 0, 1, RoundEndReason.EXHAUSTIVE_DRAW)
        assert result.is_draw
        assert RoundResult(1, None, 0, 1, RoundEndReason.HANDS_EMPTY).to_dict()["reason"] == "hands-empty"
