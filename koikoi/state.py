"""
Koi-Koi Round State

Mutable per-round state owned by the game engine, the immutable round
result appended to the match history, and the JSON snapshot format used
for save/load.
"""

import json
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from hanafuda.cards import NUM_CARDS, NUM_MONTHS, is_match, is_valid_card_index
from hanafuda.collection import CardSet
from hanafuda.deck import DrawPile
from hanafuda.errors import HanafudaError, InvalidStateData

from .yaku import YakuResult


class GamePhase(IntEnum):
    """Phases of a Koi-Koi round"""
    NOT_STARTED = 0
    MATCHING_HAND = 1            # Active player picks a hand card
    WAITING_FOR_FIELD_CARDS = 2  # Hand card has two matches, pick one
    NO_MATCHES_DISCARD = 3       # Hand card has no match, place it
    WAITING_FOR_DECK_MATCH = 4   # Drawn card has two matches, pick one
    SCORING = 5                  # Transient, captured pile being scored
    CHOOSING_KOI = 6             # New yaku, stop or continue
    ROUND_END = 7


class RoundEndReason(Enum):
    SHOBU = "shobu"
    KOI_KOI_PENALTY = "koi-koi-penalty"
    TEYAKU = "teyaku"
    EXHAUSTIVE_DRAW = "exhaustive-draw"  # Draw pile empty
    HANDS_EMPTY = "hands-empty"          # Next player has no cards left


@dataclass
class PlayerCards:
    """A player's hand and captured pile"""
    hand: CardSet = field(default_factory=CardSet)
    captured: CardSet = field(default_factory=CardSet)

    def copy(self) -> 'PlayerCards':
        return PlayerCards(self.hand.copy(), self.captured.copy())


@dataclass(frozen=True)
class RoundResult:
    """
    Outcome of a finished round.

    Attributes:
        round_number: 1-based round counter
        winner: Winning player id, None for a drawn round
        points: Points awarded to the winner (multiplier applied)
        multiplier: Koi-koi multiplier used
        reason: How the round ended
        yaku: Yaku the points were computed from
        scores: Cumulative scores of both players after this round
    """
    round_number: int
    winner: Optional[str]
    points: int
    multiplier: int
    reason: RoundEndReason
    yaku: Tuple[YakuResult, ...] = ()
    scores: Dict[str, int] = field(default_factory=dict)

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "winner": self.winner,
            "points": self.points,
            "multiplier": self.multiplier,
            "reason": self.reason.value,
            "yaku": [result.to_dict() for result in self.yaku],
            "scores": dict(self.scores),
        }


@dataclass
class RoundState:
    """
    Everything that changes during one round.

    The six card collections (draw pile, field, two hands, two captured
    piles) partition the 48 cards at all times. A drawn card waiting for
    a capture choice sits on the field and is referenced by drawn_card.
    """
    deck: DrawPile
    field: CardSet
    players: Dict[str, PlayerCards]
    current_player: str
    current_month: int = 1
    weather: Optional[str] = None
    phase: GamePhase = GamePhase.NOT_STARTED
    is_koi_koi_called: bool = False
    koi_koi_count: int = 0
    koi_koi_player: Optional[str] = None
    completed_yaku: List[YakuResult] = field(default_factory=list)
    drawn_card: Optional[int] = None
    selected_hand_card: Optional[int] = None
    selected_field_cards: List[int] = field(default_factory=list)

    @property
    def player_ids(self) -> List[str]:
        return list(self.players)

    def opponent_of(self, player_id: str) -> str:
        for other in self.players:
            if other != player_id:
                return other
        raise ValueError(f"No opponent for player {player_id}")

    @property
    def active(self) -> PlayerCards:
        return self.players[self.current_player]

    @property
    def completed_yaku_names(self) -> Set[str]:
        """Names already announced this round"""
        return {result.name for result in self.completed_yaku}

    def clear_selection(self) -> None:
        self.selected_hand_card = None
        self.selected_field_cards = []

    def collections(self) -> List[Tuple[str, List[int]]]:
        """The six collections as (label, cards) pairs"""
        result = [("deck", self.deck.to_list()), ("field", self.field.to_list())]
        for player_id, cards in self.players.items():
            result.append((f"{player_id}.hand", cards.hand.to_list()))
            result.append((f"{player_id}.captured", cards.captured.to_list()))
        return result

    def check_partition(self) -> None:
        """
        Verify that the collections are disjoint and hold all 48 cards.

        Raises:
            InvalidStateData: on any overlap or missing card
        """
        seen: Dict[int, str] = {}
        for label, cards in self.collections():
            for index in cards:
                if not is_valid_card_index(index):
                    raise InvalidStateData(f"Invalid card {index!r} in {label}")
                if index in seen:
                    raise InvalidStateData(f"Card {index} in both {seen[index]} and {label}")
                seen[index] = label
        if len(seen) != NUM_CARDS:
            raise InvalidStateData(f"Expected {NUM_CARDS} cards, found {len(seen)}")

    def validate(self) -> None:
        """
        Full consistency check: two players, a known active player, the
        card partition, and turn bookkeeping that points at cards where
        the phase expects them.

        Raises:
            InvalidStateData: on the first violation found
        """
        if len(self.players) != 2:
            raise InvalidStateData("Exactly two players are required")
        if self.current_player not in self.player_ids:
            raise InvalidStateData(f"Unknown current player: {self.current_player!r}")
        if self.koi_koi_player is not None and self.koi_koi_player not in self.player_ids:
            raise InvalidStateData(f"Unknown koi-koi player: {self.koi_koi_player!r}")
        if not 1 <= self.current_month <= NUM_MONTHS:
            raise InvalidStateData(f"Invalid month: {self.current_month!r}")
        self._check_koi_koi()
        self.check_partition()

        drawn = self.drawn_card
        if drawn is not None and (not is_valid_card_index(drawn) or drawn not in self.field):
            raise InvalidStateData(f"Drawn card {drawn!r} is not on the field")

        selected = self.selected_hand_card
        if selected is not None and (not is_valid_card_index(selected) or selected not in self.active.hand):
            raise InvalidStateData(f"Selected card {selected!r} is not in hand")
        for index in self.selected_field_cards:
            if not is_valid_card_index(index) or index not in self.field:
                raise InvalidStateData(f"Selected field card {index!r} is not on the field")

        self._check_pending_choice()

    def field_matches(self, card: int) -> List[int]:
        """Field cards sharing the card's month, excluding the card itself"""
        return [c for c in self.field if c != card and is_match(card, c)]

    def _check_koi_koi(self) -> None:
        # Count, flag and caller are set together by a koi-koi call
        if isinstance(self.koi_koi_count, bool) or not isinstance(self.koi_koi_count, int) \
                or self.koi_koi_count < 0:
            raise InvalidStateData(f"Invalid koi-koi count: {self.koi_koi_count!r}")
        called = self.koi_koi_count > 0
        if self.is_koi_koi_called != called:
            raise InvalidStateData(
                f"Koi-koi flag {self.is_koi_koi_called} does not match count {self.koi_koi_count}")
        if called != (self.koi_koi_player is not None):
            raise InvalidStateData("Koi-koi player must be set exactly when koi-koi was called")

    def _check_pending_choice(self) -> None:
        """The phases waiting on a choice need a source card with the right matches"""
        phase = self.phase
        if phase == GamePhase.WAITING_FOR_DECK_MATCH:
            if self.drawn_card is None:
                raise InvalidStateData("Phase WAITING_FOR_DECK_MATCH needs a drawn card")
            if len(self.field_matches(self.drawn_card)) != 2:
                raise InvalidStateData(f"Drawn card {self.drawn_card} does not have two matches")
        elif phase in (GamePhase.WAITING_FOR_FIELD_CARDS, GamePhase.NO_MATCHES_DISCARD):
            selected = self.selected_hand_card
            if selected is None:
                raise InvalidStateData(f"Phase {phase.name} needs a selected hand card")
            has_match = bool(self.field_matches(selected))
            if has_match != (phase == GamePhase.WAITING_FOR_FIELD_CARDS):
                raise InvalidStateData(f"Selected card {selected} does not fit phase {phase.name}")

    def copy(self) -> 'RoundState':
        """Independent snapshot; changing it never affects the game"""
        return RoundState(
            deck=self.deck.copy(),
            field=self.field.copy(),
            players={pid: cards.copy() for pid, cards in self.players.items()},
            current_player=self.current_player,
            current_month=self.current_month,
            weather=self.weather,
            phase=self.phase,
            is_koi_koi_called=self.is_koi_koi_called,
            koi_koi_count=self.koi_koi_count,
            koi_koi_player=self.koi_koi_player,
            completed_yaku=list(self.completed_yaku),
            drawn_card=self.drawn_card,
            selected_hand_card=self.selected_hand_card,
            selected_field_cards=list(self.selected_field_cards),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready snapshot"""
        return {
            "deck": self.deck.to_list(),
            "field": self.field.to_list(),
            "players": {
                pid: {"hand": cards.hand.to_list(), "captured": cards.captured.to_list()}
                for pid, cards in self.players.items()
            },
            "currentPlayer": self.current_player,
            "currentMonth": self.current_month,
            "weather": self.weather,
            "completedYaku": [result.to_dict() for result in self.completed_yaku],
            "phase": self.phase.name,
            "isKoiKoiCalled": self.is_koi_koi_called,
            "koiKoiCount": self.koi_koi_count,
            "koiKoiPlayer": self.koi_koi_player,
            "drawnCard": self.drawn_card,
            "selectedHandCard": self.selected_hand_card,
            "selectedFieldCards": list(self.selected_field_cards),
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoundState':
        """
        Rebuild a state from its JSON form.

        Only deck, field, players, currentPlayer and currentMonth are
        required; every other key falls back to its default.

        Raises:
            InvalidStateData: if the payload is malformed or the cards do
                not partition the 48-card deck
        """
        if not isinstance(data, dict):
            raise InvalidStateData("State must be a JSON object")
        missing = [key for key in ("deck", "field", "players", "currentPlayer", "currentMonth")
                   if key not in data]
        if missing:
            raise InvalidStateData(f"Missing keys: {', '.join(missing)}")

        players_data = data["players"]
        if not isinstance(players_data, dict) or len(players_data) != 2:
            raise InvalidStateData("Exactly two players are required")

        deck = _card_list(data["deck"], "deck")
        field_cards = _card_list(data["field"], "field")
        player_cards: Dict[str, Tuple[List[int], List[int]]] = {}
        for pid, cards in players_data.items():
            if not isinstance(cards, dict):
                raise InvalidStateData(f"Invalid state for player {pid}")
            player_cards[pid] = (
                _card_list(cards.get("hand"), f"{pid}.hand"),
                _card_list(cards.get("captured"), f"{pid}.captured"),
            )

        if not isinstance(data["currentPlayer"], str):
            raise InvalidStateData(f"Invalid current player: {data['currentPlayer']!r}")
        month = data["currentMonth"]
        if isinstance(month, bool) or not isinstance(month, int):
            raise InvalidStateData(f"Invalid month: {month!r}")

        weather = data.get("weather")
        if weather is not None and not isinstance(weather, str):
            raise InvalidStateData(f"Invalid weather: {weather!r}")

        try:
            completed = [YakuResult.from_dict(item) for item in data.get("completedYaku") or []]
            phase = GamePhase[data.get("phase") or GamePhase.MATCHING_HAND.name]
            koi_koi_count = int(data.get("koiKoiCount", 0))
            selected_field_cards = _card_list(data.get("selectedFieldCards") or [], "selectedFieldCards")

            state = cls(
                deck=DrawPile(cards=deck),
                field=CardSet(field_cards, name="field"),
                players={
                    pid: PlayerCards(CardSet(hand, name=f"{pid}.hand"),
                                     CardSet(captured, name=f"{pid}.captured"))
                    for pid, (hand, captured) in player_cards.items()
                },
                current_player=data["currentPlayer"],
                current_month=month,
                weather=weather,
                phase=phase,
                is_koi_koi_called=bool(data.get("isKoiKoiCalled", False)),
                koi_koi_count=koi_koi_count,
                koi_koi_player=data.get("koiKoiPlayer"),
                completed_yaku=completed,
                drawn_card=data.get("drawnCard"),
                selected_hand_card=data.get("selectedHandCard"),
                selected_field_cards=list(selected_field_cards),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidStateData(f"Invalid state data: {e}") from e
        except HanafudaError as e:
            # Duplicates within a single collection
            raise InvalidStateData(str(e)) from e

        state.validate()
        return state

    @classmethod
    def from_json(cls, text: str) -> 'RoundState':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidStateData(f"Invalid JSON: {e}") from e
        return cls.from_dict(data)

    def __repr__(self) -> str:
        return (f"RoundState(month={self.current_month}, phase={self.phase.name}, "
                f"player={self.current_player}, deck={self.deck.remaining})")


def _card_list(value: Any, label: str) -> List[int]:
    if not isinstance(value, list):
        raise InvalidStateData(f"{label} must be a list of card indices")
    for index in value:
        if not is_valid_card_index(index):
            raise InvalidStateData(f"Invalid card index {index!r} in {label}")
    return value


def save_state(path: Union[str, Path], state: RoundState) -> None:
    """Write a round snapshot as JSON"""
    Path(path).write_text(state.to_json(), encoding="utf-8")


def load_state_file(path: Union[str, Path]) -> RoundState:
    """Read a round snapshot written by save_state"""
    return RoundState.from_json(Path(path).read_text(encoding="utf-8"))
