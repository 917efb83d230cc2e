"""
Koi-Koi Game Engine

Turn state machine for two-player Koi-Koi: dealing, the initial-hand
check, capture resolution for hand and deck cards, yaku evaluation, the
koi-koi decision and round termination. Keeps the match history across
rounds.
"""

import logging
import random
from enum import IntEnum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from hanafuda.cards import NUM_MONTHS, is_match, is_valid_card_index
from hanafuda.collection import CardSet
from hanafuda.deck import DrawPile
from hanafuda.errors import (
    HanafudaError,
    InvalidCardIndex,
    InvalidPhaseAction,
    InvalidSelection,
    InvalidStateData,
)

from .rules import RuleConfig, KOIKOI_RULES
from .scoring import ScoringManager
from .state import GamePhase, PlayerCards, RoundEndReason, RoundResult, RoundState
from .yaku import ScoringContext, YakuResult


logger = logging.getLogger(__name__)


class ResultType(IntEnum):
    """Kinds of outcome returned by the public actions"""
    SELECTION_UPDATED = 0  # Hand or field selection changed
    NO_MATCHES = 1         # Selected hand card must be placed on the field
    DECK_DRAW = 2          # Drawn card has two matches, pick one
    SCORE_UPDATE = 3       # New yaku, koi-koi decision pending
    TURN_END = 4           # Next player's turn
    ROUND_END = 5
    STATE_LOADED = 6
    ERROR = 7


@dataclass
class ActionResult:
    """
    Outcome of one public action.

    Card fields are only filled in when the action touched them: a
    capture of a hand card fills captured_cards, the automatic draw that
    follows fills drawn_card and deck_captured_cards (or leaves the drawn
    card on the field).
    """
    result_type: ResultType
    phase: GamePhase
    selected_hand_card: Optional[int] = None
    matching_cards: List[int] = field(default_factory=list)
    selected_field_cards: List[int] = field(default_factory=list)
    can_auto_capture: bool = False
    captured_cards: List[int] = field(default_factory=list)
    drawn_card: Optional[int] = None
    deck_captured_cards: List[int] = field(default_factory=list)
    placed_card: Optional[int] = None
    new_yaku: List[YakuResult] = field(default_factory=list)
    round_result: Optional[RoundResult] = None
    error: Optional[HanafudaError] = None

    @property
    def ok(self) -> bool:
        return self.result_type != ResultType.ERROR

    def __repr__(self) -> str:
        if self.error is not None:
            return f"ActionResult(ERROR, {self.error})"
        return f"ActionResult({self.result_type.name}, {self.phase.name})"


@dataclass(frozen=True)
class RoundStart:
    """
    Result of start_round.

    Attributes:
        state: Snapshot after dealing and the initial-hand check
        initial_yaku: Hand yaku found per player (only players that have one)
        round_result: Set when a hand yaku ended the round immediately
    """
    state: RoundState
    initial_yaku: Dict[str, List[YakuResult]]
    round_result: Optional[RoundResult] = None


class KoiKoiGame:
    """
    Koi-Koi Game Engine.

    Every public action validates its input against the current phase
    before changing anything. Rejected actions return an ERROR result and
    leave the round untouched.
    """

    NUM_PLAYERS = 2
    HAND_SIZE = 8
    FIELD_SIZE = 8
    DEFAULT_PLAYERS = ("player1", "player2")

    HAND_PHASES = (
        GamePhase.MATCHING_HAND,
        GamePhase.WAITING_FOR_FIELD_CARDS,
        GamePhase.NO_MATCHES_DISCARD,
    )
    CAPTURE_PHASES = (
        GamePhase.WAITING_FOR_FIELD_CARDS,
        GamePhase.WAITING_FOR_DECK_MATCH,
    )

    def __init__(
        self,
        rules: Optional[RuleConfig] = None,
        seed: Optional[int] = None,
        debug: bool = False
    ):
        """
        Initialize a new match.

        Args:
            rules: Rule configuration (default: standard Koi-Koi rules)
            seed: Random seed for reproducible shuffles
            debug: Enable set_phase / set_current_player
        """
        self.rules = rules or KOIKOI_RULES
        self.seed = seed
        self.debug = debug
        self.scorer = ScoringManager(self.rules)
        self._rng = random.Random(seed)

        self.state: Optional[RoundState] = None
        self._player_ids: List[str] = list(self.DEFAULT_PLAYERS)
        self._history: List[RoundResult] = []
        self._scores: Dict[str, int] = {pid: 0 for pid in self._player_ids}

    # ------------------------------------------------------------------
    # Round setup
    # ------------------------------------------------------------------

    def start_round(
        self,
        players: Optional[Sequence[str]] = None,
        month: Optional[int] = None,
        weather: Optional[str] = None
    ) -> RoundStart:
        """
        Deal a new round and run the initial-hand check.

        Args:
            players: Two player ids (default: the previous round's players)
            month: Month of the round (default: round number, wrapping after 12)
            weather: Weather for the viewing rules

        Raises:
            ValueError: if there are not exactly two distinct players or
                the month is outside 1-12
        """
        player_ids = list(players) if players is not None else list(self._player_ids)
        if len(player_ids) != self.NUM_PLAYERS or len(set(player_ids)) != self.NUM_PLAYERS:
            raise ValueError(f"Koi-Koi needs exactly {self.NUM_PLAYERS} distinct players, got {player_ids}")
        self._set_players(player_ids)

        round_number = len(self._history) + 1
        if month is None:
            month = (round_number - 1) % NUM_MONTHS + 1
        if not 1 <= month <= NUM_MONTHS:
            raise ValueError(f"Invalid month: {month}")

        deck = DrawPile(seed=self._rng.getrandbits(32))
        hands = {pid: PlayerCards(CardSet(deck.draw_many(self.HAND_SIZE), name=f"{pid}.hand"),
                                  CardSet(name=f"{pid}.captured"))
                 for pid in player_ids}
        field_cards = CardSet(deck.draw_many(self.FIELD_SIZE), name="field")

        self.state = RoundState(
            deck=deck,
            field=field_cards,
            players=hands,
            current_player=self._first_player(hands),
            current_month=month,
            weather=weather,
            phase=GamePhase.NOT_STARTED,
        )
        logger.info("Round %d started: month %d, %s plays first",
                    round_number, month, self.state.current_player)

        initial_yaku: Dict[str, List[YakuResult]] = {}
        if self.rules.hand.allow_teyaku:
            round_result = self._check_initial_hands(initial_yaku)
            if round_result is not None:
                return RoundStart(self.get_state(), initial_yaku, round_result)

        self.state.phase = GamePhase.MATCHING_HAND
        return RoundStart(self.get_state(), initial_yaku)

    def _set_players(self, player_ids: List[str]) -> None:
        """A different pair of players starts a fresh match"""
        if player_ids != self._player_ids:
            self._player_ids = list(player_ids)
            self._history = []
            self._scores = {pid: 0 for pid in player_ids}

    def _first_player(self, hands: Dict[str, PlayerCards]) -> str:
        """
        The previous round's winner starts. Otherwise the player holding
        more cards of a single month starts; ties go to the first player.
        """
        if self._history and self._history[-1].winner in hands:
            return self._history[-1].winner

        best_player = self._player_ids[0]
        best_count = -1
        for pid in self._player_ids:
            count = int(hands[pid].hand.to_count_array().max())
            if count > best_count:
                best_player, best_count = pid, count
        return best_player

    def _check_initial_hands(self, initial_yaku: Dict[str, List[YakuResult]]) -> Optional[RoundResult]:
        """
        Check both dealt hands for teyaku, the first player first. Each
        miss passes the check to the other player, so after two misses
        the first player is active again.
        """
        state = self.state
        context = ScoringContext(current_month=state.current_month, weather=state.weather,
                                 check_teyaku=True)
        for _ in range(self.NUM_PLAYERS):
            yaku = self.scorer.score(state.active.hand, context)
            if yaku:
                initial_yaku[state.current_player] = yaku
                logger.info("%s holds %s in the dealt hand",
                            state.current_player, ", ".join(y.name for y in yaku))
                return self._end_round(state.current_player, yaku, 1, RoundEndReason.TEYAKU)
            state.current_player = state.opponent_of(state.current_player)
        return None

    # ------------------------------------------------------------------
    # Public actions
    # ------------------------------------------------------------------

    def select_hand_card(self, card: int) -> ActionResult:
        """Pick a card from the active player's hand"""
        return self._run(self._handle_select_hand_card, card)

    def select_field_card(self, card: int) -> ActionResult:
        """Pick the field card to capture with the selected or drawn card"""
        return self._run(self._handle_select_field_card, card)

    def place_selected_card(self) -> ActionResult:
        """Place a hand card with no match on the field, then draw"""
        return self._run(self._handle_place_selected_card)

    def capture_cards(self) -> ActionResult:
        """Capture the selected field cards with the source card"""
        return self._run(self._handle_capture_cards)

    def make_koi_koi_decision(self, continue_play: bool) -> ActionResult:
        """Call koi-koi (True) or stop and take the points (False)"""
        return self._run(self._handle_koi_koi_decision, continue_play)

    def load_state(self, state: Union[RoundState, Dict[str, Any]]) -> ActionResult:
        """Resume from a snapshot (RoundState or its JSON dict)"""
        return self._run(self._handle_load_state, state)

    def _run(self, handler: Callable[..., ActionResult], *args) -> ActionResult:
        try:
            return handler(*args)
        except HanafudaError as e:
            logger.debug("Rejected %s%r: %s", handler.__name__.replace("_handle_", ""), args, e)
            return ActionResult(ResultType.ERROR, self.phase, error=e)

    # ------------------------------------------------------------------
    # Action handlers
    # ------------------------------------------------------------------

    def _require_phase(self, *phases: GamePhase) -> RoundState:
        if self.state is None:
            raise InvalidPhaseAction("No round in progress")
        if self.state.phase not in phases:
            allowed = ", ".join(p.name for p in phases)
            raise InvalidPhaseAction(f"Not allowed in phase {self.state.phase.name} (expected {allowed})")
        return self.state

    def _matches_for(self, card: int) -> List[int]:
        """Field cards sharing the card's month, excluding the card itself"""
        return self.state.field_matches(card)

    def _source_card(self) -> int:
        """Card doing the capturing in the current capture phase"""
        state = self.state
        if state.phase == GamePhase.WAITING_FOR_DECK_MATCH:
            return state.drawn_card
        if state.selected_hand_card is None:
            raise InvalidSelection("No hand card selected")
        return state.selected_hand_card

    def _handle_select_hand_card(self, card: int) -> ActionResult:
        state = self._require_phase(*self.HAND_PHASES)
        if not is_valid_card_index(card):
            raise InvalidCardIndex(card)
        if card not in state.active.hand:
            raise InvalidSelection(f"Card {card} is not in {state.current_player}'s hand")

        matches = self._matches_for(card)
        auto_capture = len(matches) in (1, 3)
        state.selected_hand_card = card
        state.selected_field_cards = list(matches) if auto_capture else []

        if not matches:
            state.phase = GamePhase.NO_MATCHES_DISCARD
            logger.debug("%s selected %d: no match", state.current_player, card)
            return ActionResult(ResultType.NO_MATCHES, state.phase, selected_hand_card=card)

        state.phase = GamePhase.WAITING_FOR_FIELD_CARDS
        logger.debug("%s selected %d: matches %s", state.current_player, card, matches)
        return ActionResult(
            ResultType.SELECTION_UPDATED,
            state.phase,
            selected_hand_card=card,
            matching_cards=matches,
            selected_field_cards=list(state.selected_field_cards),
            can_auto_capture=auto_capture,
        )

    def _handle_select_field_card(self, card: int) -> ActionResult:
        state = self._require_phase(*self.CAPTURE_PHASES)
        source = self._source_card()
        if not is_valid_card_index(card):
            raise InvalidCardIndex(card)
        if card not in state.field or card == source:
            raise InvalidSelection(f"Card {card} is not on the field")
        if not is_match(source, card):
            raise InvalidSelection(f"Card {card} does not match {source}")

        matches = self._matches_for(source)
        if len(matches) == 2:
            # Toggle the single choice
            selection = [] if state.selected_field_cards == [card] else [card]
        else:
            selection = list(matches)
        state.selected_field_cards = selection

        result = ActionResult(
            ResultType.SELECTION_UPDATED,
            state.phase,
            matching_cards=matches,
            selected_field_cards=list(selection),
            can_auto_capture=len(matches) in (1, 3),
        )
        if state.phase == GamePhase.WAITING_FOR_DECK_MATCH:
            result.drawn_card = source
        else:
            result.selected_hand_card = source
        return result

    def _handle_place_selected_card(self) -> ActionResult:
        state = self._require_phase(GamePhase.NO_MATCHES_DISCARD)
        card = state.selected_hand_card
        if card is None or card not in state.active.hand:
            raise InvalidSelection("No hand card selected")
        if self._matches_for(card):
            raise InvalidSelection(f"Card {card} has a match on the field and must capture")

        state.active.hand.remove(card)
        state.field.add(card)
        logger.debug("%s placed %d on the field", state.current_player, card)

        result = ActionResult(ResultType.TURN_END, state.phase, selected_hand_card=card, placed_card=card)
        return self._draw_step(result)

    def _handle_capture_cards(self) -> ActionResult:
        state = self._require_phase(*self.CAPTURE_PHASES)
        source = self._source_card()
        matches = self._matches_for(source)
        if not matches:
            raise InvalidSelection(f"Card {source} has no match on the field")
        selection = list(state.selected_field_cards)

        required = 1 if len(matches) in (1, 2) else len(matches)
        if len(selection) != required:
            raise InvalidSelection(
                f"{len(matches)} matching cards on the field: select {required}, got {len(selection)}"
            )
        if any(card not in matches for card in selection):
            raise InvalidSelection(f"Selection {selection} does not match {source}")

        captured = [source] + selection
        player = state.active
        if state.phase == GamePhase.WAITING_FOR_DECK_MATCH:
            state.field.remove_many(captured)
            player.captured.add_many(captured)
            state.drawn_card = None
            state.clear_selection()
            logger.debug("%s captured %s with the drawn card", state.current_player, captured)
            result = ActionResult(ResultType.TURN_END, state.phase, drawn_card=source,
                                  deck_captured_cards=captured)
            return self._score_turn(result)

        player.hand.remove(source)
        state.field.remove_many(selection)
        player.captured.add_many(captured)
        logger.debug("%s captured %s", state.current_player, captured)
        result = ActionResult(ResultType.TURN_END, state.phase, selected_hand_card=source,
                              captured_cards=captured)
        return self._draw_step(result)

    def _handle_koi_koi_decision(self, continue_play: bool) -> ActionResult:
        state = self._require_phase(GamePhase.CHOOSING_KOI)
        player = state.current_player

        if continue_play:
            state.is_koi_koi_called = True
            state.koi_koi_count += 1
            state.koi_koi_player = player
            logger.info("%s calls koi-koi (%d)", player, state.koi_koi_count)
            return self._pass_turn(ActionResult(ResultType.TURN_END, state.phase))

        yaku = self.scorer.score(state.active.captured, self._play_context())
        multiplier = state.koi_koi_count + 1 if state.koi_koi_player == player else 1
        logger.info("%s stops (shobu)", player)
        round_result = self._end_round(player, yaku, multiplier, RoundEndReason.SHOBU)
        return ActionResult(ResultType.ROUND_END, state.phase, round_result=round_result)

    def _handle_load_state(self, snapshot: Union[RoundState, Dict[str, Any]]) -> ActionResult:
        if isinstance(snapshot, RoundState):
            try:
                state = snapshot.copy()
            except HanafudaError as e:
                raise InvalidStateData(str(e)) from e
            state.validate()
        elif isinstance(snapshot, dict):
            state = RoundState.from_dict(snapshot)
        else:
            raise InvalidStateData(f"Cannot load state from {type(snapshot).__name__}")
        if state.phase in (GamePhase.NOT_STARTED, GamePhase.SCORING):
            raise InvalidStateData(f"Cannot resume a round in phase {state.phase.name}")

        self._set_players(state.player_ids)
        self.state = state
        logger.info("Loaded round state: month %d, %s to play, phase %s",
                    state.current_month, state.current_player, state.phase.name)
        return ActionResult(ResultType.STATE_LOADED, state.phase)

    # ------------------------------------------------------------------
    # Turn cascade: draw, score, pass or end
    # ------------------------------------------------------------------

    def _draw_step(self, result: ActionResult) -> ActionResult:
        """Draw from the pile and resolve the drawn card against the field"""
        state = self.state
        state.clear_selection()

        card = state.deck.draw()
        if card is None:
            logger.info("Draw pile empty")
            return self._finish(result, self._end_round(None, [], 1, RoundEndReason.EXHAUSTIVE_DRAW))

        result.drawn_card = card
        matches = self._matches_for(card)
        # The drawn card waits on the field until it is captured
        state.field.add(card)

        if len(matches) == 2:
            state.drawn_card = card
            state.phase = GamePhase.WAITING_FOR_DECK_MATCH
            result.result_type = ResultType.DECK_DRAW
            result.matching_cards = matches
            result.phase = state.phase
            logger.debug("%s drew %d: choose between %s", state.current_player, card, matches)
            return result

        if matches:
            captured = [card] + matches
            state.field.remove_many(captured)
            state.active.captured.add_many(captured)
            result.deck_captured_cards = captured
            logger.debug("%s drew %d and captured %s", state.current_player, card, captured)
        else:
            logger.debug("%s drew %d onto the field", state.current_player, card)
        return self._score_turn(result)

    def _play_context(self) -> ScoringContext:
        state = self.state
        return ScoringContext(
            current_month=state.current_month,
            weather=state.weather,
            completed_yaku=tuple(state.completed_yaku),
        )

    def _score_turn(self, result: ActionResult) -> ActionResult:
        """Score the active player's captured pile once both halves of the turn are done"""
        state = self.state
        state.phase = GamePhase.SCORING
        player = state.current_player

        yaku = self.scorer.score(state.active.captured, self._play_context())
        announced = state.completed_yaku_names
        new_yaku = [y for y in yaku if y.name not in announced]
        result.new_yaku = new_yaku

        if not new_yaku:
            return self._pass_turn(result)

        state.completed_yaku.extend(new_yaku)
        logger.info("%s completed %s", player, ", ".join(f"{y.name} ({y.points})" for y in new_yaku))

        if state.is_koi_koi_called and state.koi_koi_player != player:
            logger.info("%s scores after %s's koi-koi", player, state.koi_koi_player)
            return self._finish(result, self._end_round(player, yaku, 2, RoundEndReason.KOI_KOI_PENALTY))

        state.phase = GamePhase.CHOOSING_KOI
        result.result_type = ResultType.SCORE_UPDATE
        result.phase = state.phase
        return result

    def _pass_turn(self, result: ActionResult) -> ActionResult:
        """Hand the turn to the opponent, or end the round if they cannot play"""
        state = self.state
        state.clear_selection()
        state.drawn_card = None

        next_player = state.opponent_of(state.current_player)
        if state.players[next_player].hand.is_empty:
            logger.info("%s has no cards left", next_player)
            return self._finish(result, self._end_round(None, [], 1, RoundEndReason.HANDS_EMPTY))

        state.current_player = next_player
        state.phase = GamePhase.MATCHING_HAND
        result.result_type = ResultType.TURN_END
        result.phase = state.phase
        logger.debug("Turn passes to %s", next_player)
        return result

    def _finish(self, result: ActionResult, round_result: RoundResult) -> ActionResult:
        result.result_type = ResultType.ROUND_END
        result.round_result = round_result
        result.phase = self.state.phase
        return result

    def _end_round(
        self,
        winner: Optional[str],
        yaku: List[YakuResult],
        multiplier: int,
        reason: RoundEndReason
    ) -> RoundResult:
        state = self.state
        points = ScoringManager.total_points(yaku) * multiplier if winner else 0
        if winner:
            self._scores[winner] = self._scores.get(winner, 0) + points

        round_result = RoundResult(
            round_number=len(self._history) + 1,
            winner=winner,
            points=points,
            multiplier=multiplier,
            reason=reason,
            yaku=tuple(yaku),
            scores=dict(self._scores),
        )
        self._history.append(round_result)

        state.phase = GamePhase.ROUND_END
        state.clear_selection()
        state.drawn_card = None
        if winner:
            logger.info("Round %d over: %s wins %d points (x%d, %s)",
                        round_result.round_number, winner, points, multiplier, reason.value)
        else:
            logger.info("Round %d over: draw (%s)", round_result.round_number, reason.value)
        return round_result

    # ------------------------------------------------------------------
    # Queries and debug helpers
    # ------------------------------------------------------------------

    def get_state(self) -> Optional[RoundState]:
        """Snapshot of the current round (None before the first round)"""
        return self.state.copy() if self.state else None

    @property
    def phase(self) -> GamePhase:
        return self.state.phase if self.state else GamePhase.NOT_STARTED

    @property
    def current_player(self) -> Optional[str]:
        return self.state.current_player if self.state else None

    @property
    def current_hand(self) -> Optional[CardSet]:
        return self.state.active.hand.copy() if self.state else None

    @property
    def history(self) -> List[RoundResult]:
        return list(self._history)

    @property
    def scores(self) -> Dict[str, int]:
        return dict(self._scores)

    @property
    def players(self) -> List[str]:
        return list(self._player_ids)

    def matching_field_cards(self, card: int) -> List[int]:
        """Field cards a card could capture (empty before a round starts)"""
        if self.state is None or not is_valid_card_index(card):
            return []
        return self._matches_for(card)

    def set_phase(self, phase: GamePhase) -> None:
        """Force the phase (debug mode only)"""
        if not self.debug:
            raise RuntimeError("Phase can only be set in debug mode")
        if self.state is None:
            raise RuntimeError("No round in progress")
        self.state.phase = GamePhase(phase)

    def set_current_player(self, player_id: str) -> None:
        """Force the active player (debug mode only)"""
        if not self.debug:
            raise RuntimeError("Current player can only be set in debug mode")
        if self.state is None:
            raise RuntimeError("No round in progress")
        if player_id not in self.state.players:
            raise ValueError(f"Invalid player: {player_id}")
        self.state.current_player = player_id
        self.state.clear_selection()

    def __repr__(self) -> str:
        return f"KoiKoiGame({self.rules.name}, round {len(self._history) + 1}, {self.phase.name})"
