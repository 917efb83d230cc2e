#!/usr/bin/env python3
"""
Play Koi-Koi hot-seat: two players sharing one terminal.

Usage:
    python play_koikoi.py
    python play_koikoi.py --rules hachi --rounds 6 --seed 42
    python play_koikoi.py --load saved_round.json --save saved_round.json
"""

import argparse
import logging
import sys
from typing import List, Optional

from hanafuda.cards import card_label, sort_cards
from hanafuda.errors import HanafudaError
from koikoi.game import ActionResult, KoiKoiGame, ResultType
from koikoi.rules import RULE_PRESETS, get_rule_preset, load_rules
from koikoi.state import GamePhase, RoundResult, load_state_file, save_state
from koikoi.yaku import ScoringContext

logger = logging.getLogger(__name__)


class QuitGame(Exception):
    """Raised when the player types 'q'"""


def print_cards(title: str, cards: List[int], numbered: bool = False) -> None:
    print(f"{title} ({len(cards)}):")
    for i, card in enumerate(cards):
        prefix = f"  [{i}] " if numbered else "      "
        print(prefix + card_label(card))


def render(game: KoiKoiGame) -> None:
    state = game.get_state()
    print()
    print("=" * 60)
    weather = f", weather: {state.weather}" if state.weather else ""
    print(f"Month {state.current_month}{weather} | draw pile: {state.deck.remaining} | "
          f"scores: {game.scores}")
    if state.is_koi_koi_called:
        print(f"Koi-koi called by {state.koi_koi_player} (x{state.koi_koi_count})")
    print("=" * 60)
    print_cards("Field", sort_cards(state.field))
    for pid, cards in state.players.items():
        captured = sort_cards(cards.captured)
        print(f"{pid} captured: {', '.join(str(c) for c in captured) or '-'}")
    print()


def ask(prompt: str, save_path: Optional[str], game: KoiKoiGame) -> str:
    """Read a line, handling the quit and save commands"""
    while True:
        answer = input(prompt).strip().lower()
        if answer == "q":
            raise QuitGame()
        if answer == "s":
            if save_path:
                save_state(save_path, game.get_state())
                print(f"Saved to {save_path}")
            else:
                print("Start with --save PATH to enable saving")
            continue
        return answer


def choose_card(cards: List[int], prompt: str, save_path: Optional[str], game: KoiKoiGame) -> int:
    while True:
        answer = ask(prompt, save_path, game)
        try:
            choice = int(answer)
        except ValueError:
            print("Please enter a number")
            continue
        if 0 <= choice < len(cards):
            return cards[choice]
        print(f"Please enter a number between 0 and {len(cards) - 1}")


def report(result: ActionResult) -> None:
    if result.error is not None:
        print(f"! {result.error}")
        return
    if result.captured_cards:
        print(f"Captured {result.captured_cards}")
    if result.placed_card is not None:
        print(f"Placed {card_label(result.placed_card)} on the field")
    if result.drawn_card is not None:
        print(f"Drew {card_label(result.drawn_card)}")
    if result.deck_captured_cards:
        print(f"Drawn card captured {result.deck_captured_cards}")
    for yaku in result.new_yaku:
        print(f"* New yaku: {yaku.name} ({yaku.points})")


def report_round(round_result: RoundResult) -> None:
    print()
    print("-" * 60)
    if round_result.winner is None:
        print(f"Round {round_result.round_number}: drawn ({round_result.reason.value}), no points")
    else:
        yaku = ", ".join(f"{y.name} ({y.points})" for y in round_result.yaku)
        print(f"Round {round_result.round_number}: {round_result.winner} wins "
              f"{round_result.points} points (x{round_result.multiplier}, "
              f"{round_result.reason.value})")
        print(f"  Yaku: {yaku}")
    print(f"  Scores: {round_result.scores}")
    print("-" * 60)


def pick_field_card(game: KoiKoiGame, matches: List[int], save_path: Optional[str]) -> ActionResult:
    print_cards("Matching field cards", matches, numbered=True)
    card = choose_card(matches, "Capture which card? ", save_path, game)
    result = game.select_field_card(card)
    if not result.ok:
        return result
    return game.capture_cards()


def play_turn_step(game: KoiKoiGame, save_path: Optional[str]) -> ActionResult:
    """Ask the active player for one decision and apply it"""
    state = game.get_state()
    player = state.current_player

    if state.phase == GamePhase.CHOOSING_KOI:
        context = ScoringContext(current_month=state.current_month, weather=state.weather,
                                 completed_yaku=tuple(state.completed_yaku))
        yaku = game.scorer.score(state.active.captured, context)
        print(f"{player}, your yaku: " + ", ".join(f"{y.name} ({y.points})" for y in yaku))
        answer = ask("Call koi-koi and keep playing? (y/n) ", save_path, game)
        return game.make_koi_koi_decision(answer.startswith("y"))

    if state.phase == GamePhase.WAITING_FOR_DECK_MATCH:
        print(f"{player} drew {card_label(state.drawn_card)}")
        return pick_field_card(game, game.matching_field_cards(state.drawn_card), save_path)

    hand = sort_cards(state.active.hand)
    print(f"{player}'s turn ('s' to save, 'q' to quit)")
    print_cards("Hand", hand, numbered=True)
    card = choose_card(hand, "Play which card? ", save_path, game)
    result = game.select_hand_card(card)
    if not result.ok:
        return result
    if result.result_type == ResultType.NO_MATCHES:
        print("No match on the field: the card is placed")
        return game.place_selected_card()
    if result.can_auto_capture:
        return game.capture_cards()
    return pick_field_card(game, result.matching_cards, save_path)


def play_round(game: KoiKoiGame, save_path: Optional[str]) -> RoundResult:
    while game.phase != GamePhase.ROUND_END:
        render(game)
        result = play_turn_step(game, save_path)
        report(result)
    return game.history[-1]


def main():
    parser = argparse.ArgumentParser(description="Play Koi-Koi against a friend on one terminal")

    parser.add_argument("--rules", type=str, default="koikoi",
                        choices=sorted(RULE_PRESETS),
                        help="Rule preset")
    parser.add_argument("--rules-file", type=str, default=None,
                        help="JSON file with custom rules (overrides --rules)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducible deals")
    parser.add_argument("--rounds", type=int, default=12,
                        help="Number of rounds to play")
    parser.add_argument("--weather", type=str, default=None,
                        help="Weather for the viewing yaku (e.g. rainy, foggy)")
    parser.add_argument("--save", type=str, default=None,
                        help="File to write the round state to when typing 's'")
    parser.add_argument("--load", type=str, default=None,
                        help="Resume a round saved with --save")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show engine debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        rules = load_rules(args.rules_file) if args.rules_file else get_rule_preset(args.rules)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load rules: {e}")
        sys.exit(1)

    game = KoiKoiGame(rules=rules, seed=args.seed)
    print(f"Koi-Koi ({rules.name} rules)")

    try:
        if args.load:
            try:
                loaded = game.load_state(load_state_file(args.load))
            except (OSError, HanafudaError) as e:
                logger.error(f"Cannot load {args.load}: {e}")
                sys.exit(1)
            if not loaded.ok:
                logger.error(f"Cannot load {args.load}: {loaded.error}")
                sys.exit(1)
            if game.phase != GamePhase.ROUND_END:
                report_round(play_round(game, args.save))

        while len(game.history) < args.rounds:
            start = game.start_round(weather=args.weather)
            for pid, yaku in start.initial_yaku.items():
                print(f"{pid} was dealt {', '.join(y.name for y in yaku)}!")
            if start.round_result is not None:
                report_round(start.round_result)
                continue
            report_round(play_round(game, args.save))
    except (QuitGame, EOFError, KeyboardInterrupt):
        print()

    print(f"Final scores: {game.scores}")
    print("Thanks for playing!")


if __name__ == "__main__":
    main()
