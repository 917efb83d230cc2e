"""
Shared helpers for building round snapshots by hand
"""

import pytest

from hanafuda.cards import NUM_CARDS


PLAYERS = ("p1", "p2")


def build_state(hands, field, captured=None, top=(), deck=None, **extra):
    """
    JSON form of a round state.

    Every card not placed in a hand, captured pile or the field goes to
    the draw pile; cards listed in `top` are drawn first, in order.
    Pass deck=[] to send the leftovers to p2's captured pile instead.
    """
    captured = {pid: list(cards) for pid, cards in (captured or {}).items()}
    used = set(field) | set(top)
    for pid in PLAYERS:
        used |= set(hands.get(pid, ())) | set(captured.get(pid, ()))
    rest = [c for c in range(NUM_CARDS) if c not in used]

    if deck is None:
        deck = rest + list(reversed(top))
    else:
        captured.setdefault(PLAYERS[1], []).extend(rest)
        deck = list(deck)

    data = {
        "deck": deck,
        "field": list(field),
        "players": {
            pid: {"hand": list(hands.get(pid, ())), "captured": captured.get(pid, [])}
            for pid in PLAYERS
        },
        "currentPlayer": PLAYERS[0],
        "currentMonth": 12,
        "phase": "MATCHING_HAND",
    }
    data.update(extra)
    return data


@pytest.fixture
def make_state():
    return build_state
