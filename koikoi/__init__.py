"""
Koi-Koi Rules Engine
Yaku scoring with rule variants and the two-player turn state machine
"""

from .rules import (
    RuleConfig,
    ViewingMode,
    KOIKOI_RULES,
    HACHI_RULES,
    RULE_PRESETS,
    get_rule_preset,
    load_rules,
)
from .yaku import YakuInstance, CardPattern, YakuCategory, YakuResult, ScoringContext, ALL_YAKU
from .scoring import ScoringManager
from .state import GamePhase, RoundState, RoundResult, RoundEndReason, save_state, load_state_file
from .game import KoiKoiGame, ActionResult, ResultType, RoundStart

__version__ = "0.1.0"
__all__ = [
    "RuleConfig",
    "ViewingMode",
    "KOIKOI_RULES",
    "HACHI_RULES",
    "RULE_PRESETS",
    "get_rule_preset",
    "load_rules",
    "YakuInstance",
    "CardPattern",
    "YakuCategory",
    "YakuResult",
    "ScoringContext",
    "ALL_YAKU",
    "ScoringManager",
    "GamePhase",
    "RoundState",
    "RoundResult",
    "RoundEndReason",
    "save_state",
    "load_state_file",
    "KoiKoiGame",
    "ActionResult",
    "ResultType",
    "RoundStart",
]
