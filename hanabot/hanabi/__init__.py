"""Hanabi game module: rule engine, belief tracking and rule-based bots."""

from .models import (
    Color,
    Rank,
    CardIdentity,
    PlayCard,
    DiscardCard,
    GiveHint,
    HintColor,
    HintRank,
    GameAction,
    ActionError,
    ActionResult,
    HanabiConfig,
    FullGameState,
    PublicGameState,
    HanabiGameRecord,
)
from .game import (
    GameEngine,
    create_deck,
    create_game,
    apply_action,
    check_terminal,
    get_score,
)
from .validator import (
    validate_action,
    hinted_indices,
)
from .visibility import (
    view_for_player,
    assert_no_leaks,
    assert_view_safe,
)
from .knowledge import (
    CardKnowledge,
    BeliefTracker,
    describe_knowledge,
)
from .agents import SmartBot, choose_action
from .orchestrator import HanabiSession, run_episode

__all__ = [
    # Models
    "Color",
    "Rank",
    "CardIdentity",
    "PlayCard",
    "DiscardCard",
    "GiveHint",
    "HintColor",
    "HintRank",
    "GameAction",
    "ActionError",
    "ActionResult",
    "HanabiConfig",
    "FullGameState",
    "PublicGameState",
    "HanabiGameRecord",
    # Game
    "GameEngine",
    "create_deck",
    "create_game",
    "apply_action",
    "check_terminal",
    "get_score",
    # Validation
    "validate_action",
    "hinted_indices",
    # Visibility
    "view_for_player",
    "assert_no_leaks",
    "assert_view_safe",
    # Knowledge
    "CardKnowledge",
    "BeliefTracker",
    "describe_knowledge",
    # Agents
    "SmartBot",
    "choose_action",
    # Orchestration
    "HanabiSession",
    "run_episode",
]
