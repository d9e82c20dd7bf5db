"""Rule checks run before any action touches the game state."""

from __future__ import annotations

from .models import (
    ActionError,
    CardIdentity,
    DiscardCard,
    FullGameState,
    GameAction,
    GiveHint,
    MAX_CLUE_TOKENS,
    PlayCard,
)


def hinted_indices(hint: GiveHint, hand: list[CardIdentity]) -> list[int]:
    """Positions in a hand that a hint touches."""
    return [i for i, card in enumerate(hand) if hint.matches(card)]


def validate_action(action: GameAction, state: FullGameState) -> tuple[bool, ActionError | None]:
    """
    Validate an action against game rules. Never mutates the state.

    Returns:
        (is_valid, error) - error is None if valid.
    """
    hand = state.hands.get(action.actor)
    if hand is None:
        return False, ActionError.PLAYER_NOT_FOUND

    if isinstance(action, (PlayCard, DiscardCard)):
        if not 0 <= action.index < len(hand):
            return False, ActionError.INVALID_INDEX
        # Discarding at the cap is always dominated by another action
        if isinstance(action, DiscardCard) and state.clue_tokens >= MAX_CLUE_TOKENS:
            return False, ActionError.MAX_CLUE_TOKENS
        return True, None

    if state.clue_tokens <= 0:
        return False, ActionError.NO_CLUE_TOKENS

    if action.target == action.actor:
        return False, ActionError.SELF_HINT

    target_hand = state.hands.get(action.target)
    if target_hand is None:
        return False, ActionError.PLAYER_NOT_FOUND

    # Hint must touch at least one card
    if not hinted_indices(action, target_hand):
        return False, ActionError.EMPTY_HINT

    return True, None
