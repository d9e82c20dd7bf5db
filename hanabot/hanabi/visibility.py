"""Visibility and view generation for Hanabi.

Core principle: A player can see ALL other players' hands but NOT their own cards.
They only know about their own cards through what their belief tracker deduces.
"""

from __future__ import annotations

from typing import Any

from .models import FullGameState, PublicGameState


# Keys that must NEVER appear in any player view
FORBIDDEN_KEYS = {
    "deck",
    "deck_order",
    "hands",
    "rng",
    "seed",
    "random",
    "debug",
    "_internal",
}


def view_for_player(state: FullGameState, player_id: int) -> PublicGameState:
    """
    Build the redacted game state for a specific player.

    CRITICAL: The player can see ALL other players' hands but NOT their own cards,
    only how many they hold.

    Raises:
        ValueError: if player_id is not seated in this game
    """
    if player_id not in state.hands:
        raise ValueError(f"Unknown player: {player_id}")

    other_hands = {
        pid: list(hand)
        for pid, hand in state.hands.items()
        if pid != player_id
    }

    return PublicGameState(
        my_player_id=player_id,
        my_hand_size=len(state.hands[player_id]),
        other_hands=other_hands,
        discard_pile=list(state.discard_pile),
        board=dict(state.board),
        clue_tokens=state.clue_tokens,
        fuse_tokens=state.fuse_tokens,
        deck_size=len(state.deck),
        action_history=list(state.action_history),
        current_player_idx=state.current_player_idx,
        turns_remaining=state.turns_remaining,
        game_over=state.game_over,
    )


def assert_no_leaks(payload: Any, path: str = "") -> None:
    """
    Recursively assert that no forbidden keys appear in a payload.

    Raises AssertionError if any leak is detected.
    """
    if isinstance(payload, dict):
        for key, value in payload.items():
            key_str = str(key).lower()
            current_path = f"{path}.{key}" if path else str(key)

            if key_str in FORBIDDEN_KEYS:
                raise AssertionError(f"Forbidden key '{key}' found at {current_path}")

            if key_str == "my_hand" or key_str == "own_hand":
                raise AssertionError(f"Direct hand access found at {current_path}")

            assert_no_leaks(value, current_path)

    elif isinstance(payload, list):
        for i, item in enumerate(payload):
            assert_no_leaks(item, f"{path}[{i}]")


def assert_view_safe(view: PublicGameState, state: FullGameState | None = None) -> None:
    """
    Validate that a player view is safe (no information leaks).

    Checks:
    1. No forbidden keys anywhere in the dumped payload
    2. The viewer's own hand is not among the visible hands
    3. If the full state is given, none of the viewer's physical cards appear anywhere
    """
    player_id = view.my_player_id
    if player_id in view.other_hands:
        raise AssertionError(f"Player {player_id}'s own hand found in other_hands - LEAK!")

    if state is not None:
        own_ids = {card.card_id for card in state.hands.get(player_id, [])}
        for pid, hand in view.other_hands.items():
            for card in hand:
                if card.card_id in own_ids:
                    raise AssertionError(f"Card {card} from player {player_id}'s hand visible under player {pid} - LEAK!")

    assert_no_leaks(view.model_dump(mode="json"))
