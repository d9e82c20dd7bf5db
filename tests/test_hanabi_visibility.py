"""Tests for Hanabi visibility and information leak prevention."""

import pytest
from pydantic import ValidationError

from hanabot.hanabi.models import (
    HanabiConfig,
    FullGameState,
    HintColor,
    PublicGameState,
)
from hanabot.hanabi.game import create_game, apply_action
from hanabot.hanabi.visibility import (
    view_for_player,
    assert_no_leaks,
    assert_view_safe,
    FORBIDDEN_KEYS,
)


def create_test_state() -> FullGameState:
    """Create a test game state."""
    config = HanabiConfig(num_players=3, seed=42)
    return create_game(config)


class TestViewForPlayer:
    """Tests for the view_for_player function."""

    def test_player_cannot_see_own_hand(self):
        """Critical: player must not see their own cards."""
        state = create_test_state()

        for player_id in sorted(state.hands):
            view = view_for_player(state, player_id)

            assert player_id not in view.other_hands, \
                f"Player {player_id} can see their own hand - INFORMATION LEAK!"

            # Only the count is exposed
            assert view.my_hand_size == len(state.hands[player_id])

    def test_player_sees_all_other_hands(self):
        """Player should see all other players' hands."""
        state = create_test_state()

        for player_id in sorted(state.hands):
            view = view_for_player(state, player_id)
            visible_players = set(view.other_hands.keys())
            expected_visible = set(state.hands) - {player_id}

            assert visible_players == expected_visible, \
                f"Player {player_id} should see {expected_visible}, but sees {visible_players}"

    def test_other_hands_contain_actual_cards(self):
        """Visible hands should contain the real cards in order."""
        state = create_test_state()
        view = view_for_player(state, 1)

        for pid, visible_hand in view.other_hands.items():
            assert visible_hand == state.hands[pid]

    def test_deck_not_visible(self):
        """Deck contents must not be visible."""
        state = create_test_state()
        view = view_for_player(state, 1)
        data = view.model_dump()

        assert "deck" not in data
        assert "hands" not in data

        # Should only see deck size
        assert view.deck_size == len(state.deck)

    def test_public_fields_copied(self):
        state = create_test_state()
        view = view_for_player(state, 2)

        assert view.my_player_id == 2
        assert view.board == state.board
        assert view.clue_tokens == state.clue_tokens
        assert view.fuse_tokens == state.fuse_tokens
        assert view.current_player_idx == state.current_player_idx
        assert not view.is_my_turn
        assert view_for_player(state, 0).is_my_turn

    def test_unknown_player(self):
        with pytest.raises(ValueError, match="Unknown player"):
            view_for_player(create_test_state(), 9)

    def test_view_is_frozen(self):
        view = view_for_player(create_test_state(), 0)
        with pytest.raises(ValidationError):
            view.clue_tokens = 0  # type: ignore[misc]

    def test_view_does_not_alias_state(self):
        """Mutating a view's lists leaves the state alone."""
        state = create_test_state()
        view = view_for_player(state, 0)

        view.other_hands[1].clear()
        view.discard_pile.append(state.hands[1][0])

        assert len(state.hands[1]) == 5
        assert state.discard_pile == []


class TestAssertNoLeaks:
    """Tests for the leak detection function."""

    def test_detects_forbidden_keys(self):
        """Should detect forbidden keys in payload."""
        for key in FORBIDDEN_KEYS:
            payload = {key: "some_value"}
            with pytest.raises(AssertionError, match="Forbidden key"):
                assert_no_leaks(payload)

    def test_detects_nested_forbidden_keys(self):
        """Should detect forbidden keys in nested structures."""
        payload = {
            "safe_key": {
                "nested": {
                    "deck": [1, 2, 3]  # Forbidden
                }
            }
        }
        with pytest.raises(AssertionError, match="deck"):
            assert_no_leaks(payload)

    def test_detects_forbidden_keys_in_lists(self):
        """Should detect forbidden keys in list items."""
        payload = {
            "items": [
                {"safe": True},
                {"seed": 42},  # Forbidden
            ]
        }
        with pytest.raises(AssertionError, match="seed"):
            assert_no_leaks(payload)

    def test_detects_own_hand_keys(self):
        with pytest.raises(AssertionError, match="Direct hand access"):
            assert_no_leaks({"view": {"my_hand": []}})

    def test_passes_clean_payload(self):
        """Should pass for clean payloads."""
        payload = {
            "my_player_id": 1,
            "other_hands": {"2": [{"color": "red", "rank": 1}]},
            "clue_tokens": 8,
        }
        # Should not raise
        assert_no_leaks(payload)


class TestAssertViewSafe:
    """Tests for view safety validation."""

    def test_rejects_own_hand_in_other_hands(self):
        """Should reject if player's own hand is in other_hands."""
        state = create_test_state()
        view = view_for_player(state, 1)
        leaked = view.model_copy(update={"other_hands": {**view.other_hands, 1: state.hands[1]}})

        with pytest.raises(AssertionError, match="LEAK"):
            assert_view_safe(leaked)

    def test_rejects_own_card_under_another_player(self):
        state = create_test_state()
        view = view_for_player(state, 1)
        smuggled = {**view.other_hands, 2: view.other_hands[2] + [state.hands[1][0]]}
        leaked = view.model_copy(update={"other_hands": smuggled})

        with pytest.raises(AssertionError, match="LEAK"):
            assert_view_safe(leaked, state)

    def test_accepts_valid_view(self):
        """Should accept a properly constructed view."""
        state = create_test_state()
        view = view_for_player(state, 1)

        # Should not raise
        assert_view_safe(view, state)

    def test_all_views_are_safe(self):
        """All player views should pass safety check."""
        state = create_test_state()

        for player_id in sorted(state.hands):
            view = view_for_player(state, player_id)
            assert_view_safe(view, state)  # Should not raise


class TestViewsAfterActions:
    """Views stay safe as the game moves on."""

    def test_hint_keeps_views_safe(self):
        state = create_test_state()
        target_card = state.hands[1][0]
        hint = HintColor(actor=0, target=1, color=target_card.color)

        new_state, result = apply_action(state, hint)
        assert result.success

        for player_id in sorted(new_state.hands):
            view = view_for_player(new_state, player_id)
            assert_view_safe(view, new_state)
            assert view.action_history == [hint]
            assert isinstance(view, PublicGameState)
