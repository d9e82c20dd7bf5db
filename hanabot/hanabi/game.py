"""Core game logic for Hanabi."""

from __future__ import annotations

import logging
import random

from .models import (
    ActionError,
    ActionResult,
    CardIdentity,
    Color,
    COLORS,
    CARD_COUNTS,
    DiscardCard,
    FullGameState,
    GameAction,
    GiveHint,
    HanabiConfig,
    MAX_CLUE_TOKENS,
    MAX_FUSE_TOKENS,
    MAX_RANK,
    MAX_SCORE,
    PlayCard,
    PublicGameState,
    Rank,
    next_rank,
)
from .validator import validate_action
from .visibility import view_for_player

logger = logging.getLogger(__name__)


def create_deck(rng: random.Random | None = None) -> list[CardIdentity]:
    """Create and shuffle a standard 50-card Hanabi deck."""
    rng = rng or random.Random()
    deck: list[CardIdentity] = []

    for color in COLORS:
        for rank, count in CARD_COUNTS.items():
            for _ in range(count):
                deck.append(CardIdentity(color=color, rank=Rank(rank)))

    rng.shuffle(deck)
    return deck


def create_game(config: HanabiConfig, rng: random.Random | None = None) -> FullGameState:
    """
    Create a new Hanabi game.

    Args:
        config: Game configuration
        rng: Optional randomness source for the shuffle. Defaults to one
            seeded from config.seed.

    Returns:
        Initial game state with dealt hands
    """
    if rng is None:
        rng = random.Random(config.seed)

    deck = create_deck(rng)

    # Deal each player a full hand in turn order, from the front of the deck
    hands: dict[int, list[CardIdentity]] = {}
    for player_id in range(config.num_players):
        hands[player_id] = deck[: config.hand_size]
        deck = deck[config.hand_size:]

    return FullGameState(deck=deck, hands=hands)


def is_playable(card: CardIdentity, board: dict[Color, Rank | None]) -> bool:
    """Check if a card would land on its stack."""
    return card.rank == next_rank(board[card.color])


def get_score(state: FullGameState) -> int:
    """Sum of the highest played rank per color, or 0 after an explosion."""
    if state.fuse_tokens >= MAX_FUSE_TOKENS:
        return 0
    return sum(rank or 0 for rank in state.board.values())


def _draw(state: FullGameState, player_id: int) -> None:
    if state.deck:
        state.hands[player_id].append(state.deck.pop(0))


def _advance_turn(state: FullGameState) -> None:
    state.current_player_idx = (state.current_player_idx + 1) % state.num_players


def apply_play(state: FullGameState, action: PlayCard) -> tuple[FullGameState, ActionResult]:
    """Apply a validated play action."""
    new_state = state.model_copy(deep=True)

    card = new_state.hands[action.actor].pop(action.index)
    playable = is_playable(card, new_state.board)

    if playable:
        new_state.board[card.color] = card.rank

        # Bonus clue token for completing a stack
        if card.rank == MAX_RANK and new_state.clue_tokens < MAX_CLUE_TOKENS:
            new_state.clue_tokens += 1

        message = f"Played {card} successfully"
    else:
        # Misplays are the only way to light a fuse
        new_state.discard_pile.append(card)
        new_state.fuse_tokens += 1
        message = f"Played {card} but it was not playable. Gained a fuse token."

    _draw(new_state, action.actor)
    _advance_turn(new_state)

    return new_state, ActionResult(
        success=True,
        message=message,
        card_played=card,
        was_playable=playable,
    )


def apply_discard(state: FullGameState, action: DiscardCard) -> tuple[FullGameState, ActionResult]:
    """Apply a validated discard action."""
    new_state = state.model_copy(deep=True)

    card = new_state.hands[action.actor].pop(action.index)
    new_state.discard_pile.append(card)
    new_state.clue_tokens = min(new_state.clue_tokens + 1, MAX_CLUE_TOKENS)

    _draw(new_state, action.actor)
    _advance_turn(new_state)

    return new_state, ActionResult(
        success=True,
        message=f"Discarded {card}, gained a clue token",
        card_discarded=card,
    )


def apply_hint(state: FullGameState, action: GiveHint) -> tuple[FullGameState, ActionResult]:
    """Apply a validated hint. Which cards were touched is left to the caller."""
    new_state = state.model_copy(deep=True)
    new_state.clue_tokens -= 1
    _advance_turn(new_state)

    return new_state, ActionResult(
        success=True,
        message=f"Player {action.actor} hinted player {action.target}",
    )


def check_terminal(state: FullGameState) -> FullGameState:
    """
    Evaluate end conditions after a successful action.

    In priority order: three fuses, all stacks complete, deck just ran out
    (start a countdown of one turn per player), countdown running.
    """
    if state.fuse_tokens >= MAX_FUSE_TOKENS:
        return state.model_copy(update={"game_over": True})

    if all(rank == MAX_RANK for rank in state.board.values()):
        return state.model_copy(update={"game_over": True})

    if not state.deck and state.turns_remaining is None:
        return state.model_copy(update={"turns_remaining": state.num_players})

    if state.turns_remaining is not None:
        remaining = state.turns_remaining - 1
        if remaining == 0:
            return state.model_copy(update={"turns_remaining": 0, "game_over": True})
        return state.model_copy(update={"turns_remaining": remaining})

    return state


def game_over_reason(state: FullGameState) -> str | None:
    """
    Why the game ended.

    Returns:
        "fuse_out", "perfect_score", "final_round_complete", or None (not over)
    """
    if not state.game_over:
        return None
    if state.fuse_tokens >= MAX_FUSE_TOKENS:
        return "fuse_out"
    if get_score(state) == MAX_SCORE:
        return "perfect_score"
    return "final_round_complete"


def apply_action(state: FullGameState, action: GameAction) -> tuple[FullGameState, ActionResult]:
    """
    Apply an action to the game state.

    The input state is never modified. Rejected actions return it as-is.

    Returns:
        (new_state, result)
    """
    if state.game_over:
        return state, ActionResult.rejected(ActionError.GAME_OVER)

    is_valid, error = validate_action(action, state)
    if not is_valid:
        assert error is not None
        logger.debug("Rejected %s from player %d: %s", action.action_type, action.actor, error.message)
        return state, ActionResult.rejected(error)

    if isinstance(action, PlayCard):
        new_state, result = apply_play(state, action)
    elif isinstance(action, DiscardCard):
        new_state, result = apply_discard(state, action)
    else:
        new_state, result = apply_hint(state, action)

    new_state.action_history.append(action)
    new_state = check_terminal(new_state)

    if new_state.game_over:
        logger.info(
            "Game over (%s) with score %d",
            game_over_reason(new_state),
            get_score(new_state),
        )

    return new_state, result.model_copy(update={"game_over": new_state.game_over})


class GameEngine:
    """Owns the authoritative state of one game and replaces it on every action.

    Callers only ever see snapshots: each accepted action produces a new
    FullGameState and the previous one is left untouched.
    """

    def __init__(
        self,
        num_players: int,
        rng: random.Random | None = None,
        seed: int | None = None,
        state: FullGameState | None = None,
    ):
        """
        Args:
            num_players: 2 to 5
            rng: Optional randomness source for the initial shuffle
            seed: Seed used when no rng is given
            state: Start from this snapshot instead of dealing a new game
        """
        if not 2 <= num_players <= 5:
            raise ValueError(f"Number of players must be between 2 and 5, got {num_players}")
        if state is not None and state.num_players != num_players:
            raise ValueError(f"State has {state.num_players} players, expected {num_players}")
        self._config = HanabiConfig(num_players=num_players, seed=seed)
        self._state = state if state is not None else create_game(self._config, rng)

    @property
    def config(self) -> HanabiConfig:
        return self._config

    @property
    def num_players(self) -> int:
        return self._state.num_players

    def current_state(self) -> FullGameState:
        return self._state

    def public_state(self, player_id: int) -> PublicGameState:
        return view_for_player(self._state, player_id)

    def execute_action(self, action: GameAction) -> ActionResult:
        self._state, result = apply_action(self._state, action)
        return result

    def score(self) -> int:
        return get_score(self._state)

    def current_player(self) -> int:
        return self._state.current_player_idx

    def is_game_over(self) -> bool:
        return self._state.game_over
