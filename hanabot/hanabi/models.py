"""Data models for the Hanabi game engine."""

from __future__ import annotations

import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema


class Color(str, Enum):
    """Card color enumeration."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    WHITE = "white"

    @property
    def initial(self) -> str:
        return self.name[0]


COLORS: list[Color] = list(Color)

MIN_RANK = 1
MAX_RANK = 5


class Rank(int):
    """A card rank, 1 through 5."""

    def __new__(cls, value: int) -> Rank:
        value = int(value)
        if not MIN_RANK <= value <= MAX_RANK:
            raise ValueError(f"Rank must be between {MIN_RANK} and {MAX_RANK}, got {value}")
        return super().__new__(cls, value)

    def next(self) -> Rank | None:
        """Successor rank, or None at 5."""
        if self < MAX_RANK:
            return Rank(self + 1)
        return None

    def __repr__(self) -> str:
        return f"Rank({int(self)})"

    def __str__(self) -> str:
        return str(int(self))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.int_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(int),
        )


RANKS: list[Rank] = [Rank(n) for n in range(MIN_RANK, MAX_RANK + 1)]

# Card distribution: 1s x3, 2s x2, 3s x2, 4s x2, 5s x1 per color = 10 per color, 50 total
CARD_COUNTS: dict[int, int] = {1: 3, 2: 2, 3: 2, 4: 2, 5: 1}
DECK_SIZE = len(COLORS) * sum(CARD_COUNTS.values())

MAX_CLUE_TOKENS = 8
MAX_FUSE_TOKENS = 3
MAX_SCORE = len(COLORS) * MAX_RANK


def copies_of(rank: int) -> int:
    """Total copies of each color at this rank in a full deck."""
    return CARD_COUNTS[int(rank)]


def next_rank(board_rank: Rank | None) -> Rank | None:
    """Rank a stack needs next: 1 when empty, None once complete."""
    if board_rank is None:
        return Rank(MIN_RANK)
    return board_rank.next()


class CardIdentity(BaseModel):
    """A physical Hanabi card.

    Two cards with the same color and rank are interchangeable for play;
    card_id only tells physical copies apart.
    """

    model_config = ConfigDict(frozen=True)

    color: Color
    rank: Rank
    card_id: str = Field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def identity(self) -> tuple[Color, Rank]:
        return self.color, self.rank

    def __str__(self) -> str:
        return f"{self.color.initial}{self.rank}"


# Action types
class PlayCard(BaseModel):
    """Play a card from hand by position (0-indexed)."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["play"] = "play"
    actor: int
    index: int


class DiscardCard(BaseModel):
    """Discard a card from hand by position (0-indexed)."""

    model_config = ConfigDict(frozen=True)

    action_type: Literal["discard"] = "discard"
    actor: int
    index: int


class GiveHint(BaseModel, ABC):
    """Common shape of color and rank hints."""

    model_config = ConfigDict(frozen=True)

    actor: int
    target: int

    @abstractmethod
    def matches(self, card: CardIdentity) -> bool:
        """Whether this hint touches the card."""


class HintColor(GiveHint):
    """Tell a player which of their cards have a color."""

    action_type: Literal["hint_color"] = "hint_color"
    color: Color

    def matches(self, card: CardIdentity) -> bool:
        return card.color == self.color


class HintRank(GiveHint):
    """Tell a player which of their cards have a rank."""

    action_type: Literal["hint_rank"] = "hint_rank"
    rank: Rank

    def matches(self, card: CardIdentity) -> bool:
        return card.rank == self.rank


GameAction = PlayCard | DiscardCard | HintColor | HintRank


class ActionError(str, Enum):
    """Reasons an action can be rejected."""
    INVALID_INDEX = "invalid_index"
    PLAYER_NOT_FOUND = "player_not_found"
    MAX_CLUE_TOKENS = "max_clue_tokens"
    NO_CLUE_TOKENS = "no_clue_tokens"
    SELF_HINT = "self_hint"
    EMPTY_HINT = "empty_hint"
    GAME_OVER = "game_over"

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES: dict[ActionError, str] = {
    ActionError.INVALID_INDEX: "Invalid card index",
    ActionError.PLAYER_NOT_FOUND: "Player not found",
    ActionError.MAX_CLUE_TOKENS: "Cannot discard when at max clue tokens",
    ActionError.NO_CLUE_TOKENS: "No clue tokens available",
    ActionError.SELF_HINT: "Cannot hint yourself",
    ActionError.EMPTY_HINT: "Cannot give empty hint",
    ActionError.GAME_OVER: "Game is over",
}


class ActionResult(BaseModel):
    """Result of applying an action."""

    success: bool
    game_over: bool = False
    message: str = ""
    error: ActionError | None = None
    card_played: CardIdentity | None = None  # For play actions
    card_discarded: CardIdentity | None = None  # For discard actions
    was_playable: bool | None = None  # For play actions: did the card land on the board?
    positions_touched: list[int] | None = None  # For hints: slots of the target that matched

    @classmethod
    def rejected(cls, error: ActionError) -> ActionResult:
        return cls(success=False, message=error.message, error=error)


class HanabiConfig(BaseModel):
    """Configuration for a Hanabi game."""

    num_players: int = Field(default=4, ge=2, le=5)
    seed: int | None = None

    @property
    def hand_size(self) -> int:
        """5 cards for 2-3 players, 4 for 4-5 players."""
        return 5 if self.num_players <= 3 else 4

    @classmethod
    def from_env(cls) -> HanabiConfig:
        """Build a config from HANABI_PLAYERS / HANABI_SEED, falling back to defaults."""
        data: dict[str, Any] = {}
        players = os.environ.get("HANABI_PLAYERS")
        if players:
            data["num_players"] = int(players)
        seed = os.environ.get("HANABI_SEED")
        if seed:
            data["seed"] = int(seed)
        return cls(**data)


def _empty_board() -> dict[Color, Rank | None]:
    return {color: None for color in COLORS}


class FullGameState(BaseModel):
    """The authoritative, unredacted state of a Hanabi game."""

    # Deck (hidden from all players), drawn from the front
    deck: list[CardIdentity]

    # Hands: player id -> ordered cards (hidden from that player)
    hands: dict[int, list[CardIdentity]]

    discard_pile: list[CardIdentity] = Field(default_factory=list)

    # Played cards: color -> highest successfully played rank (None if untouched)
    board: dict[Color, Rank | None] = Field(default_factory=_empty_board)

    # Tokens
    clue_tokens: int = MAX_CLUE_TOKENS
    fuse_tokens: int = 0

    current_player_idx: int = 0

    # Set when the deck runs out: turns left before the game ends
    turns_remaining: int | None = None
    game_over: bool = False

    action_history: list[GameAction] = Field(default_factory=list)

    @property
    def num_players(self) -> int:
        return len(self.hands)

    @property
    def deck_size(self) -> int:
        return len(self.deck)


class PublicGameState(BaseModel):
    """What one player is allowed to see: everything but their own cards."""

    model_config = ConfigDict(frozen=True)

    my_player_id: int
    my_hand_size: int
    other_hands: dict[int, list[CardIdentity]]
    discard_pile: list[CardIdentity]
    board: dict[Color, Rank | None]
    clue_tokens: int
    fuse_tokens: int
    deck_size: int
    action_history: list[GameAction]
    current_player_idx: int = 0
    turns_remaining: int | None = None
    game_over: bool = False

    @property
    def is_my_turn(self) -> bool:
        return self.current_player_idx == self.my_player_id


class HanabiGameRecord(BaseModel):
    """Summary of a finished (or abandoned) game."""

    episode_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    config: HanabiConfig

    # Initial hands (for replay)
    initial_hands: dict[int, list[CardIdentity]]

    actions: list[GameAction]

    final_score: int
    final_board: dict[Color, Rank | None]
    fuse_tokens: int
    game_over_reason: str
