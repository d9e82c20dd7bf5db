"""Parsing of typed console commands into game actions."""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel

from .models import (
    Color,
    DiscardCard,
    GameAction,
    HintColor,
    HintRank,
    PlayCard,
    Rank,
)

HUMAN_NAME = "you"
BOT_PREFIX = "bot"


class QueryCommand(BaseModel):
    """Ask a bot to show what it believes about its own hand."""

    command_type: Literal["query"] = "query"
    target: int


class ControlCommand(BaseModel):
    """Console control that does not touch the game."""

    command_type: Literal["control"] = "control"
    name: Literal["help", "quit"]


Command = PlayCard | DiscardCard | HintColor | HintRank | QueryCommand | ControlCommand


def player_name(player_id: int, human_player: int | None = 0) -> str:
    """Display name for a seat: "You" for the human, "Bot<N>" otherwise."""
    if player_id == human_player:
        return "You"
    return f"Bot{player_id}"


def parse_player(name: str, human_player: int | None = 0) -> int | None:
    """
    Resolve a typed player name.

    Accepts "you" (the human seat), "bot<N>" (case-insensitive) or a bare id.
    """
    name = name.strip().lower()
    if name == HUMAN_NAME:
        return human_player
    if name.startswith(BOT_PREFIX):
        name = name[len(BOT_PREFIX):]
    if name.isdigit():
        return int(name)
    return None


def parse_clue(text: str) -> Color | Rank | None:
    """A color name ("red") or a rank ("3")."""
    text = text.strip().lower()
    try:
        return Color(text)
    except ValueError:
        pass
    if text.isdigit():
        try:
            return Rank(int(text))
        except ValueError:
            return None
    return None


def parse_command(text: str, player_id: int, human_player: int | None = 0) -> tuple[Command | None, str | None]:
    """
    Parse one line of console input.

    Grammar:
        play <index>
        discard <index>
        hint <player> <color|rank>
        query <player>
        help | quit

    Returns:
        (command, error_message)
    """
    parts = re.split(r"\s+", text.strip())
    if not parts or not parts[0]:
        return None, "Empty command. Type 'help' for commands."

    verb = parts[0].lower()

    if verb in ("play", "discard"):
        if len(parts) < 2:
            return None, f"Usage: {verb} <index>"
        if not re.fullmatch(r"-?\d+", parts[1]):
            return None, f"Invalid card index: {parts[1]}"
        index = int(parts[1])
        if verb == "play":
            return PlayCard(actor=player_id, index=index), None
        return DiscardCard(actor=player_id, index=index), None

    if verb == "hint":
        if len(parts) < 3:
            return None, "Usage: hint <player> <color|rank>"
        target = parse_player(parts[1], human_player)
        if target is None:
            return None, "Invalid player name. Use 'Bot1', 'Bot2', etc."
        clue = parse_clue(parts[2])
        if isinstance(clue, Color):
            return HintColor(actor=player_id, target=target, color=clue), None
        if isinstance(clue, Rank):
            return HintRank(actor=player_id, target=target, rank=clue), None
        return None, "Invalid clue. Use a color (red, yellow, green, blue, white) or rank (1-5)"

    if verb == "query":
        if len(parts) < 2:
            return None, "Usage: query <player>"
        target = parse_player(parts[1], human_player)
        if target is None:
            return None, "Invalid player name. Use 'Bot1', 'Bot2', etc."
        return QueryCommand(target=target), None

    if verb in ("help", "quit"):
        return ControlCommand(name=verb), None

    return None, "Invalid command. Type 'help' for commands."


def help_text() -> str:
    return """Commands:
  play <index>         - Play card at index
  discard <index>      - Discard card at index
  hint <player> <clue> - Give hint (e.g., 'hint Bot1 red' or 'hint Bot2 3')
  query <player>       - Ask bot what they know about their cards
  help                 - Show commands
  quit                 - Exit game"""


def describe_hint_result(hint: HintColor | HintRank, positions: list[int]) -> str:
    """One-line summary of which target slots a hint matched."""
    value = hint.color.value if isinstance(hint, HintColor) else str(hint.rank)
    indices = ", ".join(str(i) for i in positions)
    return f"Hint given: {value} - matching cards at indices: {indices}"
