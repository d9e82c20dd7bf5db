"""Per-agent knowledge about the agent's own, unseen hand."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from pydantic import BaseModel, Field

from .models import (
    CardIdentity,
    Color,
    COLORS,
    DiscardCard,
    GameAction,
    HintColor,
    HintRank,
    PlayCard,
    PublicGameState,
    Rank,
    RANKS,
    copies_of,
)

logger = logging.getLogger(__name__)


class CardKnowledge(BaseModel):
    """What a player has deduced about one of their own hand slots."""

    possible_colors: set[Color] = Field(default_factory=lambda: set(COLORS))
    possible_ranks: set[Rank] = Field(default_factory=lambda: set(RANKS))
    is_clued: bool = False

    # Clue values received about this slot, kept for display only
    positive_color_clues: set[Color] = Field(default_factory=set)
    positive_rank_clues: set[Rank] = Field(default_factory=set)

    def is_certain(self) -> bool:
        return len(self.possible_colors) == 1 and len(self.possible_ranks) == 1

    def certain_color(self) -> Color | None:
        if len(self.possible_colors) == 1:
            return next(iter(self.possible_colors))
        return None

    def certain_rank(self) -> Rank | None:
        if len(self.possible_ranks) == 1:
            return next(iter(self.possible_ranks))
        return None

    def could_be(self, card: CardIdentity) -> bool:
        return card.color in self.possible_colors and card.rank in self.possible_ranks

    def model_dump(self, **kwargs) -> dict[str, Any]:
        """Custom serialization for sets."""
        data = super().model_dump(**kwargs)
        data["possible_colors"] = [c.value for c in COLORS if c in self.possible_colors]
        data["possible_ranks"] = sorted(int(r) for r in self.possible_ranks)
        data["positive_color_clues"] = [c.value for c in COLORS if c in self.positive_color_clues]
        data["positive_rank_clues"] = sorted(int(r) for r in self.positive_rank_clues)
        return data


def count_visible_cards(public_state: PublicGameState) -> Counter[tuple[Color, Rank]]:
    """
    Tally every card identity the viewer can account for.

    Counts other players' hands, the discard pile, and the board, where a
    stack at rank k holds one copy each of ranks 1..k.
    """
    visible: Counter[tuple[Color, Rank]] = Counter()

    for hand in public_state.other_hands.values():
        for card in hand:
            visible[card.identity] += 1

    for card in public_state.discard_pile:
        visible[card.identity] += 1

    for color, top in public_state.board.items():
        if top is not None:
            for rank in RANKS[:top]:
                visible[(color, rank)] += 1

    return visible


class BeliefTracker:
    """Tracks one agent's knowledge of its own hand, slot by slot.

    The slot list mirrors the order of the agent's real hand, which the
    tracker never sees. It only learns from public actions and the board.
    """

    def __init__(self, player_id: int, initial_hand_size: int):
        self.player_id = player_id
        self._knowledge: list[CardKnowledge] = [CardKnowledge() for _ in range(initial_hand_size)]

    @property
    def knowledge(self) -> list[CardKnowledge]:
        return list(self._knowledge)

    def knowledge_at(self, index: int) -> CardKnowledge | None:
        if 0 <= index < len(self._knowledge):
            return self._knowledge[index]
        return None

    def update_from_action(
        self,
        action: GameAction,
        public_state: PublicGameState,
        hinted_indices: list[int] | None = None,
    ) -> None:
        """
        Fold one public action into the tracker.

        Args:
            action: The action that was just applied
            public_state: This agent's view after the action
            hinted_indices: For hints at this agent, the slots the hint touched.
                Without it only the conservative positive reading is applied.
        """
        if isinstance(action, HintColor) and action.target == self.player_id:
            self._apply_hint(action, hinted_indices)
        elif isinstance(action, HintRank) and action.target == self.player_id:
            self._apply_hint(action, hinted_indices)
        elif isinstance(action, (PlayCard, DiscardCard)) and action.actor == self.player_id:
            self._replace_slot(action.index)

        self._prune_visible(public_state)

    def update_hand_size(self, new_size: int) -> None:
        """Truncate or pad so the slot count matches the real hand size."""
        if new_size < len(self._knowledge):
            self._knowledge = self._knowledge[:new_size]
        elif new_size > len(self._knowledge):
            self._knowledge += [CardKnowledge() for _ in range(new_size - len(self._knowledge))]

    def _apply_hint(self, hint: HintColor | HintRank, hinted_indices: list[int] | None) -> None:
        if isinstance(hint, HintColor):
            field, clue_field, value = "possible_colors", "positive_color_clues", hint.color
        else:
            field, clue_field, value = "possible_ranks", "positive_rank_clues", hint.rank

        updated: list[CardKnowledge] = []
        for i, k in enumerate(self._knowledge):
            possible = getattr(k, field)

            if hinted_indices is None:
                touched = value in possible
            else:
                touched = i in hinted_indices

            if touched:
                k = k.model_copy(update={
                    field: {value},
                    "is_clued": True,
                    clue_field: getattr(k, clue_field) | {value},
                })
            elif hinted_indices is not None:
                # Negative information, unless it would leave nothing possible
                remaining = possible - {value}
                if remaining:
                    k = k.model_copy(update={field: remaining})

            updated.append(k)

        self._knowledge = updated

    def _replace_slot(self, index: int) -> None:
        if 0 <= index < len(self._knowledge):
            self._knowledge = self._knowledge[:index] + self._knowledge[index + 1:] + [CardKnowledge()]

    def _prune_visible(self, public_state: PublicGameState) -> None:
        visible = count_visible_cards(public_state)

        def exhausted(color: Color, rank: Rank) -> bool:
            return visible[(color, rank)] >= copies_of(rank)

        updated: list[CardKnowledge] = []
        for i, k in enumerate(self._knowledge):
            colors = {
                c for c in k.possible_colors
                if any(not exhausted(c, r) for r in k.possible_ranks)
            }
            ranks = {
                r for r in k.possible_ranks
                if any(not exhausted(c, r) for c in k.possible_colors)
            }

            if colors and ranks:
                k = k.model_copy(update={"possible_colors": colors, "possible_ranks": ranks})
            else:
                logger.debug(
                    "Player %d slot %d: visible cards contradict knowledge, skipping prune",
                    self.player_id,
                    i,
                )
            updated.append(k)

        self._knowledge = updated


def _format_set(values: list[str], universe_size: int) -> str:
    if len(values) == universe_size:
        return "{any}"
    return "{" + ",".join(values) + "}"


def describe_knowledge(knowledge: list[CardKnowledge]) -> str:
    """
    Human-readable dump of a knowledge list, one line per slot.

    Examples:
        "  Card 0: RED 3 (certain) - Clued"
        "  Card 1: Color={R,B}, Rank={any} - Unknown"
    """
    lines = []
    for i, k in enumerate(knowledge):
        if k.is_certain():
            desc = f"{k.certain_color().name} {k.certain_rank()} (certain)"
        else:
            color = k.certain_color()
            if color is not None:
                color_desc = f"Color={color.name} (certain)"
            else:
                initials = [c.initial for c in COLORS if c in k.possible_colors]
                color_desc = f"Color={_format_set(initials, len(COLORS))}"

            rank = k.certain_rank()
            if rank is not None:
                rank_desc = f"Rank={rank} (certain)"
            else:
                values = [str(r) for r in RANKS if r in k.possible_ranks]
                rank_desc = f"Rank={_format_set(values, len(RANKS))}"

            desc = f"{color_desc}, {rank_desc}"

        status = "Clued" if k.is_clued else "Unknown"
        lines.append(f"  Card {i}: {desc} - {status}")

    return "\n".join(lines)
