"""Rule-based Hanabi player driven by its own belief tracker."""

from __future__ import annotations

import logging

from ..knowledge import BeliefTracker, CardKnowledge, describe_knowledge
from ..models import (
    CardIdentity,
    Color,
    DiscardCard,
    GameAction,
    GiveHint,
    HintColor,
    HintRank,
    MAX_CLUE_TOKENS,
    PlayCard,
    PublicGameState,
    Rank,
    copies_of,
    next_rank,
)

logger = logging.getLogger(__name__)

# Play clues about ranks up to this one name the color instead of the rank
COLOR_CLUE_MAX_RANK = 3


def is_known_playable(k: CardKnowledge, board: dict[Color, Rank | None]) -> bool:
    """Slot is certain and its identity is exactly what its stack needs."""
    if not k.is_certain():
        return False
    color = k.certain_color()
    return k.certain_rank() == next_rank(board[color])


def could_be_playable(k: CardKnowledge, board: dict[Color, Rank | None]) -> bool:
    """At least one identity still possible for the slot is playable now."""
    return any(
        rank == next_rank(board[color])
        for color in k.possible_colors
        for rank in k.possible_ranks
    )


def is_critical(card: CardIdentity, public_state: PublicGameState) -> bool:
    """Card is still needed and every other copy of it has been discarded."""
    needed = next_rank(public_state.board[card.color])
    if needed is None or card.rank < needed:
        return False

    discarded = sum(1 for c in public_state.discard_pile if c.identity == card.identity)
    return discarded >= copies_of(card.rank) - 1


def chop_index(knowledge: list[CardKnowledge]) -> int:
    """Own chop: rightmost unclued slot, else the rightmost slot."""
    for i in reversed(range(len(knowledge))):
        if not knowledge[i].is_clued:
            return i
    return len(knowledge) - 1


def find_save_clue(player_id: int, public_state: PublicGameState) -> GiveHint | None:
    """Color-clue the first teammate whose chop (rightmost card) is critical."""
    if public_state.clue_tokens <= 0:
        return None

    for target, hand in public_state.other_hands.items():
        if not hand:
            continue
        card = hand[-1]
        if is_critical(card, public_state):
            return HintColor(actor=player_id, target=target, color=card.color)
    return None


def find_play_clue(player_id: int, public_state: PublicGameState) -> GiveHint | None:
    """Clue the first immediately playable card found in a teammate's hand."""
    if public_state.clue_tokens <= 0:
        return None

    for target, hand in public_state.other_hands.items():
        for card in hand:
            if card.rank == next_rank(public_state.board[card.color]):
                if card.rank <= COLOR_CLUE_MAX_RANK:
                    return HintColor(actor=player_id, target=target, color=card.color)
                return HintRank(actor=player_id, target=target, rank=card.rank)
    return None


def find_fallback_clue(player_id: int, public_state: PublicGameState) -> GiveHint | None:
    """Color-clue the first teammate's chop. Used when discarding is not allowed."""
    for target, hand in public_state.other_hands.items():
        if hand:
            return HintColor(actor=player_id, target=target, color=hand[-1].color)
    return None


def choose_action(
    player_id: int,
    knowledge: list[CardKnowledge],
    public_state: PublicGameState,
) -> GameAction:
    """
    Pick an action with a fixed priority cascade; the first rule that applies wins.

    1. Play a slot known to be playable
    2. Play a clued slot that could be playable
    3. Save clue for a teammate's critical chop card
    4. Play clue for a teammate's playable card
    5. Discard own chop (hint instead when clue tokens are full)
    """
    board = public_state.board

    for i, k in enumerate(knowledge):
        if is_known_playable(k, board):
            return PlayCard(actor=player_id, index=i)

    for i, k in enumerate(knowledge):
        if k.is_clued and could_be_playable(k, board):
            return PlayCard(actor=player_id, index=i)

    save_clue = find_save_clue(player_id, public_state)
    if save_clue is not None:
        return save_clue

    play_clue = find_play_clue(player_id, public_state)
    if play_clue is not None:
        return play_clue

    # Discarding at max clue tokens is illegal, so hint instead
    if public_state.clue_tokens >= MAX_CLUE_TOKENS:
        fallback = find_fallback_clue(player_id, public_state)
        if fallback is not None:
            return fallback

    return DiscardCard(actor=player_id, index=chop_index(knowledge))


class SmartBot:
    """Autonomous player. Its belief tracker is private and never shared."""

    def __init__(self, player_id: int, initial_hand_size: int):
        self.player_id = player_id
        self._tracker = BeliefTracker(player_id, initial_hand_size)

    def update_beliefs(
        self,
        action: GameAction,
        public_state: PublicGameState,
        hinted_indices: list[int] | None = None,
    ) -> None:
        self._tracker.update_from_action(action, public_state, hinted_indices)
        self._tracker.update_hand_size(public_state.my_hand_size)

    @property
    def knowledge(self) -> list[CardKnowledge]:
        return self._tracker.knowledge

    def choose_action(self, public_state: PublicGameState) -> GameAction:
        action = choose_action(self.player_id, self._tracker.knowledge, public_state)
        logger.debug("Bot %d chose %s", self.player_id, action)
        return action

    def belief_state(self) -> str:
        return describe_knowledge(self._tracker.knowledge)
