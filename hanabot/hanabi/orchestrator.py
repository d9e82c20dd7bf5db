"""Orchestrator for running Hanabi games between a human and bots."""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from .agents.smart_bot import SmartBot
from .game import GameEngine, game_over_reason
from .models import (
    ActionResult,
    FullGameState,
    GameAction,
    GiveHint,
    HanabiConfig,
    HanabiGameRecord,
)
from .validator import hinted_indices

logger = logging.getLogger(__name__)

EmitFn = Callable[[str, dict[str, Any]], None]
HumanTurnFn = Callable[["HanabiSession"], Awaitable[GameAction | None]]


class HanabiSession:
    """One game: the engine, one SmartBot per non-human seat, and a query inbox.

    The session is the only place with full visibility, so it is where the
    exact slots touched by a hint are computed and handed to the bots.
    """

    def __init__(
        self,
        config: HanabiConfig,
        human_player: int | None = 0,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.human_player = human_player
        self.engine = GameEngine(config.num_players, rng=rng, seed=config.seed)
        self.initial_hands = {
            pid: list(hand) for pid, hand in self.engine.current_state().hands.items()
        }
        self.bots: dict[int, SmartBot] = {
            pid: SmartBot(pid, config.hand_size)
            for pid in range(config.num_players)
            if pid != human_player
        }
        # Inspection requests (player ids); polled, never awaited
        self.query_inbox: asyncio.Queue[int] = asyncio.Queue()

    @property
    def state(self) -> FullGameState:
        return self.engine.current_state()

    def is_bot_turn(self) -> bool:
        return self.engine.current_player() in self.bots

    def submit(self, action: GameAction) -> ActionResult:
        """Execute an action and, if it was accepted, let every bot observe it."""
        before = self.engine.current_state()
        result = self.engine.execute_action(action)
        if not result.success:
            logger.info("Player %d action rejected: %s", action.actor, result.message)
            return result

        touched: list[int] | None = None
        if isinstance(action, GiveHint):
            touched = hinted_indices(action, before.hands[action.target])
            result = result.model_copy(update={"positions_touched": touched})

        logger.info("Player %d: %s -> %s", action.actor, action.action_type, result.message)

        for pid, bot in self.bots.items():
            indices = touched if isinstance(action, GiveHint) and action.target == pid else None
            bot.update_beliefs(action, self.engine.public_state(pid), indices)

        return result

    def bot_turn(self) -> tuple[GameAction, ActionResult]:
        """Let the bot whose turn it is choose and submit an action."""
        player_id = self.engine.current_player()
        bot = self.bots.get(player_id)
        if bot is None:
            raise ValueError(f"Player {player_id} is not a bot")
        action = bot.choose_action(self.engine.public_state(player_id))
        return action, self.submit(action)

    def query(self, player_id: int) -> str:
        """Belief dump for a bot."""
        if player_id == self.human_player:
            raise ValueError("You cannot query your own knowledge (you don't know your cards!)")
        bot = self.bots.get(player_id)
        if bot is None:
            raise ValueError(f"Player {player_id} is not a bot")
        return bot.belief_state()

    def request_query(self, player_id: int) -> None:
        self.query_inbox.put_nowait(player_id)

    def poll_query(self) -> int | None:
        """Next pending inspection request, if any."""
        try:
            return self.query_inbox.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def record(self, episode_id: str | None = None) -> HanabiGameRecord:
        state = self.state
        return HanabiGameRecord(
            episode_id=episode_id or str(uuid.uuid4())[:8],
            timestamp=datetime.now(timezone.utc),
            config=self.config,
            initial_hands=self.initial_hands,
            actions=list(state.action_history),
            final_score=self.engine.score(),
            final_board=dict(state.board),
            fuse_tokens=state.fuse_tokens,
            game_over_reason=game_over_reason(state) or "abandoned",
        )


def _handle_query(session: HanabiSession, player_id: int, emit_fn: EmitFn | None) -> None:
    try:
        dump = session.query(player_id)
    except ValueError as e:
        if emit_fn is not None:
            emit_fn("error", {"message": str(e)})
        return
    if emit_fn is not None:
        emit_fn("query", {"player_id": player_id, "knowledge": dump})


async def run_episode(
    session: HanabiSession,
    human_turn: HumanTurnFn | None = None,
    emit_fn: EmitFn | None = None,
    bot_delay: float = 0.0,
    max_turns: int = 200,
    episode_id: str | None = None,
) -> HanabiGameRecord:
    """
    Run a game to completion.

    Args:
        session: The game session
        human_turn: Coroutine returning the human's next action, or None to quit.
            Required if the session has a human seat.
        emit_fn: Optional callback for emitting events ("state", "action",
            "error", "query", "done")
        bot_delay: Seconds to pause after each bot action
        max_turns: Safety limit on accepted actions
        episode_id: Optional episode ID (generated if not provided)

    Returns:
        Summary record of the game
    """
    if session.human_player is not None and human_turn is None:
        raise ValueError("A human seat requires a human_turn callback")

    turns = 0
    while not session.engine.is_game_over():
        if emit_fn is not None:
            emit_fn("state", {"state": session.state})

        if session.is_bot_turn():
            pending = session.poll_query()
            if pending is not None:
                _handle_query(session, pending, emit_fn)

            action, result = session.bot_turn()
            if not result.success:
                raise RuntimeError(f"Bot {action.actor} proposed an illegal action: {result.message}")

            if emit_fn is not None:
                emit_fn("action", {"action": action, "result": result})
            if bot_delay > 0:
                await asyncio.sleep(bot_delay)
        else:
            assert human_turn is not None
            action = await human_turn(session)
            if action is None:
                logger.info("Human player quit")
                break
            result = session.submit(action)
            if emit_fn is not None:
                event = "action" if result.success else "error"
                emit_fn(event, {"action": action, "result": result, "message": result.message})
            if not result.success:
                continue

        turns += 1
        # Safety limit
        if turns >= max_turns:
            logger.warning("Stopping after %d turns", turns)
            break

    record = session.record(episode_id)

    if emit_fn is not None:
        emit_fn("done", {
            "episode_id": record.episode_id,
            "final_score": record.final_score,
            "fuse_tokens": record.fuse_tokens,
            "game_over_reason": record.game_over_reason,
            "total_turns": len(record.actions),
        })

    return record
