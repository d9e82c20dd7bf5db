"""Tests for running Hanabi sessions end to end."""

import pytest

from hanabot.hanabi.models import (
    COLORS,
    DiscardCard,
    HanabiConfig,
    HintColor,
    PlayCard,
)
from hanabot.hanabi.orchestrator import HanabiSession, run_episode
from hanabot.hanabi.parsing import describe_hint_result


def bots_only(players: int = 3, seed: int = 42) -> HanabiSession:
    return HanabiSession(HanabiConfig(num_players=players, seed=seed), human_player=None)


class EventLog:
    """Collects emitted events."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def __call__(self, event: str, payload: dict) -> None:
        self.events.append((event, payload))

    def named(self, name: str) -> list[dict]:
        return [payload for event, payload in self.events if event == name]


class TestSession:
    """Tests for the session object."""

    def test_seats(self):
        session = HanabiSession(HanabiConfig(num_players=4, seed=1), human_player=0)
        assert set(session.bots) == {1, 2, 3}
        assert not session.is_bot_turn()

    def test_all_bot_seats(self):
        session = bots_only(players=3)
        assert set(session.bots) == {0, 1, 2}
        assert session.is_bot_turn()

    def test_bot_turn_on_human_seat(self):
        session = HanabiSession(HanabiConfig(num_players=2, seed=1), human_player=0)
        with pytest.raises(ValueError, match="not a bot"):
            session.bot_turn()

    def test_submit_feeds_hinted_slots_to_target(self):
        """The target bot learns exactly which of its slots a hint touched."""
        session = HanabiSession(HanabiConfig(num_players=2, seed=5), human_player=0)
        bot_hand = session.state.hands[1]
        color = bot_hand[0].color

        result = session.submit(HintColor(actor=0, target=1, color=color))
        assert result.success

        knowledge = session.bots[1].knowledge
        for slot, real in zip(knowledge, bot_hand):
            if real.color == color:
                assert slot.possible_colors == {color}
                assert slot.is_clued
            else:
                assert color not in slot.possible_colors
                assert not slot.is_clued

    def test_hint_at_human_reports_touched_slots(self):
        """A bot hint tells the human seat which of its slots matched."""
        session = HanabiSession(HanabiConfig(num_players=2, seed=5), human_player=0)
        bot_card = session.state.hands[1][0]
        assert session.submit(HintColor(actor=0, target=1, color=bot_card.color)).success

        human_hand = session.state.hands[0]
        color = human_hand[-1].color
        result = session.submit(HintColor(actor=1, target=0, color=color))

        assert result.success
        assert result.positions_touched == [i for i, c in enumerate(human_hand) if c.color == color]
        assert describe_hint_result(HintColor(actor=1, target=0, color=color), result.positions_touched) == (
            f"Hint given: {color.value} - matching cards at indices: "
            + ", ".join(str(i) for i, c in enumerate(human_hand) if c.color == color)
        )

    def test_play_has_no_touched_slots(self):
        session = HanabiSession(HanabiConfig(num_players=2, seed=5), human_player=0)
        result = session.submit(PlayCard(actor=0, index=0))
        assert result.success
        assert result.positions_touched is None

    def test_rejected_submit_leaves_bots_alone(self):
        session = HanabiSession(HanabiConfig(num_players=2, seed=5), human_player=0)
        before = session.bots[1].knowledge

        result = session.submit(DiscardCard(actor=0, index=0))

        assert not result.success
        assert session.bots[1].knowledge == before
        assert session.state.action_history == []

    def test_query(self):
        session = HanabiSession(HanabiConfig(num_players=3, seed=5), human_player=0)
        dump = session.query(2)
        assert len(dump.split("\n")) == 5
        assert dump.startswith("  Card 0:")

    def test_query_own_knowledge(self):
        session = HanabiSession(HanabiConfig(num_players=3, seed=5), human_player=0)
        with pytest.raises(ValueError, match="cannot query your own knowledge"):
            session.query(0)

    def test_query_unknown_seat(self):
        session = HanabiSession(HanabiConfig(num_players=3, seed=5), human_player=0)
        with pytest.raises(ValueError, match="not a bot"):
            session.query(7)

    def test_query_inbox(self):
        session = bots_only()
        assert session.poll_query() is None

        session.request_query(1)
        session.request_query(2)

        assert session.poll_query() == 1
        assert session.poll_query() == 2
        assert session.poll_query() is None

    def test_record_before_game_ends(self):
        session = bots_only()
        record = session.record("ep1")

        assert record.episode_id == "ep1"
        assert record.game_over_reason == "abandoned"
        assert record.actions == []
        assert record.initial_hands == session.state.hands


class TestRunEpisode:
    """Tests for the async game loop."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("players", [2, 3, 4, 5])
    async def test_bots_finish_game(self, players):
        session = bots_only(players=players, seed=players)
        log = EventLog()

        record = await run_episode(session, emit_fn=log)

        assert session.engine.is_game_over()
        assert record.game_over_reason in ("fuse_out", "perfect_score", "final_round_complete")
        assert record.final_score == session.engine.score()
        assert record.actions == session.state.action_history
        assert set(record.final_board) == set(COLORS)

        assert log.events[0][0] == "state"
        assert log.events[-1][0] == "done"
        assert len(log.named("action")) == len(record.actions)
        assert log.named("error") == []

        done = log.named("done")[0]
        assert done["final_score"] == record.final_score
        assert done["total_turns"] == len(record.actions)

    @pytest.mark.asyncio
    async def test_seeded_games_repeat(self):
        first = await run_episode(bots_only(seed=9))
        second = await run_episode(bots_only(seed=9))

        assert first.final_score == second.final_score
        assert [a.model_dump() for a in first.actions] == [a.model_dump() for a in second.actions]

    @pytest.mark.asyncio
    async def test_max_turns(self):
        record = await run_episode(bots_only(), max_turns=3)

        assert len(record.actions) == 3
        assert record.game_over_reason == "abandoned"

    @pytest.mark.asyncio
    async def test_human_seat_requires_callback(self):
        session = HanabiSession(HanabiConfig(num_players=2, seed=1), human_player=0)
        with pytest.raises(ValueError):
            await run_episode(session)

    @pytest.mark.asyncio
    async def test_human_quits(self):
        session = HanabiSession(HanabiConfig(num_players=2, seed=1), human_player=0)

        async def quit_immediately(_session):
            return None

        record = await run_episode(session, human_turn=quit_immediately)

        assert record.game_over_reason == "abandoned"
        assert record.actions == []

    @pytest.mark.asyncio
    async def test_human_error_then_retry(self):
        """A rejected human action is reported and the human is asked again."""
        session = HanabiSession(HanabiConfig(num_players=2, seed=3), human_player=0)
        log = EventLog()
        calls = []

        async def human_turn(s: HanabiSession):
            calls.append(len(s.state.action_history))
            if len(calls) == 1:
                # Illegal at full clue tokens
                return DiscardCard(actor=0, index=0)
            if len(calls) == 2:
                target_card = s.state.hands[1][0]
                return HintColor(actor=0, target=1, color=target_card.color)
            return None

        record = await run_episode(session, human_turn=human_turn, emit_fn=log)

        errors = log.named("error")
        assert len(errors) == 1
        assert errors[0]["message"] == "Cannot discard when at max clue tokens"

        # Human hint, then one bot action, then the human quits
        assert len(record.actions) == 2
        assert isinstance(record.actions[0], HintColor)
        assert record.actions[1].actor == 1
        assert calls == [0, 0, 2]

        # The hint event carries the slots it touched in the bot's hand
        hint = record.actions[0]
        touched = log.named("action")[0]["result"].positions_touched
        assert touched == [i for i, c in enumerate(session.initial_hands[1]) if c.color == hint.color]
        assert touched

    @pytest.mark.asyncio
    async def test_pending_query_answered_before_bot_turn(self):
        session = bots_only()
        session.request_query(1)
        log = EventLog()

        await run_episode(session, emit_fn=log, max_turns=1)

        queries = log.named("query")
        assert len(queries) == 1
        assert queries[0]["player_id"] == 1
        assert queries[0]["knowledge"].startswith("  Card 0:")

        names = [event for event, _ in log.events]
        assert names.index("query") < names.index("action")

    @pytest.mark.asyncio
    async def test_query_for_human_reports_error(self):
        session = HanabiSession(HanabiConfig(num_players=2, seed=2), human_player=0)
        log = EventLog()

        async def human_turn(s: HanabiSession):
            if not s.state.action_history:
                s.request_query(0)
                return HintColor(actor=0, target=1, color=s.state.hands[1][0].color)
            return None

        await run_episode(session, human_turn=human_turn, emit_fn=log)

        errors = log.named("error")
        assert len(errors) == 1
        assert "cannot query your own knowledge" in errors[0]["message"]
