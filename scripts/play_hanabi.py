#!/usr/bin/env python3
"""Play Hanabi in the terminal against rule-based bots, or watch bots play."""

import asyncio
import argparse
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

from hanabot.hanabi import (
    ActionResult,
    CardIdentity,
    Color,
    DiscardCard,
    FullGameState,
    GameAction,
    HanabiConfig,
    HanabiSession,
    HintColor,
    HintRank,
    PlayCard,
    run_episode,
)
from hanabot.hanabi.models import MAX_CLUE_TOKENS, MAX_FUSE_TOKENS, MAX_SCORE
from hanabot.hanabi.parsing import (
    ControlCommand,
    QueryCommand,
    describe_hint_result,
    help_text,
    parse_command,
    player_name,
)


# ANSI colors for terminal output
class Colors:
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    WHITE = "\033[97m"
    GRAY = "\033[90m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RESET = "\033[0m"


CARD_COLORS = {
    Color.RED: Colors.RED,
    Color.YELLOW: Colors.YELLOW,
    Color.GREEN: Colors.GREEN,
    Color.BLUE: Colors.BLUE,
    Color.WHITE: Colors.WHITE,
}


def card_str(card: CardIdentity) -> str:
    return f"{CARD_COLORS[card.color]}[{card}]{Colors.RESET}"


def print_state(state: FullGameState, human_player: int | None):
    """Print the table as the human sees it."""
    print(f"\n{Colors.BOLD}{'=' * 60}{Colors.RESET}")
    print(f"{Colors.BOLD}HANABI{Colors.RESET}")
    print(f"{'=' * 60}")

    board = " ".join(
        f"{CARD_COLORS[color]}[{color.initial}{rank or '-'}]{Colors.RESET}"
        for color, rank in state.board.items()
    )
    print(f"Board:  {board}")
    print(
        f"Clues: {state.clue_tokens}/{MAX_CLUE_TOKENS}    "
        f"Fuses: {state.fuse_tokens}/{MAX_FUSE_TOKENS}    "
        f"Deck: {len(state.deck)}"
    )

    discards = ", ".join(str(c) for c in state.discard_pile[-10:]) or "(empty)"
    print(f"Discards: {discards}")
    print(f"{'-' * 60}")

    for pid, hand in state.hands.items():
        name = player_name(pid, human_player)
        if pid == human_player:
            hidden = " ".join("[??]" for _ in hand)
            print(f"{name}: {hidden}  (indices 0-{len(hand) - 1})")
        else:
            print(f"{name}: {' '.join(card_str(c) for c in hand)}")
    print(f"{'=' * 60}")


def describe_action(action: GameAction, human_player: int | None) -> str:
    actor = player_name(action.actor, human_player)
    if isinstance(action, PlayCard):
        return f"{actor} plays card at index {action.index}"
    if isinstance(action, DiscardCard):
        return f"{actor} discards card at index {action.index}"
    target = player_name(action.target, human_player)
    if isinstance(action, HintColor):
        return f"{actor} gives {target} a {action.color.value} hint"
    if isinstance(action, HintRank):
        return f"{actor} gives {target} a {action.rank} hint"
    return f"{actor}: {action}"


def print_result(action: GameAction, result: ActionResult, human_player: int | None):
    print(describe_action(action, human_player))
    if result.card_played is not None:
        card = result.card_played
        color = CARD_COLORS[card.color]
        if result.was_playable:
            print(f"{color}✓ Successfully played {card.color.name} {card.rank}!{Colors.RESET}")
        else:
            print(f"{color}✗ Failed to play {card.color.name} {card.rank} - added to discard pile and gained a fuse!{Colors.RESET}")
    elif result.card_discarded is not None:
        card = result.card_discarded
        print(f"{CARD_COLORS[card.color]}Discarded {card.color.name} {card.rank} - gained a clue token{Colors.RESET}")
    elif isinstance(action, (HintColor, HintRank)) and result.positions_touched is not None:
        print(f"{Colors.CYAN}{describe_hint_result(action, result.positions_touched)}{Colors.RESET}")


def print_knowledge(name: str, knowledge: str):
    print(f"\n{Colors.CYAN}{Colors.BOLD}{name}'s Knowledge{Colors.RESET}")
    for line in knowledge.splitlines():
        print(f"{Colors.CYAN}{line}{Colors.RESET}")


def print_error(message: str):
    print(f"{Colors.RED}✗ Error: {message}{Colors.RESET}")


def print_game_over(score: int, fuse_tokens: int):
    print(f"\n{Colors.BOLD}{'=' * 60}{Colors.RESET}")
    print(f"{Colors.BOLD}GAME OVER{Colors.RESET}")
    if fuse_tokens >= MAX_FUSE_TOKENS:
        print(f"{Colors.RED}EXPLOSION! The game ended with {MAX_FUSE_TOKENS} fuses.{Colors.RESET}")
    elif score == MAX_SCORE:
        print(f"{Colors.GREEN}PERFECT SCORE! All fireworks completed!{Colors.RESET}")
    print(f"Final Score: {score}")
    print(f"{'=' * 60}")


def make_human_turn():
    """Build the callback that reads the human's command from stdin."""

    async def human_turn(session: HanabiSession) -> GameAction | None:
        player_id = session.human_player
        print("\nYour turn! Enter a command:")
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                return None

            command, error = parse_command(line, player_id, session.human_player)
            if command is None:
                print_error(error or "Invalid command")
                continue

            if isinstance(command, ControlCommand):
                if command.name == "quit":
                    print("Thanks for playing!")
                    return None
                print(help_text())
                continue

            if isinstance(command, QueryCommand):
                try:
                    knowledge = session.query(command.target)
                except ValueError as e:
                    print_error(str(e))
                    continue
                print_knowledge(player_name(command.target, session.human_player), knowledge)
                continue

            return command

    return human_turn


async def main():
    parser = argparse.ArgumentParser(description="Play Hanabi against rule-based bots")
    env_config = HanabiConfig.from_env()
    parser.add_argument("--players", type=int, default=env_config.num_players, choices=range(2, 6),
                        help="Number of players (2-5)")
    parser.add_argument("--seed", type=int, default=env_config.seed, help="Shuffle seed")
    parser.add_argument("--bots-only", action="store_true", help="Let bots fill every seat")
    parser.add_argument("--delay", type=float, default=1.0, help="Seconds to pause after each bot action")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only show the final score")
    args = parser.parse_args()

    if args.quiet:
        logging.basicConfig(level=logging.WARNING)
    elif args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(message)s")

    config = HanabiConfig(num_players=args.players, seed=args.seed)
    human_player = None if args.bots_only else 0
    session = HanabiSession(config, human_player=human_player)

    def emit(event: str, payload: dict):
        if args.quiet and event != "done":
            return
        if event == "state":
            print_state(payload["state"], human_player)
        elif event == "action":
            print_result(payload["action"], payload["result"], human_player)
        elif event == "error":
            print_error(payload["message"])
        elif event == "query":
            print_knowledge(player_name(payload["player_id"], human_player), payload["knowledge"])
        elif event == "done":
            print_game_over(payload["final_score"], payload["fuse_tokens"])

    if not args.quiet and human_player is not None:
        print(help_text())

    await run_episode(
        session,
        human_turn=make_human_turn() if human_player is not None else None,
        emit_fn=emit,
        bot_delay=0.0 if args.quiet else args.delay,
    )


if __name__ == "__main__":
    asyncio.run(main())
