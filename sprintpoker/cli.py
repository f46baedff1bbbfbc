"""
Sprint Poker CLI - Command-line interface for the bot.

Usage:
    sprintpoker serve [--host H] [--port P]     Run the HTTP adapter
    sprintpoker demo                            Play a scripted session in memory
    sprintpoker tally <vote>...                 PERT tally of some votes
"""

import argparse
import asyncio
import sys

from .config import Settings
from .observability.logging import setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Sprint Poker - Planning-poker bot for sprint estimation",
        prog="sprintpoker",
    )
    parser.add_argument("--log-level", help="Override SPRINTPOKER_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP adapter")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    # Demo command
    subparsers.add_parser("demo", help="Play a scripted session in memory")

    # Tally command
    tally_parser = subparsers.add_parser("tally", help="PERT tally of some votes")
    tally_parser.add_argument("votes", nargs="+", help="Votes, e.g. 5 8 13 coffee")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.log_level:
        settings.log_level = args.log_level

    if args.command == "serve":
        setup_logging(settings.log_level, settings.log_format)
        cmd_serve(args, settings)
    elif args.command == "demo":
        setup_logging(settings.log_level if args.log_level else "WARNING", settings.log_format)
        cmd_demo(args, settings)
    elif args.command == "tally":
        cmd_tally(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args, settings: Settings):
    """Run the HTTP adapter with uvicorn."""
    import uvicorn
    from .api import create_app

    uvicorn.run(
        create_app(settings=settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
    )


def cmd_tally(args):
    """Print the PERT tally of a list of votes."""
    from .engine_core.aggregation import tally_votes
    from .engine_core.grammar import parse_vote
    from .engine_core.state import Vote
    from .errors import InvalidVoteError
    from .notifications.formatting import format_duration

    votes = []
    for position, text in enumerate(args.votes, start=1):
        try:
            votes.append(Vote(person=str(position), value=parse_vote(text), timestamp=0.0))
        except InvalidVoteError as e:
            print(f"Error: {e.message}")
            sys.exit(1)

    result = tally_votes(votes)
    print(f"Votes: {result.count} ({result.numeric_count} numeric)")
    for token, voters in result.sentinel_voters.items():
        print(f"  {token}: {len(voters)}")

    if not result.has_estimate:
        print("No numeric votes, no estimate.")
        return

    print(f"Min: {format_duration(result.min)}")
    print(f"Max: {format_duration(result.max)}")
    print(f"Mean: {format_duration(result.mean)}")
    print(f"Suggested: {format_duration(result.suggested)} (+/- {format_duration(result.deviation)})")


def cmd_demo(args, settings: Settings):
    """Play a scripted session against the in-memory providers and print the conversation."""
    asyncio.run(run_demo(settings))


DEMO_TASKS = {
    "tasklists": [
        {
            "id": "457357",
            "title": "Sprint 12",
            "project_id": "1",
            "tasks": [
                {"id": "101", "title": "Login form", "estimated_minutes": 0},
                {"id": "102", "title": "Password reset", "predecessor_count": 1},
                {"id": "103", "title": "Audit log"},
            ],
        }
    ]
}


async def run_demo(settings: Settings, out=print):
    """Script a three-person session and write every message the bot sends."""
    from .bot import PokerBot, ROOM_TITLE
    from .engine_core.state import Player
    from .providers.memory import InMemoryChatTransport, InMemoryTaskProvider
    from .providers.tasks import EXAMPLE_TASKLIST
    from .providers.transport import IncomingMessage

    alice = Player(id="alice", first_name="Alice", handle="alice")
    bob = Player(id="bob", first_name="Bob", handle="bob")
    carol = Player(id="carol", first_name="Carol", handle="carol")
    people = {p.id: p for p in (alice, bob, carol)}

    transport = InMemoryChatTransport(people=list(people.values()))
    tasks = InMemoryTaskProvider.from_dict(DEMO_TASKS, installation=settings.installation)
    bot = PokerBot(transport, tasks, bot_handle=settings.bot_handle)
    mention = f"@{settings.bot_handle}"

    printed = 0

    def flush():
        nonlocal printed
        for sent in transport.sent[printed:]:
            target = sent.target if sent.kind == "room" else f"@{sent.target}"
            out(f"  [{target}] {sent.content}")
        printed = len(transport.sent)

    async def say(author, content, room_id=None, private=False):
        where = "(private)" if private else f"[{room_id}]"
        out(f"{author.first_name} {where}: {content}")
        message = IncomingMessage(
            id=f"demo-{len(transport.sent)}-{author.id}",
            author=author,
            content=content,
            room_id=room_id,
            private=private,
        )
        await bot.handle_message(message)
        flush()

    await say(alice, f"{mention} poker @bob @carol", room_id="general")
    room = transport.find_room(ROOM_TITLE)[-1].id

    await say(alice, f"{mention} plan {EXAMPLE_TASKLIST}", room_id=room)
    await say(alice, f"{mention} start", room_id=room)

    # Login form
    await say(bob, "5", private=True)
    await say(carol, "8", private=True)
    await say(alice, f"{mention} vote 13", room_id=room)
    await say(alice, f"{mention} estimate 8", room_id=room)

    # Password reset
    await say(alice, f"{mention} skip", room_id=room)

    # Audit log
    await say(bob, "coffee", private=True)
    await say(carol, "3", private=True)
    await say(bob, "2", private=True)
    await say(alice, f"{mention} vote 3", room_id=room)
    await say(alice, f"{mention} estimate 2.5", room_id=room)

    out("")
    out(f"Estimates written: {tasks.submissions}")


if __name__ == "__main__":
    main()
