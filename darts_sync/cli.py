import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from darts_sync.config import SYNC_FILENAME, state_path
from darts_sync.exceptions import DartsSyncError
from darts_sync.match_session import MatchSession
from darts_sync.models import (
    MatchState,
    NextLeg,
    SubtractScore,
    Undo,
    UpdateConfig,
    UpdatePlayer,
    default_state,
)
from darts_sync.storage import JsonFileStore
from darts_sync.sync import FileSyncChannel
from darts_sync.views import build_view_links, turn_history
from render.renderer import ScoreboardRenderer


def format_scoreboard(state: MatchState) -> str:
    lines = [f"{state.match_title} | {state.tournament_info} | first to {state.first_to_legs}"]
    for index, player in enumerate(state.players):
        marker = ">" if index == state.active_player_index else " "
        throws = " ".join(str(v) for v in state.history[index]) or "-"
        lines.append(
            f"{marker} {player.name:<20} S{player.sets} L{player.legs} "
            f"{player.score:>4}   [{throws}]"
        )
    return "\n".join(lines)


def format_turn_history(state: MatchState) -> str:
    entries = turn_history(state)
    if not entries:
        return "No throws logged"
    return "\n".join(f"{name:<20} {amount:>3}" for name, amount in entries)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="darts-sync", description="Darts match operator console")
    parser.add_argument("--state", type=Path, default=None, help="match state JSON file")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="print the scoreboard")
    sub.add_parser("json", help="print the state as JSON")
    sub.add_parser("history", help="print the latest throws, newest first")

    throw = sub.add_parser("throw", help="subtract a visit from the active player")
    throw.add_argument("amount", type=int)

    sub.add_parser("undo", help="undo the last accepted throw")
    sub.add_parser("next-leg", help="start the next leg")
    sub.add_parser("reset", help="restore the default match")

    player = sub.add_parser("player", help="edit a player")
    player.add_argument("index", type=int, choices=(0, 1))
    player.add_argument("--name")
    player.add_argument("--flag")
    player.add_argument("--legs", type=int)
    player.add_argument("--sets", type=int)
    player.add_argument("--score", type=int)

    config = sub.add_parser("config", help="edit match settings")
    config.add_argument("--starting-score", type=int)
    config.add_argument("--first-to", type=int)
    config.add_argument("--title")
    config.add_argument("--tournament")

    links = sub.add_parser("links", help="print overlay and controller links")
    links.add_argument("base_url")

    render = sub.add_parser("render", help="write the overlay as a PNG")
    render.add_argument("output", type=Path)
    render.add_argument("--width", type=int, default=1920)
    render.add_argument("--height", type=int, default=1080)

    return parser


def _action_for(args):
    if args.command == "throw":
        return SubtractScore(amount=args.amount)
    if args.command == "undo":
        return Undo()
    if args.command == "next-leg":
        return NextLeg()

    if args.command == "player":
        data = {
            key: getattr(args, key)
            for key in ("name", "flag", "legs", "sets", "score")
            if getattr(args, key) is not None
        }
        return UpdatePlayer(index=args.index, data=data)

    if args.command == "config":
        fields = {
            "startingScore": args.starting_score,
            "firstToLegs": args.first_to,
            "matchTitle": args.title,
            "tournamentInfo": args.tournament,
        }
        return UpdateConfig(data={k: v for k, v in fields.items() if v is not None})

    return None


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "links":
        for name, url in build_view_links(args.base_url).items():
            print(f"{name}: {url}")
        return 0

    path = args.state if args.state is not None else state_path()
    store = JsonFileStore(path)
    channel = FileSyncChannel(path.with_name(SYNC_FILENAME))

    try:
        # reset never reads the old file, so it also recovers an unreadable one
        initial = default_state() if args.command == "reset" else None
        session = MatchSession(store=store, channel=channel, initial_state=initial)

        try:
            if args.command == "undo" and not session.can_undo():
                print("Nothing to undo")
                return 0

            if args.command == "reset":
                session.reset()
            else:
                action = _action_for(args)
                if action is not None:
                    session.dispatch(action)
        finally:
            session.close()

    except DartsSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "json":
        print(json.dumps(session.state.to_dict(), indent=4, ensure_ascii=False))
    elif args.command == "history":
        print(format_turn_history(session.state))
    elif args.command == "render":
        ScoreboardRenderer(args.width, args.height).save_png(args.output, session.state)
        print(f"Overlay written to {args.output}")
    else:
        print(format_scoreboard(session.state))

    return 0


if __name__ == "__main__":
    sys.exit(main())
