"""
Command-line entry point.

Usage:
    todo-stopwatch serve [--host HOST] [--port PORT]
    todo-stopwatch [--url URL] list
    todo-stopwatch [--url URL] add TEXT
    todo-stopwatch [--url URL] {toggle,delete,start,resume,stop} ID
    todo-stopwatch [--url URL] watch
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from .client import DEFAULT_URL, TodoClient
from .log_config import configure_logging
from .presentation import Ticker
from .settings import get_settings

# Seconds to wait for the server's answer to a one-shot command.
REPLY_TIMEOUT = 2.0

_ID_COMMANDS = {
    "toggle": TodoClient.toggle_todo,
    "delete": TodoClient.delete_todo,
    "start": TodoClient.start_timer,
    "resume": TodoClient.resume_timer,
    "stop": TodoClient.stop_timer,
}

_CLEAR = "\033[2J\033[H"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-stopwatch", description="Todo list with per-item stopwatches.")
    parser.add_argument("--url", default=DEFAULT_URL, help=f"channel URL (default: {DEFAULT_URL})")
    parser.add_argument("--log-level", default=None, help="logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the API server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    sub.add_parser("list", help="print all todos")
    sub.add_parser("watch", help="live view, redrawn every second")
    add = sub.add_parser("add", help="add a todo")
    add.add_argument("text")
    for name in _ID_COMMANDS:
        cmd = sub.add_parser(name, help=f"{name} a todo by id")
        cmd.add_argument("id")
    return parser


def _print_store(client: TodoClient) -> None:
    lines = client.store.render_lines()
    print("\n".join(lines) if lines else "(no todos)")


async def _load(client: TodoClient) -> None:
    await client.load_todos()
    await client.receive(timeout=REPLY_TIMEOUT)


async def run_command(args: argparse.Namespace) -> int:
    async with TodoClient(args.url) as client:
        await _load(client)
        if args.command == "add":
            await client.add_todo(args.text)
        elif args.command in _ID_COMMANDS:
            if client.store.get(args.id) is None:
                print(f"no todo with id {args.id}", file=sys.stderr)
                return 1
            await _ID_COMMANDS[args.command](client, args.id)
        if args.command != "list":
            await client.receive(timeout=REPLY_TIMEOUT)
        _print_store(client)
    return 0


async def watch(url: str) -> int:
    async with TodoClient(url) as client:
        await _load(client)

        def redraw() -> None:
            client.store.tick()
            sys.stdout.write(_CLEAR)
            _print_store(client)
            sys.stdout.flush()

        ticker = Ticker(redraw)
        redraw()
        ticker.start()
        try:
            await client.listen()
        finally:
            await ticker.stop()
    return 0


def serve(host: Optional[str], port: Optional[int]) -> int:
    settings = get_settings()
    uvicorn.run(
        "todo_stopwatch.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    if args.command == "serve":
        return serve(args.host, args.port)
    try:
        if args.command == "watch":
            return asyncio.run(watch(args.url))
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        return 130
    except OSError as e:
        print(f"cannot reach {args.url}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
