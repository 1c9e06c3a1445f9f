"""
CLI entry point.

Usage:
    python -m anki_markdown                          (study the saved deck)
    python -m anki_markdown --deck "Japanese"        (study another deck, saved)
    python -m anki_markdown --scheduler reviewer     (mirror Anki's reviewer window)
    python -m anki_markdown --convert card.html      (print card HTML as markdown)
    python -m anki_markdown --convert card.html -o card.md --no-media
"""

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .ankiconnect import AnkiConnectClient
from .config import get_ankiconnect_url, get_deck_name, get_scheduler_name
from .media import AnkiMediaStore
from .review import StudySession, answer_label, html_to_markdown
from .scheduler import SCHEDULERS, Ease, make_scheduler

QUIT_COMMANDS = {"q", "quit", "exit"}
RELOAD_COMMANDS = {"r", "reload"}
REVEAL_COMMANDS = {"", "s", "show"}


def _print_banner(deck: str, url: str, scheduler: str) -> None:
    """Print a startup banner with run configuration."""
    print()
    print("=" * 60)
    print(f"  Anki Markdown Study v{__version__}")
    print("=" * 60)
    print(f"  Deck:            {deck}")
    print(f"  AnkiConnect URL: {url}")
    print(f"  Scheduler:       {scheduler}")
    print("=" * 60)
    print()


def _connect(url: str) -> AnkiConnectClient:
    """Return a client for *url*, exiting if AnkiConnect doesn't answer."""
    client = AnkiConnectClient(url)
    print("[study] Connecting to AnkiConnect...")
    if not client.ping():
        print("[error] Cannot reach AnkiConnect. Is Anki running with AnkiConnect installed?")
        sys.exit(1)
    print(f"[study] Connected (API version {client.version()})")
    return client


# ---------------------------------------------------------------------------
# Study mode
# ---------------------------------------------------------------------------

def _prompt(session: StudySession) -> str:
    if session.current is None:
        return "[r] reload  [q] quit > "
    if not session.show_answer:
        return "[Enter] show answer  [r] reload  [q] quit > "
    choices = "  ".join(
        f"[{int(ease)}] {answer_label(session.current, ease)}" for ease in Ease
    )
    return f"{choices}  [r] reload  [q] quit > "


async def _read_command(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def study_loop(session: StudySession, read_command=_read_command) -> None:
    """Show cards and handle commands until the user quits."""
    await session.load_next()

    while True:
        print()
        print(session.render())
        print()

        try:
            command = (await read_command(_prompt(session))).strip().lower()
        except EOFError:
            break

        if command in QUIT_COMMANDS:
            break
        if command in RELOAD_COMMANDS:
            await session.load_next()
            continue
        if session.current is None:
            continue

        if not session.show_answer:
            if command in REVEAL_COMMANDS:
                session.reveal()
            continue

        if command in {str(int(ease)) for ease in Ease}:
            await session.answer(Ease(int(command)))
        else:
            print(f"[study] Unknown command: {command!r}")

    print("[study] Bye!")


def run_study(url: str, deck: str = None, scheduler: str = None) -> None:
    """Run the interactive study loop against AnkiConnect."""
    client = _connect(url)
    deck_name = deck or get_deck_name(deck_names=client.deck_names())
    scheduler_name = get_scheduler_name(scheduler)

    _print_banner(deck_name, url, scheduler_name)

    session = StudySession(
        make_scheduler(scheduler_name, client),
        deck_name,
        store=AnkiMediaStore(client),
    )
    try:
        asyncio.run(study_loop(session))
    except KeyboardInterrupt:
        print()
        print("[study] Interrupted")


# ---------------------------------------------------------------------------
# Convert mode
# ---------------------------------------------------------------------------

def run_convert(file_path: str, url: str = None, output: str = None, inline: bool = True) -> None:
    """Convert one HTML file to markdown, printing it or writing it to *output*."""
    html_path = Path(file_path)
    if not html_path.is_file():
        print(f"[error] File not found: {html_path}")
        sys.exit(1)

    html = html_path.read_text(encoding="utf-8")

    store = None
    if inline:
        client = AnkiConnectClient(url) if url else AnkiConnectClient()
        if client.ping():
            store = AnkiMediaStore(client)
        else:
            print("[media] AnkiConnect not reachable — image sources left as-is")

    markdown = asyncio.run(html_to_markdown(html, store))

    if output:
        Path(output).write_text(markdown + "\n", encoding="utf-8")
        print(f"[convert] Wrote {output} ({len(markdown)} chars)")
    else:
        print(markdown)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        prog="anki_markdown",
        description="Study Anki cards as markdown in the terminal, or convert card HTML to markdown",
    )
    parser.add_argument(
        "--deck",
        help="Deck to study (saved after first use)",
        default=None,
    )
    parser.add_argument(
        "--scheduler",
        choices=sorted(SCHEDULERS),
        help="How due cards are picked: 'due' (search query) or 'reviewer' (Anki's reviewer window)",
        default=None,
    )
    parser.add_argument(
        "--ankiconnect-url",
        help="AnkiConnect endpoint URL (default: from config or http://127.0.0.1:8765)",
        default=None,
    )
    parser.add_argument(
        "--convert",
        metavar="FILE",
        help="Convert an HTML file to markdown instead of studying",
        default=None,
    )
    parser.add_argument(
        "-o", "--output",
        help="With --convert: write the markdown to this file instead of stdout",
        default=None,
    )
    parser.add_argument(
        "--no-media",
        action="store_true",
        help="With --convert: don't inline images from Anki's media folder",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args()

    if args.convert:
        url = get_ankiconnect_url(args.ankiconnect_url) if not args.no_media else None
        run_convert(args.convert, url, output=args.output, inline=not args.no_media)
        return

    if args.deck:
        get_deck_name(args.deck)

    url = get_ankiconnect_url(args.ankiconnect_url)
    run_study(url, deck=args.deck, scheduler=args.scheduler)


if __name__ == "__main__":
    main()
