"""CLI entry point for disputatio."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from .engine import DebateEngine, GenerationResult
from .errors import BusyError, ConfigurationError, StructuralError
from .export import export_filename, write_export
from .models import GenerationClient, GenerationSettings
from .store import TranscriptStore
from .structure import resolve_catalog
from .transcript import Transcript, TopicConfig, create_validated

console = Console(highlight=False)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def render_transcript(transcript: Transcript, console: Console) -> None:
    """Print every round with its filled slots."""
    console.rule(title=transcript.topic, style="cyan bold")
    console.print(Text(
        f"{transcript.side_a_name} (FOR) vs {transcript.side_b_name} (AGAINST)  [{transcript.id}]",
        style="dim",
    ))
    for rnd in transcript.rounds:
        console.print()
        console.print(Text(f"Round {rnd.round_number}: {rnd.title}", style="bold yellow"))
        if rnd.topic != rnd.title:
            console.print(Text(rnd.topic, style="dim italic"))
        for sub in rnd.subrounds:
            for side, slot in sub.sides.items():
                if not slot.text:
                    continue
                header = Text()
                header.append(f"{sub.subround_number}. {slot.speaker_label}", style="bold green")
                header.append(f" ({sub.description})", style="dim")
                if not slot.is_assigned:
                    header.append(" [manual]", style="magenta")
                console.print(header)
                console.print(Text(slot.text))
            if not sub.assigned_slot.text:
                console.print(Text(f"{sub.subround_number}. {sub.description}: pending", style="dim italic"))


def _print_result(engine: DebateEngine, result: GenerationResult) -> None:
    rnd = engine.transcript.rounds[result.round_index]
    sub = rnd.subrounds[result.subround_index]
    done, total = engine.progress()
    console.print(Text(f"### {engine.transcript.side_name(result.side)} ({sub.description}, {rnd.title})", style="bold green"))
    console.print(Text(result.text))
    console.print(Text(f"({done}/{total} complete)", style="dim"))
    console.print()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="disputatio - scripted two-sided debates generated turn by turn",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  disputatio new "Should AI be regulated by government?" --round-topic "Who should regulate?" --side-a Pro --side-b Con
  disputatio next
  disputatio run
  disputatio edit 1 2 B "A corrected counter-argument."
  disputatio export ./out

Set CEREBRAS_API_KEY to generate with a model; without it every turn gets fallback text.
        """,
    )
    parser.add_argument(
        "--structure", "-s",
        default="classic",
        help="Debate structure: classic, extended, or a path to a YAML catalog (default: classic)",
    )
    parser.add_argument("--sessions-dir", type=Path, help="Where the session file lives (default: ~/.disputatio/sessions)")
    parser.add_argument("--model", help="Model identifier (default: DISPUTATIO_MODEL or built-in)")
    parser.add_argument("--no-stream", action="store_true", help="Request whole responses instead of streaming")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress")

    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Start a new debate (replaces the current session)")
    new.add_argument("topic", help="Main topic, framed so it can be argued FOR or AGAINST")
    new.add_argument("--round-topic", "-r", action="append", default=[], help="Question for the next topic-driven round (repeatable)")
    new.add_argument("--side-a", help="Display name for side A (default: Supporting)")
    new.add_argument("--side-b", help="Display name for side B (default: Opposing)")

    sub.add_parser("next", help="Generate the next pending turn")
    sub.add_parser("run", help="Generate every pending turn in order")
    sub.add_parser("show", help="Print the current transcript")
    sub.add_parser("reset", help="Discard the current session")

    edit = sub.add_parser("edit", help="Overwrite one slot by hand")
    edit.add_argument("round", type=int, help="Round number (1-based)")
    edit.add_argument("subround", type=int, help="Sub-round number (1-based)")
    edit.add_argument("side", help="A or B")
    edit.add_argument("text", help="Replacement text")

    exp = sub.add_parser("export", help="Write supporting.json and opposing.json")
    exp.add_argument("directory", nargs="?", type=Path, help="Output directory (default: ./<topic>_debate)")

    imp = sub.add_parser("import", help="Fill pending turns from a whole-debate script file")
    imp.add_argument("file", type=Path)

    return parser


def main():
    parser = _build_parser()
    args = parser.parse_args()
    _setup_logging(args.verbose)

    try:
        catalog = resolve_catalog(args.structure)
        settings = GenerationSettings.from_env().with_overrides(
            model=args.model,
            stream=False if args.no_stream else None,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    store = TranscriptStore(catalog, sessions_dir=args.sessions_dir)

    if args.command == "reset":
        store.clear()
        console.print("Session cleared.")
        return

    if args.command == "new":
        config = TopicConfig(
            topic=args.topic,
            round_topics=tuple(args.round_topic),
            side_a_name=args.side_a,
            side_b_name=args.side_b,
        )
        try:
            transcript = create_validated(config, catalog)
        except ConfigurationError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        store.save(transcript)
        console.print(f"Started {transcript.id} ({catalog.name}, {sum(catalog.shape())} turns).")
        if not settings.api_key:
            console.print(Text("(CEREBRAS_API_KEY not set - turns will use fallback text)", style="dim italic"))
        return

    transcript = store.load()
    if transcript is None:
        print('Error: no debate session. Start one with: disputatio new "<topic>"', file=sys.stderr)
        sys.exit(1)

    engine = DebateEngine(transcript, GenerationClient(settings), store)

    try:
        if args.command == "show":
            render_transcript(transcript, console)

        elif args.command == "next":
            result = asyncio.run(engine.generate_next_pending())
            if result is None:
                console.print("All turns complete.")
            else:
                _print_result(engine, result)

        elif args.command == "run":
            if engine.is_complete:
                console.print("All turns complete.")
            else:
                asyncio.run(engine.generate_all(lambda result: _print_result(engine, result)))

        elif args.command == "edit":
            engine.edit_slot(args.round - 1, args.subround - 1, args.side, args.text)
            console.print(f"Updated round {args.round}, sub-round {args.subround}, side {args.side.upper()}.")

        elif args.command == "export":
            directory = args.directory or Path(export_filename(transcript.topic))
            for path in write_export(transcript, directory):
                console.print(f"Wrote {path}")

        elif args.command == "import":
            placed = engine.import_script(args.file.read_text(encoding="utf-8"))
            console.print(f"Placed {placed} argument(s).")

    except (StructuralError, BusyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
