"""CLI for chatprune - clean up Claude Code conversation history."""

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm
from rich.text import Text

from chatprune.cascade import DeleteSummary, delete_many
from chatprune.config import active_window_seconds, configured_projects_dir, load_config
from chatprune.output import EMPTY_LABEL, fmt_workspace
from chatprune.paths import ProjectsDirNotFoundError, projects_dir
from chatprune.scanner import WARMUP_TITLE, Conversation, list_workspaces, scan_conversations

APP_TITLE = "Claude Code Chat Manager"

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def _print_banner() -> None:
    console.print()
    console.print(APP_TITLE, style="bold cyan")
    console.print()


def _print_candidates(conversations: list[Conversation], *, label: bool = False) -> None:
    for conv in conversations:
        tag = f"{EMPTY_LABEL if conv.is_empty else WARMUP_TITLE} " if label else ""
        console.print(
            Text.assemble(
                "  - ",
                (tag, "dim"),
                (conv.session_id, "dim"),
                f" ({fmt_workspace(conv.workspace_path)})",
            )
        )


def _report(conv: Conversation, files: int | None, error) -> None:
    if error is None:
        console.print(Text.assemble("  ", ("OK", "green"), " ", (conv.session_id, "dim")))
    else:
        err_console.print(Text.assemble("  ", ("ERR", "red"), f" {conv.session_id} - {error}"))


def _report_errors_only(conv: Conversation, files: int | None, error) -> None:
    if error is not None:
        _report(conv, files, error)


def _delete_group(conversations: list[Conversation], noun: str) -> DeleteSummary:
    """Delete a pre-confirmed group and print a one-line summary."""
    summary = delete_many(conversations, on_result=_report_errors_only)
    if summary.failures:
        console.print(
            Text.assemble(("WARN", "yellow"), f" Deleted {summary.conversations} {noun} ({len(summary.failures)} failed)")
        )
    else:
        console.print(Text.assemble(("OK", "green"), f" Deleted {summary.conversations} {noun}"))
    return summary


def cmd_list_workspaces(root: Path) -> int:
    """Print every workspace with chat and agent counts."""
    _print_banner()
    console.print("Available workspaces:", style="bold cyan")
    console.print()
    for ws in list_workspaces(root):
        console.print(
            Text.assemble(
                "  ",
                ("->", "green"),
                f" {ws.path} (",
                (str(ws.chats), "yellow"),
                " chats, ",
                (str(ws.agents), "dim"),
                " agents)",
            )
        )
        console.print(Text(f"     -w {ws.name}", style="dim"))
    return 0


def cmd_delete_matching(args, root: Path, active_window: float) -> int:
    """Non-interactive bulk deletion of empty and/or warmup conversations."""
    _print_banner()

    conversations = scan_conversations(
        root,
        workspace_filter=args.workspace,
        include_agents=True,
        active_window=active_window,
    )
    to_delete = [
        c for c in conversations
        if (args.delete_empty and c.is_empty) or (args.delete_warmup and c.is_warmup)
    ]
    if not to_delete:
        console.print("No matching conversations found.", style="yellow")
        return 0

    empty_count = sum(1 for c in to_delete if c.is_empty)
    warmup_count = sum(1 for c in to_delete if c.is_warmup)
    console.print(
        Text.assemble(
            "Found ",
            (str(len(to_delete)), "red"),
            f" conversations to delete ({empty_count} empty, {warmup_count} warmup):",
        )
    )
    console.print()
    _print_candidates(to_delete, label=True)
    console.print()

    if not Confirm.ask(f"Delete {len(to_delete)} conversations?", default=False, console=console):
        console.print("Cancelled.", style="yellow")
        return 0

    summary = delete_many(to_delete, on_result=_report)
    if summary.failures:
        console.print(
            Text.assemble(
                ("WARN", "yellow"),
                f" Done! Deleted {summary.conversations} ({len(summary.failures)} failed)",
            )
        )
        return 1
    console.print(f"Done! Deleted {summary.conversations} conversations.", style="bold green")
    return 0


def run_interactive(conversations: list[Conversation], active_window: float, terminal=None) -> int:
    """Offer quick cleanups for empty and warmup chats, then open the picker."""
    from chatprune.selector import run_selection
    from chatprune.terminal import Terminal

    if not conversations:
        console.print("No conversations found.", style="yellow")
        return 0

    empty = [c for c in conversations if c.is_empty]
    warmup = [c for c in conversations if c.is_warmup]

    console.print()
    console.print(Text.assemble("Found ", (str(len(conversations)), "bold"), " conversations"))
    if empty:
        console.print(Text.assemble("  ", (str(len(empty)), "red"), " empty (0-byte files, safe to delete)"))
    if warmup:
        console.print(Text.assemble("  ", (str(len(warmup)), "yellow"), " warmup agents (cache warming, usually safe)"))
    console.print()

    failed = False
    remaining = list(conversations)

    if empty:
        console.print("Empty conversations (0-byte, safe to delete):", style="yellow")
        _print_candidates(empty)
        console.print()
        if Confirm.ask(f"Delete {len(empty)} empty conversations?", default=True, console=console):
            failed |= not _delete_group(empty, "empty conversations").ok
            remaining = [c for c in remaining if not c.is_empty]

    warmup = [c for c in remaining if c.is_warmup]
    if warmup:
        console.print()
        console.print("Warmup agents (cache files, usually safe):", style="yellow")
        _print_candidates(warmup)
        console.print()
        if Confirm.ask(f"Delete {len(warmup)} warmup agents?", default=False, console=console):
            failed |= not _delete_group(warmup, "warmup agents").ok
            remaining = [c for c in remaining if not c.is_warmup]

    if not remaining:
        console.print()
        console.print("No more conversations.", style="yellow")
        return 1 if failed else 0

    summary = run_selection(
        remaining,
        terminal or Terminal(console, err_console),
        active_window_minutes=active_window / 60,
    )
    if summary is not None and not summary.ok:
        failed = True
    return 1 if failed else 0


def _get_version() -> str:
    """Get package version from metadata."""
    try:
        from importlib.metadata import version
        return version("chatprune")
    except Exception:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatprune",
        description="Manage and clean Claude Code conversation history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""examples:
  chatprune                          # pick conversations to delete
  chatprune -w myproject             # only workspaces matching 'myproject'
  chatprune --delete-empty           # delete every 0-byte conversation
  chatprune --delete-warmup          # delete warmup agent files
  chatprune -l                       # list workspaces""",
    )
    parser.add_argument("--version", action="version", version=f"chatprune {_get_version()}")
    parser.add_argument("-w", "--workspace", metavar="SUBSTR", help="Filter by workspace (e.g., myproject)")
    parser.add_argument("-e", "--empty-only", action="store_true", help="Only show empty conversations")
    parser.add_argument("--delete-empty", action="store_true", help="Delete all empty (0-byte) conversations")
    parser.add_argument("--delete-warmup", action="store_true", help="Also delete warmup agent files (use with caution)")
    parser.add_argument("-l", "--list-workspaces", action="store_true", help="List all workspaces")
    parser.add_argument("--include-agents", action="store_true", help="Include warmup/subagent conversations")
    parser.add_argument(
        "--projects-dir",
        metavar="PATH",
        help="Transcript storage root (default: storage.projects_dir from config, else ~/.claude/projects)",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    doc = load_config()

    try:
        root = projects_dir(args.projects_dir or configured_projects_dir(doc))
    except ProjectsDirNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    active_window = active_window_seconds(doc)

    try:
        if args.list_workspaces:
            return cmd_list_workspaces(root)

        if args.delete_empty or args.delete_warmup:
            return cmd_delete_matching(args, root, active_window)

        conversations = scan_conversations(
            root,
            workspace_filter=args.workspace,
            include_agents=args.include_agents,
            active_window=active_window,
        )
        if args.empty_only:
            conversations = [c for c in conversations if c.is_empty]
        return run_interactive(conversations, active_window)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # Exit cleanly on Ctrl+C (130 = 128 + SIGINT)
        return 130


if __name__ == "__main__":
    sys.exit(main())
