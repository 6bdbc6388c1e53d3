"""Interactive multi-select picker over scanned conversations.

``Selector`` is the state machine: cursor, a selection flag per record, and
the scroll position. It never touches the terminal. ``render_browse`` and
``render_confirm`` turn a selector into a frame, and ``run_selection`` drives
the read-key / update / redraw loop against a ``Terminal``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum

from rich.text import Text

from chatprune.cascade import DeleteSummary, delete_conversation, delete_many
from chatprune.output import fmt_local_time, fmt_title, fmt_workspace
from chatprune.scanner import Conversation

APP_TITLE = "Claude Code Chat Manager"

HEADER_LINES = 7
FOOTER_LINES = 3
MIN_VIEWPORT = 3
TITLE_WIDTH = 48
RULE_WIDTH = 100

KEY_MAPPINGS = {
    "quit": ("q", "escape"),
    "up": ("k", "up"),
    "down": ("j", "down"),
    "toggle": ("space",),
    "all": ("a",),
    "none": ("n",),
    "page_up": ("pageup",),
    "page_down": ("pagedown",),
    "delete": ("enter",),
}


class State(Enum):
    BROWSING = "browsing"
    CONFIRMING = "confirming"
    FINISHED = "finished"
    QUIT = "quit"


class Selector:
    """Selection state for one list of conversations."""

    def __init__(self, conversations: Sequence[Conversation], *, active_window_minutes: float = 5):
        self.conversations = list(conversations)
        self.selected = [False] * len(self.conversations)
        self.cursor = 0
        self.viewport_start = 0
        self.state = State.BROWSING
        self.active_window_minutes = active_window_minutes
        self.active_count = sum(1 for c in self.conversations if c.is_active)

    # -- viewport ---------------------------------------------------------

    @property
    def header_lines(self) -> int:
        # One extra line for the "N active" notice
        return HEADER_LINES + 1 if self.active_count else HEADER_LINES

    def viewport_size(self, term_height: int) -> int:
        return max(MIN_VIEWPORT, term_height - (self.header_lines + FOOTER_LINES))

    def scroll(self, size: int) -> range:
        """Slide the window so it contains the cursor; return visible indices."""
        if self.cursor < self.viewport_start:
            self.viewport_start = self.cursor
        elif self.cursor >= self.viewport_start + size:
            self.viewport_start = self.cursor - size + 1
        end = min(self.viewport_start + size, len(self.conversations))
        return range(self.viewport_start, end)

    # -- selection --------------------------------------------------------

    @property
    def last_index(self) -> int:
        return max(0, len(self.conversations) - 1)

    @property
    def selected_count(self) -> int:
        return sum(self.selected)

    def selected_conversations(self) -> list[Conversation]:
        return [c for c, s in zip(self.conversations, self.selected, strict=True) if s]

    def move_up(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def move_down(self) -> None:
        if self.cursor < self.last_index:
            self.cursor += 1

    def toggle(self) -> None:
        """Flip the current item and step down, so repeated presses sweep."""
        if not self.conversations:
            return
        self.selected[self.cursor] = not self.selected[self.cursor]
        self.move_down()

    def select_all(self) -> None:
        self.selected = [True] * len(self.conversations)

    def select_none(self) -> None:
        self.selected = [False] * len(self.conversations)

    def page_up(self, size: int) -> None:
        self.cursor = max(0, self.cursor - size)

    def page_down(self, size: int) -> None:
        self.cursor = min(self.cursor + size, self.last_index)

    # -- transitions ------------------------------------------------------

    def handle_key(self, key: str, *, page_size: int = MIN_VIEWPORT) -> State:
        """Apply a key press and return the resulting state."""
        if self.state is State.BROWSING:
            self._handle_browsing(key, page_size)
        elif self.state is State.CONFIRMING:
            self._handle_confirming(key)
        return self.state

    def _handle_browsing(self, key: str, page_size: int) -> None:
        if key in KEY_MAPPINGS["up"]:
            self.move_up()
        elif key in KEY_MAPPINGS["down"]:
            self.move_down()
        elif key in KEY_MAPPINGS["toggle"]:
            self.toggle()
        elif key in KEY_MAPPINGS["all"]:
            self.select_all()
        elif key in KEY_MAPPINGS["none"]:
            self.select_none()
        elif key in KEY_MAPPINGS["page_up"]:
            self.page_up(page_size)
        elif key in KEY_MAPPINGS["page_down"]:
            self.page_down(page_size)
        elif key in KEY_MAPPINGS["delete"]:
            if self.selected_count:
                self.state = State.CONFIRMING
        elif key in KEY_MAPPINGS["quit"]:
            self.state = State.QUIT

    def _handle_confirming(self, key: str) -> None:
        if key == "enter":
            self.state = State.FINISHED
        elif key == "escape":
            self.select_none()
            self.state = State.BROWSING


# -- rendering ----------------------------------------------------------------


def _row(conv: Conversation, *, is_cursor: bool, is_selected: bool) -> Text:
    if is_selected:
        checkbox = Text("[/]", style="bold green")
    else:
        checkbox = Text("[ ]")

    marker = "*" if conv.is_active else ""
    title = f"{marker}{fmt_title(conv)}"[:TITLE_WIDTH].ljust(TITLE_WIDTH)
    time_str = fmt_local_time(conv.timestamp)
    project = fmt_workspace(conv.workspace_path)

    if is_cursor:
        checkbox.stylize("on bright_black")
        accent = "bold red" if conv.is_active else "bold yellow"
        title_style = "bold red" if conv.is_active else "bold white"
        return Text.assemble(checkbox, " ", (time_str, accent), " ", (title, title_style), " ", (project, "bold cyan"))
    if is_selected:
        return Text.assemble(checkbox, " ", (time_str, "yellow"), " ", (title, "white"), " ", (project, "cyan"))
    checkbox.stylize("dim")
    if conv.is_active:
        return Text.assemble(checkbox, " ", (time_str, "red"), " ", (title, "red"), " ", (project, "dim"))
    return Text.assemble(checkbox, " ", time_str, " ", title, " ", (project, "dim"))


def render_browse(selector: Selector, term_height: int) -> Text:
    """Frame for the browsing screen. Adjusts the selector's scroll position."""
    visible = selector.scroll(selector.viewport_size(term_height))
    total = len(selector.conversations)
    rule = Text("-" * RULE_WIDTH, style="dim")

    lines = [
        Text(APP_TITLE, style="bold cyan"),
        Text.assemble(
            f"Total: {total} | Selected: ",
            (str(selector.selected_count), "yellow"),
            " | Showing: ",
            (str(visible.start + 1), "cyan"),
            "-",
            (str(visible.stop), "cyan"),
            f"/{total}",
        ),
    ]
    if selector.active_count:
        lines.append(
            Text(
                f"  {selector.active_count} active "
                f"(modified <{selector.active_window_minutes:g}min, marked with *)",
                style="yellow",
            )
        )
    lines.append(Text())
    lines.append(Text(f"{'':3} {'LAST ACTIVE':19} {'TITLE':50} PROJECT", style="dim"))
    lines.append(rule)

    for i in visible:
        lines.append(
            _row(
                selector.conversations[i],
                is_cursor=i == selector.cursor,
                is_selected=selector.selected[i],
            )
        )

    lines.append(Text())
    lines.append(rule)
    if selector.selected_count:
        lines.append(
            Text.assemble(
                (f"Delete {selector.selected_count} chat(s)?", "bold red"),
                " ",
                ("[ENTER=Delete] [ESC=Cancel]", "dim"),
            )
        )
    else:
        lines.append(
            Text(
                "[j/k]Move [Space]Select [a]All [n]None [PgUp/PgDn]Page [q]Quit",
                style="dim",
            )
        )
    return Text("\n").join(lines)


def render_confirm(selector: Selector) -> Text:
    """Frame listing everything about to be deleted."""
    chosen = selector.selected_conversations()
    active = [c for c in chosen if c.is_active]

    lines = [Text(APP_TITLE, style="bold cyan"), Text()]
    if active:
        lines.append(Text(f"WARNING: {len(active)} conversation(s) may be currently in use!", style="bold red"))
        lines.append(Text(f"(Modified within last {selector.active_window_minutes:g} minutes)", style="red"))
        lines.append(Text())

    lines.append(Text.assemble((str(len(chosen)), "bold red"), " conversations to delete:"))
    lines.append(Text())
    for conv in chosen:
        lines.append(
            Text.assemble(
                f"  - {fmt_title(conv)}",
                (" [ACTIVE]" if conv.is_active else "", "red"),
                " (",
                (conv.workspace_path, "dim"),
                ")",
            )
        )

    lines.append(Text())
    if active:
        lines.append(Text("Press ENTER to confirm (may cause errors in Claude Code), ESC to cancel", style="yellow"))
    else:
        lines.append(Text("Press ENTER to confirm, ESC to cancel", style="yellow"))
    return Text("\n").join(lines)


# -- driver ---------------------------------------------------------------------


def _delete_selected(
    selector: Selector,
    terminal,
    delete: Callable[[Conversation], int],
) -> DeleteSummary:
    def report(conv, files, error):
        if error is None:
            terminal.print(Text.assemble("  ", ("OK", "green"), " ", (fmt_title(conv), "dim")))
        else:
            terminal.print_error(Text.assemble("  ", ("ERR", "red"), f" {conv.session_id} - {error}"))

    chosen = selector.selected_conversations()
    terminal.print()
    summary = delete_many(chosen, delete=delete, on_result=report)

    terminal.print()
    if summary.failures:
        terminal.print(
            Text.assemble(
                ("WARN", "bold yellow"),
                " Deleted ",
                (str(summary.files), "green"),
                " files (",
                (str(len(summary.failures)), "red"),
                " failed)",
            )
        )
    else:
        terminal.print(
            Text.assemble(
                ("OK", "bold green"),
                " Deleted ",
                (str(summary.files), "green"),
                f" files ({len(chosen)} chats + related agents)",
            )
        )
    return summary


def run_selection(
    conversations: Sequence[Conversation],
    terminal,
    *,
    delete: Callable[[Conversation], int] = delete_conversation,
    active_window_minutes: float = 5,
) -> DeleteSummary | None:
    """Run the picker until the user quits or confirms a deletion.

    Returns the deletion summary, or None if nothing was deleted.
    """
    if not conversations:
        return None

    selector = Selector(conversations, active_window_minutes=active_window_minutes)
    terminal.clear()
    terminal.hide_cursor()
    try:
        while True:
            height = terminal.height
            if selector.state is State.CONFIRMING:
                terminal.draw(render_confirm(selector))
            else:
                terminal.draw(render_browse(selector, height))

            state = selector.handle_key(terminal.read_key(), page_size=selector.viewport_size(height))

            if state is State.QUIT:
                terminal.clear()
                terminal.print("Cancelled.")
                return None
            if state is State.FINISHED:
                summary = _delete_selected(selector, terminal, delete)
                terminal.print()
                terminal.print("Press any key to exit...")
                terminal.read_key()
                terminal.clear()
                return summary
    finally:
        terminal.show_cursor()
