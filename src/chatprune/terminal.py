"""Raw terminal access: single key reads and full-screen redraws.

Keys come back as names ("up", "down", "pageup", "pagedown", "enter",
"escape", "space") or as the typed character.
"""

import os
import select
import sys
import termios
import tty

from rich.console import Console, RenderableType
from rich.control import Control

# Sequences that follow ESC for the keys we care about
ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1b[5~": "pageup",
    "\x1b[6~": "pagedown",
}

SINGLE_KEYS = {
    "\r": "enter",
    "\n": "enter",
    " ": "space",
    "\x1b": "escape",
}

# How long to wait for the rest of an escape sequence after a bare ESC
ESCAPE_TIMEOUT = 0.05


def next_key(data: str) -> tuple[str, str]:
    """Split the first key off buffered input.

    Returns (key name, remaining input). Several keys can arrive in one read
    when a key is held down or typed quickly, so the remainder is kept for
    the following call.
    """
    if data.startswith("\x1b"):
        for seq, name in ESCAPE_SEQUENCES.items():
            if data.startswith(seq):
                return name, data[len(seq):]
        if len(data) == 1 or data[1] == "\x1b":
            return "escape", data[1:]
        if data[1] == "[":
            # CSI: parameter bytes, then one final byte
            end = 2
            while end < len(data) and "0" <= data[end] <= "?":
                end += 1
            return "unknown", data[end + 1:]
        # SS3 or Alt+key: ESC plus one character
        return "unknown", data[2:]
    first = data[:1]
    return SINGLE_KEYS.get(first, first), data[1:]


def decode_key(data: str) -> str:
    """Map raw terminal input to the name of its first key."""
    return next_key(data)[0]


class Terminal:
    """Keyboard and screen capability over a rich Console."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self._pending = ""

    @property
    def height(self) -> int:
        return self.console.size.height

    def _read_raw(self) -> str:
        """Read whatever input is available, blocking for at least one byte."""
        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setraw(fd)
            data = os.read(fd, 32)
            if data == b"\x1b":
                ready, _, _ = select.select([fd], [], [], ESCAPE_TIMEOUT)
                if ready:
                    data += os.read(fd, 32)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        return data.decode("utf-8", errors="replace")

    def read_key(self) -> str:
        """Block until a key is pressed and return its name.

        Raises:
            KeyboardInterrupt: on Ctrl+C (raw mode swallows the signal).
        """
        if not self._pending:
            self._pending = self._read_raw()
        key, self._pending = next_key(self._pending)
        if key == "\x03":
            self._pending = ""
            raise KeyboardInterrupt
        return key

    def clear(self) -> None:
        self.console.clear()

    def home(self) -> None:
        self.console.control(Control.home())

    def hide_cursor(self) -> None:
        self.console.show_cursor(False)

    def show_cursor(self) -> None:
        self.console.show_cursor(True)

    def print(self, *objects: RenderableType, **kwargs) -> None:
        self.console.print(*objects, **kwargs)

    def print_error(self, *objects: RenderableType, **kwargs) -> None:
        self.err_console.print(*objects, **kwargs)

    def draw(self, frame: RenderableType) -> None:
        """Replace the screen contents with frame."""
        self.home()
        self.clear()
        self.console.print(frame, highlight=False)
