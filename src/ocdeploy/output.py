"""Operator-facing terminal output.

Messages are tagged [INFO], [OK], [WARN] or [ERR] and colored when the
terminal supports it. Errors and warnings go to stderr.
"""

from rich.console import Console
from rich.text import Text

_TAGS = {
    "info": ("[INFO]", "cyan"),
    "ok": ("[OK]", "green"),
    "warn": ("[WARN]", "yellow"),
    "error": ("[ERR]", "red"),
}


class Output:
    """Categorized console output."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def _emit(self, console: Console, category: str, message: str) -> None:
        tag, style = _TAGS[category]
        text = Text()
        text.append(f"{tag:<8}", style=style)
        text.append(str(message))
        console.print(text, soft_wrap=True)

    def info(self, message: str) -> None:
        self._emit(self.console, "info", message)

    def ok(self, message: str) -> None:
        self._emit(self.console, "ok", message)

    def warn(self, message: str) -> None:
        self._emit(self.err_console, "warn", message)

    def error(self, message: str) -> None:
        self._emit(self.err_console, "error", message)

    def banner(self, message: str) -> None:
        self.console.print()
        self.console.print(Text(message, style="bold"), soft_wrap=True)

    def raw(self, text: str) -> None:
        """Write text to stdout byte for byte, bypassing rich rendering.

        Tabs and control characters survive. A trailing newline is added
        only when the text lacks one.
        """
        stream = self.console.file
        stream.write(text if text.endswith("\n") else text + "\n")
        stream.flush()

    def blank(self) -> None:
        self.console.print()


out = Output()
