"""Output style and the console that owns the cursor state."""

import sys
import threading
from dataclasses import dataclass
from typing import IO, Optional

from .config import is_decorated, is_enabled, load_config, use_ascii

ANSI_GREEN = "\u001B[32m"
ANSI_RED = "\u001B[31m"
ANSI_YELLOW = "\u001B[33m"
ANSI_CYAN = "\u001B[36m"
ANSI_RESET = "\u001B[0m"
CLEAR_TO_EOL = "\u001B[K"

RULE_WIDTH = 60


@dataclass(frozen=True)
class OutputStyle:
    """Capability flags handed to the renderer by the host.

    ``enabled`` switches all output off while counting continues,
    ``ascii`` picks plain symbols, and ``decorated`` allows colour and
    in-place progress lines.
    """
    enabled: bool = True
    ascii: bool = False
    decorated: bool = True

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "OutputStyle":
        config = load_config() if config is None else config
        return cls(enabled=is_enabled(config), ascii=use_ascii(config),
                   decorated=is_decorated(config))

    @classmethod
    def plain(cls) -> "OutputStyle":
        return cls(enabled=True, ascii=True, decorated=False)

    @property
    def passed(self) -> str:
        return "[OK]" if self.ascii else "✅"

    @property
    def failed(self) -> str:
        return "[FAIL]" if self.ascii else "❌"

    @property
    def skipped(self) -> str:
        return "[SKIP]" if self.ascii else "⏭️"

    @property
    def running(self) -> str:
        return "[..]" if self.ascii else "⏳"

    @property
    def line_single(self) -> str:
        return ("-" if self.ascii else "─") * RULE_WIDTH

    @property
    def line_double(self) -> str:
        return ("=" if self.ascii else "═") * RULE_WIDTH

    def color(self, text: str, ansi: str) -> str:
        if not self.decorated or not ansi:
            return text
        return f"{ansi}{text}{ANSI_RESET}"


class Console:
    """Writes transcript lines and tracks whether a progress line is open.

    A progress line is drawn without a trailing newline and redrawn in place
    with a carriage return. Any full line written while one is open first
    erases it, so no two renderers ever share a physical line.
    """

    def __init__(self, stream: Optional[IO[str]] = None, style: Optional[OutputStyle] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.style = style or OutputStyle.from_config()
        self._lock = threading.RLock()
        self._progress_open = False

    @property
    def progress_open(self) -> bool:
        return self._progress_open

    def line(self, text: str = "") -> None:
        if not self.style.enabled:
            return
        with self._lock:
            if self._progress_open:
                self.stream.write("\r")
                self._progress_open = False
            suffix = CLEAR_TO_EOL if self.style.decorated else ""
            self.stream.write(f"{text}{suffix}\n")
            self.stream.flush()

    def lines(self, texts) -> None:
        with self._lock:
            for text in texts:
                self.line(text)

    def progress(self, text: str) -> None:
        """Draw or redraw the in-place progress line (decorated consoles only)."""
        if not self.style.enabled or not self.style.decorated:
            return
        with self._lock:
            self.stream.write(f"\r{text}{CLEAR_TO_EOL}")
            self.stream.flush()
            self._progress_open = True

    def clear_progress(self) -> None:
        with self._lock:
            if self._progress_open:
                self.stream.write(f"\r{CLEAR_TO_EOL}")
                self.stream.flush()
                self._progress_open = False
