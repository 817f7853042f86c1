"""Rich Console that keeps report markers printable on non-UTF-8 terminals."""
from typing import Any
from rich.console import Console

from .logger import is_utf8_capable, sanitize_for_terminal


class SafeConsole(Console):
    """Console wrapper that swaps report emoji for ASCII when UTF-8 is unavailable."""

    def __init__(self, *args, **kwargs):
        # Check before Console picks its own encoding
        self._needs_sanitization = not is_utf8_capable()
        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        if self._needs_sanitization:
            objects = tuple(
                sanitize_for_terminal(obj, utf8=False) if isinstance(obj, str) else obj
                for obj in objects
            )
        super().print(*objects, **kwargs)
