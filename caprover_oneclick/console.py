"""Terminal helpers: line output and the interactive variable prompt."""

from __future__ import annotations

import sys
from typing import Callable, Optional


def write_stdout_text(text: str) -> None:
    """Print one line, escaping characters the terminal encoding rejects."""
    line = text if text.endswith("\n") else f"{text}\n"
    stream = sys.stdout
    try:
        stream.write(line)
    except UnicodeEncodeError:
        stream.buffer.write(line.encode(stream.encoding or "utf-8", errors="backslashreplace"))


class ConsolePrompt:
    """Ask for variable values on the terminal until one validates."""

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = write_stdout_text,
        max_attempts: int = 3,
    ):
        self.input_fn = input_fn
        self.output_fn = output_fn
        self.max_attempts = max_attempts

    def ask(
        self,
        variable_id: str,
        label: str,
        description: str,
        validator: Callable[[str], bool],
        default: str,
    ) -> Optional[str]:
        message = f"{label or variable_id} : {description or ''}".rstrip()
        suffix = f" [{default}]" if default else ""
        for _ in range(self.max_attempts):
            answer = self.input_fn(f"{message}{suffix} ").strip() or default
            if validator(answer):
                return answer
            self.output_fn(f"Invalid value for {variable_id}, try again.")
        return None
