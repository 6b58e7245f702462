"""A table of named shell commands and a dispatcher for input lines."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Optional

MAX_COMMANDS = 50
MAX_ARGS = 10

Handler = Callable[[list], None]
Output = Callable[[str], object]


@dataclass(frozen=True)
class Command:
    """A registered command."""

    name: str
    description: str
    handler: Handler


def split_args(line: str) -> list[str]:
    """Split ``line`` on spaces into at most MAX_ARGS words; a NUL ends the line."""
    line = line.split("\0", 1)[0]
    return [word for word in line.split(" ") if word][:MAX_ARGS]


def _write_stdout(text: str) -> None:
    sys.stdout.write(text)


class CommandRegistry:
    """Holds up to MAX_COMMANDS commands and runs them by name."""

    def __init__(self, output: Optional[Output] = None) -> None:
        self._commands: list[Command] = []
        self._output = output if output is not None else _write_stdout

    @property
    def commands(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def register(self, name: str, description: str, handler: Handler) -> bool:
        """Add a command; once the table is full further commands are dropped."""
        if len(self._commands) >= MAX_COMMANDS:
            return False
        self._commands.append(Command(name, description, handler))
        return True

    def run(self, line: str) -> bool:
        """Run the command named by the first word of ``line``.

        Returns True if a command ran. An unknown name is reported on the output.
        """
        argv = split_args(line)
        if not argv:
            return False
        for command in self._commands:
            if command.name == argv[0]:
                command.handler(argv)
                return True
        self._output(f"Unknown command: {argv[0]}\n")
        return False

    def help(self, argv: list) -> None:
        """Write every command with its description."""
        self._output("Available commands:\n")
        for command in self._commands:
            self._output(f"  {command.name} - {command.description}\n")