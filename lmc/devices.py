"""
Line-based I/O devices used by INP and OUT.

The interpreter only ever asks for one line of input or hands over one
line of output; where those lines come from or go to is up to the device.

    ConsoleInput / ConsoleOutput   stdin / stdout
    BufferedInput / BufferedOutput in-memory, for embedding and tests
"""

import abc
import sys
from collections import deque
from typing import Iterable, List, Optional, TextIO


class InputDevice(abc.ABC):

    @abc.abstractmethod
    def read_line(self) -> Optional[str]:
        """Next line without its newline, or None when no input is left."""


class OutputDevice(abc.ABC):

    @abc.abstractmethod
    def write_line(self, text: str) -> None:
        pass


class ConsoleInput(InputDevice):
    def __init__(self, prompt: str = "Inp: ", stream: Optional[TextIO] = None,
                 prompt_stream: Optional[TextIO] = None):
        self.prompt = prompt
        self._stream = stream
        self._prompt_stream = prompt_stream

    def read_line(self) -> Optional[str]:
        stream = self._stream or sys.stdin
        out = self._prompt_stream or sys.stderr
        if self.prompt:
            out.write(self.prompt)
            out.flush()
        line = stream.readline()
        if not line:
            return None
        return line.rstrip('\r\n')


class ConsoleOutput(OutputDevice):
    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    def write_line(self, text: str) -> None:
        stream = self._stream or sys.stdout
        stream.write(text + '\n')
        stream.flush()


class BufferedInput(InputDevice):
    def __init__(self, lines: Iterable[str] = ()):
        self._pending = deque(str(line) for line in lines)

    def feed(self, *lines: str) -> None:
        self._pending.extend(lines)

    @property
    def remaining(self) -> int:
        return len(self._pending)

    def read_line(self) -> Optional[str]:
        if not self._pending:
            return None
        return self._pending.popleft()


class BufferedOutput(OutputDevice):
    def __init__(self):
        self.lines: List[str] = []

    def write_line(self, text: str) -> None:
        self.lines.append(text)

    @property
    def text(self) -> str:
        return ''.join(line + '\n' for line in self.lines)
