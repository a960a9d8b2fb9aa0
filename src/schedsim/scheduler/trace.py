"""Step-by-step scheduling trace sinks."""

from typing import TextIO


class NullTraceSink:
    """Trace sink that discards everything."""

    enabled = False

    def write(self, line: str = "") -> None:
        pass

    def section(self, title: str) -> None:
        pass


class StreamTraceSink:
    """Trace sink writing plain text lines to a stream."""

    enabled = True

    def __init__(self, stream: TextIO, width: int = 80) -> None:
        self.stream = stream
        self.width = width

    def write(self, line: str = "") -> None:
        self.stream.write(line + "\n")

    def section(self, title: str) -> None:
        rule = "*" * self.width
        self.write()
        self.write(rule)
        self.write(f"*  {title}".ljust(self.width - 1) + "*")
        self.write(rule)
