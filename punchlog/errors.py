"""Error taxonomy for the work log.

- ParseError: malformed token; aborts the whole read.
- ValidationError: logically invalid log; reported per record by the
  validation pass, raised only when a mutation would corrupt the file.

I/O failures are plain OSError and are never wrapped.
"""

from __future__ import annotations

from typing import Optional


class LogError(Exception):
    """Base class for everything the log core raises on its own."""


class ParseError(LogError):
    def __init__(self, line: int, col: int, message: str):
        self.line = line
        self.col = col
        self.message = message
        super().__init__(f"line {line}, col {col}: {message}")


class ValidationError(LogError):
    def __init__(self, line: Optional[int], message: str):
        self.line = line
        self.message = message
        where = f"line {line}: " if line is not None else ""
        super().__init__(f"{where}{message}")

    def as_dict(self) -> dict:
        return {"line": self.line, "message": self.message}
