"""Call-path data models: frames and captured traces."""

import sys
import traceback
from dataclasses import dataclass
from types import FrameType


@dataclass(frozen=True)
class Frame:
    """One entry of a captured call path (callable + source location)."""

    function: str  # qualified name, e.g. "TracingBucket.read"
    filename: str
    lineno: int

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.lineno}"

    @property
    def id(self) -> str:
        """Stable key used to merge equivalent frames across traces."""
        return f"{self.function} in {self.location}"

    @classmethod
    def from_frame(cls, frame: FrameType, lineno: int | None = None) -> "Frame":
        """Build from a live interpreter frame."""
        code = frame.f_code
        return cls(
            function=code.co_qualname,
            filename=code.co_filename,
            lineno=frame.f_lineno if lineno is None else lineno,
        )


@dataclass(frozen=True)
class Trace:
    """An immutable call path, frames ordered innermost to outermost."""

    frames: tuple[Frame, ...]

    @classmethod
    def current(cls, level: int = 0) -> "Trace":
        """Capture the call stack of the caller.

        `level` frames above the caller are dropped, so `current(0)` starts
        at the function that called `current`.
        """
        frame = sys._getframe(level + 1)
        return cls(
            frames=tuple(
                Frame.from_frame(f, lineno) for f, lineno in traceback.walk_stack(frame)
            )
        )
