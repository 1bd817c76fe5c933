"""Frame classification: which frames are runtime internals."""

import os
import sysconfig
from typing import Callable

from .models import Frame

FrameClassifier = Callable[[Frame], bool]


def _normalized(path: str) -> str:
    return os.path.normcase(os.path.abspath(path))


def _prefixes(*names: str) -> tuple[str, ...]:
    paths = sysconfig.get_paths()
    return tuple(
        sorted({_normalized(paths[name]) + os.sep for name in names if paths.get(name)})
    )


_STDLIB_PREFIXES = _prefixes("stdlib", "platstdlib")
# site-packages usually sits inside the stdlib directory
_SITE_PREFIXES = _prefixes("purelib", "platlib")


def is_core_frame(frame: Frame) -> bool:
    """True for frames from the interpreter's standard library or synthetic code."""
    if frame.filename.startswith("<"):
        return True
    filename = _normalized(frame.filename)
    if filename.startswith(_SITE_PREFIXES):
        return False
    return filename.startswith(_STDLIB_PREFIXES)


def never_core(frame: Frame) -> bool:
    """Classifier that keeps every frame."""
    return False
