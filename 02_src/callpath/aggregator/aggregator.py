"""Aggregation of sampled Traces into top-down and bottom-up call trees."""

import json
import threading
from typing import Any, Iterable

from ..classifier import FrameClassifier, is_core_frame, never_core
from ..models import Frame, Trace

SKIPPED_KEY = "skipped"


class TraceTreeNode:
    """A node of a call tree counting the traces that pass through it."""

    def __init__(self, id: str):
        self.id = id
        self.counter = 0
        self.children: dict[str, "TraceTreeNode"] | None = None

    def add_trace(
        self,
        frames: Iterable[Frame],
        is_core: FrameClassifier = never_core,
    ) -> None:
        """Fold one call path into the subtree rooted here."""
        node = self
        node.counter += 1
        for frame in frames:
            if is_core(frame):
                continue
            child_id = frame.id
            if node.children is None:
                node.children = {}
            child = node.children.get(child_id)
            if child is None:
                child = node.children[child_id] = TraceTreeNode(child_id)
            child.counter += 1
            node = child

    @property
    def label(self) -> str:
        return f"[{self.counter}] {self.id}"

    def as_sorted_map(self, complete: bool = False) -> dict[str, Any]:
        """Summarize the subtree, most frequent children first.

        Unless `complete`, children with less than 1% of this node's
        counter are collapsed into a single `skipped` total.
        """
        if not self.children:
            return {self.id: self.counter}

        # sorted() is stable, so ties keep insertion order
        children = sorted(self.children.values(), key=lambda c: c.counter, reverse=True)
        limit = 0 if complete else self.counter // 100
        result: dict[str, Any] = {}
        skipped = 0
        for child in children:
            if child.counter < limit:
                skipped += child.counter
                continue
            result.update(child.as_sorted_map(complete=complete))
        if skipped > 0:
            result[SKIPPED_KEY] = skipped
        return {self.label: result}


class TraceAggregator:
    """Owns the top-down and bottom-up call trees.

    Created once by the composition root and never cleared; counters only
    grow for the lifetime of the process.
    """

    def __init__(self, classifier: FrameClassifier = is_core_frame):
        self._classifier = classifier
        self._top_down = TraceTreeNode("topDown")
        self._bottom_up = TraceTreeNode("bottomUp")
        self._lock = threading.Lock()

    @property
    def top_down(self) -> TraceTreeNode:
        return self._top_down

    @property
    def bottom_up(self) -> TraceTreeNode:
        return self._bottom_up

    @property
    def total(self) -> int:
        """Number of traces folded so far."""
        return self._top_down.counter

    def add(self, trace: Trace) -> None:
        """Fold a trace into both trees."""
        with self._lock:
            self._top_down.add_trace(reversed(trace.frames), self._classifier)
            self._bottom_up.add_trace(trace.frames, self._classifier)

    def as_sorted_map(self, complete: bool = False) -> dict[str, Any]:
        with self._lock:
            return {
                **self._top_down.as_sorted_map(complete=complete),
                **self._bottom_up.as_sorted_map(complete=complete),
            }

    def summary(self, complete: bool = False) -> dict[str, Any]:
        """The combined, JSON-serializable summary of both trees."""
        return self.as_sorted_map(complete=complete)

    def as_sorted_json(self, complete: bool = False, indent: int = 2) -> str:
        """Indented text rendering of `summary()`."""
        return json.dumps(self.as_sorted_map(complete=complete), indent=indent)
