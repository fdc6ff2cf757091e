"""
Progress reporting sinks used by the pipeline phases.

The pipeline only pushes ``(position, total)`` updates; rendering is left
to the sink implementation.
"""

import sys
import threading
from typing import Optional

from tqdm import tqdm


class ProgressSink:
    """Narrow interface accepting position/total updates for one phase."""

    def update(self, position: int, total: Optional[int] = None) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return None


class NullProgress(ProgressSink):
    """Sink that discards every update."""

    def update(self, position: int, total: Optional[int] = None) -> None:
        pass


class TqdmProgress(ProgressSink):
    """Render updates as a tqdm progress bar on stderr."""

    def __init__(self, desc: str, unit: str = " files", disable: bool = False):
        self._bar = tqdm(
            total=None,
            desc=desc,
            unit=unit,
            disable=disable,
            leave=False,
            file=sys.stderr,
        )
        self.position = 0
        self._lock = threading.Lock()

    def update(self, position: int, total: Optional[int] = None) -> None:
        with self._lock:
            if total is not None and self._bar.total != total:
                self._bar.total = total
            # A disabled bar does not advance its own counter
            delta = position - self.position
            if delta > 0:
                self._bar.update(delta)
                self.position = position

    def close(self) -> None:
        self._bar.close()


class ProgressCounter:
    """
    Shared completion counter that forwards coalesced updates to a sink.

    Only every ``report_every``-th increment reaches the sink, so worker
    threads do not contend on rendering. ``finish`` always pushes the final
    position.
    """

    def __init__(self, sink: Optional[ProgressSink], total: int, report_every: int = 100):
        self.sink = sink or NullProgress()
        self.total = total
        self.report_every = max(1, report_every)
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    def advance(self, n: int = 1) -> None:
        with self._lock:
            before = self._count
            self._count += n
            current = self._count
        if before // self.report_every != current // self.report_every:
            self.sink.update(min(current, self.total), self.total)

    def finish(self) -> None:
        self.sink.update(self.total, self.total)
