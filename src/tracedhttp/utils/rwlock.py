r"""Reader/writer lock used to guard shared client configuration.

Any number of readers may hold the lock at once; a writer holds it alone.
Waiting writers take precedence over new readers so configuration updates are
not starved by a steady flow of requests.
"""

from __future__ import annotations

__all__ = ["ReadWriteLock"]

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator


class ReadWriteLock:
    r"""Reader/writer mutual exclusion built on a condition variable.

    Example:
        ```pycon
        >>> from tracedhttp.utils.rwlock import ReadWriteLock
        >>> lock = ReadWriteLock()
        >>> with lock.read():
        ...     pass
        ...
        >>> with lock.write():
        ...     pass
        ...

        ```
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Generator[None, None, None]:
        """Hold the lock in shared mode for the duration of the block."""
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Generator[None, None, None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()
