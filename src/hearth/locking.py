"""
Workspace lock for the event file.

Uses flock on a sidecar lock file so every read-modify-write of
``events.json`` is serialized across processes sharing a workspace.
"""

from __future__ import annotations

import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from hearth import log
from hearth.errors import LockTimeout, PersistenceError

POLL_INTERVAL = 0.05


@contextmanager
def exclusive_lock(lock_file: Path, timeout: float | None = None) -> Iterator[None]:
    """
    Hold an exclusive flock on *lock_file* for the duration of the block.

    Args:
        lock_file: Path of the sidecar lock file (created if missing)
        timeout: Seconds to wait; ``None`` blocks until the lock is free
    """
    try:
        lock_file.parent.mkdir(parents=True, exist_ok=True)
        fd = open(lock_file, "a+", encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"cannot open lock file {lock_file}: {exc}") from exc

    try:
        _acquire(fd, lock_file, timeout)
        try:
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        fd.close()


def _acquire(fd, lock_file: Path, timeout: float | None) -> None:
    if timeout is None:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError as exc:
            raise PersistenceError(f"cannot lock {lock_file}: {exc}") from exc
        return

    start = time.monotonic()
    waited = False
    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            return
        except BlockingIOError:
            if not waited:
                log.debug(f"pid {os.getpid()} waiting for {lock_file.name}")
                waited = True
            if time.monotonic() - start >= timeout:
                raise LockTimeout(f"could not lock {lock_file} within {timeout}s")
            time.sleep(POLL_INTERVAL)
        except OSError as exc:
            raise PersistenceError(f"cannot lock {lock_file}: {exc}") from exc
