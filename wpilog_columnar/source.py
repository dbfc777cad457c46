"""
Byte source: present a file as an immutable byte span.

The decoder only needs a read-only buffer that outlives the parse. A file is
either memory-mapped (default) or read whole; both reach the engine as a
``memoryview``. Empty files cannot be mapped, so they fall back to a read.
"""

import logging
import mmap
import os
from contextlib import contextmanager
from typing import Iterator

from .errors import WpilogIOError

logger = logging.getLogger(__name__)


def read_bytes(path: str) -> bytes:
    """Read a whole file, mapping OS failures to WpilogIOError."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise WpilogIOError(f"Could not read {path}: {e}") from e


@contextmanager
def open_span(path: str, use_mmap: bool = True) -> Iterator[memoryview]:
    """
    Yield a read-only view of the file at ``path``.

    Decoded values never reference the view, so it is safe to drop once the
    parse returns.
    """
    if not use_mmap:
        yield memoryview(read_bytes(path))
        return

    try:
        f = open(path, "rb")
    except OSError as e:
        raise WpilogIOError(f"Could not open {path}: {e}") from e

    with f:
        try:
            size = os.fstat(f.fileno()).st_size
            if size == 0:
                mapped = None
            else:
                mapped = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as e:
            logger.debug("mmap unavailable for %s (%s), reading instead", path, e)
            mapped = None

        if mapped is None:
            try:
                data = f.read()
            except OSError as e:
                raise WpilogIOError(f"Could not read {path}: {e}") from e
            yield memoryview(data)
            return

        view = memoryview(mapped)
        try:
            yield view
        finally:
            try:
                view.release()
                mapped.close()
            except BufferError:
                # a traceback still holds record views; the map is released
                # when those are collected
                logger.debug("Deferring unmap of %s until views are released", path)
