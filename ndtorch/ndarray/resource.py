"""
NativeResource owns one opaque handle into engine memory.

Keep this SIMPLE and READABLE.
"""

import itertools
import threading
from typing import Any, Optional
from ndtorch.errors import released_error


_uid_counter = itertools.count()
_uid_lock = threading.Lock()


def _get_next_uid(prefix: str) -> str:
    """Get next process-unique resource id."""
    with _uid_lock:
        return f"{prefix}-{next(_uid_counter)}"


class NativeResource:
    """
    Holder for a handle owned by the native engine.

    The handle is released exactly once. After that, reading `handle`
    raises instead of returning a dangling reference.
    """

    def __init__(self, handle: Any, uid_prefix: str = 'res'):
        self._handle: Optional[Any] = handle
        self._uid = _get_next_uid(uid_prefix)

    @property
    def uid(self) -> str:
        return self._uid

    @property
    def handle(self) -> Any:
        """The native handle (raises once released)."""
        if self._handle is None:
            raise RuntimeError(released_error())
        return self._handle

    def is_released(self) -> bool:
        return self._handle is None

    def _take_handle(self) -> Optional[Any]:
        """Detach the handle from this holder, returning it once and None afterwards."""
        handle, self._handle = self._handle, None
        return handle

    def close(self):
        """Release the handle. Subclasses free native memory here."""
        self._take_handle()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
