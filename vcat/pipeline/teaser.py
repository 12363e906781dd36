import threading
from typing import Optional


class TeaserSelector:
    """At-most-once teaser designation shared by all workers.

    `claim` is an atomic check-and-set: exactly one caller per batch gets True.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._selected_index: Optional[int] = None

    @property
    def selected_index(self) -> Optional[int]:
        with self._lock:
            return self._selected_index

    def claim(self, index: int) -> bool:
        with self._lock:
            if self._selected_index is not None:
                return False
            self._selected_index = index
            return True
