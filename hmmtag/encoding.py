# hmmtag/encoding.py
"""Bidirectional maps between strings and the integer codes used by the core."""
from __future__ import annotations
from typing import Dict, Iterable, List, Optional

__all__ = ["UNSEEN", "StringEncoding"]

UNSEEN = -1


class StringEncoding:
    """
    Assigns consecutive integer codes to strings in insertion order.

    Feature strings and state labels are both encoded this way. A frozen
    encoding no longer grows: `put` returns `UNSEEN` for new values, which is
    how features never observed during training get dropped at test time.
    """

    def __init__(self, values: Optional[Iterable[str]] = None, frozen: bool = False):
        self._codes: Dict[str, int] = {}
        self._values: List[str] = []
        self.frozen = False
        for value in values or ():
            self.put(value)
        self.frozen = frozen

    def put(self, value: str) -> int:
        code = self._codes.get(value)
        if code is not None:
            return code
        if self.frozen:
            return UNSEEN
        code = len(self._values)
        self._codes[value] = code
        self._values.append(value)
        return code

    def code(self, value: str) -> int:
        return self._codes.get(value, UNSEEN)

    def value(self, code: int) -> str:
        if not 0 <= code < len(self._values):
            raise IndexError(f"Code {code} is not in this encoding (size {len(self._values)}).")
        return self._values[code]

    def values(self) -> List[str]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, value: object) -> bool:
        return value in self._codes
