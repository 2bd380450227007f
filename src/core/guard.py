from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RequestTicket:
    request_id: int
    key: str


class RequestGuard:
    """
    Marks the most recently requested track so late completions for older tracks can be dropped.

    Only the owning component calls issue()/is_current(); all calls happen on the coordination thread.
    """

    def __init__(self):
        self._request_id = 0
        self._current: Optional[RequestTicket] = None

    @property
    def current_key(self) -> Optional[str]:
        return self._current.key if self._current else None

    def issue(self, key: str) -> RequestTicket:
        self._request_id += 1
        self._current = RequestTicket(request_id=self._request_id, key=key)
        return self._current

    def is_current(self, ticket: RequestTicket) -> bool:
        return self._current is not None and self._current.request_id == ticket.request_id

    def clear(self) -> None:
        self._current = None
