from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable


MoveHandler = Callable[[float, float, int], None]
EndHandler = Callable[[], None]


@dataclass
class ListenerLease:
    """Scoped ownership of the document-level move/end listeners."""

    owner: str
    on_move: MoveHandler
    on_end: EndHandler
    on_cancel: EndHandler
    _hub: "GlobalListenerHub | None" = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._hub is not None and self._hub._lease is self

    def release(self) -> None:
        hub = self._hub
        self._hub = None
        if hub is not None and hub._lease is self:
            hub._lease = None


@dataclass
class GlobalListenerHub:
    """Root-level listener set shared by every event on one timeline.

    A drag keeps receiving moves after the pointer leaves the originating event,
    so the active drag leases the root listeners. Only one lease exists per pointer
    stream; a second acquisition is refused rather than queued.
    """

    _lease: ListenerLease | None = field(default=None, init=False, repr=False)

    @property
    def active_owner(self) -> str | None:
        return self._lease.owner if self._lease is not None else None

    def acquire(
        self,
        owner: str,
        on_move: MoveHandler,
        on_end: EndHandler,
        on_cancel: EndHandler | None = None,
    ) -> ListenerLease | None:
        if self._lease is not None:
            if self._lease.owner != owner:
                return None
            self._lease.release()
        lease = ListenerLease(
            owner=owner,
            on_move=on_move,
            on_end=on_end,
            on_cancel=on_cancel or on_end,
            _hub=self,
        )
        self._lease = lease
        return lease

    def dispatch_move(self, x: float, y: float, touch_count: int = 1) -> bool:
        lease = self._lease
        if lease is None:
            return False
        lease.on_move(x, y, touch_count)
        return True

    def dispatch_end(self) -> bool:
        lease = self._lease
        if lease is None:
            return False
        lease.on_end()
        return True

    def dispatch_cancel(self) -> bool:
        lease = self._lease
        if lease is None:
            return False
        lease.on_cancel()
        return True
