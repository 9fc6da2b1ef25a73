from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

log = logging.getLogger("rentsafe.feed")

Fetch = Callable[[], list[dict[str, Any]]]
OnNext = Callable[[list[dict[str, Any]]], None]
OnError = Callable[[BaseException], None]
Unsubscribe = Callable[[], None]


class Subscription:
    """
    One live listener on one collection path.

    deliver() re-runs the fetch and hands the full snapshot to on_next.
    A failing fetch goes to on_error (or the log) and nowhere else.
    """

    def __init__(self, path: str, fetch: Fetch, on_next: OnNext, on_error: Optional[OnError] = None) -> None:
        self.path = path
        self._fetch = fetch
        self._on_next = on_next
        self._on_error = on_error
        self.active = True

    def deliver(self) -> None:
        if not self.active:
            return
        try:
            snapshot = self._fetch()
        except Exception as e:
            if self._on_error is not None:
                self._on_error(e)
            else:
                log.warning("snapshot fetch failed", exc_info=True, extra={"path": self.path})
            return
        if self.active:
            self._on_next(snapshot)


class ChangeFeed:
    """
    In-process registry of real-time subscriptions keyed by collection path.

    subscribe() fires once immediately (first snapshot); publish(path) is
    called after a committed write and re-delivers a full snapshot to every
    live subscriber of that path.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subs: dict[str, list[Subscription]] = {}

    def subscribe(
        self,
        path: str,
        fetch: Fetch,
        on_next: OnNext,
        on_error: Optional[OnError] = None,
    ) -> Unsubscribe:
        sub = Subscription(path, fetch, on_next, on_error)
        with self._lock:
            self._subs.setdefault(path, []).append(sub)

        def unsubscribe() -> None:
            sub.active = False
            with self._lock:
                subs = self._subs.get(path)
                if subs and sub in subs:
                    subs.remove(sub)
                    if not subs:
                        del self._subs[path]

        sub.deliver()
        return unsubscribe

    def publish(self, path: str) -> int:
        with self._lock:
            subs = list(self._subs.get(path, ()))
        for sub in subs:
            try:
                sub.deliver()
            except Exception:
                # A broken listener must not fail the write that triggered it.
                log.exception("subscriber callback failed", extra={"path": path})
        return len(subs)

    def subscriber_count(self, path: Optional[str] = None) -> int:
        with self._lock:
            if path is not None:
                return len(self._subs.get(path, ()))
            return sum(len(v) for v in self._subs.values())


FEED = ChangeFeed()
