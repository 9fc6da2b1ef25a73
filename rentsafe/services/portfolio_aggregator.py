from __future__ import annotations

import logging
import threading
from functools import partial
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence

from .change_feed import OnError, Unsubscribe

log = logging.getLogger("rentsafe.aggregator")

Record = dict[str, Any]
Mapper = Callable[[Any, Mapping[str, Any]], Any]
Listener = Callable[["PortfolioAggregator"], None]


class ChildSource(Protocol):
    def watch_children(
        self,
        owner_id: int,
        property_id: Any,
        collection: str,
        on_snapshot: Callable[[list[Record]], None],
        on_error: Optional[OnError] = None,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Unsubscribe: ...


def default_mapper(parent_id: Any, rec: Mapping[str, Any]) -> Record:
    out = dict(rec)
    out.setdefault("property_id", parent_id)
    return out


def _parent_ids(parents: Iterable[Any]) -> tuple[Any, ...]:
    seen: set[Any] = set()
    out: list[Any] = []
    for p in parents:
        pid = p.get("id") if isinstance(p, Mapping) else getattr(p, "id", p)
        if pid in seen:
            continue
        seen.add(pid)
        out.append(pid)
    return tuple(out)


class PortfolioAggregator:
    """
    Watch the same child collections under every parent in a changing
    parent set and expose one flat list per collection.

    - set_parents() tears down every open subscription before opening the
      new ones; slices of parents that are gone are dropped.
    - A snapshot replaces only its (collection, parent) slice.
    - A failed subscription leaves its slice empty, is logged, and is
      recorded in ``failures``; nothing else is touched.
    - ``loading`` stays true until every open subscription has delivered
      (or failed) at least once.
    - Flattened order is parent order, then store order inside a parent.
      Callers re-sort after flattening when they need date order.
    """

    def __init__(
        self,
        source: ChildSource,
        *,
        owner_id: int,
        collections: Sequence[str],
        mappers: Optional[Mapping[str, Mapper]] = None,
        filters: Optional[Mapping[str, Mapping[str, Any]]] = None,
        limits: Optional[Mapping[str, int]] = None,
    ) -> None:
        if not collections:
            raise ValueError("at least one child collection is required")

        self._source = source
        self.owner_id = owner_id
        self.collections = tuple(dict.fromkeys(collections))
        self._mappers = dict(mappers or {})
        self._filters = dict(filters or {})
        self._limits = dict(limits or {})

        self._lock = threading.RLock()
        self._generation = 0
        self._opened = False
        self._closed = False
        self._parents: tuple[Any, ...] = ()
        self._parent_records: list[Any] = []
        self._unsubs: list[Unsubscribe] = []
        # Subscriptions that outlive set_parents() but end with close().
        self._owned: list[Unsubscribe] = []
        self._pending: set[tuple[str, Any]] = set()
        self._slices: dict[str, dict[Any, list[Any]]] = {c: {} for c in self.collections}
        self._flat: dict[str, list[Any]] = {c: [] for c in self.collections}
        self._listeners: list[Listener] = []
        self.failures: dict[tuple[str, Any], BaseException] = {}

    # ---- lifecycle ----
    def set_parents(self, parents: Iterable[Any]) -> None:
        parents = list(parents)
        ids = _parent_ids(parents)

        with self._lock:
            if self._closed:
                raise RuntimeError("aggregator is closed")
            # Records are refreshed even when the id set is unchanged (an
            # address edit must not reopen every child subscription).
            self._parent_records = parents
            if self._opened and ids == self._parents:
                return

            self._teardown()
            self._generation += 1
            gen = self._generation

            keep = set(ids)
            for c in self.collections:
                self._slices[c] = {pid: rows for pid, rows in self._slices[c].items() if pid in keep}
            self.failures = {}
            self._parents = ids
            self._pending = {(c, pid) for pid in ids for c in self.collections}
            self._opened = True
            self._recompute_all()

            for pid in ids:
                for c in self.collections:
                    self._open(gen, c, pid)

        if not ids:
            self._emit()

    def _open(self, gen: int, collection: str, pid: Any) -> None:
        try:
            unsub = self._source.watch_children(
                self.owner_id,
                pid,
                collection,
                partial(self._on_snapshot, gen, collection, pid),
                partial(self._on_error, gen, collection, pid),
                filters=self._filters.get(collection),
                limit=self._limits.get(collection),
            )
        except Exception as e:
            self._on_error(gen, collection, pid, e)
            return
        self._unsubs.append(unsub)

    def _teardown(self) -> None:
        unsubs, self._unsubs = self._unsubs, []
        for unsub in unsubs:
            unsub()
        self._pending = set()

    def attach(self, unsub: Unsubscribe) -> None:
        """Tie an outside subscription (usually the parent query) to close()."""
        with self._lock:
            if self._closed:
                unsub()
                return
            self._owned.append(unsub)

    def parents_failed(self, exc: BaseException) -> None:
        """The parent query itself failed: keep the current parent set, record it."""
        with self._lock:
            if self._closed:
                return
            log.warning(
                "parent subscription failed; keeping current parents",
                exc_info=exc,
                extra={"owner_id": self.owner_id},
            )
            self.failures[("properties", None)] = exc
        self._emit()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            owned, self._owned = self._owned, []
            for unsub in owned:
                unsub()
            self._teardown()
            self._closed = True
            self._listeners.clear()

    def __enter__(self) -> "PortfolioAggregator":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ---- callbacks ----
    def _on_snapshot(self, gen: int, collection: str, pid: Any, snapshot: list[Record]) -> None:
        mapper = self._mappers.get(collection, default_mapper)
        try:
            rows = [mapper(pid, rec) for rec in snapshot]
        except Exception as e:
            self._on_error(gen, collection, pid, e)
            return

        with self._lock:
            if gen != self._generation or self._closed:
                return
            self._slices[collection][pid] = rows
            self.failures.pop((collection, pid), None)
            self._pending.discard((collection, pid))
            self._recompute(collection)
        self._emit()

    def _on_error(self, gen: int, collection: str, pid: Any, exc: BaseException) -> None:
        with self._lock:
            if gen != self._generation or self._closed:
                return
            log.warning(
                "child subscription failed; treating slice as empty",
                exc_info=exc,
                extra={"owner_id": self.owner_id, "property_id": pid, "collection": collection},
            )
            self._slices[collection][pid] = []
            self.failures[(collection, pid)] = exc
            self._pending.discard((collection, pid))
            self._recompute(collection)
        self._emit()

    # ---- projection ----
    def _recompute(self, collection: str) -> None:
        slices = self._slices[collection]
        self._flat[collection] = [r for pid in self._parents for r in slices.get(pid, ())]

    def _recompute_all(self) -> None:
        for c in self.collections:
            self._recompute(c)

    def _emit(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for cb in listeners:
            cb(self)

    # ---- read side ----
    @property
    def parents(self) -> tuple[Any, ...]:
        return self._parents

    @property
    def loading(self) -> bool:
        with self._lock:
            return bool(self._pending)

    def flattened(self, collection: str) -> list[Any]:
        with self._lock:
            if collection not in self._flat:
                raise KeyError(collection)
            return list(self._flat[collection])

    @property
    def parent_records(self) -> list[Any]:
        """Parents exactly as last passed to set_parents()."""
        with self._lock:
            return list(self._parent_records)

    def snapshot(self) -> dict[str, list[Any]]:
        with self._lock:
            return {c: list(rows) for c, rows in self._flat.items()}

    def failed_parents(self) -> list[dict[str, Any]]:
        with self._lock:
            return [
                {"collection": c, "property_id": pid, "error": str(e) or type(e).__name__}
                for (c, pid), e in self.failures.items()
            ]

    def add_listener(self, cb: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(cb)

        def remove() -> None:
            with self._lock:
                if cb in self._listeners:
                    self._listeners.remove(cb)

        return remove
