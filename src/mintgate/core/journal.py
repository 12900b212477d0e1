"""
Undo journal.

Every public operation runs inside a journal transaction. Components apply
their effects immediately and register how to undo them; if anything later in
the same operation raises, the undo steps run in reverse order and the error
propagates. Notifications are buffered on the transaction and only reach the
event sink once the outermost transaction commits.

Transactions nest. A nested transaction behaves like a savepoint: its failure
undoes only its own effects, its success folds its undo steps and events into
the enclosing transaction. This is what lets an external collaborator call
back into the engine mid-operation and still have the outer call abort as
one unit. External collaborators that move value register their own
reversal on the transaction they are handed, so an aborted call leaves no
payment behind either.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from mintgate.protocol.events import CollectionEvent, EventLog, EventSink

logger = logging.getLogger(__name__)


class Transaction:
    def __init__(self) -> None:
        self._undo: List[Callable[[], None]] = []
        self._events: List[CollectionEvent] = []

    def on_rollback(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def emit(self, event: CollectionEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> List[CollectionEvent]:
        return list(self._events)

    def absorb(self, child: "Transaction") -> None:
        self._undo.extend(child._undo)
        self._events.extend(child._events)

    def rollback(self) -> None:
        for undo in reversed(self._undo):
            undo()
        self._undo.clear()
        self._events.clear()


class Journal:
    def __init__(self, sink: Optional[EventSink] = None) -> None:
        self._sink = sink if sink is not None else EventLog()
        self._stack: List[Transaction] = []

    @property
    def sink(self) -> EventSink:
        return self._sink

    @property
    def active(self) -> bool:
        return bool(self._stack)

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        txn = Transaction()
        self._stack.append(txn)
        try:
            yield txn
        except BaseException:
            self._stack.pop()
            txn.rollback()
            raise

        self._stack.pop()
        if self._stack:
            self._stack[-1].absorb(txn)
            return

        # committed; a failing sink must not turn that into an error for the caller
        for event in txn.events:
            try:
                self._sink.record(event)
            except Exception:
                logger.exception("Event sink failed to record %s", event.name)
