"""
Metadata reveal gates.

A reveal gate decides whether per-token metadata is disclosed yet and
resolves a token's metadata pointer accordingly. Before reveal every token
resolves to the shared placeholder; after reveal a token resolves to
base_uri + decimal token id, or to "" when no base URI is configured.

Two variants:
- ManualRevealGate: an administrator flips a one-way phase latch.
- TimedRevealGate: revealed is derived from the clock on every query and is
  never stored, so it cannot drift from the timestamp or be undone.
"""

from __future__ import annotations

import logging
from typing import Optional

from mintgate.core.clock import Clock, SystemClock
from mintgate.core.journal import Journal
from mintgate.core.ledger import TokenLedger
from mintgate.core.phase import PhaseLatch
from mintgate.protocol.enums import RevealPhase
from mintgate.protocol.errors import (
    AlreadyRevealed,
    InvalidRevealTimestamp,
    ManualRevealUnsupported,
    NotFound,
    ValidationError,
)
from mintgate.protocol.events import (
    BaseUriChanged,
    PlaceholderUriChanged,
    RevealOccurred,
    RevealTimestampChanged,
)
from mintgate.protocol.validators import validate_uri

logger = logging.getLogger(__name__)


class RevealGate:
    def __init__(
        self,
        placeholder_uri: str = "",
        base_uri: str = "",
        *,
        journal: Optional[Journal] = None,
    ) -> None:
        self._placeholder_uri = validate_uri("placeholder_uri", placeholder_uri)
        self._base_uri = validate_uri("base_uri", base_uri)
        self._journal = journal if journal is not None else Journal()

    # ------------------------------------------------------------------
    # Phase
    # ------------------------------------------------------------------

    def is_revealed(self) -> bool:
        raise NotImplementedError

    def reveal(self) -> None:
        raise NotImplementedError

    def _require_hidden(self) -> None:
        if self.is_revealed():
            raise AlreadyRevealed()

    # ------------------------------------------------------------------
    # URIs
    # ------------------------------------------------------------------

    @property
    def placeholder_uri(self) -> str:
        return self._placeholder_uri

    @property
    def base_uri(self) -> str:
        return self._base_uri

    def set_placeholder_uri(self, new_uri: str) -> None:
        """
        Replace the placeholder shown before reveal.

        Raises:
            AlreadyRevealed: once metadata is revealed
        """
        validate_uri("placeholder_uri", new_uri)
        with self._journal.transaction() as txn:
            self._require_hidden()
            old = self._placeholder_uri
            self._placeholder_uri = new_uri
            txn.on_rollback(lambda: setattr(self, "_placeholder_uri", old))
            txn.emit(PlaceholderUriChanged(old=old, new=new_uri))

    def set_base_uri(self, new_uri: str) -> None:
        validate_uri("base_uri", new_uri)
        with self._journal.transaction() as txn:
            old = self._base_uri
            self._base_uri = new_uri
            txn.on_rollback(lambda: setattr(self, "_base_uri", old))
            txn.emit(BaseUriChanged(old=old, new=new_uri))

    def resolve_metadata(self, token_id: int, ledger: TokenLedger) -> str:
        """
        Metadata pointer for an existing token.

        Raises:
            NotFound: if the ledger has no such token
        """
        if isinstance(token_id, bool) or not isinstance(token_id, int) or not ledger.exists(token_id):
            raise NotFound(token_id)

        if not self.is_revealed():
            return self._placeholder_uri
        if not self._base_uri:
            return ""
        return f"{self._base_uri}{token_id}"


class ManualRevealGate(RevealGate):
    def __init__(
        self,
        placeholder_uri: str = "",
        base_uri: str = "",
        *,
        revealed: bool = False,
        journal: Optional[Journal] = None,
    ) -> None:
        super().__init__(placeholder_uri, base_uri, journal=journal)
        self._phase = PhaseLatch.of(
            RevealPhase, RevealPhase.REVEALED if revealed else RevealPhase.HIDDEN
        )

    @property
    def phase(self) -> RevealPhase:
        return self._phase.current

    def is_revealed(self) -> bool:
        return self._phase.reached(RevealPhase.REVEALED)

    def reveal(self) -> None:
        """
        Disclose final metadata. One-way.

        Raises:
            AlreadyRevealed: if already revealed
        """
        with self._journal.transaction() as txn:
            self._require_hidden()
            previous = self._phase.advance(RevealPhase.REVEALED)
            txn.on_rollback(lambda: self._phase.rewind(previous))
            txn.emit(RevealOccurred())
        logger.info("Metadata revealed")


class TimedRevealGate(RevealGate):
    def __init__(
        self,
        reveal_timestamp: int,
        placeholder_uri: str = "",
        base_uri: str = "",
        *,
        clock: Optional[Clock] = None,
        journal: Optional[Journal] = None,
    ) -> None:
        super().__init__(placeholder_uri, base_uri, journal=journal)
        self._clock = clock if clock is not None else SystemClock()
        self._reveal_timestamp = self._require_future(reveal_timestamp)

    @classmethod
    def restore(
        cls,
        reveal_timestamp: int,
        placeholder_uri: str = "",
        base_uri: str = "",
        *,
        clock: Optional[Clock] = None,
        journal: Optional[Journal] = None,
    ) -> "TimedRevealGate":
        """
        Rebuild a gate from persisted state.

        The stored timestamp was validated when it was set, so it is taken
        as-is even if it has since passed.
        """
        gate = cls.__new__(cls)
        RevealGate.__init__(gate, placeholder_uri, base_uri, journal=journal)
        gate._clock = clock if clock is not None else SystemClock()
        gate._reveal_timestamp = _as_timestamp(reveal_timestamp)
        return gate

    @property
    def reveal_timestamp(self) -> int:
        return self._reveal_timestamp

    def is_revealed(self) -> bool:
        return self._clock.now() >= self._reveal_timestamp

    def reveal(self) -> None:
        self._require_hidden()
        raise ManualRevealUnsupported()

    def _require_future(self, timestamp: int) -> int:
        timestamp = _as_timestamp(timestamp)
        now = self._clock.now()
        if timestamp <= now:
            raise InvalidRevealTimestamp(timestamp, now)
        return timestamp

    def set_reveal_timestamp(self, new_timestamp: int) -> None:
        """
        Move the reveal time. Only before the current reveal time is reached,
        and only to a time strictly in the future.

        Raises:
            AlreadyRevealed: if the current reveal time has passed
            InvalidRevealTimestamp: if new_timestamp is not in the future
        """
        with self._journal.transaction() as txn:
            self._require_hidden()
            new_timestamp = self._require_future(new_timestamp)
            old = self._reveal_timestamp
            self._reveal_timestamp = new_timestamp
            txn.on_rollback(lambda: setattr(self, "_reveal_timestamp", old))
            txn.emit(RevealTimestampChanged(old=old, new=new_timestamp))
        logger.info("Reveal timestamp moved from %d to %d", old, new_timestamp)


def _as_timestamp(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Timestamp must be an integer, got {value!r}")
    return value
