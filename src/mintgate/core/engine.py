"""
Issuance engine.

The engine is the only surface that increases supply. It routes each mint
request to the component that owns its phase, applies that component's
accounting, and only then asks the external ledger to create the tokens.

Execution model:
- Calls are serialized through one re-entrant lock. Re-entrant so that an
  external collaborator (token ledger, value recipient) can call back in
  during an operation and observe the effects already applied.
- Every call runs in a journal transaction. Effects are applied first and
  external calls come last; any failure undoes every effect of the call and
  publishes no events.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Mapping, Optional, Sequence

from mintgate.core.allowlist import AllowlistLedger, identity_key
from mintgate.core.clock import Clock, SystemClock
from mintgate.core.funds import InMemoryAccounts, ValueTransfer
from mintgate.core.journal import Journal, Transaction
from mintgate.core.ledger import TokenLedger
from mintgate.core.reveal import ManualRevealGate, RevealGate, TimedRevealGate
from mintgate.core.sale import SaleController
from mintgate.core.settings import MintGateSettings
from mintgate.merkle.tree import Identity, Node, node_hex
from mintgate.protocol.enums import IssuanceSource
from mintgate.protocol.errors import IncorrectPrice, PresaleOpen, SoldOut
from mintgate.protocol.events import EventLog, EventSink, TokensIssued
from mintgate.protocol.validators import validate_amount, validate_identity, validate_non_negative
from mintgate.utils.json import json_dumps, json_loads

logger = logging.getLogger(__name__)


class IssuanceEngine:
    def __init__(
        self,
        ledger: TokenLedger,
        *,
        gate: Optional[RevealGate] = None,
        allowlist: Optional[AllowlistLedger] = None,
        sale: Optional[SaleController] = None,
        transfer: Optional[ValueTransfer] = None,
        max_supply: Optional[int] = None,
        total_issued: Optional[int] = None,
        journal: Optional[Journal] = None,
    ) -> None:
        """
        Wire the engine to its components.

        Components that share state changes with the engine must share its
        journal; pass the same Journal to each of them (see build()). Missing
        components are created with defaults on the engine's journal.
        """
        self._journal = journal if journal is not None else Journal()
        self._ledger = ledger
        self._gate = gate if gate is not None else ManualRevealGate(journal=self._journal)
        self._allowlist = allowlist if allowlist is not None else AllowlistLedger(journal=self._journal)
        self._sale = sale if sale is not None else SaleController(journal=self._journal)
        self._transfer = transfer if transfer is not None else InMemoryAccounts()
        self._max_supply = (
            validate_non_negative("max_supply", max_supply) if max_supply is not None else None
        )
        self._total_issued = (
            validate_non_negative("total_issued", total_issued)
            if total_issued is not None
            else ledger.total_issued()
        )
        self._lock = threading.RLock()

        if self._max_supply is not None and self._total_issued + self._sale.reserve > self._max_supply:
            raise ValueError(
                f"max_supply {self._max_supply} cannot hold {self._total_issued} issued "
                f"plus {self._sale.reserve} reserved"
            )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        ledger: TokenLedger,
        *,
        price: int = 0,
        mint_limit: int = 10,
        reserve: int = 0,
        presale_cap: int = 1,
        merkle_root: Optional[Node] = None,
        placeholder_uri: str = "",
        base_uri: str = "",
        reveal_timestamp: Optional[int] = None,
        max_supply: Optional[int] = None,
        clock: Optional[Clock] = None,
        transfer: Optional[ValueTransfer] = None,
        events: Optional[EventSink] = None,
    ) -> "IssuanceEngine":
        """Create an engine and its components on one shared journal."""
        journal = Journal(events if events is not None else EventLog())

        gate: RevealGate
        if reveal_timestamp is None:
            gate = ManualRevealGate(placeholder_uri, base_uri, journal=journal)
        else:
            gate = TimedRevealGate(
                reveal_timestamp, placeholder_uri, base_uri,
                clock=clock if clock is not None else SystemClock(),
                journal=journal,
            )

        return cls(
            ledger,
            gate=gate,
            allowlist=AllowlistLedger(merkle_root, presale_cap, journal=journal),
            sale=SaleController(price, mint_limit, reserve, journal=journal),
            transfer=transfer,
            max_supply=max_supply,
            journal=journal,
        )

    @classmethod
    def from_settings(
        cls,
        settings: MintGateSettings,
        ledger: TokenLedger,
        *,
        clock: Optional[Clock] = None,
        transfer: Optional[ValueTransfer] = None,
        events: Optional[EventSink] = None,
    ) -> "IssuanceEngine":
        return cls.build(
            ledger,
            price=settings.sale.price,
            mint_limit=settings.sale.mint_limit,
            reserve=settings.sale.reserve,
            max_supply=settings.sale.max_supply,
            presale_cap=settings.presale.presale_cap,
            merkle_root=settings.presale.merkle_root,
            placeholder_uri=settings.reveal.placeholder_uri,
            base_uri=settings.reveal.base_uri,
            reveal_timestamp=settings.reveal.reveal_timestamp,
            clock=clock,
            transfer=transfer,
            events=events,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def total_issued(self) -> int:
        return self._total_issued

    @property
    def max_supply(self) -> Optional[int]:
        return self._max_supply

    @property
    def reserve(self) -> int:
        return self._sale.reserve

    @property
    def balance(self) -> int:
        return self._sale.balance

    @property
    def price(self) -> int:
        return self._sale.price

    @property
    def mint_limit(self) -> int:
        return self._sale.mint_limit

    @property
    def presale_open(self) -> bool:
        return self._allowlist.presale_open

    @property
    def events(self) -> EventSink:
        return self._journal.sink

    @property
    def gate(self) -> RevealGate:
        """
        The reveal gate, for reads.

        Components share the engine's journal but not its lock; mutate state
        through the engine methods, never on the component directly.
        """
        return self._gate

    @property
    def allowlist(self) -> AllowlistLedger:
        """The allowlist ledger, for reads. Mutate through the engine (see `gate`)."""
        return self._allowlist

    @property
    def sale(self) -> SaleController:
        """The sale controller, for reads. Mutate through the engine (see `gate`)."""
        return self._sale

    @property
    def ledger(self) -> TokenLedger:
        return self._ledger

    def is_revealed(self) -> bool:
        return self._gate.is_revealed()

    def claimed(self, identity: Identity) -> int:
        return self._allowlist.claimed(identity)

    def available(self) -> Optional[int]:
        """Tokens still mintable through presale/public paths, or None if uncapped."""
        if self._max_supply is None:
            return None
        return max(self._max_supply - self._total_issued - self._sale.reserve, 0)

    def resolve_metadata(self, token_id: int) -> str:
        return self._gate.resolve_metadata(token_id, self._ledger)

    token_uri = resolve_metadata

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def mint(
        self,
        caller: Identity,
        amount: int,
        *,
        payment: int = 0,
        proof: Optional[Sequence[Node]] = None,
    ) -> range:
        """
        Route a mint request by phase.

        While the presale is open the caller claims against the allowlist
        (presale mints are free, so any attached payment is rejected rather
        than kept). Afterwards the caller buys at the public price.
        """
        with self._lock:
            if self._allowlist.presale_open:
                if payment != 0:
                    raise IncorrectPrice(0, payment)
                return self.claim_presale(proof or [], amount, caller)
            return self.mint_public(caller, amount, payment)

    def claim_presale(self, proof: Sequence[Node], amount: int, claimant: Identity) -> range:
        """
        Claim allowlisted tokens for the calling identity.

        Raises:
            PresaleEnded, InvalidProof, MintLimitExceeded, SoldOut
        """
        with self._lock, self._journal.transaction() as txn:
            self._allowlist.authorize_claim(proof, claimant, amount)
            return self._issue(txn, claimant, amount, IssuanceSource.PRESALE)

    def mint_public(self, recipient: Identity, amount: int, payment: int) -> range:
        """
        Buy tokens at the public price once the presale has closed.

        Raises:
            PresaleOpen, IncorrectPrice, MintLimitExceeded, SoldOut
        """
        with self._lock, self._journal.transaction() as txn:
            if self._allowlist.presale_open:
                raise PresaleOpen()
            self._sale.authorize_public(amount, payment)
            return self._issue(txn, recipient, amount, IssuanceSource.PUBLIC)

    def mint_reserve(self, recipient: Identity, amount: int) -> range:
        """
        Issue reserved tokens. Privileged; allowed in any phase.

        Raises:
            AmountExceedsReserve
        """
        with self._lock, self._journal.transaction() as txn:
            self._sale.authorize_reserve(amount)
            return self._issue(txn, recipient, amount, IssuanceSource.RESERVE)

    def _issue(self, txn: Transaction, recipient: Identity, amount: int, source: IssuanceSource) -> range:
        validate_identity(recipient)
        amount = validate_amount(amount)

        if self._max_supply is not None:
            if source is IssuanceSource.RESERVE:
                # reserve already reduced by amount; reserved supply is this mint's to use
                available = self._max_supply - self._total_issued
            else:
                available = self._max_supply - self._total_issued - self._sale.reserve
            if amount > available:
                raise SoldOut(amount, max(available, 0))

        start = self._total_issued
        self._total_issued = start + amount
        txn.on_rollback(lambda: setattr(self, "_total_issued", start))

        token_ids = range(start, start + amount)
        owner = identity_key(recipient)
        txn.emit(TokensIssued(recipient=owner, start=start, amount=amount, source=source.value))

        try:
            self._ledger.mint(owner, token_ids)
        except Exception as exc:
            logger.warning("Ledger rejected %s mint of %d to %s: %s", source.value, amount, owner, exc)
            raise

        logger.info("Issued %d token(s) [%d..%d] to %s via %s",
                    amount, start, start + amount - 1, owner, source.value)
        return token_ids

    # ------------------------------------------------------------------
    # Funds
    # ------------------------------------------------------------------

    def collect_funds(self, recipient: str, amount: int) -> None:
        """Privileged. Send custodied proceeds to recipient."""
        with self._lock, self._journal.transaction():
            self._sale.collect_funds(recipient, amount, self._transfer)

    # ------------------------------------------------------------------
    # Administration (access control is the caller's concern)
    # ------------------------------------------------------------------

    def reveal(self) -> None:
        with self._lock:
            self._gate.reveal()

    def set_placeholder_uri(self, new_uri: str) -> None:
        with self._lock:
            self._gate.set_placeholder_uri(new_uri)

    def set_base_uri(self, new_uri: str) -> None:
        with self._lock:
            self._gate.set_base_uri(new_uri)

    def set_reveal_timestamp(self, new_timestamp: int) -> None:
        with self._lock:
            if not isinstance(self._gate, TimedRevealGate):
                raise TypeError("set_reveal_timestamp requires a timed reveal gate")
            self._gate.set_reveal_timestamp(new_timestamp)

    def set_merkle_root(self, new_root: Node) -> None:
        with self._lock:
            self._allowlist.set_merkle_root(new_root)

    def end_presale(self) -> None:
        with self._lock:
            self._allowlist.end_presale()

    def set_price(self, new_price: int) -> None:
        with self._lock:
            self._sale.set_price(new_price)

    def set_mint_limit(self, new_limit: int) -> None:
        with self._lock:
            self._sale.set_mint_limit(new_limit)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Flat, JSON-compatible state snapshot."""
        with self._lock:
            gate = self._gate
            root = self._allowlist.merkle_root
            data: Dict[str, Any] = {
                "totalIssued": self._total_issued,
                "maxSupply": self._max_supply,
                "reserve": self._sale.reserve,
                "balance": self._sale.balance,
                "price": self._sale.price,
                "mintLimit": self._sale.mint_limit,
                "presaleCap": self._allowlist.presale_cap,
                "presaleOpen": self._allowlist.presale_open,
                "merkleRoot": node_hex(root) if root is not None else None,
                "placeholderUri": gate.placeholder_uri,
                "baseUri": gate.base_uri,
                "allowlist": self._allowlist.claims(),
            }
            if isinstance(gate, TimedRevealGate):
                data["revealTimestamp"] = gate.reveal_timestamp
            else:
                data["revealed"] = gate.is_revealed()
            return data

    def to_json(self) -> str:
        return json_dumps(self.to_dict())

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        ledger: TokenLedger,
        *,
        clock: Optional[Clock] = None,
        transfer: Optional[ValueTransfer] = None,
        events: Optional[EventSink] = None,
    ) -> "IssuanceEngine":
        """Rebuild an engine from a snapshot produced by to_dict()."""
        journal = Journal(events if events is not None else EventLog())

        gate: RevealGate
        if data.get("revealTimestamp") is not None:
            gate = TimedRevealGate.restore(
                data["revealTimestamp"], data.get("placeholderUri", ""), data.get("baseUri", ""),
                clock=clock, journal=journal,
            )
        else:
            gate = ManualRevealGate(
                data.get("placeholderUri", ""), data.get("baseUri", ""),
                revealed=bool(data.get("revealed", False)), journal=journal,
            )

        allowlist = AllowlistLedger(
            data.get("merkleRoot"),
            data.get("presaleCap", 1),
            presale_open=bool(data.get("presaleOpen", True)),
            claims=data.get("allowlist") or {},
            journal=journal,
        )
        sale = SaleController(
            data.get("price", 0),
            data.get("mintLimit", 10),
            data.get("reserve", 0),
            balance=data.get("balance", 0),
            journal=journal,
        )
        return cls(
            ledger,
            gate=gate,
            allowlist=allowlist,
            sale=sale,
            transfer=transfer,
            max_supply=data.get("maxSupply"),
            total_issued=data.get("totalIssued"),
            journal=journal,
        )

    @classmethod
    def from_json(cls, text: str, ledger: TokenLedger, **kwargs: Any) -> "IssuanceEngine":
        return cls.from_dict(json_loads(text), ledger, **kwargs)
