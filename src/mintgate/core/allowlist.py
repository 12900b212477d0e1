"""
Merkle-gated presale allowlist.

Membership is proven against a published root; the ledger keeps a running
total of units each identity has claimed and refuses any claim that would
push that total over the per-identity cap.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence, Union

from mintgate.core.journal import Journal
from mintgate.core.phase import PhaseLatch
from mintgate.merkle.tree import Identity, Node, hash_leaf, node_hex, to_node, verify_proof
from mintgate.protocol.enums import PresalePhase
from mintgate.protocol.errors import InvalidProof, MintLimitExceeded, PresaleEnded, ValidationError
from mintgate.protocol.events import MerkleRootChanged, PresaleClosed
from mintgate.protocol.validators import validate_amount, validate_identity, validate_non_negative

logger = logging.getLogger(__name__)


def identity_key(identity: Identity) -> str:
    """Canonical identity for quota keys and token owners (lowercased string, or 0x-hex for bytes)."""
    if isinstance(identity, bytes):
        return "0x" + identity.hex()
    return identity.strip().lower()


class AllowlistLedger:
    def __init__(
        self,
        merkle_root: Optional[Node] = None,
        presale_cap: int = 1,
        *,
        presale_open: bool = True,
        claims: Optional[Mapping[str, int]] = None,
        journal: Optional[Journal] = None,
    ) -> None:
        self._merkle_root: Optional[bytes] = _parse_root(merkle_root) if merkle_root is not None else None
        self._presale_cap = validate_non_negative("presale_cap", presale_cap)
        self._phase = PhaseLatch.of(
            PresalePhase, PresalePhase.OPEN if presale_open else PresalePhase.CLOSED
        )
        self._claims: Dict[str, int] = {}
        for key, value in (claims or {}).items():
            self._claims[identity_key(key)] = validate_non_negative("claimed", value)
        self._journal = journal if journal is not None else Journal()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def merkle_root(self) -> Optional[bytes]:
        return self._merkle_root

    @property
    def presale_cap(self) -> int:
        return self._presale_cap

    @property
    def phase(self) -> PresalePhase:
        return self._phase.current

    @property
    def presale_open(self) -> bool:
        return self._phase.current is PresalePhase.OPEN

    def claimed(self, identity: Identity) -> int:
        # absent = zero; an identity that never claimed is not a distinct state
        return self._claims.get(identity_key(identity), 0)

    def remaining(self, identity: Identity) -> int:
        return max(self._presale_cap - self.claimed(identity), 0)

    def claims(self) -> Dict[str, int]:
        return dict(self._claims)

    def _require_open(self) -> None:
        if not self.presale_open:
            raise PresaleEnded()

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_merkle_root(self, new_root: Node) -> None:
        """
        Publish a new allowlist root. Only while the presale is open.

        Raises:
            PresaleEnded: once the presale has been closed
        """
        root = _parse_root(new_root)
        with self._journal.transaction() as txn:
            self._require_open()
            old = self._merkle_root
            self._merkle_root = root
            txn.on_rollback(lambda: setattr(self, "_merkle_root", old))
            txn.emit(MerkleRootChanged(old=node_hex(old) if old else None, new=node_hex(root)))
        logger.info("Allowlist root set to %s", node_hex(root))

    def end_presale(self) -> None:
        """
        Close the presale. One-way.

        Raises:
            PresaleEnded: if already closed
        """
        with self._journal.transaction() as txn:
            self._require_open()
            previous = self._phase.advance(PresalePhase.CLOSED)
            txn.on_rollback(lambda: self._phase.rewind(previous))
            txn.emit(PresaleClosed())
        logger.info("Presale closed")

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def verify(self, proof: Sequence[Node], claimant: Identity) -> bool:
        if self._merkle_root is None:
            return False
        return verify_proof(hash_leaf(claimant), proof, self._merkle_root)

    def authorize_claim(self, proof: Sequence[Node], claimant: Identity, amount: int) -> int:
        """
        Check a presale claim and record it against the claimant's quota.

        The caller is expected to issue `amount` tokens to `claimant` inside
        the same journal transaction; if that fails the quota increment is
        undone with it.

        Returns:
            The claimant's new cumulative claimed total

        Raises:
            PresaleEnded: if the presale is closed
            InvalidProof: if the proof does not verify against the root
            MintLimitExceeded: if the claim would exceed the per-identity cap
        """
        validate_identity(claimant)
        amount = validate_amount(amount)

        with self._journal.transaction() as txn:
            self._require_open()

            if not self.verify(proof, claimant):
                logger.debug("Rejected presale claim from %r: invalid proof", claimant)
                raise InvalidProof(claimant)

            key = identity_key(claimant)
            before = self._claims.get(key, 0)
            total = before + amount
            if total > self._presale_cap:
                logger.debug(
                    "Rejected presale claim from %r: %d + %d over cap %d",
                    claimant, before, amount, self._presale_cap,
                )
                raise MintLimitExceeded(total, self._presale_cap)

            self._claims[key] = total
            txn.on_rollback(lambda: self._restore_claim(key, before))
            return total

    def _restore_claim(self, key: str, value: int) -> None:
        if value:
            self._claims[key] = value
        else:
            self._claims.pop(key, None)


def _parse_root(root: Union[str, bytes]) -> bytes:
    try:
        return to_node(root)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid merkle root: {exc}") from exc
