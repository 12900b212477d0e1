"""
Administrative access control.

The issuance engine never checks who is calling; privileged operations are
expected to be gated before they reach it. This module is that gate: a set
of access policies and an AdminGuard that evaluates them and then forwards
the call to the engine.

Policies are evaluated in order, and the first DENY terminates evaluation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from mintgate.core.engine import IssuanceEngine
from mintgate.merkle.tree import Node
from mintgate.protocol.enums import AccessDecision
from mintgate.protocol.errors import AccessDenied

logger = logging.getLogger(__name__)


ADMIN_OPERATIONS = frozenset({
    "reveal",
    "set_placeholder_uri",
    "set_base_uri",
    "set_reveal_timestamp",
    "set_merkle_root",
    "end_presale",
    "set_price",
    "set_mint_limit",
    "mint_reserve",
    "collect_funds",
})


@dataclass
class AccessResult:
    """
    Result of access policy evaluation.

    Attributes:
        decision: The access decision
        policy_name: Name of the policy that made the decision
        reason: Human-readable reason for the decision
        metadata: Additional policy-specific metadata
    """
    decision: AccessDecision
    policy_name: str
    reason: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return self.decision is AccessDecision.ALLOW


class AccessPolicy:
    def __init__(self, name: str):
        self.name = name

    def evaluate(self, caller: str, operation: str) -> AccessResult:
        raise NotImplementedError("Subclasses must implement evaluate()")

    def _allow(self, reason: str) -> AccessResult:
        return AccessResult(AccessDecision.ALLOW, self.name, reason)

    def _deny(self, reason: str) -> AccessResult:
        return AccessResult(AccessDecision.DENY, self.name, reason)


class AllowAllPolicy(AccessPolicy):
    """Policy that allows every caller (for testing/development)."""

    def __init__(self):
        super().__init__("allow_all")

    def evaluate(self, caller: str, operation: str) -> AccessResult:
        return self._allow("All callers allowed")


class OwnerPolicy(AccessPolicy):
    """Only the listed owners may run administrative operations."""

    def __init__(self, owners: Iterable[str]):
        super().__init__("owner")
        self._owners: Set[str] = {o.lower() for o in owners}

    def evaluate(self, caller: str, operation: str) -> AccessResult:
        if caller.lower() in self._owners:
            return self._allow(f"'{caller}' is an owner")
        return self._deny(f"'{caller}' is not an owner")


class RolePolicy(AccessPolicy):
    """
    Per-operation roles.

    Each operation maps to the set of callers allowed to run it. Operations
    with no entry fall through to ALLOW so the policy composes with an
    OwnerPolicy that covers the rest.
    """

    def __init__(self, grants: Dict[str, Iterable[str]]):
        super().__init__("role")
        self._grants: Dict[str, Set[str]] = {
            op: {c.lower() for c in callers} for op, callers in grants.items()
        }

    def grant(self, operation: str, caller: str) -> None:
        self._grants.setdefault(operation, set()).add(caller.lower())

    def revoke(self, operation: str, caller: str) -> None:
        self._grants.get(operation, set()).discard(caller.lower())

    def evaluate(self, caller: str, operation: str) -> AccessResult:
        allowed = self._grants.get(operation)
        if allowed is None:
            return self._allow(f"No role restriction on '{operation}'")
        if caller.lower() in allowed:
            return self._allow(f"'{caller}' holds the role for '{operation}'")
        return self._deny(f"'{caller}' lacks the role for '{operation}'")


class CompositeAccessPolicy(AccessPolicy):
    """ALLOW only if every policy allows; the first DENY wins."""

    def __init__(self, policies: List[AccessPolicy]):
        super().__init__("composite")
        self._policies = policies

    def evaluate(self, caller: str, operation: str) -> AccessResult:
        for policy in self._policies:
            result = policy.evaluate(caller, operation)
            if not result.allowed:
                return result
        return self._allow("All policies passed")


class AdminGuard:
    """
    Gate in front of an IssuanceEngine's privileged operations.

    Every method takes the calling identity first, evaluates the policy, and
    forwards to the engine only on ALLOW.
    """

    def __init__(self, engine: IssuanceEngine, policy: AccessPolicy):
        self._engine = engine
        self._policy = policy

    @property
    def engine(self) -> IssuanceEngine:
        return self._engine

    def check(self, caller: str, operation: str) -> AccessResult:
        if operation not in ADMIN_OPERATIONS:
            raise ValueError(f"'{operation}' is not an administrative operation")
        result = self._policy.evaluate(caller, operation)
        if not result.allowed:
            logger.warning("Denied %s to %s by %s: %s", operation, caller, result.policy_name, result.reason)
            raise AccessDenied(caller, operation, result.reason)
        return result

    def reveal(self, caller: str) -> None:
        self.check(caller, "reveal")
        self._engine.reveal()

    def set_placeholder_uri(self, caller: str, new_uri: str) -> None:
        self.check(caller, "set_placeholder_uri")
        self._engine.set_placeholder_uri(new_uri)

    def set_base_uri(self, caller: str, new_uri: str) -> None:
        self.check(caller, "set_base_uri")
        self._engine.set_base_uri(new_uri)

    def set_reveal_timestamp(self, caller: str, new_timestamp: int) -> None:
        self.check(caller, "set_reveal_timestamp")
        self._engine.set_reveal_timestamp(new_timestamp)

    def set_merkle_root(self, caller: str, new_root: Node) -> None:
        self.check(caller, "set_merkle_root")
        self._engine.set_merkle_root(new_root)

    def end_presale(self, caller: str) -> None:
        self.check(caller, "end_presale")
        self._engine.end_presale()

    def set_price(self, caller: str, new_price: int) -> None:
        self.check(caller, "set_price")
        self._engine.set_price(new_price)

    def set_mint_limit(self, caller: str, new_limit: int) -> None:
        self.check(caller, "set_mint_limit")
        self._engine.set_mint_limit(new_limit)

    def mint_reserve(self, caller: str, recipient: str, amount: int) -> range:
        self.check(caller, "mint_reserve")
        return self._engine.mint_reserve(recipient, amount)

    def collect_funds(self, caller: str, recipient: str, amount: int) -> None:
        self.check(caller, "collect_funds")
        self._engine.collect_funds(recipient, amount)


def owner_guard(engine: IssuanceEngine, owner: str, extra: Optional[List[AccessPolicy]] = None) -> AdminGuard:
    """Guard where `owner` administers everything, optionally narrowed by more policies."""
    policies: List[AccessPolicy] = [OwnerPolicy([owner])]
    policies.extend(extra or [])
    return AdminGuard(engine, CompositeAccessPolicy(policies))
