"""
Tests for the administrative access guard.
"""

import pytest

from mintgate.core.access import (
    AdminGuard,
    AllowAllPolicy,
    CompositeAccessPolicy,
    OwnerPolicy,
    RolePolicy,
    owner_guard,
)
from mintgate.protocol.enums import AccessDecision
from mintgate.protocol.errors import AccessDenied, ErrorCode

from conftest import ALICE, BOB, PRICE, TREASURY

OWNER = "0x" + "0f" * 20


class TestPolicies:
    """Tests for access policies."""

    def test_allow_all(self):
        assert AllowAllPolicy().evaluate(BOB, "reveal").decision is AccessDecision.ALLOW

    def test_owner_policy_is_case_insensitive(self):
        policy = OwnerPolicy([OWNER.upper()])
        assert policy.evaluate(OWNER, "set_price").allowed
        assert not policy.evaluate(BOB, "set_price").allowed

    def test_role_policy(self):
        policy = RolePolicy({"collect_funds": [TREASURY]})
        assert policy.evaluate(TREASURY, "collect_funds").allowed
        assert not policy.evaluate(OWNER, "collect_funds").allowed
        assert policy.evaluate(OWNER, "reveal").allowed

        policy.grant("collect_funds", OWNER)
        assert policy.evaluate(OWNER, "collect_funds").allowed
        policy.revoke("collect_funds", OWNER)
        assert not policy.evaluate(OWNER, "collect_funds").allowed

    def test_composite_first_deny_wins(self):
        policy = CompositeAccessPolicy([AllowAllPolicy(), OwnerPolicy([OWNER])])
        result = policy.evaluate(BOB, "reveal")
        assert result.decision is AccessDecision.DENY
        assert result.policy_name == "owner"


class TestAdminGuard:
    """Tests for AdminGuard in front of an engine."""

    @pytest.fixture
    def guard(self, engine):
        return owner_guard(engine, OWNER)

    def test_owner_may_administer(self, guard):
        guard.set_price(OWNER, 5)
        guard.set_mint_limit(OWNER, 2)
        guard.end_presale(OWNER)
        guard.reveal(OWNER)
        assert guard.engine.price == 5
        assert guard.engine.mint_limit == 2
        assert not guard.engine.presale_open
        assert guard.engine.is_revealed()

    def test_stranger_denied_without_side_effects(self, guard):
        with pytest.raises(AccessDenied) as exc:
            guard.set_price(BOB, 1)
        assert exc.value.code is ErrorCode.ACCESS_DENIED
        assert exc.value.operation == "set_price"
        assert guard.engine.price == PRICE

        with pytest.raises(AccessDenied):
            guard.mint_reserve(BOB, BOB, 1)
        assert guard.engine.reserve == 10
        assert guard.engine.total_issued == 0

    def test_reserve_and_funds(self, guard, accounts):
        assert list(guard.mint_reserve(OWNER, TREASURY, 2)) == [0, 1]
        guard.end_presale(OWNER)
        guard.engine.mint_public(ALICE, 1, PRICE)
        guard.collect_funds(OWNER, TREASURY, PRICE)
        assert accounts.balance_of(TREASURY) == PRICE
        assert guard.engine.balance == 0

    def test_role_narrowing(self, engine, accounts):
        guard = owner_guard(engine, OWNER, [RolePolicy({"collect_funds": []})])
        engine.end_presale()
        engine.mint_public(ALICE, 1, PRICE)
        with pytest.raises(AccessDenied):
            guard.collect_funds(OWNER, TREASURY, PRICE)
        assert engine.balance == PRICE

    def test_unknown_operation(self, engine):
        guard = AdminGuard(engine, AllowAllPolicy())
        with pytest.raises(ValueError):
            guard.check(OWNER, "mint_public")
