"""
Tests for public sale pricing, reserve accounting and fund custody.
"""

import pytest

from mintgate.core.sale import SaleController
from mintgate.protocol.errors import (
    AmountExceedsReserve,
    FundTransferFailed,
    IncorrectPrice,
    InvalidAmount,
    MintLimitExceeded,
    ValidationError,
)
from mintgate.protocol.events import FundsCollected, MintLimitChanged, PriceChanged

from conftest import PRICE, TREASURY


@pytest.fixture
def sale(journal):
    return SaleController(price=PRICE, mint_limit=5, reserve=10, journal=journal)


class TestPublicAuthorization:
    """Tests for authorize_public."""

    def test_exact_payment_accepted(self, sale):
        sale.authorize_public(3, PRICE * 3)
        assert sale.balance == PRICE * 3

    def test_underpayment_rejected(self, sale):
        with pytest.raises(IncorrectPrice) as exc:
            sale.authorize_public(3, PRICE * 3 - 1)
        assert exc.value.expected == PRICE * 3
        assert exc.value.received == PRICE * 3 - 1
        assert sale.balance == 0

    def test_overpayment_rejected(self, sale):
        with pytest.raises(IncorrectPrice):
            sale.authorize_public(3, PRICE * 3 + 1)
        assert sale.balance == 0

    def test_negative_payment_is_incorrect_price(self, sale):
        with pytest.raises(IncorrectPrice):
            sale.authorize_public(1, -PRICE)

    def test_per_transaction_limit(self, sale):
        sale.authorize_public(5, PRICE * 5)
        with pytest.raises(MintLimitExceeded) as exc:
            sale.authorize_public(6, PRICE * 6)
        assert exc.value.cap == 5
        assert sale.balance == PRICE * 5

    def test_price_checked_before_limit(self, sale):
        with pytest.raises(IncorrectPrice):
            sale.authorize_public(6, 0)

    def test_zero_amount_rejected(self, sale):
        with pytest.raises(InvalidAmount):
            sale.authorize_public(0, 0)

    def test_free_mint(self, journal):
        sale = SaleController(price=0, mint_limit=2, journal=journal)
        sale.authorize_public(2, 0)
        assert sale.balance == 0

    def test_payment_undone_with_enclosing_transaction(self, sale, journal):
        with pytest.raises(RuntimeError):
            with journal.transaction():
                sale.authorize_public(2, PRICE * 2)
                raise RuntimeError("issuance failed")
        assert sale.balance == 0

    def test_quote(self, sale):
        assert sale.quote(4) == PRICE * 4


class TestReserve:
    """Tests for authorize_reserve."""

    def test_reserve_decrements_exactly(self, sale):
        assert sale.authorize_reserve(4) == 6
        assert sale.authorize_reserve(6) == 0
        assert sale.reserve == 0

    def test_amount_exceeding_reserve(self, sale):
        with pytest.raises(AmountExceedsReserve) as exc:
            sale.authorize_reserve(11)
        assert exc.value.reserve == 10
        assert sale.reserve == 10

    def test_empty_reserve(self, sale):
        sale.authorize_reserve(10)
        with pytest.raises(AmountExceedsReserve):
            sale.authorize_reserve(1)
        assert sale.reserve == 0

    def test_reserve_undone_with_enclosing_transaction(self, sale, journal):
        with pytest.raises(RuntimeError):
            with journal.transaction():
                sale.authorize_reserve(7)
                raise RuntimeError("issuance failed")
        assert sale.reserve == 10


class TestAdministration:
    """Tests for price and limit changes."""

    def test_set_price(self, sale, event_log):
        sale.set_price(250)
        assert sale.price == 250
        assert event_log.of_type(PriceChanged) == [PriceChanged(old=PRICE, new=250)]

    def test_set_mint_limit(self, sale, event_log):
        sale.set_mint_limit(1)
        with pytest.raises(MintLimitExceeded):
            sale.authorize_public(2, PRICE * 2)
        assert event_log.of_type(MintLimitChanged) == [MintLimitChanged(old=5, new=1)]

    def test_negative_values_rejected(self, sale):
        with pytest.raises(ValidationError):
            sale.set_price(-1)
        with pytest.raises(ValidationError):
            sale.set_mint_limit(-1)
        assert sale.price == PRICE
        assert sale.mint_limit == 5

    def test_constructor_validates(self, journal):
        with pytest.raises(ValidationError):
            SaleController(reserve=-1, journal=journal)


class TestCollectFunds:
    """Tests for collect_funds."""

    @pytest.fixture
    def funded(self, sale):
        sale.authorize_public(5, PRICE * 5)
        return sale

    def test_collect(self, funded, accounts, event_log):
        funded.collect_funds(TREASURY, 300, accounts)
        assert funded.balance == PRICE * 5 - 300
        assert accounts.balance_of(TREASURY) == 300
        assert event_log.of_type(FundsCollected) == [FundsCollected(recipient=TREASURY, amount=300)]

    def test_collect_more_than_balance(self, funded, accounts):
        with pytest.raises(FundTransferFailed):
            funded.collect_funds(TREASURY, PRICE * 5 + 1, accounts)
        assert funded.balance == PRICE * 5
        assert accounts.balance_of(TREASURY) == 0

    def test_refusing_recipient(self, funded, accounts, event_log):
        accounts.refuse(TREASURY)
        with pytest.raises(FundTransferFailed) as exc:
            funded.collect_funds(TREASURY, 100, accounts)
        assert "refused" in exc.value.reason
        assert funded.balance == PRICE * 5
        assert event_log.of_type(FundsCollected) == []

    def test_raising_recipient(self, funded, accounts):
        def explode(recipient, amount):
            raise RuntimeError("recipient reverted")

        accounts.on_receive(TREASURY, explode)
        with pytest.raises(FundTransferFailed):
            funded.collect_funds(TREASURY, 100, accounts)
        assert funded.balance == PRICE * 5
        assert accounts.balance_of(TREASURY) == 0

    def test_balance_debited_before_transfer(self, funded, accounts):
        seen = []
        accounts.on_receive(TREASURY, lambda recipient, amount: seen.append(funded.balance))
        funded.collect_funds(TREASURY, 200, accounts)
        assert seen == [PRICE * 5 - 200]
