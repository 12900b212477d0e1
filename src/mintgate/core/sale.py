"""
Public sale and reserve accounting.

The controller prices public mints, caps them per transaction, carves out a
reserve that is only mintable through the privileged reserve path, and
custodies sale proceeds until they are collected.

Every effect is applied before any external call is made and is journaled so
the enclosing operation can undo it.
"""

from __future__ import annotations

import logging
from typing import Optional

from mintgate.core.funds import ValueTransfer
from mintgate.core.journal import Journal
from mintgate.protocol.errors import (
    AmountExceedsReserve,
    FundTransferFailed,
    IncorrectPrice,
    MintLimitExceeded,
    ValidationError,
)
from mintgate.protocol.events import FundsCollected, MintLimitChanged, PriceChanged
from mintgate.protocol.validators import validate_amount, validate_identity, validate_non_negative

logger = logging.getLogger(__name__)


class SaleController:
    def __init__(
        self,
        price: int = 0,
        mint_limit: int = 10,
        reserve: int = 0,
        *,
        balance: int = 0,
        journal: Optional[Journal] = None,
    ) -> None:
        self._price = validate_non_negative("price", price)
        self._mint_limit = validate_non_negative("mint_limit", mint_limit)
        self._reserve = validate_non_negative("reserve", reserve)
        self._balance = validate_non_negative("balance", balance)
        self._journal = journal if journal is not None else Journal()

    @property
    def price(self) -> int:
        return self._price

    @property
    def mint_limit(self) -> int:
        return self._mint_limit

    @property
    def reserve(self) -> int:
        return self._reserve

    @property
    def balance(self) -> int:
        """Custodied sale proceeds not yet collected."""
        return self._balance

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def set_price(self, new_price: int) -> None:
        validate_non_negative("price", new_price)
        with self._journal.transaction() as txn:
            old = self._price
            self._price = new_price
            txn.on_rollback(lambda: setattr(self, "_price", old))
            txn.emit(PriceChanged(old=old, new=new_price))

    def set_mint_limit(self, new_limit: int) -> None:
        validate_non_negative("mint_limit", new_limit)
        with self._journal.transaction() as txn:
            old = self._mint_limit
            self._mint_limit = new_limit
            txn.on_rollback(lambda: setattr(self, "_mint_limit", old))
            txn.emit(MintLimitChanged(old=old, new=new_limit))

    # ------------------------------------------------------------------
    # Mint authorization
    # ------------------------------------------------------------------

    def quote(self, amount: int) -> int:
        return self._price * validate_amount(amount)

    def authorize_public(self, amount: int, payment: int) -> None:
        """
        Check a public mint and take custody of its payment.

        Payment must match price * amount exactly. Overpayment is rejected
        like underpayment; there is no refund path.

        Raises:
            IncorrectPrice: if payment != price * amount
            MintLimitExceeded: if amount exceeds the per-transaction limit
        """
        amount = validate_amount(amount)
        if isinstance(payment, bool) or not isinstance(payment, int):
            raise ValidationError(f"payment must be an integer, got {payment!r}")

        with self._journal.transaction() as txn:
            expected = self._price * amount
            if payment != expected:
                logger.debug("Rejected public mint: paid %d, expected %d", payment, expected)
                raise IncorrectPrice(expected, payment)
            if amount > self._mint_limit:
                logger.debug("Rejected public mint: %d over limit %d", amount, self._mint_limit)
                raise MintLimitExceeded(amount, self._mint_limit)

            self._balance += payment
            txn.on_rollback(lambda: self._debit(payment))

    def authorize_reserve(self, amount: int) -> int:
        """
        Take amount out of the reserve ahead of issuing it.

        Returns:
            The remaining reserve

        Raises:
            AmountExceedsReserve: if amount exceeds the remaining reserve
        """
        amount = validate_amount(amount)

        with self._journal.transaction() as txn:
            if amount > self._reserve:
                raise AmountExceedsReserve(amount, self._reserve)
            self._reserve -= amount
            txn.on_rollback(lambda: self._refill_reserve(amount))
            return self._reserve

    def _debit(self, amount: int) -> None:
        self._balance -= amount

    def _refill_reserve(self, amount: int) -> None:
        self._reserve += amount

    # ------------------------------------------------------------------
    # Custody
    # ------------------------------------------------------------------

    def collect_funds(self, recipient: str, amount: int, transfer: ValueTransfer) -> None:
        """
        Send custodied proceeds to recipient.

        The balance is debited before the transfer is attempted, so a
        recipient that calls back in sees the reduced balance. The transfer
        joins the current transaction; if the enclosing call aborts, the
        payment is reversed together with the debit.

        Raises:
            FundTransferFailed: if the balance is short, the recipient refuses
                the payment, or the transfer raises
        """
        validate_identity(recipient)
        amount = validate_amount(amount)

        with self._journal.transaction() as txn:
            if amount > self._balance:
                raise FundTransferFailed(recipient, amount, f"custodied balance is {self._balance}")

            self._balance -= amount
            txn.on_rollback(lambda: self._credit(amount))

            try:
                delivered = transfer.transfer(recipient, amount, txn)
            except Exception as exc:
                logger.warning("Transfer of %d to %s raised: %s", amount, recipient, exc)
                raise FundTransferFailed(recipient, amount, str(exc)) from exc

            if not delivered:
                logger.warning("Transfer of %d to %s was refused", amount, recipient)
                raise FundTransferFailed(recipient, amount, "recipient refused payment")

            txn.emit(FundsCollected(recipient=recipient, amount=amount))
        logger.info("Collected %d to %s", amount, recipient)

    def _credit(self, amount: int) -> None:
        self._balance += amount
