"""
Value transfer boundary.

Custodied sale proceeds leave the engine through a ValueTransfer. The
recipient side is external code: it may refuse the payment, raise, or call
back into the engine before the transfer returns.

A transfer made inside a journal transaction registers how to reverse itself
on that transaction, so value paid out by a call that later aborts is pulled
back along with the rest of the call.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Set

from mintgate.core.journal import Transaction

logger = logging.getLogger(__name__)

RecipientHook = Callable[[str, int], None]


class ValueTransfer:
    def transfer(self, recipient: str, amount: int, txn: Optional[Transaction] = None) -> bool:
        """
        Send amount to recipient. Returns False if the recipient refused it.

        When txn is given, a completed transfer must register its reversal
        with txn.on_rollback.
        """
        raise NotImplementedError


class InMemoryAccounts(ValueTransfer):
    """
    Account balances kept in a dict.

    Recipients can be marked as refusing payments, or given a hook that runs
    after the value is credited (the way a receiving contract's code runs on
    receipt). A hook that raises makes the whole transfer fail and the credit
    is withdrawn. A credit that stands is withdrawn again if the enclosing
    transaction rolls back.
    """

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}
        self._refusing: Set[str] = set()
        self._hooks: Dict[str, RecipientHook] = {}

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def refuse(self, account: str) -> None:
        self._refusing.add(account)

    def on_receive(self, account: str, hook: RecipientHook) -> None:
        self._hooks[account] = hook

    def transfer(self, recipient: str, amount: int, txn: Optional[Transaction] = None) -> bool:
        if recipient in self._refusing:
            logger.debug("Recipient %s refused %d", recipient, amount)
            return False

        before = self._balances.get(recipient, 0)
        self._balances[recipient] = before + amount

        hook = self._hooks.get(recipient)
        if hook is not None:
            try:
                hook(recipient, amount)
            except Exception:
                self._withdraw(recipient, amount)
                raise

        if txn is not None:
            txn.on_rollback(lambda: self._withdraw(recipient, amount))
        return True

    def _withdraw(self, account: str, amount: int) -> None:
        self._balances[account] -= amount
