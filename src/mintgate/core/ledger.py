"""
Token ledger boundary.

Ownership records live outside the issuance engine. The engine only needs to
hand a batch of fresh token ids to an owner, ask how many tokens exist, and
ask whether a given id exists.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from mintgate.protocol.errors import NotFound

logger = logging.getLogger(__name__)


class TokenLedger:
    """
    Interface for the external ownership store.

    Implementations must apply a mint batch entirely or not at all.
    """

    def mint(self, owner: str, token_ids: Sequence[int]) -> None:
        raise NotImplementedError

    def total_issued(self) -> int:
        raise NotImplementedError

    def exists(self, token_id: int) -> bool:
        raise NotImplementedError


class InMemoryTokenLedger(TokenLedger):
    """Dictionary-backed ownership store."""

    def __init__(self) -> None:
        self._owners: Dict[int, str] = {}

    def mint(self, owner: str, token_ids: Sequence[int]) -> None:
        ids = list(token_ids)
        clashes = [i for i in ids if i in self._owners]
        if clashes:
            raise ValueError(f"Token ids already minted: {clashes}")
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate token ids in mint batch")

        for token_id in ids:
            self._owners[token_id] = owner
        logger.debug("Ledger minted %d token(s) to %s", len(ids), owner)

    def total_issued(self) -> int:
        return len(self._owners)

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def owner_of(self, token_id: int) -> str:
        try:
            return self._owners[token_id]
        except KeyError:
            raise NotFound(token_id) from None

    def tokens_of(self, owner: str) -> List[int]:
        return sorted(i for i, o in self._owners.items() if o == owner)

    def balance_of(self, owner: str) -> int:
        return sum(1 for o in self._owners.values() if o == owner)
