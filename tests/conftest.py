"""
Shared fixtures for mintgate tests.
"""

import logging

import pytest

from mintgate.core.clock import ManualClock
from mintgate.core.engine import IssuanceEngine
from mintgate.core.funds import InMemoryAccounts
from mintgate.core.journal import Journal
from mintgate.core.ledger import InMemoryTokenLedger
from mintgate.merkle.tree import AllowlistTree
from mintgate.protocol.events import EventLog


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
DAVE = "0x" + "d4" * 20
TREASURY = "0x" + "7e" * 20

PRICE = 100
START_TIME = 1_700_000_000


@pytest.fixture(autouse=True)
def restore_mintgate_logger():
    """Undo handlers and levels installed by configure_logging during a test."""
    logger = logging.getLogger("mintgate")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def flip_bit(node: bytes, bit: int = 0) -> bytes:
    """Return node with one bit inverted."""
    raw = bytearray(node)
    raw[bit // 8] ^= 1 << (bit % 8)
    return bytes(raw)


@pytest.fixture
def clock():
    return ManualClock(START_TIME)


@pytest.fixture
def ledger():
    return InMemoryTokenLedger()


@pytest.fixture
def accounts():
    return InMemoryAccounts()


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def journal(event_log):
    return Journal(event_log)


@pytest.fixture
def tree():
    """Allowlist of Alice, Bob and Carol. Dave is not on it."""
    return AllowlistTree([ALICE, BOB, CAROL])


@pytest.fixture
def engine(ledger, accounts, tree, event_log):
    """Manual-reveal collection in presale: price 100, 5 per tx, 10 reserved, 2 per allowlisted identity."""
    return IssuanceEngine.build(
        ledger,
        price=PRICE,
        mint_limit=5,
        reserve=10,
        presale_cap=2,
        merkle_root=tree.root,
        placeholder_uri="ipfs://placeholder.json",
        base_uri="ipfs://abc/",
        transfer=accounts,
        events=event_log,
    )


@pytest.fixture
def public_engine(engine):
    """Same collection with the presale already closed."""
    engine.end_presale()
    return engine
