"""
Allowlist Merkle Tree

Cryptographic primitives for allowlist membership proofs.

Key features:
- SHA-256 based Merkle tree
- Identity leaves are double-hashed under a leaf domain tag
- Internal nodes hash their children in sorted order, so a proof is a plain
  list of sibling hashes with no direction bits
- Pure verification function: (leaf, proof, root) -> bool
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

Identity = Union[str, bytes]
Node = Union[str, bytes]

LEAF_PREFIX = b"\x00"
NODE_PREFIX = b"\x01"
NODE_SIZE = 32


# ===========================================================================
# Encoding helpers
# ===========================================================================


def encode_identity(identity: Identity) -> bytes:
    """
    Canonical byte encoding of a caller identity.

    Strings are stripped and lower-cased so that checksummed and plain hex
    spellings of the same account commit to the same leaf.
    """
    if isinstance(identity, bytes):
        return identity
    if isinstance(identity, str):
        return identity.strip().lower().encode("utf-8")
    raise TypeError(f"identity must be str or bytes, got {type(identity).__name__}")


def to_node(value: Node) -> bytes:
    """Parse a 32-byte node given as raw bytes or hex (optional 0x prefix)."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        raw = bytes.fromhex(text)
    elif isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        raise TypeError(f"node must be bytes or hex str, got {type(value).__name__}")

    if len(raw) != NODE_SIZE:
        raise ValueError(f"node must be {NODE_SIZE} bytes, got {len(raw)}")
    return raw


def node_hex(node: bytes) -> str:
    return "0x" + node.hex()


# ===========================================================================
# Hash Functions
# ===========================================================================


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def hash_leaf(identity: Identity) -> bytes:
    """
    Leaf commitment for an identity.

    The identity is hashed once, then hashed again under the 0x00 leaf
    prefix. A 64-byte internal node preimage can therefore never be
    presented as a leaf.
    """
    return _sha256(LEAF_PREFIX + _sha256(encode_identity(identity)))


def hash_pair(a: bytes, b: bytes) -> bytes:
    """
    Hash an internal node.

    Children are ordered before hashing and prefixed with 0x01.
    """
    if a > b:
        a, b = b, a
    return _sha256(NODE_PREFIX + a + b)


# ===========================================================================
# Verification Functions
# ===========================================================================


def process_proof(leaf: bytes, proof: Sequence[Node]) -> bytes:
    """Fold a proof onto a leaf and return the implied root."""
    current = leaf
    for sibling in proof:
        current = hash_pair(current, to_node(sibling))
    return current


def verify_proof(leaf: bytes, proof: Sequence[Node], root: Node) -> bool:
    """
    Verify a Merkle inclusion proof.

    Args:
        leaf: Leaf commitment (see hash_leaf)
        proof: Sibling hashes from leaf level up to the root
        root: Expected root

    Returns:
        True if the proof folds to root. Malformed nodes verify as False.
    """
    try:
        return process_proof(leaf, proof) == to_node(root)
    except (ValueError, TypeError):
        return False


def verify_membership(identity: Identity, proof: Sequence[Node], root: Node) -> bool:
    return verify_proof(hash_leaf(identity), proof, root)


# ===========================================================================
# Allowlist Tree
# ===========================================================================


@dataclass
class AllowlistProof:
    """
    Inclusion proof for one allowlisted identity.

    Attributes:
        identity: The allowlisted identity
        leaf: Leaf commitment of the identity
        proof: Sibling hashes (from leaf to root)
        root: Root the proof folds to
    """
    identity: str
    leaf: bytes
    proof: List[bytes]
    root: bytes

    def verify(self) -> bool:
        return verify_proof(self.leaf, self.proof, self.root)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "leaf": node_hex(self.leaf),
            "proof": [node_hex(p) for p in self.proof],
            "root": node_hex(self.root),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AllowlistProof":
        return cls(
            identity=data["identity"],
            leaf=to_node(data["leaf"]),
            proof=[to_node(p) for p in data["proof"]],
            root=to_node(data["root"]),
        )


class AllowlistTree:
    """
    Merkle tree over a set of allowlisted identities.

    Leaves are sorted by commitment and de-duplicated, so the same set of
    identities always yields the same root regardless of input order. An odd
    node at any level is promoted unchanged to the next level.
    """

    def __init__(self, identities: Iterable[Identity]):
        by_leaf: Dict[bytes, str] = {}
        for identity in identities:
            key = encode_identity(identity)
            by_leaf[hash_leaf(key)] = key.decode("utf-8", errors="replace")

        if not by_leaf:
            raise ValueError("Cannot build allowlist tree with no identities")

        self._leaves: List[bytes] = sorted(by_leaf)
        self._identities = by_leaf
        self._levels: List[List[bytes]] = self._build(self._leaves)

    @staticmethod
    def _build(leaves: List[bytes]) -> List[List[bytes]]:
        levels = [list(leaves)]
        current = levels[0]

        while len(current) > 1:
            next_level: List[bytes] = []
            for i in range(0, len(current), 2):
                if i + 1 < len(current):
                    next_level.append(hash_pair(current[i], current[i + 1]))
                else:
                    next_level.append(current[i])
            levels.append(next_level)
            current = next_level

        return levels

    @property
    def root(self) -> bytes:
        return self._levels[-1][0]

    @property
    def root_hex(self) -> str:
        return node_hex(self.root)

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, (str, bytes)):
            return False
        return hash_leaf(identity) in self._identities

    def proof_for(self, identity: Identity) -> AllowlistProof:
        """
        Get the inclusion proof for an identity.

        Raises:
            KeyError: If the identity is not in the tree
        """
        leaf = hash_leaf(identity)
        if leaf not in self._identities:
            raise KeyError(f"{identity!r} is not in the allowlist")

        index = self._leaves.index(leaf)
        proof: List[bytes] = []

        for level in self._levels[:-1]:
            sibling = index ^ 1
            if sibling < len(level):
                proof.append(level[sibling])
            index //= 2

        return AllowlistProof(
            identity=self._identities[leaf],
            leaf=leaf,
            proof=proof,
            root=self.root,
        )


def compute_root(identities: Iterable[Identity]) -> Optional[bytes]:
    """Root for a set of identities, or None for an empty set."""
    identities = list(identities)
    if not identities:
        return None
    return AllowlistTree(identities).root
