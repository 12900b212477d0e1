"""
Allowlist Merkle Module

Provides the leaf commitment, pair hashing and inclusion-proof verification
used by the presale allowlist, plus a tree builder that produces roots and
proofs in the same scheme.
"""

from mintgate.merkle.tree import (
    AllowlistProof,
    AllowlistTree,
    compute_root,
    encode_identity,
    hash_leaf,
    hash_pair,
    node_hex,
    process_proof,
    to_node,
    verify_membership,
    verify_proof,
)

__all__ = [
    "AllowlistProof",
    "AllowlistTree",
    "compute_root",
    "encode_identity",
    "hash_leaf",
    "hash_pair",
    "node_hex",
    "process_proof",
    "to_node",
    "verify_membership",
    "verify_proof",
]
