"""
Tests for the allowlist Merkle tree and proof verification.
"""

import pytest

from mintgate.merkle.tree import (
    AllowlistProof,
    AllowlistTree,
    compute_root,
    hash_leaf,
    hash_pair,
    process_proof,
    to_node,
    verify_membership,
    verify_proof,
)

from conftest import ALICE, BOB, CAROL, DAVE, flip_bit


def identities(n):
    return [f"0x{i:040x}" for i in range(1, n + 1)]


class TestHashing:
    """Tests for leaf and node hashing."""

    def test_leaf_is_32_bytes(self):
        assert len(hash_leaf(ALICE)) == 32

    def test_pair_hash_is_order_independent(self):
        a, b = hash_leaf(ALICE), hash_leaf(BOB)
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_identity_case_is_normalized(self):
        """Checksummed and lower-case spellings commit to the same leaf."""
        assert hash_leaf("0xABCDEF") == hash_leaf("0xabcdef")
        assert hash_leaf("  0xabcdef ") == hash_leaf("0xabcdef")

    def test_internal_node_preimage_is_not_a_leaf(self):
        """Presenting an internal node's children as an identity gives a different hash."""
        a, b = sorted([hash_leaf(ALICE), hash_leaf(BOB)])
        assert hash_leaf(a + b) != hash_pair(a, b)
        assert hash_leaf(b"\x01" + a + b) != hash_pair(a, b)

    def test_to_node_accepts_hex_and_bytes(self):
        raw = hash_leaf(ALICE)
        assert to_node(raw) == raw
        assert to_node(raw.hex()) == raw
        assert to_node("0x" + raw.hex().upper()) == raw

    def test_to_node_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            to_node(b"\x00" * 31)
        with pytest.raises(ValueError):
            to_node("0x1234")


class TestAllowlistTree:
    """Tests for AllowlistTree."""

    def test_empty_tree_fails(self):
        with pytest.raises(ValueError):
            AllowlistTree([])

    def test_single_identity_root_is_its_leaf(self):
        tree = AllowlistTree([ALICE])
        assert tree.root == hash_leaf(ALICE)
        proof = tree.proof_for(ALICE)
        assert proof.proof == []
        assert proof.verify()

    @pytest.mark.parametrize("size", [2, 3, 4, 5, 7, 8, 9, 16, 17])
    def test_every_member_has_a_valid_proof(self, size):
        members = identities(size)
        tree = AllowlistTree(members)
        assert tree.leaf_count == size
        for member in members:
            proof = tree.proof_for(member)
            assert verify_proof(hash_leaf(member), proof.proof, tree.root)

    def test_root_independent_of_input_order(self):
        members = identities(6)
        assert AllowlistTree(members).root == AllowlistTree(list(reversed(members))).root

    def test_duplicates_are_collapsed(self):
        tree = AllowlistTree([ALICE, BOB, ALICE, "0x" + ALICE[2:].upper()])
        assert tree.leaf_count == 2
        assert tree.root == AllowlistTree([ALICE, BOB]).root

    def test_membership(self):
        tree = AllowlistTree([ALICE, BOB, CAROL])
        assert ALICE in tree
        assert DAVE not in tree
        assert 42 not in tree

    def test_proof_for_non_member_raises(self):
        tree = AllowlistTree([ALICE, BOB])
        with pytest.raises(KeyError):
            tree.proof_for(DAVE)

    def test_compute_root(self):
        assert compute_root([]) is None
        assert compute_root([ALICE, BOB]) == AllowlistTree([BOB, ALICE]).root

    def test_proof_dict_roundtrip(self):
        tree = AllowlistTree(identities(5))
        proof = tree.proof_for(identities(5)[2])
        restored = AllowlistProof.from_dict(proof.to_dict())
        assert restored.root == tree.root
        assert restored.verify()
        assert proof.to_dict()["root"] == tree.root_hex


class TestVerifyProof:
    """Tests for verify_proof / verify_membership."""

    @pytest.fixture
    def tree(self):
        return AllowlistTree(identities(8))

    def test_valid_proof(self, tree):
        member = identities(8)[3]
        proof = tree.proof_for(member).proof
        assert verify_membership(member, proof, tree.root)
        assert verify_membership(member, [p.hex() for p in proof], tree.root_hex)

    def test_any_flipped_bit_in_proof_fails(self, tree):
        member = identities(8)[5]
        proof = tree.proof_for(member).proof
        for position in range(len(proof)):
            for bit in (0, 7, 100, 255):
                tampered = list(proof)
                tampered[position] = flip_bit(proof[position], bit)
                assert not verify_membership(member, tampered, tree.root)

    def test_flipped_bit_in_root_fails(self, tree):
        member = identities(8)[0]
        proof = tree.proof_for(member).proof
        assert not verify_membership(member, proof, flip_bit(tree.root, 3))

    def test_non_member_with_member_proof_fails(self, tree):
        proof = tree.proof_for(identities(8)[0]).proof
        assert not verify_membership(DAVE, proof, tree.root)

    def test_truncated_or_extended_proof_fails(self, tree):
        member = identities(8)[2]
        proof = tree.proof_for(member).proof
        assert not verify_membership(member, proof[:-1], tree.root)
        assert not verify_membership(member, proof + [proof[0]], tree.root)

    def test_malformed_nodes_verify_false(self, tree):
        member = identities(8)[1]
        assert not verify_membership(member, ["not-hex"], tree.root)
        assert not verify_membership(member, [b"short"], tree.root)
        assert not verify_membership(member, [], "0x1234")

    def test_process_proof_folds_to_root(self, tree):
        member = identities(8)[7]
        assert process_proof(hash_leaf(member), tree.proof_for(member).proof) == tree.root
