"""
Tests for the lean Merkle tree.

These tests verify:
1. Depth/root follow the fold with odd-node carry
2. Append-only behaviour
3. Proof extraction, including carried levels
4. Error handling for bad indices and empty trees
5. Failed inserts leave the tree unchanged
"""

import math

import pytest

from leanmerkle.core.tree import (
    Direction,
    EmptyTreeProof,
    FunctionEngine,
    IndexOutOfRange,
    Keccak256Engine,
    LeanMerkleTree,
    compute_root,
    fold_root,
    from_storage,
    to_storage,
    tree_depth,
    verify_proof,
)
from leanmerkle.crypto import FIELD_PRIME, int_to_bytes32, sha256


def make_leaf(i: int) -> bytes:
    return sha256(i.to_bytes(8, byteorder="big"))


def make_tree(n: int, engine=None) -> LeanMerkleTree:
    tree = LeanMerkleTree(engine)
    for i in range(n):
        tree.insert(make_leaf(i))
    return tree


def H(left: bytes, right: bytes) -> bytes:
    return sha256(left + right)


# =============================================================================
# Construction
# =============================================================================


class TestEmptyTree:
    """Tests for a tree with no leaves."""

    def test_empty_state(self):
        """New tree has depth 0 and the zero root."""
        tree = LeanMerkleTree()
        assert tree.is_empty()
        assert tree.get_leaf_count() == 0
        assert tree.get_depth() == 0
        assert tree.get_root() == bytes(32)
        assert len(tree) == 0

    def test_empty_proof_fails(self):
        """Proof on empty tree raises EmptyTreeProof."""
        tree = LeanMerkleTree()
        with pytest.raises(EmptyTreeProof):
            tree.generate_proof(0)

    def test_empty_get_leaf_fails(self):
        """No leaf 0 in an empty tree."""
        with pytest.raises(IndexOutOfRange):
            LeanMerkleTree().get_leaf(0)


class TestSingleLeaf:
    """Tests for n = 1."""

    def test_root_is_leaf(self):
        """A single leaf is its own root at depth 0."""
        tree = make_tree(1)
        assert tree.get_depth() == 0
        assert tree.get_root() == make_leaf(0)

    def test_proof_has_no_siblings(self):
        """Proof of the only leaf is empty."""
        proof = make_tree(1).generate_proof(0)
        assert proof.siblings == []
        assert proof.depth == 0
        assert verify_proof(proof)


# =============================================================================
# Folding
# =============================================================================


class TestFolding:
    """Tests for depth and root computation."""

    @pytest.mark.parametrize("n", range(0, 40))
    def test_depth_is_ceil_log2(self, n):
        """depth(n) = 0 for n == 0, else ceil(log2(n))."""
        expected = 0 if n == 0 else math.ceil(math.log2(n))
        assert make_tree(n).get_depth() == expected
        assert tree_depth(n) == expected

    def test_two_leaves(self):
        """Root of two leaves is their combination."""
        a, b = make_leaf(0), make_leaf(1)
        tree = make_tree(2)
        assert tree.get_root() == H(a, b)
        assert tree.get_depth() == 1

    def test_three_leaves_carry(self):
        """Third leaf is carried to level 1, not paired with zero."""
        a, b, c = make_leaf(0), make_leaf(1), make_leaf(2)
        tree = make_tree(3)
        assert tree.get_root() == H(H(a, b), c)
        assert tree.get_depth() == 2

    def test_five_leaves_double_carry(self):
        """Fifth leaf is carried through two levels."""
        leaves = [make_leaf(i) for i in range(5)]
        left = H(H(leaves[0], leaves[1]), H(leaves[2], leaves[3]))
        tree = make_tree(5)
        assert tree.get_root() == H(left, leaves[4])
        assert tree.get_depth() == 3

    def test_six_leaves_carried_pair(self):
        """A combined node can itself be carried."""
        leaves = [make_leaf(i) for i in range(6)]
        left = H(H(leaves[0], leaves[1]), H(leaves[2], leaves[3]))
        right = H(leaves[4], leaves[5])
        assert make_tree(6).get_root() == H(left, right)

    def test_incremental_matches_full_fold(self):
        """Every intermediate root equals a fold from scratch."""
        tree = LeanMerkleTree()
        leaves = []
        for i in range(70):
            leaf = make_leaf(i)
            leaves.append(leaf)
            tree.insert(leaf)
            root, depth = fold_root(tree.engine, leaves)
            assert tree.get_root() == root
            assert tree.get_depth() == depth

    def test_deterministic(self):
        """Same leaves give the same root."""
        assert make_tree(13).get_root() == make_tree(13).get_root()

    def test_order_matters(self):
        """Swapping two leaves changes the root."""
        t1 = LeanMerkleTree()
        t1.insert_many([make_leaf(0), make_leaf(1)])
        t2 = LeanMerkleTree()
        t2.insert_many([make_leaf(1), make_leaf(0)])
        assert t1.get_root() != t2.get_root()

    def test_engine_changes_root(self):
        """Keccak tree differs from SHA-256 tree."""
        assert make_tree(4).get_root() != make_tree(4, Keccak256Engine()).get_root()


# =============================================================================
# Append-only
# =============================================================================


class TestInsert:
    """Tests for insertion."""

    def test_returns_index(self):
        """Insert returns consecutive indices."""
        tree = LeanMerkleTree()
        assert tree.insert(make_leaf(0)) == 0
        assert tree.insert(make_leaf(1)) == 1
        assert tree.insert_many([make_leaf(2), make_leaf(3)]) == [2, 3]

    def test_existing_leaves_unchanged(self):
        """Insertion increments count and keeps earlier leaves."""
        tree = make_tree(9)
        before = tree.get_leaves()
        tree.insert(make_leaf(100))
        assert tree.get_leaf_count() == 10
        for i, leaf in enumerate(before):
            assert tree.get_leaf(i) == leaf
        assert tree.get_leaf(9) == make_leaf(100)

    def test_duplicate_leaves_allowed(self):
        """The same value can be inserted twice."""
        tree = LeanMerkleTree()
        tree.insert(make_leaf(0))
        tree.insert(make_leaf(0))
        assert tree.get_leaf_count() == 2
        assert tree.index_of(make_leaf(0)) == 0

    def test_wrong_size_rejected(self):
        """Leaves must be 32 bytes."""
        tree = LeanMerkleTree()
        with pytest.raises(ValueError):
            tree.insert(b"short")
        assert tree.is_empty()

    def test_non_bytes_rejected(self):
        """Leaves must be bytes."""
        with pytest.raises(ValueError):
            LeanMerkleTree().insert("00" * 32)

    def test_get_leaves_is_copy(self):
        """Mutating the returned list does not touch the tree."""
        tree = make_tree(3)
        leaves = tree.get_leaves()
        leaves.append(make_leaf(99))
        assert tree.get_leaf_count() == 3

    def test_contains_and_index_of(self):
        """Membership helpers."""
        tree = make_tree(4)
        assert make_leaf(2) in tree
        assert make_leaf(7) not in tree
        assert tree.index_of(make_leaf(3)) == 3
        assert tree.index_of(make_leaf(7)) is None
        assert list(tree) == [make_leaf(i) for i in range(4)]

    def test_get_leaf_out_of_range(self):
        """get_leaf past the end raises IndexOutOfRange (an IndexError)."""
        tree = make_tree(3)
        with pytest.raises(IndexOutOfRange):
            tree.get_leaf(3)
        with pytest.raises(IndexError):
            tree.get_leaf(-1)


# =============================================================================
# Failing engine
# =============================================================================


def strict_field_hash(left: int, right: int) -> int:
    """Field hash that rejects inputs outside the BN254 scalar field."""
    if left >= FIELD_PRIME or right >= FIELD_PRIME:
        raise ValueError("input outside the field")
    return (3 * left + 7 * right + 1) % FIELD_PRIME


def strict_engine() -> FunctionEngine:
    return FunctionEngine(strict_field_hash, name="strict-field", field_elements=True)


OUT_OF_FIELD = b"\xff" * 32


class TestFailedInsert:
    """A hash engine error leaves the tree as it was."""

    def test_state_unchanged(self):
        """Leaf count, depth and root survive a failed insert."""
        tree = LeanMerkleTree(strict_engine())
        tree.insert(int_to_bytes32(1))
        with pytest.raises(ValueError, match="outside the field"):
            tree.insert(OUT_OF_FIELD)
        assert tree.get_leaf_count() == 1
        assert tree.get_depth() == 0
        assert tree.get_root() == int_to_bytes32(1)
        assert OUT_OF_FIELD not in tree

    def test_later_inserts_fold_correctly(self):
        """Inserts after a failure match a tree that never saw the bad leaf."""
        tree = LeanMerkleTree(strict_engine())
        tree.insert(int_to_bytes32(1))
        with pytest.raises(ValueError):
            tree.insert(OUT_OF_FIELD)
        tree.insert(int_to_bytes32(2))
        tree.insert(int_to_bytes32(3))

        expected = LeanMerkleTree(strict_engine())
        expected.insert_many([int_to_bytes32(i) for i in (1, 2, 3)])
        assert tree.get_leaf_count() == 3
        assert tree.get_depth() == 2
        assert tree.get_root() == expected.get_root()
        for i in range(3):
            assert verify_proof(tree.generate_proof(i), engine=tree.engine)

    def test_restored_tree(self):
        """A failed insert into a restored tree leaves it restorable."""
        source = LeanMerkleTree(strict_engine())
        source.insert_many([int_to_bytes32(i) for i in (1, 2, 3)])
        tree = from_storage(*to_storage(source), engine=strict_engine())
        with pytest.raises(ValueError):
            tree.insert(OUT_OF_FIELD)
        assert tree.get_leaf_count() == 3
        assert tree.get_root() == source.get_root()
        tree.insert(int_to_bytes32(4))
        source.insert(int_to_bytes32(4))
        assert tree.get_root() == source.get_root()


# =============================================================================
# Proofs
# =============================================================================


class TestProofs:
    """Tests for proof generation."""

    def test_abc_scenario(self):
        """Proof for C in [A, B, C] has one LEFT sibling, H(A, B)."""
        a, b, c = make_leaf(0), make_leaf(1), make_leaf(2)
        tree = make_tree(3)

        proof = tree.generate_proof(2)
        assert proof.siblings == [H(a, b)]
        assert proof.directions == [Direction.LEFT]
        assert proof.depth == 1
        assert proof.leaf == c
        assert compute_root(c, proof.siblings, proof.directions) == tree.get_root()

    def test_abc_first_leaf(self):
        """Proof for A in [A, B, C] has B then C, both on the right."""
        a, b, c = make_leaf(0), make_leaf(1), make_leaf(2)
        proof = make_tree(3).generate_proof(0)
        assert proof.siblings == [b, c]
        assert proof.directions == [Direction.RIGHT, Direction.RIGHT]
        assert proof.depth == 2

    def test_proof_depth_shorter_than_tree(self):
        """Carried leaf's proof depth is below the tree depth."""
        tree = make_tree(5)
        proof = tree.generate_proof(4)
        assert tree.get_depth() == 3
        assert proof.depth == 1
        assert proof.directions == [Direction.LEFT]

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 6, 7, 8, 9, 15, 16, 17, 33])
    def test_every_leaf_verifies(self, n):
        """Each proof reconstructs the root."""
        tree = make_tree(n)
        for i in range(n):
            proof = tree.generate_proof(i)
            assert proof.leaf == tree.get_leaf(i)
            assert proof.root == tree.get_root()
            assert verify_proof(proof, root=tree.get_root())
            assert proof.depth <= tree.get_depth()

    def test_proof_fails_on_wrong_root(self):
        """Proof does not verify against another root."""
        proof = make_tree(6).generate_proof(3)
        assert not verify_proof(proof, root=make_tree(7).get_root())

    def test_proof_fails_on_wrong_leaf(self):
        """Tampered leaf fails verification."""
        proof = make_tree(6).generate_proof(3)
        proof.leaf = make_leaf(99)
        assert not verify_proof(proof)

    def test_old_proof_invalid_after_insert(self):
        """Inserting changes the root the proof must match."""
        tree = make_tree(4)
        proof = tree.generate_proof(1)
        tree.insert(make_leaf(4))
        assert not verify_proof(proof, root=tree.get_root())
        assert verify_proof(tree.generate_proof(1), root=tree.get_root())

    def test_proof_out_of_range(self):
        """Index >= leaf count raises IndexOutOfRange."""
        tree = make_tree(3)
        with pytest.raises(IndexOutOfRange):
            tree.generate_proof(3)

    def test_proof_has_no_side_effects(self):
        """Generating proofs leaves root, depth and leaves unchanged."""
        tree = make_tree(11)
        before = (tree.get_root(), tree.get_depth(), tree.get_leaves())
        for i in range(11):
            tree.generate_proof(i)
        assert (tree.get_root(), tree.get_depth(), tree.get_leaves()) == before

    def test_path_index_bits(self):
        """path_index packs directions, bit i set for a LEFT sibling."""
        tree = make_tree(8)
        # Leaf 5 = 0b101: LEFT, RIGHT, LEFT
        proof = tree.generate_proof(5)
        assert proof.directions == [Direction.LEFT, Direction.RIGHT, Direction.LEFT]
        assert proof.path_index == 5

    def test_path_index_skips_carried_levels(self):
        """Carried levels contribute no bit."""
        proof = make_tree(5).generate_proof(4)
        assert proof.path_index == 1
