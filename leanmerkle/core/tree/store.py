"""
Append-only lean Merkle tree.

Stores the leaf sequence together with the cached depth and root. Every
insert recomputes both, incrementally when the level cache is warm.

Properties:
----------
- Insert: O(log n) with a warm cache, O(n) after a restore
- Root / depth / leaf count: O(1) (cached)
- Prove: O(log n) with a warm cache, O(n) otherwise
"""

from typing import Iterable, Iterator, List, Optional

from leanmerkle.core.tree.builder import Builder
from leanmerkle.core.tree.errors import IndexOutOfRange
from leanmerkle.core.tree.hashing import DEFAULT_ENGINE, HashEngine
from leanmerkle.core.tree.proof import MerkleProof, generate_proof
from leanmerkle.utils.logger import get_logger
from leanmerkle.utils.validation import validate_index, validate_node

logger = get_logger("tree")


class LeanMerkleTree:
    """
    Append-only binary Merkle tree with odd-node carry.

    Leaves are never updated or removed. Depth and root are a pure function
    of the leaf sequence, except for a tree restored from storage, which
    reports the stored values until its next insert.

    Attributes:
        engine: Hash engine used to combine nodes
    """

    def __init__(self, engine: Optional[HashEngine] = None):
        self.engine = engine or DEFAULT_ENGINE
        self._leaves: List[bytes] = []
        self._depth = 0
        self._root = self.engine.empty_root
        self._builder = Builder(self.engine)
        self._builder.rebuild(self._leaves)

    @classmethod
    def _restore(
        cls,
        leaves: List[bytes],
        depth: int,
        root: bytes,
        engine: Optional[HashEngine] = None,
    ) -> "LeanMerkleTree":
        """Build a tree around a stored triple without recomputing it."""
        tree = cls(engine)
        tree._leaves = list(leaves)
        tree._depth = depth
        tree._root = root
        tree._builder.invalidate()
        return tree

    # =========================================================================
    # Mutation
    # =========================================================================

    def insert(self, leaf: bytes) -> int:
        """
        Insert a new leaf into the tree.

        Args:
            leaf: Node-sized leaf value (e.g., a deposit commitment)

        Returns:
            Index of the inserted leaf
        """
        valid, err = validate_node(leaf, "leaf", self.engine.digest_size)
        if not valid:
            raise ValueError(err)

        leaf = bytes(leaf)
        index = len(self._leaves)
        root, depth = self._builder.append(self._leaves, leaf)
        self._leaves.append(leaf)
        self._root, self._depth = root, depth

        logger.debug(f"Inserted leaf {index}, depth={self._depth} root={self._root.hex()[:16]}")
        return index

    def insert_many(self, leaves: Iterable[bytes]) -> List[int]:
        """Insert leaves in order; returns their indices."""
        return [self.insert(leaf) for leaf in leaves]

    # =========================================================================
    # Queries
    # =========================================================================

    def get_root(self) -> bytes:
        return self._root

    def get_depth(self) -> int:
        return self._depth

    def get_leaf_count(self) -> int:
        return len(self._leaves)

    def is_empty(self) -> bool:
        return not self._leaves

    def get_leaf(self, index: int) -> bytes:
        """Get leaf at index."""
        valid, _ = validate_index(index, len(self._leaves))
        if not valid:
            raise IndexOutOfRange(index, len(self._leaves))
        return self._leaves[index]

    def get_leaves(self) -> List[bytes]:
        """Copy of the leaf sequence."""
        return list(self._leaves)

    def index_of(self, leaf: bytes) -> Optional[int]:
        """Position of the first occurrence of `leaf`, or None."""
        try:
            return self._leaves.index(leaf)
        except ValueError:
            return None

    # =========================================================================
    # Proofs
    # =========================================================================

    def generate_proof(self, leaf_index: int) -> MerkleProof:
        """
        Generate an inclusion proof for a leaf.

        Raises:
            EmptyTreeProof: If the tree has no leaves
            IndexOutOfRange: If leaf_index >= leaf count
        """
        levels = self._builder.levels_for(self._leaves)
        proof = generate_proof(levels, leaf_index)
        logger.debug(f"Proof for leaf {leaf_index}: {proof.depth} siblings")
        return proof

    def __len__(self) -> int:
        return len(self._leaves)

    def __contains__(self, leaf: bytes) -> bool:
        return leaf in self._leaves

    def __iter__(self) -> Iterator[bytes]:
        return iter(list(self._leaves))

    def __repr__(self) -> str:
        return (
            f"LeanMerkleTree(leaves={len(self._leaves)}, depth={self._depth}, "
            f"root={self._root.hex()[:16]}..., engine={self.engine.name})"
        )
