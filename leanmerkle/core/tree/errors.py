"""Errors raised by tree operations."""


class MerkleTreeError(Exception):
    """Base class for all tree errors."""


class IndexOutOfRange(MerkleTreeError, IndexError):
    """Leaf or proof index is not below the current leaf count."""

    def __init__(self, index: int, leaf_count: int):
        self.index = index
        self.leaf_count = leaf_count
        super().__init__(f"Leaf index {index} out of range for {leaf_count} leaves")


class EmptyTreeProof(MerkleTreeError):
    """Proof requested on a tree with zero leaves."""

    def __init__(self):
        super().__init__("Cannot generate a proof on an empty tree")


class InconsistentStorageLoad(MerkleTreeError):
    """Stored depth/root do not match the stored leaves.

    Only raised when a load is asked to verify; by default loads trust
    the stored triple.
    """

    def __init__(self, field: str, stored, expected):
        self.field = field
        self.stored = stored
        self.expected = expected
        super().__init__(f"Stored {field} {stored!r} does not match recomputed {expected!r}")
