"""
Storage codec for the lean Merkle tree.

The tree is persisted as three independent entries: the leaf sequence, the
depth and the root. The codec copies them verbatim in both directions. A
load trusts the stored depth and root unless asked to verify them, so a
restore costs one read and no hashing.
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Protocol

from leanmerkle.core.tree.builder import fold_root
from leanmerkle.core.tree.errors import InconsistentStorageLoad
from leanmerkle.core.tree.hashing import DEFAULT_ENGINE, HashEngine
from leanmerkle.core.tree.store import LeanMerkleTree
from leanmerkle.utils.logger import get_logger

logger = get_logger("tree.codec")

DEPTH_BYTES = 4


class StorageTriple(NamedTuple):
    """The persisted form of a tree."""

    leaves: List[bytes]
    depth: int
    root: bytes


class KeyValueStore(Protocol):
    """Persistence collaborator: get/set of opaque values."""

    def get(self, key: bytes) -> Optional[bytes]: ...

    def set(self, key: bytes, value: bytes) -> None: ...


@dataclass(frozen=True)
class StorageKeys:
    """Keys of the three entries for one tree."""

    leaves: bytes
    depth: bytes
    root: bytes

    @classmethod
    def for_namespace(cls, namespace: str) -> "StorageKeys":
        prefix = namespace.encode()
        return cls(
            leaves=prefix + b":leaves",
            depth=prefix + b":depth",
            root=prefix + b":root",
        )


# =============================================================================
# Tree <-> Triple
# =============================================================================


def to_storage(tree: LeanMerkleTree) -> StorageTriple:
    """Copy the tree's leaves and cached depth/root."""
    return StorageTriple(tree.get_leaves(), tree.get_depth(), tree.get_root())


def from_storage(
    leaves: List[bytes],
    depth: int,
    root: bytes,
    engine: Optional[HashEngine] = None,
    verify: bool = False,
) -> LeanMerkleTree:
    """
    Rebuild a tree from a stored triple.

    The caller guarantees that depth and root were derived from leaves.
    Without `verify` nothing is recomputed and an inconsistent triple is
    reported as-is until the next insert.

    Args:
        leaves: Stored leaf sequence
        depth: Stored depth
        root: Stored root
        engine: Hash engine the tree was built with
        verify: Recompute depth/root and compare before trusting them

    Raises:
        InconsistentStorageLoad: If `verify` is set and the triple disagrees
    """
    engine = engine or DEFAULT_ENGINE
    if verify:
        expected_root, expected_depth = fold_root(engine, leaves)
        if depth != expected_depth:
            raise InconsistentStorageLoad("depth", depth, expected_depth)
        if root != expected_root:
            raise InconsistentStorageLoad("root", root.hex(), expected_root.hex())

    return LeanMerkleTree._restore(leaves, depth, root, engine)


# =============================================================================
# Triple <-> Bytes
# =============================================================================


def encode_leaves(leaves: List[bytes]) -> bytes:
    """Concatenate fixed-size leaves into one blob."""
    return b"".join(leaves)


def decode_leaves(blob: bytes, node_size: int) -> List[bytes]:
    """Split a blob produced by `encode_leaves`."""
    if len(blob) % node_size != 0:
        raise ValueError(f"Leaf blob of {len(blob)} bytes is not a multiple of {node_size}")
    return [blob[i:i + node_size] for i in range(0, len(blob), node_size)]


def encode_depth(depth: int) -> bytes:
    return depth.to_bytes(DEPTH_BYTES, byteorder="big")


def decode_depth(data: bytes) -> int:
    return int.from_bytes(data, byteorder="big")


# =============================================================================
# Persistence
# =============================================================================


def save_tree(store: KeyValueStore, tree: LeanMerkleTree, namespace: str = "tree"):
    """Write the tree's three entries. Atomicity is up to the store."""
    keys = StorageKeys.for_namespace(namespace)
    leaves, depth, root = to_storage(tree)
    store.set(keys.leaves, encode_leaves(leaves))
    store.set(keys.depth, encode_depth(depth))
    store.set(keys.root, root)
    logger.info(f"Saved tree '{namespace}': {len(leaves)} leaves, depth {depth}")


def load_tree(
    store: KeyValueStore,
    namespace: str = "tree",
    engine: Optional[HashEngine] = None,
    verify: bool = False,
) -> Optional[LeanMerkleTree]:
    """
    Read a tree's three entries.

    Returns:
        The restored tree, or None if no leaf entry exists for namespace
    """
    engine = engine or DEFAULT_ENGINE
    keys = StorageKeys.for_namespace(namespace)

    blob = store.get(keys.leaves)
    if blob is None:
        return None

    leaves = decode_leaves(blob, engine.digest_size)
    depth_data = store.get(keys.depth)
    root = store.get(keys.root)

    if depth_data is None or root is None:
        # Interrupted save: the leaves are the source of truth
        logger.warning(
            f"Tree '{namespace}' is missing its depth or root entry, recomputing"
        )
        root, depth = fold_root(engine, leaves)
    else:
        depth = decode_depth(depth_data)

    tree = from_storage(leaves, depth, root, engine=engine, verify=verify)
    logger.info(f"Loaded tree '{namespace}': {len(leaves)} leaves, depth {depth}")
    return tree
