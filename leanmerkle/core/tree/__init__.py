"""Lean Merkle tree: folding, proofs and storage codec"""
from leanmerkle.core.tree.errors import (
    MerkleTreeError,
    IndexOutOfRange,
    EmptyTreeProof,
    InconsistentStorageLoad,
)
from leanmerkle.core.tree.hashing import (
    HashEngine,
    Sha256Engine,
    Keccak256Engine,
    FunctionEngine,
    get_engine,
    register_engine,
    available_engines,
)
from leanmerkle.core.tree.builder import tree_depth, fold_root, fold_levels
from leanmerkle.core.tree.proof import (
    Direction,
    MerkleProof,
    compute_root,
    verify_proof,
    directions_from_index,
)
from leanmerkle.core.tree.store import LeanMerkleTree
from leanmerkle.core.tree.codec import (
    StorageTriple,
    KeyValueStore,
    to_storage,
    from_storage,
    save_tree,
    load_tree,
)

__all__ = [
    "MerkleTreeError",
    "IndexOutOfRange",
    "EmptyTreeProof",
    "InconsistentStorageLoad",
    "HashEngine",
    "Sha256Engine",
    "Keccak256Engine",
    "FunctionEngine",
    "get_engine",
    "register_engine",
    "available_engines",
    "tree_depth",
    "fold_root",
    "fold_levels",
    "Direction",
    "MerkleProof",
    "compute_root",
    "verify_proof",
    "directions_from_index",
    "LeanMerkleTree",
    "StorageTriple",
    "KeyValueStore",
    "to_storage",
    "from_storage",
    "save_tree",
    "load_tree",
]
