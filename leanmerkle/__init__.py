"""
leanmerkle

An append-only Merkle accumulator whose proofs follow the layout expected
by zero-knowledge membership circuits:
- Lean folding with odd-node carry (no zero padding)
- Incremental O(depth) root updates
- Inclusion proofs that skip carried levels
- Verbatim persistence of (leaves, depth, root)
"""

from leanmerkle.core.tree import (
    LeanMerkleTree,
    MerkleProof,
    verify_proof,
    to_storage,
    from_storage,
)

__version__ = "0.1.0"

__all__ = [
    "LeanMerkleTree",
    "MerkleProof",
    "verify_proof",
    "to_storage",
    "from_storage",
]
