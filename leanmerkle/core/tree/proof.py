"""
Inclusion proofs for the lean Merkle accumulator.

A proof replays the fold for one leaf. At every level the leaf's ancestor
either has a sibling, recorded together with the side it sits on, or is
carried, in which case the level contributes nothing. The proof depth is
therefore the number of recorded siblings, which can be smaller than the
tree depth.

Example (leaves A, B, C; proving C):

    level 0: [A, B, C]        C unpaired -> nothing recorded
    level 1: [H(A,B), C]      C at index 1 -> sibling H(A,B) on the LEFT
    proof:   siblings=[H(A,B)], depth=1

Verifying circuits take the directions as the bits of a single integer
(`path_index`): bit i is set when the i-th recorded sibling is on the left.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from leanmerkle.core.tree.builder import Levels
from leanmerkle.core.tree.errors import EmptyTreeProof, IndexOutOfRange
from leanmerkle.core.tree.hashing import DEFAULT_ENGINE, HashEngine
from leanmerkle.crypto import bytes32_to_int, bytes_to_hex, hex_to_bytes
from leanmerkle.utils.validation import validate_field_element


class Direction(Enum):
    """Side of the sibling relative to the proven node."""

    LEFT = "left"
    RIGHT = "right"


@dataclass
class MerkleProof:
    """
    Inclusion proof for one leaf.

    Attributes:
        leaf: The proven leaf value
        leaf_index: Position of the leaf in insertion order
        siblings: Recorded siblings, bottom level first
        directions: Side of each sibling
        root: Root the proof was generated against
    """

    leaf: bytes
    leaf_index: int
    siblings: List[bytes] = field(default_factory=list)
    directions: List[Direction] = field(default_factory=list)
    root: Optional[bytes] = None

    def __post_init__(self):
        if len(self.siblings) != len(self.directions):
            raise ValueError(
                f"{len(self.siblings)} siblings but {len(self.directions)} directions"
            )

    @property
    def depth(self) -> int:
        """Number of recorded siblings."""
        return len(self.siblings)

    @property
    def path_index(self) -> int:
        """Directions packed into an integer, bit i = sibling i is LEFT."""
        index = 0
        for i, direction in enumerate(self.directions):
            if direction is Direction.LEFT:
                index |= 1 << i
        return index

    def to_dict(self) -> Dict[str, Any]:
        """Hex-encoded form for JSON files."""
        return {
            "leaf": bytes_to_hex(self.leaf),
            "leaf_index": self.leaf_index,
            "siblings": [bytes_to_hex(s) for s in self.siblings],
            "directions": [d.value for d in self.directions],
            "depth": self.depth,
            "path_index": self.path_index,
            "root": bytes_to_hex(self.root) if self.root is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MerkleProof":
        """Inverse of `to_dict`. `directions` may be replaced by `path_index`."""
        siblings = [hex_to_bytes(s) for s in data["siblings"]]
        if "directions" in data:
            directions = [Direction(d) for d in data["directions"]]
        else:
            directions = directions_from_index(data["path_index"], len(siblings))
        root = data.get("root")
        return cls(
            leaf=hex_to_bytes(data["leaf"]),
            leaf_index=data["leaf_index"],
            siblings=siblings,
            directions=directions,
            root=hex_to_bytes(root) if root is not None else None,
        )

    def to_circuit_input(self, max_depth: int) -> Dict[str, Any]:
        """
        Witness input for a fixed-size membership circuit.

        Circuits declare `siblings[max_depth]`; unused slots are zero and
        ignored because `depth` carries the recorded sibling count.

        Raises:
            ValueError: If the proof is deeper than `max_depth` or a node is
                not a BN254 scalar field element
        """
        if self.depth > max_depth:
            raise ValueError(f"Proof depth {self.depth} exceeds circuit depth {max_depth}")

        def as_field(name: str, node: bytes) -> str:
            valid, err = validate_field_element(node, name)
            if not valid:
                raise ValueError(f"{name} is not a field element: {err}")
            return str(bytes32_to_int(node))

        siblings = [as_field(f"sibling {i}", s) for i, s in enumerate(self.siblings)]
        siblings += ["0"] * (max_depth - self.depth)

        return {
            "leaf": as_field("leaf", self.leaf),
            "depth": self.depth,
            "index": self.path_index,
            "siblings": siblings,
        }


def directions_from_index(path_index: int, depth: int) -> List[Direction]:
    """Unpack a circuit path index into per-sibling directions."""
    return [
        Direction.LEFT if (path_index >> i) & 1 else Direction.RIGHT
        for i in range(depth)
    ]


def generate_proof(levels: Levels, leaf_index: int) -> MerkleProof:
    """
    Extract the proof for `leaf_index` from folded levels.

    Args:
        levels: Output of `fold_levels` over the current leaves
        leaf_index: Leaf to prove

    Returns:
        MerkleProof with root set to the top of `levels`

    Raises:
        EmptyTreeProof: If there are no leaves
        IndexOutOfRange: If leaf_index is not a valid position
    """
    leaf_count = len(levels[0])
    if leaf_count == 0:
        raise EmptyTreeProof()
    if leaf_index < 0 or leaf_index >= leaf_count:
        raise IndexOutOfRange(leaf_index, leaf_count)

    siblings = []
    directions = []
    idx = leaf_index

    for level in levels[:-1]:
        if idx & 1:
            siblings.append(level[idx - 1])
            directions.append(Direction.LEFT)
        elif idx + 1 < len(level):
            siblings.append(level[idx + 1])
            directions.append(Direction.RIGHT)
        # else: carried, no sibling at this level
        idx >>= 1

    return MerkleProof(
        leaf=levels[0][leaf_index],
        leaf_index=leaf_index,
        siblings=siblings,
        directions=directions,
        root=levels[-1][0],
    )


def compute_root(
    leaf: bytes,
    siblings: Sequence[bytes],
    directions: Sequence[Direction],
    engine: HashEngine = DEFAULT_ENGINE,
) -> bytes:
    """Fold a leaf with its siblings the way the verifying circuit does."""
    node = leaf
    for sibling, direction in zip(siblings, directions, strict=True):
        if direction is Direction.LEFT:
            node = engine.combine(sibling, node)
        else:
            node = engine.combine(node, sibling)
    return node


def verify_proof(
    proof: MerkleProof,
    root: Optional[bytes] = None,
    engine: HashEngine = DEFAULT_ENGINE,
) -> bool:
    """
    Verify a Merkle proof.

    Args:
        proof: Proof to check
        root: Expected root; defaults to the root stored in the proof
        engine: Hash engine the tree was built with

    Returns:
        True if the proof reconstructs the root
    """
    expected = root if root is not None else proof.root
    if expected is None:
        raise ValueError("No root to verify against")
    return compute_root(proof.leaf, proof.siblings, proof.directions, engine) == expected
