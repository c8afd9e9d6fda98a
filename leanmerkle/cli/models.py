"""
JSON file formats used by the CLI.

State files list the committed leaves in insertion order:

    {"commitments": ["0x1f...", "1234..."], "scope": "demo_pool"}

Nodes are written as 0x-prefixed hex. On input, bare hex and decimal strings are
also accepted because circuit tooling writes field elements in decimal.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from leanmerkle.core.tree import Direction, MerkleProof
from leanmerkle.crypto import NODE_SIZE, bytes_to_hex, hex_to_bytes
from leanmerkle.utils.validation import validate_hex_string


def parse_node(value: str, size: int = NODE_SIZE) -> bytes:
    """
    Decode a node from "0x" hex, bare hex, or a decimal field element.

    A bare string of exactly `2 * size` hex digits is a node written
    without its prefix and is read as hex even when it has no letters.
    Other all-digit strings are decimal.

    Raises:
        ValueError: If the value is not a `size`-byte node
    """
    value = value.strip()
    if value.isdigit() and len(value) != 2 * size:
        number = int(value)
        if number.bit_length() > size * 8:
            raise ValueError(f"{value} does not fit in {size} bytes")
        return number.to_bytes(size, byteorder="big")

    valid, err = validate_hex_string(value, "node", size)
    if not valid:
        raise ValueError(err)
    return hex_to_bytes(value)


class TreeStateFile(BaseModel):
    """Leaves of a tree, optionally with the depth/root they produce."""

    commitments: List[str] = Field(default_factory=list)
    scope: Optional[str] = None
    depth: Optional[int] = None
    root: Optional[str] = None

    @field_validator("commitments")
    @classmethod
    def _check_commitments(cls, values: List[str]) -> List[str]:
        return [bytes_to_hex(parse_node(v)) for v in values]

    @field_validator("root")
    @classmethod
    def _check_root(cls, value: Optional[str]) -> Optional[str]:
        return bytes_to_hex(parse_node(value)) if value is not None else None

    def leaves(self) -> List[bytes]:
        return [hex_to_bytes(c) for c in self.commitments]


class ProofFile(BaseModel):
    """Serialized MerkleProof."""

    leaf: str
    leaf_index: int = Field(ge=0)
    siblings: List[str] = Field(default_factory=list)
    directions: List[Direction] = Field(default_factory=list)
    depth: int = Field(ge=0)
    path_index: int = Field(ge=0)
    root: Optional[str] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "ProofFile":
        if len(self.siblings) != self.depth:
            raise ValueError(f"depth {self.depth} but {len(self.siblings)} siblings")
        if len(self.directions) != self.depth:
            raise ValueError(f"depth {self.depth} but {len(self.directions)} directions")
        for s in [self.leaf, *self.siblings]:
            parse_node(s)
        return self

    @classmethod
    def from_proof(cls, proof: MerkleProof) -> "ProofFile":
        return cls.model_validate(proof.to_dict())

    def to_proof(self) -> MerkleProof:
        return MerkleProof(
            leaf=parse_node(self.leaf),
            leaf_index=self.leaf_index,
            siblings=[parse_node(s) for s in self.siblings],
            directions=list(self.directions),
            root=parse_node(self.root) if self.root is not None else None,
        )
