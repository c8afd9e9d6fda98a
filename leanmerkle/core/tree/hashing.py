"""
Hash engines: bindings from node pairs to an external hash primitive.

An engine is the only place the tree meets a hash function. It combines two
fixed-size nodes into one and reports the sentinel root of an empty tree.
Engines hold no mutable state, so one instance is shared freely.

The circuit that verifies proofs folds with its own copy of the primitive.
Proofs only verify if both sides bind the same function with the same
input order: `combine(left, right)`.
"""

from typing import Callable, Dict, Union

from leanmerkle.crypto import NODE_SIZE, keccak256, sha256


class HashEngine:
    """
    Two-input, fixed-output node combiner.

    Subclasses implement `_compress`. `combine` validates sizes so a
    misconfigured primitive fails at the first insert instead of producing
    proofs the circuit rejects.
    """

    name = "abstract"
    digest_size = NODE_SIZE

    def _compress(self, left: bytes, right: bytes) -> bytes:
        raise NotImplementedError

    def combine(self, left: bytes, right: bytes) -> bytes:
        """Hash two nodes together."""
        out = self._compress(bytes(left), bytes(right))
        if len(out) != self.digest_size:
            raise ValueError(
                f"{self.name} produced {len(out)} bytes, expected {self.digest_size}"
            )
        return out

    @property
    def empty_root(self) -> bytes:
        """Root of a tree with zero leaves."""
        return bytes(self.digest_size)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Sha256Engine(HashEngine):
    """SHA256(left || right)."""

    name = "sha256"

    def _compress(self, left: bytes, right: bytes) -> bytes:
        return sha256(left + right)


class Keccak256Engine(HashEngine):
    """Keccak256(left || right), the EVM convention."""

    name = "keccak256"

    def _compress(self, left: bytes, right: bytes) -> bytes:
        return keccak256(left + right)


class FunctionEngine(HashEngine):
    """
    Binds an arbitrary two-input function, typically a circuit-friendly
    hash (Poseidon, MiMC) provided by the host environment.

    The function may work on bytes or on field elements. With
    `field_elements=True` nodes are passed as big-endian integers and the
    result is converted back to `digest_size` bytes.

    Attributes:
        fn: The external primitive
        field_elements: Whether `fn` takes and returns integers
    """

    def __init__(
        self,
        fn: Callable[[Union[bytes, int], Union[bytes, int]], Union[bytes, int]],
        name: str = "custom",
        digest_size: int = NODE_SIZE,
        field_elements: bool = False,
    ):
        self.fn = fn
        self.name = name
        self.digest_size = digest_size
        self.field_elements = field_elements

    def _compress(self, left: bytes, right: bytes) -> bytes:
        if self.field_elements:
            out = self.fn(
                int.from_bytes(left, byteorder="big"),
                int.from_bytes(right, byteorder="big"),
            )
            out = int(out)
            if not 0 <= out < 1 << (8 * self.digest_size):
                raise ValueError(
                    f"{self.name} produced {out}, which does not fit in {self.digest_size} bytes"
                )
            return out.to_bytes(self.digest_size, byteorder="big")
        return bytes(self.fn(left, right))


# =============================================================================
# Registry
# =============================================================================

_ENGINES: Dict[str, Callable[[], HashEngine]] = {
    "sha256": Sha256Engine,
    "keccak256": Keccak256Engine,
}


def register_engine(name: str, factory: Callable[[], HashEngine]):
    """Make an engine selectable by name (config files, CLI)."""
    _ENGINES[name] = factory


def get_engine(name: str = "sha256") -> HashEngine:
    """
    Look up an engine by name.

    Raises:
        ValueError: If no engine is registered under `name`
    """
    try:
        factory = _ENGINES[name]
    except KeyError:
        raise ValueError(
            f"Unknown hash engine {name!r}, available: {sorted(_ENGINES)}"
        ) from None
    return factory()


def available_engines():
    return sorted(_ENGINES)


DEFAULT_ENGINE = Sha256Engine()
