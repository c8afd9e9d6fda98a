"""
Cryptographic primitives for leanmerkle.

This module binds the external hash primitives the tree can combine nodes
with, and converts between node bytes and circuit field elements.

Design Notes:
-------------
Nothing here implements a hash function. SHA-256 comes from hashlib and
Keccak-256 from pycryptodome. Circuit-friendly hashes (Poseidon and friends)
are supplied by the host and bound through `FunctionEngine`.

Field elements live in the BN254 scalar field, the field Circom/Groth16
circuits operate over. The modulus is taken from py_ecc rather than
restated here.
"""

import hashlib

from Crypto.Hash import keccak
from py_ecc.bn128 import curve_order


# =============================================================================
# Constants
# =============================================================================

# BN254 (alt_bn128) scalar field prime
FIELD_PRIME = curve_order

NODE_SIZE = 32


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.
    
    Used for: default node combination, test fixtures.
    """
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).
    
    Used for: trees verified by EVM contracts.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Field Element Conversion
# =============================================================================


def int_to_bytes32(val: int) -> bytes:
    """Convert field element to 32 bytes."""
    return val.to_bytes(NODE_SIZE, byteorder="big")


def bytes32_to_int(data: bytes) -> int:
    """Convert 32 bytes to field element."""
    if len(data) != NODE_SIZE:
        raise ValueError(f"Expected {NODE_SIZE} bytes, got {len(data)}")
    val = int.from_bytes(data, byteorder="big")
    if val >= FIELD_PRIME:
        raise ValueError(f"Value {val} exceeds field prime")
    return val


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)
