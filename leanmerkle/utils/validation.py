"""
Input Validation for tree inputs.

Every check returns `(is_valid, error_message)` so callers decide whether a
failure is an exception (tree operations) or a user-facing message (CLI).
"""

from typing import Any, Optional, Tuple

from leanmerkle.crypto import FIELD_PRIME, NODE_SIZE

# =============================================================================
# Constants
# =============================================================================

MIN_INDEX = 0
MAX_CIRCUIT_DEPTH = 256


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length
        max_length: Maximum allowed length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    if max_length is not None and len(data) > max_length:
        return False, f"{name} exceeds max length {max_length}, got {len(data)}"

    return True, ""


def validate_node(node: Any, name: str = "node", size: int = NODE_SIZE) -> Tuple[bool, str]:
    """Validate a tree node (leaf, sibling or root)."""
    return validate_bytes(node, name, expected_length=size)


def validate_integer(
    value: Any,
    name: str,
    min_val: int = 0,
    max_val: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value (unbounded when None)

    Returns:
        (is_valid, error_message)
    """
    # bool is an int subclass; True is not a leaf index
    if not isinstance(value, int) or isinstance(value, bool):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if max_val is not None and value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_index(index: Any, leaf_count: int, name: str = "index") -> Tuple[bool, str]:
    """Validate a leaf index against the current leaf count."""
    valid, err = validate_integer(index, name, MIN_INDEX)
    if not valid:
        return False, err
    if index >= leaf_count:
        return False, f"{name} {index} out of range for {leaf_count} leaves"
    return True, ""


def validate_field_element(value: Any, name: str = "field_element") -> Tuple[bool, str]:
    """Validate a field element (< FIELD_PRIME), given as int or 32 bytes."""
    if isinstance(value, (bytes, bytearray)):
        valid, err = validate_node(value, name)
        if not valid:
            return False, err
        value = int.from_bytes(value, byteorder="big")
    return validate_integer(value, name, 0, FIELD_PRIME - 1)


def validate_depth(depth: Any, name: str = "depth") -> Tuple[bool, str]:
    """Validate a tree or circuit depth."""
    return validate_integer(depth, name, 0, MAX_CIRCUIT_DEPTH)


def validate_hex_string(value: Any, name: str, expected_bytes: Optional[int] = None) -> Tuple[bool, str]:
    """
    Validate a hex string (with or without 0x prefix).

    Args:
        value: Value to validate
        name: Field name
        expected_bytes: Expected byte length when decoded

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    hex_str = value[2:] if value[:2] in ("0x", "0X") else value

    if len(hex_str) % 2 != 0:
        return False, f"{name} has odd length, invalid hex"

    try:
        bytes.fromhex(hex_str)
    except ValueError:
        return False, f"{name} contains invalid hex characters"

    if expected_bytes is not None:
        actual_bytes = len(hex_str) // 2
        if actual_bytes != expected_bytes:
            return False, f"{name} must be {expected_bytes} bytes, got {actual_bytes}"

    return True, ""


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_bytes",
    "validate_node",
    "validate_integer",
    "validate_index",
    "validate_field_element",
    "validate_depth",
    "validate_hex_string",
    "MIN_INDEX",
    "MAX_CIRCUIT_DEPTH",
]
