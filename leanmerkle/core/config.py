"""
Configuration parameters for leanmerkle.

Defines the hash binding, circuit limits and storage locations. Values come
from defaults, then an optional JSON/TOML file, then `LEANMERKLE_*`
environment variables (a `.env` file is read if present).
"""

import json
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

from leanmerkle.utils.validation import validate_depth

ENV_PREFIX = "LEANMERKLE_"


@dataclass
class TreeConfig:
    """Tree and tooling configuration"""

    # Hashing
    hash_engine: str = "sha256"  # Must match the verifying circuit

    # Circuit parameters
    max_depth: int = 32  # Width of the circuit's siblings array
    max_leaves: Optional[int] = None  # Enforced by the CLI, never by the tree

    # Storage parameters
    verify_on_load: bool = False  # Recompute depth/root when loading
    namespace: str = "tree"
    db_name: str = "trees.db"

    # Logging
    log_level: str = "WARNING"  # CLI stdout carries roots and proofs
    log_to_file: bool = False

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("logs"))

    def __post_init__(self):
        self.data_dir = Path(self.data_dir).expanduser()
        self.log_dir = Path(self.log_dir).expanduser()
        valid, err = validate_depth(self.max_depth, "max_depth")
        if not valid:
            raise ValueError(err)
        if self.max_leaves is not None and self.max_leaves < 0:
            raise ValueError(f"max_leaves must be >= 0, got {self.max_leaves}")

    def ensure_dirs(self):
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        if self.log_to_file:
            self.log_dir.mkdir(exist_ok=True, parents=True)


# Global config instance (can be overridden)
config = TreeConfig()


def _coerce(name: str, raw: str) -> Any:
    """Convert an environment string to the type of field `name`."""
    if name in ("verify_on_load", "log_to_file"):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if name == "max_depth":
        return int(raw)
    if name == "max_leaves":
        return None if raw.strip().lower() in ("", "none") else int(raw)
    return raw


def _read_file(config_path: Path) -> Dict[str, Any]:
    if config_path.suffix == ".toml":
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        # Allow either a flat file or a [leanmerkle] table
        return data.get("leanmerkle", data)
    with open(config_path) as f:
        return json.load(f)


def load_config(config_path: Optional[str] = None, env: bool = True) -> TreeConfig:
    """
    Load configuration from file and environment, or use defaults.

    Args:
        config_path: Optional path to a .json or .toml config file
        env: Whether to apply LEANMERKLE_* environment overrides

    Returns:
        TreeConfig instance

    Raises:
        ValueError: On unknown keys or invalid values
    """
    known = {f.name for f in fields(TreeConfig)}
    values: Dict[str, Any] = {}

    if config_path:
        data = _read_file(Path(config_path))
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        values.update(data)

    if env:
        load_dotenv(find_dotenv(usecwd=True))
        for name in known:
            raw = os.environ.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = _coerce(name, raw)

    return TreeConfig(**values)
