from pathlib import Path
from typing import Optional

from leanmerkle.core.storage.sqlite_adapter import SQLiteStore
from leanmerkle.core.tree import LeanMerkleTree, load_tree, save_tree
from leanmerkle.core.tree.codec import StorageKeys
from leanmerkle.core.tree.hashing import HashEngine
from leanmerkle.utils.logger import get_logger

logger = get_logger("storage.manager")


class TreeStorageManager:
    """
    Manages persistent storage of trees.

    Coordinates the SQLite store and the tree codec. Trees are addressed by
    namespace; each namespace holds the leaves, depth and root entries.
    """

    def __init__(
        self,
        data_dir: Path,
        db_name: str = "trees.db",
        engine: Optional[HashEngine] = None,
        verify_on_load: bool = False,
    ):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.store = SQLiteStore(self.db_path)
        self.engine = engine
        self.verify_on_load = verify_on_load

        logger.info(f"TreeStorageManager initialized at {self.db_path}")

    def save(self, tree: LeanMerkleTree, namespace: str = "tree"):
        """Persist a tree under namespace."""
        save_tree(self.store, tree, namespace)

    def load(self, namespace: str = "tree") -> Optional[LeanMerkleTree]:
        """Load a tree, or None if namespace was never saved."""
        return load_tree(
            self.store,
            namespace,
            engine=self.engine,
            verify=self.verify_on_load,
        )

    def load_or_create(self, namespace: str = "tree") -> LeanMerkleTree:
        tree = self.load(namespace)
        if tree is None:
            logger.info(f"No stored tree '{namespace}', starting empty")
            tree = LeanMerkleTree(self.engine)
        return tree

    def has_tree(self, namespace: str = "tree") -> bool:
        return self.store.get(StorageKeys.for_namespace(namespace).leaves) is not None

    def close(self):
        self.store.close()
