"""
Tree folding for the lean Merkle accumulator.

Conceptual Background:
---------------------
Leaves are level 0. Each higher level is built by scanning the level below
in pairs: a full pair is hashed, a trailing unpaired node is *carried* up
unchanged. Folding stops at a level with a single node, the root.

    level 2:        H(H(A,B), C)
                    /         \\
    level 1:     H(A,B)        C        <- C carried
                 /    \\        |
    level 0:    A      B       C

Unlike a padded binary tree there are no zero leaves, so the root depends
only on the leaves actually inserted and depth grows as ceil(log2(n)).

Two recompute strategies produce identical results:
- `fold_levels` rebuilds every level from the leaves (O(n))
- `append_leaf` updates only the right edge touched by a new leaf (O(depth))

Levels are plain lists of node values; there are no node objects or
parent pointers.
"""

from typing import List, Optional, Sequence, Tuple

from leanmerkle.core.tree.hashing import HashEngine


Levels = List[List[bytes]]


def tree_depth(leaf_count: int) -> int:
    """
    Number of fold rounds for `leaf_count` leaves.

    0 for an empty or single-leaf tree, otherwise ceil(log2(leaf_count)).
    """
    if leaf_count <= 1:
        return 0
    return (leaf_count - 1).bit_length()


def fold_pair(engine: HashEngine, left: bytes, right: Optional[bytes]) -> bytes:
    """Parent of `left` and `right`; carries `left` when it has no sibling."""
    if right is None:
        return left
    return engine.combine(left, right)


def fold_level(engine: HashEngine, level: Sequence[bytes]) -> List[bytes]:
    """Build the next level up from one level."""
    next_level = []
    for i in range(0, len(level), 2):
        right = level[i + 1] if i + 1 < len(level) else None
        next_level.append(fold_pair(engine, level[i], right))
    return next_level


def fold_levels(engine: HashEngine, leaves: Sequence[bytes]) -> Levels:
    """
    Fold leaves into every level of the tree.

    Returns:
        [level_0, level_1, ..., [root]]; `[[]]` for no leaves
    """
    levels = [list(leaves)]
    while len(levels[-1]) > 1:
        levels.append(fold_level(engine, levels[-1]))
    return levels


def fold_root(engine: HashEngine, leaves: Sequence[bytes]) -> Tuple[bytes, int]:
    """
    Compute (root, depth) from scratch.

    Only the current level is held in memory.
    """
    if not leaves:
        return engine.empty_root, 0

    level = list(leaves)
    depth = 0
    while len(level) > 1:
        level = fold_level(engine, level)
        depth += 1
    return level[0], depth


def append_leaf(engine: HashEngine, levels: Levels, leaf: bytes) -> Tuple[bytes, int]:
    """
    Append a leaf and update the right edge of `levels` in place.

    The new leaf is always the last node of level 0, so every node on its
    path is the last node of its level: it pairs with its left neighbour
    when its index is odd and is carried when its index is even.

    Every combine runs before `levels` is touched, so a failing engine
    leaves the cache unchanged.

    Args:
        engine: Hash engine
        levels: Level cache as produced by `fold_levels`
        leaf: New leaf value

    Returns:
        (root, depth) after the append
    """
    node = leaf
    idx = len(levels[0])
    size = idx + 1
    level = 0
    path = []

    while size > 1:
        if idx & 1:
            node = engine.combine(levels[level][idx - 1], node)
        idx >>= 1
        size = (size + 1) // 2
        level += 1
        path.append((level, idx, node))

    levels[0].append(leaf)
    for depth, pos, value in path:
        if depth == len(levels):
            levels.append([])
        if pos < len(levels[depth]):
            levels[depth][pos] = value
        else:
            levels[depth].append(value)

    return node, level


class Builder:
    """
    Keeps (root, depth) in step with an append-only leaf list.

    The level cache is optional: it is dropped when a tree is restored from
    storage and rebuilt in full on the next append. While warm, appends are
    incremental.

    Attributes:
        engine: Hash engine used for every combine
        levels: Level cache, or None when cold
    """

    def __init__(self, engine: HashEngine):
        self.engine = engine
        self.levels: Optional[Levels] = None

    @property
    def is_warm(self) -> bool:
        return self.levels is not None

    def invalidate(self):
        """Drop the level cache."""
        self.levels = None

    def rebuild(self, leaves: Sequence[bytes]) -> Tuple[bytes, int]:
        """Recompute every level from `leaves`."""
        self.levels = fold_levels(self.engine, leaves)
        if not leaves:
            return self.engine.empty_root, 0
        return self.levels[-1][0], len(self.levels) - 1

    def append(self, leaves: Sequence[bytes], leaf: bytes) -> Tuple[bytes, int]:
        """
        Account for `leaf` being appended after `leaves`.

        The caller appends `leaf` to its own list only once this returns, so
        an engine error leaves both the caller and the cache unchanged.

        Returns:
            (root, depth) over `leaves` plus `leaf`
        """
        if self.levels is None or len(self.levels[0]) != len(leaves):
            return self.rebuild([*leaves, leaf])
        return append_leaf(self.engine, self.levels, leaf)

    def levels_for(self, leaves: Sequence[bytes]) -> Levels:
        """
        Every level over `leaves` without touching the cache.

        Returns the cache itself when warm; callers must not mutate it.
        """
        if self.levels is not None and len(self.levels[0]) == len(leaves):
            return self.levels
        return fold_levels(self.engine, leaves)
