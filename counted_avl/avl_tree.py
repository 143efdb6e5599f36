"""Counted AVL trees: self-balancing BST maps with order statistics.

Every node caches the height of its subtree and the number of entries in its
left subtree (`left_count`). Heights drive AVL rebalancing; left counts make
it possible to fetch the entry with the i-th smallest key (and the rank of a
key) in O(log n) time without scanning.

Based on:
    [1] G. M. Adelson-Velsky and E. M. Landis, An algorithm for the
        organization of information, Soviet Mathematics Doklady, 3 (1962),
        pp. 1259–1263.
    [2] Thomas H. Cormen, Charles E. Leiserson, Ronald L. Rivest and
        Clifford Stein, Introduction to Algorithms (3rd ed.), ch. 14.1
        (dynamic order statistics).
"""
import logging
import operator
from typing import TypeVar, Generic, Optional, Tuple, Generator, Iterable

K = TypeVar('K')
V = TypeVar('V')
KV = Tuple[K, V]
EntryType = 'AVLEntry[K, V]'
KVIterator = Generator[KV, None, None]
KeyIterator = Generator[K, None, None]

EMPTY_HEIGHT = -1  # height of an empty subtree; leaves have height 0

logger = logging.getLogger(__name__)


class AVLEntry(Generic[K, V]):
    """A node in a counted AVL tree, doubling as a user-visible entry handle.

    The tree owns its entries through `left`/`right`; `parent` is only a
    back-reference for walking upward. When an entry with two children is
    removed, the in-order successor's key and value are moved into it and
    the successor's node is unlinked instead, so a handle can outlive the
    key it was created for.
    """
    def __init__(self, key: K, value: V):
        self.key = key
        self.value = value
        self.height = 0
        self.left_count = 0  # number of entries in the left subtree
        self.parent: Optional[EntryType] = None
        self.left: Optional[EntryType] = None
        self.right: Optional[EntryType] = None

    def set_value(self, value: V) -> V:
        """Replaces the entry's value, returning the old one."""
        old = self.value
        self.value = value
        return old

    def next(self) -> Optional[EntryType]:
        """Finds the in-order successor of the entry, if it exists."""
        if self.right is not None:
            return self.right.min()
        node = self
        while node.parent is not None and node.parent.right is node:
            node = node.parent
        return node.parent

    def min(self) -> EntryType:
        """Finds the entry with the minimum key in the subtree."""
        node = self
        while node.left is not None:
            node = node.left
        return node

    def max(self) -> EntryType:
        """Finds the entry with the maximum key in the subtree."""
        node = self
        while node.right is not None:
            node = node.right
        return node

    def __repr__(self):
        return f'[{self.key} -> {self.value}]'


def _height(node: Optional[EntryType]) -> int:
    return node.height if node is not None else EMPTY_HEIGHT


def _fresh_height(node: EntryType) -> int:
    return max(_height(node.left), _height(node.right)) + 1


def _rotate_left(node: EntryType) -> EntryType:
    """Rotates `node` down to the left; returns the new subtree root."""
    pivot = node.right
    pivot.parent = node.parent
    node.parent = pivot
    node.right = pivot.left
    if node.right is not None:
        node.right.parent = node
    pivot.left = node
    node.height = _fresh_height(node)
    pivot.height = _fresh_height(pivot)
    # `node` and its left subtree now sit in the pivot's left subtree.
    pivot.left_count += node.left_count + 1
    return pivot


def _rotate_right(node: EntryType) -> EntryType:
    """Rotates `node` down to the right; returns the new subtree root."""
    pivot = node.left
    pivot.parent = node.parent
    node.parent = pivot
    node.left = pivot.right
    if node.left is not None:
        node.left.parent = node
    pivot.right = node
    node.height = _fresh_height(node)
    pivot.height = _fresh_height(pivot)
    # `node` keeps only the pivot's old right subtree on its left.
    node.left_count -= pivot.left_count + 1
    return pivot


def _rotate_left_right(node: EntryType) -> EntryType:
    node.left = _rotate_left(node.left)
    return _rotate_right(node)


def _rotate_right_left(node: EntryType) -> EntryType:
    node.right = _rotate_right(node.right)
    return _rotate_left(node)


def _rebalance(node: EntryType) -> EntryType:
    """Restores the AVL property at `node`, whose children are balanced.

    A single rotation is used whenever the outer grandchild is at least as
    tall as the inner one; a double rotation only when the inner grandchild
    is strictly taller. This gives the lowest possible subtree after both
    insertions and deletions.

    Returns:
        The root of the (possibly rotated) subtree. If no rotation was
        needed, this is `node` itself with its height refreshed.
    """
    left_height = _height(node.left)
    right_height = _height(node.right)
    if left_height == right_height + 2:
        if _height(node.left.left) >= _height(node.left.right):
            return _rotate_right(node)
        return _rotate_left_right(node)
    if right_height == left_height + 2:
        if _height(node.right.right) >= _height(node.right.left):
            return _rotate_left(node)
        return _rotate_right_left(node)
    node.height = max(left_height, right_height) + 1
    return node


class AVLTree(Generic[K, V]):
    """A counted AVL tree map.

    Keys must be totally ordered with respect to `<` and `>` and may not be
    `None`. All operations run to completion synchronously; the tree does no
    locking, so callers sharing one across threads must guard the whole
    structure with their own lock.
    """
    def __init__(self, items: Optional[Iterable[KV]] = None):
        """Creates a tree, optionally loaded with `(key, value)` pairs."""
        self.root: Optional[AVLEntry[K, V]] = None
        self._size = 0
        if items is not None:
            for key, value in items:
                self.put(key, value)

    @property
    def size(self) -> int:
        """The number of key-value pairs in the tree."""
        return self._size

    @property
    def height(self) -> int:
        """The height of the tree (-1 if the tree is empty)."""
        return _height(self.root)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: K) -> bool:
        return self.find_entry(key) is not None

    def __iter__(self) -> KeyIterator:
        for key, _ in self.all():
            yield key

    def __repr__(self):
        return f'AVLTree(size {self._size}, height {self.height})'

    def find_entry(self, key: K) -> Optional[AVLEntry[K, V]]:
        """Searches for the entry holding `key`; returns `None` if absent."""
        node = self.root
        while node is not None:
            if key < node.key:
                node = node.left
            elif key > node.key:
                node = node.right
            else:
                return node
        return None

    def get(self, key: K) -> Optional[V]:
        """Searches for a key in the tree.

        If the key is found, its associated value is returned. Otherwise,
        `None` is returned."""
        node = self.find_entry(key)
        if node is not None:
            return node.value
        return None

    def entry_at(self, idx: int) -> Optional[AVLEntry[K, V]]:
        """Finds the entry with the `idx`-th smallest key (zero-based).

        Returns `None` if `idx` is outside `[0, size)`."""
        idx = operator.index(idx)
        if idx < 0 or idx >= self._size:
            return None
        node = self.root
        while True:
            if idx < node.left_count:
                node = node.left
            elif idx > node.left_count:
                idx -= node.left_count + 1
                node = node.right
            else:
                return node

    def rank(self, key: K) -> Optional[int]:
        """Finds the zero-based in-order rank of `key`, or `None`."""
        rank = 0
        node = self.root
        while node is not None:
            if key < node.key:
                node = node.left
            elif key > node.key:
                rank += node.left_count + 1
                node = node.right
            else:
                return rank + node.left_count
        return None

    def first_entry(self) -> Optional[AVLEntry[K, V]]:
        """Finds the entry with the smallest key; iterate on with `next()`."""
        if self.root is None:
            return None
        return self.root.min()

    def min(self) -> Optional[KV]:
        """Finds the minimum key-value pair in the tree."""
        node = self.first_entry()
        if node is not None:
            return (node.key, node.value)
        return None

    def max(self) -> Optional[KV]:
        """Finds the maximum key-value pair in the tree."""
        if self.root is None:
            return None
        node = self.root.max()
        return (node.key, node.value)

    def all(self) -> KVIterator:
        """Returns all key-value pairs in order."""
        node = self.first_entry()
        while node is not None:
            yield (node.key, node.value)
            node = node.next()

    def put(self, key: K, value: V) -> Optional[V]:
        """Associates `key` with `value`.

        If `key` is already in the tree its value is overwritten in place and
        the tree's shape does not change. A `None` key raises a
        `ValueError` and leaves the tree untouched.

        Returns:
            The previous value for `key`, or `None` if the key is new.
        """
        if key is None:
            raise ValueError('Key must not be None.')
        if self.root is None:
            self.root = AVLEntry(key, value)
            self._size = 1
            return None

        parent = None
        node = self.root
        while node is not None:
            parent = node
            if key < node.key:
                node = node.left
            elif key > node.key:
                node = node.right
            else:
                return node.set_value(value)

        entry = AVLEntry(key, value)
        entry.parent = parent
        if key < parent.key:
            parent.left = entry
        else:
            parent.right = entry
        self._update_counts(entry, 1)
        self._size += 1

        # One rotation restores the height the subtree had before the
        # insertion, so nothing above it can be out of balance.
        node = parent
        while node is not None:
            grandparent = node.parent
            subroot = _rebalance(node)
            if subroot is not node:
                self._replace_subtree(grandparent, node, subroot)
                if grandparent is not None:
                    grandparent.height = _fresh_height(grandparent)
                break
            node = grandparent
        return None

    def remove(self, key: K) -> Optional[V]:
        """Removes `key` from the tree.

        Returns:
            The value that was associated with `key`, or `None` if the key
            was not in the tree (in which case nothing changes).
        """
        node = self.find_entry(key)
        if node is None:
            return None
        self._size -= 1
        old = node.value
        removed = self._unlink(node)

        # Unlike insertion, a rotation here can shrink the subtree, so the
        # walk has to go all the way up.
        node = removed.parent
        while node is not None:
            grandparent = node.parent
            subroot = _rebalance(node)
            if subroot is not node:
                self._replace_subtree(grandparent, node, subroot)
            node = grandparent
        removed.parent = removed.left = removed.right = None
        return old

    def _unlink(self, node: AVLEntry[K, V]) -> AVLEntry[K, V]:
        """Removes `node`'s key from the tree without rebalancing.

        Returns:
            The node that was physically detached. For a node with two
            children this is its in-order successor, whose key and value
            have been moved into `node`.
        """
        if node.left is not None and node.right is not None:
            successor = node.right.min()
            logger.debug('Replacing %r with its successor %r.', node,
                         successor)
            node.key = successor.key
            node.value = successor.value
            node = successor
        # `node` now has at most one child.
        child = node.left if node.left is not None else node.right
        parent = node.parent
        if child is not None:
            child.parent = parent
        if parent is None:
            self.root = child
            return node
        if parent.left is node:
            parent.left = child
            parent.left_count -= 1
        else:
            parent.right = child
        self._update_counts(parent, -1)
        return node

    @staticmethod
    def _update_counts(node: AVLEntry[K, V], delta: int) -> None:
        """Adds `delta` to the left count of every ancestor of `node` that
        has `node` in its left subtree."""
        child = node
        parent = node.parent
        while parent is not None:
            if parent.left is child:
                parent.left_count += delta
            child = parent
            parent = parent.parent

    def _replace_subtree(self, parent: Optional[AVLEntry[K, V]],
                         old: AVLEntry[K, V], new: AVLEntry[K, V]) -> None:
        """Links `new` into the slot `old` occupied under `parent`."""
        if parent is None:
            self.root = new
        elif parent.left is old:
            parent.left = new
        else:
            parent.right = new

    def has_cycles(self) -> bool:
        """Is any node reachable from the root more than once?"""
        seen = set()

        def _visit(node: Optional[AVLEntry[K, V]]) -> bool:
            if node is None:
                return False
            if node in seen:
                return True
            seen.add(node)
            return _visit(node.left) or _visit(node.right)

        return _visit(self.root)

    def height_fields_ok(self) -> bool:
        """Does every node cache the true height of its subtree?"""
        def _check(node: Optional[AVLEntry[K, V]]) -> Optional[int]:
            if node is None:
                return EMPTY_HEIGHT
            left = _check(node.left)
            if left is None:
                return None
            right = _check(node.right)
            if right is None:
                return None
            height = max(left, right) + 1
            if height != node.height:
                return None
            return height

        return _check(self.root) is not None

    def is_balanced(self) -> bool:
        """Invariant: at every node, |height(left) - height(right)| ≤ 1."""
        def _check(node: Optional[AVLEntry[K, V]]) -> bool:
            if node is None:
                return True
            if abs(_height(node.left) - _height(node.right)) > 1:
                return False
            return _check(node.left) and _check(node.right)

        return _check(self.root)

    def is_well_indexed(self) -> bool:
        """Invariant: every node's left count == the size of its left
        subtree."""
        def _count(node: Optional[AVLEntry[K, V]]) -> Optional[int]:
            if node is None:
                return 0
            left = _count(node.left)
            if left is None or left != node.left_count:
                return None
            right = _count(node.right)
            if right is None:
                return None
            return left + right + 1

        return _count(self.root) is not None

    def is_ordered(self) -> bool:
        """Invariant: left subtree keys < node key < right subtree keys."""
        def _check(node: Optional[AVLEntry[K, V]], lb: Optional[K],
                   ub: Optional[K]) -> bool:
            if node is None:
                return True
            if lb is not None and not lb < node.key:
                return False
            if ub is not None and not node.key < ub:
                return False
            return (_check(node.left, lb, node.key)
                    and _check(node.right, node.key, ub))

        return _check(self.root, None, None)

    def parents_ok(self) -> bool:
        """Invariant: each child's parent link points back at its parent."""
        def _check(node: AVLEntry[K, V]) -> bool:
            return all(child.parent is node and _check(child)
                       for child in (node.left, node.right)
                       if child is not None)

        if self.root is None:
            return True
        return self.root.parent is None and _check(self.root)

    def is_size_consistent(self) -> bool:
        """Invariant: the tracked size == the number of nodes."""
        def _count(node: Optional[AVLEntry[K, V]]) -> int:
            if node is None:
                return 0
            return _count(node.left) + _count(node.right) + 1

        return _count(self.root) == self._size

    def is_healthy(self) -> bool:
        """Checks all of the tree invariants without raising."""
        # Everything after `has_cycles` would loop forever on a cycle.
        if self.has_cycles():
            logger.warning('Tree contains a cycle or a shared node.')
            return False
        checks = (
            ('height fields', self.height_fields_ok),
            ('balance', self.is_balanced),
            ('left counts', self.is_well_indexed),
            ('key order', self.is_ordered),
            ('parent links', self.parents_ok),
            ('size', self.is_size_consistent),
        )
        for name, check in checks:
            if not check():
                logger.warning('Tree invariant violated: %s.', name)
                return False
        return True

    def check_invariants(self) -> None:
        """Verifies that the tree is well-formed."""
        assert not self.has_cycles(), \
            'A node is reachable from the root more than once.'
        assert self.parents_ok(), '≥1 node has a stale parent link.'
        assert self.height_fields_ok(), '≥1 node has the wrong height.'
        assert self.is_balanced(), 'Tree is unbalanced.'
        assert self.is_well_indexed(), '≥1 node has the wrong left count.'
        assert self.is_ordered(), '≥1 node has keys in the wrong order.'
        assert self.is_size_consistent(), \
            f'Tracked size {self._size} ≠ number of nodes.'
