import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from bst.bst_iter import BinaryTreeIterator
from bst.bst_node import BinaryTreeNode

logger = logging.getLogger(__name__)

_MISSING = object()


class BinaryTree:
    """
    Ordered key/value container backed by a plain (unbalanced) binary search
    tree. The tree is the only owner of its nodes; iterators merely borrow
    them.

    ``tree[key]`` behaves like a lookup that creates the key when it is
    missing, with ``default_factory()`` (or ``None``) as the initial value.
    Not thread safe: callers sharing a tree between threads must lock around
    it themselves.
    """

    def __init__(self, default_factory: Optional[Callable[[], Any]] = None):
        self.default_factory = default_factory
        self._root: Optional[BinaryTreeNode] = None
        self._size = 0
        self._epoch = 0

    @property
    def length(self) -> int:
        return self._size

    @property
    def epoch(self) -> int:
        """Bumped on every node creation or removal."""
        return self._epoch

    @property
    def root(self) -> Optional[BinaryTreeNode]:
        return self._root

    def __len__(self):
        return self._size

    def __bool__(self):
        return self._root is not None

    def __repr__(self):
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"BinaryTree({{{body}}})"

    # ---------- Access ----------

    def get_or_insert(self, key):
        return self._slot(key).value

    def __getitem__(self, key):
        return self._slot(key).value

    def __setitem__(self, key, value):
        self._slot(key).value = value

    def get(self, key, default=None):
        """Lookup without creating the key."""
        node = self._root
        while node is not None:
            if key == node.key:
                return node.value
            node = node.left if key < node.key else node.right
        return default

    def contains(self, key) -> bool:
        if self._root is None:
            return False
        return self._root.contains(key)

    def __contains__(self, key):
        return self.contains(key)

    # ---------- Mutation ----------

    def erase(self, key):
        """Remove key if present; a missing key is not an error."""
        if self._root is None or not self._root.contains(key):
            return
        self._root = self._root.erase(key)
        self._size -= 1
        self._epoch += 1
        logger.debug("erased key %r, %d nodes left", key, self._size)

    def __delitem__(self, key):
        if not self.contains(key):
            raise KeyError(key)
        self.erase(key)

    def pop(self, key, default=_MISSING):
        node = self._root
        while node is not None and not key == node.key:
            node = node.left if key < node.key else node.right
        if node is None:
            if default is _MISSING:
                raise KeyError(key)
            return default
        value = node.value
        self.erase(key)
        return value

    def clear(self) -> int:
        """Tear down every node; returns how many nodes were released."""
        if self._root is None:
            return 0
        released = self._root.free_tree()
        self._root = None
        self._size = 0
        self._epoch += 1
        logger.debug("released %d nodes", released)
        return released

    def __del__(self):
        root = getattr(self, "_root", None)
        if root is not None:
            self._root = None
            root.free_tree()

    def create_from_iterable(self, pairs: Iterable[Tuple[Any, Any]]):
        """Reset the tree and fill it from (key, value) pairs."""
        self.clear()
        for key, value in pairs:
            self[key] = value

    def create_from_keys(self, keys: Iterable):
        """Reset the tree and vivify each key with the default value."""
        self.clear()
        for key in keys:
            self.get_or_insert(key)

    # ---------- Iteration ----------

    def begin(self) -> BinaryTreeIterator:
        return BinaryTreeIterator(self._root, True, tree=self)

    def end(self) -> BinaryTreeIterator:
        return BinaryTreeIterator(self._root, False)

    def __iter__(self) -> BinaryTreeIterator:
        return self.begin()

    def items(self) -> BinaryTreeIterator:
        return self.begin()

    def keys(self) -> Iterator:
        for key, _ in self.begin():
            yield key

    def values(self) -> Iterator:
        for _, value in self.begin():
            yield value

    # ---------- Visualizer support ----------

    def path(self, key) -> List[int]:
        """Node ids visited while searching for key, the match included."""
        path: List[int] = []
        node = self._root
        while node is not None:
            path.append(node.node_id)
            if key == node.key:
                break
            node = node.left if key < node.key else node.right
        return path

    def node_id_of(self, key) -> Optional[int]:
        node = self._root
        while node is not None:
            if key == node.key:
                return node.node_id
            node = node.left if key < node.key else node.right
        return None

    def in_order_ids(self) -> List[int]:
        """Node ids in the order the iterator visits them."""
        ids: List[int] = []
        stack: List[BinaryTreeNode] = []
        node = self._root
        while node is not None or stack:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            ids.append(node.node_id)
            node = node.right
        return ids

    def snapshot(self) -> Dict[str, Any]:
        return {
            "root": self._root.node_id if self._root else None,
            "nodes": [
                {
                    "id": node.node_id,
                    "key": node.key,
                    "value": node.value,
                    "left": node.left.node_id if node.left else None,
                    "right": node.right.node_id if node.right else None,
                }
                for node in self._walk()
            ],
        }

    # ---------- Internal helpers ----------

    def _slot(self, key) -> BinaryTreeNode:
        if self._root is None:
            value = self.default_factory() if self.default_factory else None
            self._root = BinaryTreeNode(key, value)
            self._size += 1
            self._epoch += 1
            logger.debug("created root node for key %r", key)
            return self._root
        node, created = self._root.find(key, self.default_factory)
        if created:
            self._size += 1
            self._epoch += 1
        return node

    def _walk(self) -> Iterator[BinaryTreeNode]:
        # 前序，仅用于快照/调试，不保证有序
        pending = [self._root] if self._root else []
        while pending:
            node = pending.pop()
            yield node
            if node.right is not None:
                pending.append(node.right)
            if node.left is not None:
                pending.append(node.left)
