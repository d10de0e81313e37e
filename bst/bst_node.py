import itertools
import logging
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class BinaryTreeNode:
    """
    One key/value pair of the tree. A node exclusively owns its left and
    right subtrees; every walk below is a loop so that skewed trees deeper
    than the recursion limit behave like any other shape.
    """

    __slots__ = ("node_id", "key", "value", "left", "right", "__weakref__")

    _id_iter = itertools.count()

    def __init__(self, key, value=None):
        self.node_id = next(BinaryTreeNode._id_iter)
        self.key = key
        self.value = value
        self.left: Optional["BinaryTreeNode"] = None
        self.right: Optional["BinaryTreeNode"] = None

    def __repr__(self):
        return f"BinaryTreeNode({self.key!r}: {self.value!r})"

    # ---------- Lookup ----------

    def find(
        self, k, default_factory: Optional[Callable[[], Any]] = None
    ) -> Tuple["BinaryTreeNode", bool]:
        """
        Returns (node holding k, created). A missing key is vivified as a
        new leaf under the last node visited.
        """
        node = self
        while True:
            if k == node.key:
                return node, False
            direction = "left" if k < node.key else "right"
            child = getattr(node, direction)
            if child is None:
                value = default_factory() if default_factory else None
                child = BinaryTreeNode(k, value)
                setattr(node, direction, child)
                logger.debug("vivified node %d for key %r", child.node_id, k)
                return child, True
            node = child

    def contains(self, k) -> bool:
        node = self
        while node is not None:
            if k == node.key:
                return True
            node = node.left if k < node.key else node.right
        return False

    # ---------- Removal ----------

    def erase(self, k) -> Optional["BinaryTreeNode"]:
        """
        Removes k from the subtree rooted here and returns the subtree's new
        root. Unknown keys leave the subtree untouched.
        """
        parent = None
        direction = None
        node = self
        while node is not None and not k == node.key:
            parent = node
            direction = "left" if k < node.key else "right"
            node = getattr(node, direction)

        if node is None:
            return self

        if node.left is not None and node.right is not None:
            # 左右都在 → 用左子树最右节点（前驱）顶替
            pred_parent = node
            pred = node.left
            while pred.right is not None:
                pred_parent = pred
                pred = pred.right

            node.key = pred.key
            node.value = pred.value
            if pred_parent is node:
                node.left = pred.left
            else:
                pred_parent.right = pred.left
            logger.debug("promoted predecessor %r into node %d", pred.key, node.node_id)
            pred._release()
            return self

        if node.left is None:
            replacement = node.right
        else:
            replacement = node.left
        node._release()

        if parent is None:
            return replacement
        setattr(parent, direction, replacement)
        return self

    def free_tree(self) -> int:
        """Release every node reachable from here; returns how many were released."""
        released = 0
        pending: List[BinaryTreeNode] = [self]
        while pending:
            node = pending.pop()
            if node.right is not None:
                pending.append(node.right)
            if node.left is not None:
                pending.append(node.left)
            node._release()
            released += 1
        return released

    # ---------- Internal helpers ----------

    def _release(self):
        self.left = None
        self.right = None
        self.value = None
