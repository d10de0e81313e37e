from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from bst.bst_node import BinaryTreeNode

if TYPE_CHECKING:
    from bst.bst_model import BinaryTree


class InvalidIteratorError(RuntimeError):
    """Raised when an iterator without a current node is dereferenced."""


class StaleIteratorError(InvalidIteratorError):
    """Raised when the tree gained or lost nodes while the iterator was alive."""


class BinaryTreeIterator:
    """
    In-order cursor driven by an explicit stack instead of recursion or
    parent pointers.

    The iterator owns no nodes. It must not be used once keys have been added
    to or removed from the tree it walks; changing values is fine. When built
    from a tree it remembers the tree's epoch and refuses to move after a
    structural change.

    Two iterators compare equal only when both are exhausted, which is what
    ``while it != tree.end()`` needs and nothing more.
    """

    def __init__(
        self,
        root: Optional[BinaryTreeNode],
        start: bool = True,
        tree: Optional["BinaryTree"] = None,
    ):
        self._current: Optional[BinaryTreeNode] = None
        self._stack: List[BinaryTreeNode] = []
        # set by current(), cleared by advance()
        self._visited = False
        self._tree = tree
        self._epoch = tree.epoch if tree is not None else None
        if start and root is not None:
            self._current = root
            self.advance()

    # ---------- State ----------

    @property
    def exhausted(self) -> bool:
        return self._current is None and not self._stack

    def has_next(self) -> bool:
        return not self.exhausted

    def __bool__(self):
        return not self.exhausted

    def __eq__(self, other):
        if not isinstance(other, BinaryTreeIterator):
            return NotImplemented
        return self.exhausted and other.exhausted

    def __ne__(self, other):
        if not isinstance(other, BinaryTreeIterator):
            return NotImplemented
        return not (self.exhausted and other.exhausted)

    __hash__ = None

    # ---------- Traversal ----------

    def advance(self):
        """
        Push the current node and its whole left chain, then pop the top of
        the stack into current. Does nothing once exhausted.
        """
        if self.exhausted:
            return
        self._check_epoch()
        self._visited = False
        while self._current is not None:
            self._stack.append(self._current)
            self._current = self._current.left

        if self._stack:
            self._current = self._stack.pop()
        else:
            self._current = None

    def current(self) -> Tuple[Any, Any]:
        """
        Visit the current node: returns its (key, value) and moves current to
        the right child so that the next advance() walks the right subtree.
        """
        self._check_epoch()
        node = self._current
        if node is None:
            raise InvalidIteratorError("Dereference of an invalid iterator")
        self._current = node.right
        self._visited = True
        return node.key, node.value

    def __iter__(self):
        return self

    def __next__(self) -> Tuple[Any, Any]:
        """
        Dereference then advance. A current() made by hand beforehand is
        completed with the advance() it still owes.
        """
        if self._visited:
            self.advance()
        if self.exhausted:
            raise StopIteration
        pair = self.current()
        self.advance()
        return pair

    def __repr__(self):
        if self.exhausted:
            return "<BinaryTreeIterator exhausted>"
        if self._current is None:
            return f"<BinaryTreeIterator pending stack={len(self._stack)}>"
        return f"<BinaryTreeIterator at {self._current.key!r}>"

    def _check_epoch(self):
        if self._tree is not None and self._tree.epoch != self._epoch:
            raise StaleIteratorError("tree changed structure during iteration")
