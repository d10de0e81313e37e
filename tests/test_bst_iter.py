import pytest

from bst.bst_iter import BinaryTreeIterator, InvalidIteratorError, StaleIteratorError
from bst.bst_model import BinaryTree


def drain(it, end):
    pairs = []
    while it != end:
        pairs.append(it.current())
        it.advance()
    return pairs


def test_begin_end_loop_visits_in_order(scenario_tree):
    pairs = drain(scenario_tree.begin(), scenario_tree.end())
    assert pairs == [(1, "d"), (3, "b"), (4, "e"), (5, "a"), (8, "c")]


def test_empty_tree_begin_is_exhausted():
    tree = BinaryTree()
    it = tree.begin()
    assert it.exhausted
    assert it == tree.end()
    assert not it.has_next()
    with pytest.raises(InvalidIteratorError):
        it.current()


def test_construction_stops_on_smallest_key(scenario_tree):
    it = scenario_tree.begin()
    assert it.has_next()
    assert it.current() == (1, "d")


def test_dereference_moves_into_right_subtree():
    tree = BinaryTree()
    for key in (2, 1, 3):
        tree[key] = key
    it = tree.begin()
    assert it.current() == (1, 1)
    it.advance()
    assert it.current() == (2, 2)
    # without the right-step in current() the walk would stop here
    it.advance()
    assert it.current() == (3, 3)
    it.advance()
    assert it.exhausted


def test_advance_when_exhausted_is_noop():
    tree = BinaryTree()
    tree[1] = "x"
    it = tree.begin()
    it.current()
    it.advance()
    assert it.exhausted
    it.advance()
    it.advance()
    assert it.exhausted
    with pytest.raises(InvalidIteratorError, match="invalid iterator"):
        it.current()


def test_equality_only_reports_joint_exhaustion(scenario_tree):
    first = scenario_tree.begin()
    second = scenario_tree.begin()
    # both have a value: "not equal" means "more to come"
    assert first != second
    assert not first == second
    assert scenario_tree.end() == scenario_tree.end()
    assert first != scenario_tree.end()


def test_iterators_are_unhashable(scenario_tree):
    with pytest.raises(TypeError):
        hash(scenario_tree.begin())


def test_python_iteration_protocol(scenario_tree):
    it = iter(scenario_tree)
    assert next(it) == (1, "d")
    assert [key for key, _ in it] == [3, 4, 5, 8]
    with pytest.raises(StopIteration):
        next(it)


def test_next_after_manual_dereference_resumes_walk():
    tree = BinaryTree()
    for key in (2, 1, 3):
        tree[key] = key
    it = tree.begin()
    assert it.current() == (1, 1)
    assert next(it) == (2, 2)
    assert list(it) == [(3, 3)]


def test_next_after_dereferencing_last_node_stops():
    tree = BinaryTree()
    tree[1] = "x"
    it = tree.begin()
    it.current()
    with pytest.raises(StopIteration):
        next(it)


def test_iterator_over_bare_root_has_no_epoch_check(scenario_tree):
    it = BinaryTreeIterator(scenario_tree.root)
    assert [key for key, _ in it] == [1, 3, 4, 5, 8]


def test_end_sentinel_is_never_advanced(scenario_tree):
    end = BinaryTreeIterator(scenario_tree.root, start=False)
    assert end.exhausted


def test_structural_change_invalidates_iterator(scenario_tree):
    it = scenario_tree.begin()
    it.current()
    scenario_tree[100] = "new"
    with pytest.raises(StaleIteratorError):
        it.advance()


def test_erase_invalidates_iterator(scenario_tree):
    it = scenario_tree.begin()
    scenario_tree.erase(8)
    with pytest.raises(InvalidIteratorError):
        it.current()


def test_value_change_keeps_iterator_valid(scenario_tree):
    it = scenario_tree.begin()
    key, _ = it.current()
    scenario_tree[key] = "changed"
    it.advance()
    assert it.current() == (3, "b")
    assert scenario_tree[1] == "changed"


def test_mutable_values_are_shared_with_tree():
    tree = BinaryTree(default_factory=list)
    tree[1].append("a")
    for _, bucket in tree:
        bucket.append("b")
    assert tree[1] == ["a", "b"]


def test_skewed_tree_iterates_without_recursion():
    tree = BinaryTree()
    for key in range(2000, 0, -1):
        tree[key] = None
    assert [key for key, _ in tree] == list(range(1, 2001))


def test_repr_reflects_state(scenario_tree):
    it = scenario_tree.begin()
    assert repr(it) == "<BinaryTreeIterator at 1>"
    it.current()
    assert "pending" in repr(it)
    assert repr(BinaryTree().begin()) == "<BinaryTreeIterator exhausted>"
