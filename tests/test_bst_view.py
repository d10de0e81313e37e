import pytest
from PyQt5 import sip

from bst.bst_view import BSTNodeItem, BSTView
from widgets.graphics_view import CustomGraphicsView


@pytest.fixture
def view(qtbot, global_ctrl):
    view = BSTView(global_ctrl)
    canvas = CustomGraphicsView()
    qtbot.addWidget(canvas)
    view.bind_canvas(canvas)
    yield view
    view.stop_all_animations()
    view.bind_canvas(None)


def wait_idle(qtbot, view):
    qtbot.waitUntil(lambda: not view.locked, timeout=10000)


def test_layout_keeps_in_order_left_to_right(view, scenario_tree):
    snapshot = scenario_tree.snapshot()
    positions = view._compute_layout(snapshot)
    xs = [positions[node_id].x() for node_id in scenario_tree.in_order_ids()]
    assert xs == sorted(xs)
    assert len(set(xs)) == len(xs)

    root = scenario_tree.root
    assert positions[root.node_id].y() == 0
    assert positions[root.left.node_id].y() == view.v_gap
    assert positions[root.left.right.node_id].y() == 2 * view.v_gap


def test_layout_of_empty_snapshot(view):
    assert view._compute_layout({"root": None, "nodes": []}) == {}


def test_show_snapshot_draws_nodes_and_edges(view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    assert set(view.node_items) == {node["id"] for node in scenario_tree.snapshot()["nodes"]}
    assert len(view.edge_items) == 4
    root_item = view.node_items[scenario_tree.root.node_id]
    assert (root_item.key_text, root_item.value_text) == ("5", "a")


def test_build_animation_locks_until_done(qtbot, view, scenario_tree):
    with qtbot.waitSignal(view.interactionLocked):
        view.animate_build(scenario_tree.snapshot())
    assert view.locked
    wait_idle(qtbot, view)
    assert len(view.node_items) == 5
    assert all(item.opacity() == 1.0 for item in view.node_items.values())


def test_insert_animation_adds_new_leaf(qtbot, view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    path = scenario_tree.path(7)
    scenario_tree[7] = "g"
    node_id = scenario_tree.node_id_of(7)
    view.animate_insert(scenario_tree.snapshot(), node_id, path, created=True)
    wait_idle(qtbot, view)
    assert view.node_items[node_id].key_text == "7"
    assert len(view.edge_items) == 5


def test_assign_animation_relabels_existing_node(qtbot, view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    path = scenario_tree.path(4)
    scenario_tree[4] = "E"
    node_id = scenario_tree.node_id_of(4)
    view.animate_insert(scenario_tree.snapshot(), node_id, path, created=False)
    wait_idle(qtbot, view)
    assert view.node_items[node_id].value_text == "E"
    assert len(view.node_items) == 5


def test_erase_with_predecessor_promotion(qtbot, view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    target_id = scenario_tree.node_id_of(3)
    predecessor_id = scenario_tree.node_id_of(1)
    path = scenario_tree.path(3)

    scenario_tree.erase(3)
    view.animate_erase(scenario_tree.snapshot(), target_id, predecessor_id, path)
    wait_idle(qtbot, view)

    assert predecessor_id not in view.node_items
    assert view.node_items[target_id].key_text == "1"
    assert len(view.node_items) == 4
    assert len(view.edge_items) == 3


def test_find_reports_result(qtbot, view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    with qtbot.waitSignal(view.lookupFinished, timeout=10000) as blocker:
        view.animate_find(scenario_tree.snapshot(), None, scenario_tree.path(6))
    assert blocker.args == [False]

    found_id = scenario_tree.node_id_of(4)
    with qtbot.waitSignal(view.lookupFinished, timeout=10000) as blocker:
        view.animate_find(scenario_tree.snapshot(), found_id, scenario_tree.path(4))
    assert blocker.args == [True]


def test_traversal_visits_nodes_in_order(qtbot, view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    visited = []
    view.traversalVisited.connect(visited.append)
    ordered = scenario_tree.in_order_ids()
    view.animate_traversal(ordered)
    wait_idle(qtbot, view)
    assert visited == ordered
    fills = {item.fillColor.name() for item in view.node_items.values()}
    assert fills == {"#e9e9ef"}


def test_reset_clears_scene(view, scenario_tree):
    view.show_snapshot(scenario_tree.snapshot())
    view.reset()
    assert view.node_items == {}
    assert view.edge_items == {}
    assert view.scene.items() == []


def test_destroyed_canvas_is_unbound_mid_fit(qtbot, global_ctrl, scenario_tree):
    view = BSTView(global_ctrl)
    canvas = CustomGraphicsView()
    view.bind_canvas(canvas)
    view.show_snapshot(scenario_tree.snapshot())
    sip.delete(canvas)
    assert view._canvas is None
    assert view._view_anim is None
    # a later fit or finished animation must not touch the dead canvas
    view.auto_fit_view()
    qtbot.wait(400)
    view.animate_build(scenario_tree.snapshot())
    wait_idle(qtbot, view)
    assert len(view.node_items) == 5


def test_rebinding_moves_scene_to_new_canvas(qtbot, view, scenario_tree):
    replacement = CustomGraphicsView()
    qtbot.addWidget(replacement)
    view.bind_canvas(replacement)
    view.show_snapshot(scenario_tree.snapshot())
    assert replacement.scene() is view.scene
    assert view._canvas is replacement


def test_node_item_label_handles_missing_value(qapp):
    item = BSTNodeItem(1, 10, None)
    assert item.value_text == ""
    item.set_label(10, "ten")
    assert item.toolTip() == "10: ten"
