import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from bst.bst_model import BinaryTree  # noqa: E402

SCENARIO = [(5, "a"), (3, "b"), (8, "c"), (1, "d"), (4, "e")]


@pytest.fixture
def scenario_tree():
    """Keys 5, 3, 8, 1, 4 inserted in that order with values a..e."""
    tree = BinaryTree()
    for key, value in SCENARIO:
        tree[key] = value
    return tree


@pytest.fixture
def global_ctrl():
    from core.global_ctrl import GlobalController

    # fastest playback keeps animation-driven tests short
    return GlobalController(speed=3.0, traversal_step_ms=60)
