from core.global_ctrl import GlobalController


def test_speed_is_clamped(qtbot):
    ctrl = GlobalController()
    with qtbot.waitSignal(ctrl.speedChanged) as blocker:
        ctrl.set_speed(10)
    assert blocker.args == [3.0]
    ctrl.set_speed(0.1)
    assert ctrl.speed == 0.5


def test_unchanged_speed_is_not_broadcast(qtbot):
    ctrl = GlobalController(speed=2.0)
    with qtbot.assertNotEmitted(ctrl.speedChanged):
        ctrl.set_speed(2.0)


def test_scale_duration():
    ctrl = GlobalController(speed=2.0, traversal_step_ms=500)
    assert ctrl.scale_duration(800) == 400
    assert ctrl.scale_duration(1) == 1
    assert ctrl.traversal_interval() == 250


def test_from_env_reads_settings():
    ctrl = GlobalController.from_env({"BST_VIZ_SPEED": "1.5", "BST_VIZ_LOG_LEVEL": "debug"})
    assert ctrl.speed == 1.5
    assert ctrl.log_level == "DEBUG"


def test_from_env_ignores_bad_values():
    ctrl = GlobalController.from_env({"BST_VIZ_SPEED": "fast", "BST_VIZ_LOG_LEVEL": "chatty"})
    assert ctrl.speed == 1.0
    assert ctrl.log_level == "WARNING"


def test_from_env_clamps_speed():
    assert GlobalController.from_env({"BST_VIZ_SPEED": "9"}).speed == 3.0
