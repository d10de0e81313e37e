from PyQt5.QtCore import (
    QEasingCurve,
    QParallelAnimationGroup,
    QPropertyAnimation,
    QSequentialAnimationGroup,
    QVariantAnimation,
)
from PyQt5.QtGui import QColor

_NO_VALUE = object()


class AnimationToolkit:
    """
    Factory for the handful of animations the tree view plays. Every
    duration goes through the GlobalController so the speed slider applies
    to all of them.
    """

    def __init__(self, global_ctrl):
        self.global_ctrl = global_ctrl

    def _build(self, anim, duration, start=_NO_VALUE, end=_NO_VALUE, easing=None):
        anim.setDuration(self.global_ctrl.scale_duration(duration))
        if start is not _NO_VALUE:
            anim.setStartValue(start)
        if end is not _NO_VALUE:
            anim.setEndValue(end)
        if easing is not None:
            anim.setEasingCurve(easing)
        return anim

    # ---------- Item properties ----------

    def move_item(self, item, end_pos, duration=800, easing=QEasingCurve.InOutCubic):
        # start value is read from the item when the animation starts
        return self._build(QPropertyAnimation(item, b"pos"), duration, end=end_pos, easing=easing)

    def fade_item(self, item, start=0.0, end=1.0, duration=800):
        return self._build(
            QPropertyAnimation(item, b"opacity"), duration, start, end, QEasingCurve.InOutQuad
        )

    # ---------- Colours ----------

    def tint(self, setter, start_color, end_color, duration=400):
        """Blend a colour once and leave it at end_color. setter receives QColor."""
        anim = self._build(
            QVariantAnimation(),
            duration,
            QColor(start_color),
            QColor(end_color),
            QEasingCurve.InOutQuad,
        )

        def _apply(value):
            if isinstance(value, QColor):
                setter(value)

        anim.valueChanged.connect(_apply)
        return anim

    def flash_brush(self, setter, start_color, end_color, duration=400, loops=1):
        """
        Blink towards end_color and back, `loops` times. With loops == 1 the
        colour stays at end_color like tint().
        """
        if loops <= 1:
            return self.tint(setter, start_color, end_color, duration)
        steps = []
        for _ in range(loops):
            steps.append(self.tint(setter, start_color, end_color, duration))
            steps.append(self.tint(setter, end_color, start_color, duration))
        return self.sequential(*steps)

    # ---------- Timing ----------

    def pause(self, duration=150):
        return self._build(QVariantAnimation(), duration, 0, 0)

    @staticmethod
    def _group(group, animations):
        for anim in filter(None, animations):
            group.addAnimation(anim)
        return group

    @staticmethod
    def parallel(*animations):
        return AnimationToolkit._group(QParallelAnimationGroup(), animations)

    @staticmethod
    def sequential(*animations):
        return AnimationToolkit._group(QSequentialAnimationGroup(), animations)
