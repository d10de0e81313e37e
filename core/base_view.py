import math

from PyQt5 import sip
from PyQt5.QtCore import QObject, QPointF, QRectF, QVariantAnimation, pyqtSignal
from PyQt5.QtWidgets import QGraphicsScene

from core.animation import AnimationToolkit

MIN_VIEW_SCALE = 0.05
MAX_VIEW_SCALE = 1.0


class BaseStructureView(QObject):
    """
    Scene-owning base for structure views:
    - keeps running animations referenced until they finish
    - locks the operation panel while anything is playing
    - fits the bound QGraphicsView around the drawn items

    The bound canvas may be destroyed before the view; its ``destroyed``
    signal unbinds it and stops any fit animation still in flight.
    """

    interactionLocked = pyqtSignal(bool)

    def __init__(self, global_ctrl):
        super().__init__()
        self.scene = QGraphicsScene()
        self.scene.setSceneRect(-400, -100, 1200, 800)
        self.anim = AnimationToolkit(global_ctrl)
        self._locked = False
        self._running = []
        self._canvas = None
        self._home_rect = QRectF(self.scene.sceneRect())
        self._view_anim = None

    @property
    def locked(self) -> bool:
        return self._locked

    # ---------- Canvas ----------

    def bind_canvas(self, view):
        self._cancel_view_anim()
        if self._canvas_alive():
            try:
                self._canvas.destroyed.disconnect(self._on_canvas_destroyed)
            except TypeError:
                pass
        self._canvas = view
        if view is None:
            return
        view.destroyed.connect(self._on_canvas_destroyed)
        view.setScene(self.scene)
        view.resetTransform()

    def _on_canvas_destroyed(self, *_):
        self._cancel_view_anim()
        self._canvas = None

    def _canvas_alive(self) -> bool:
        return self._canvas is not None and not sip.isdeleted(self._canvas)

    # ---------- Fitting ----------

    def auto_fit_view(self, padding=120):
        if not self._canvas_alive():
            return
        target_rect = self._fit_target(padding)
        self.scene.setSceneRect(target_rect)
        self._animate_view_to_rect(target_rect)

    def _fit_target(self, padding) -> QRectF:
        """Home rect while the items fit inside it, else the padded item bounds."""
        bounds = self.scene.itemsBoundingRect()
        if bounds.isNull():
            return QRectF(self._home_rect)
        padded = bounds.adjusted(-padding, -padding, padding, padding)
        return QRectF(self._home_rect) if self._home_rect.contains(padded) else padded

    @staticmethod
    def _fit_scale(viewport, rect) -> float:
        scale = min(
            viewport.width() / max(rect.width(), 1.0),
            viewport.height() / max(rect.height(), 1.0),
        )
        return min(max(MIN_VIEW_SCALE, scale), MAX_VIEW_SCALE)

    def _animate_view_to_rect(self, target_rect, duration=360):
        if not self._canvas_alive() or target_rect.isNull():
            return
        viewport = self._canvas.viewport().rect()
        if viewport.isNull():
            return

        from_center = self._canvas.mapToScene(viewport.center())
        to_center = target_rect.center()
        from_scale = self._canvas.transform().m11()
        if not math.isfinite(from_scale) or abs(from_scale) < 1e-4:
            from_scale = 1.0
        to_scale = self._fit_scale(viewport, target_rect)

        if (to_center - from_center).manhattanLength() < 1e-6 and abs(to_scale - from_scale) < 1e-6:
            return

        self._cancel_view_anim()
        anim = QVariantAnimation(self)
        anim.setDuration(self.anim.global_ctrl.scale_duration(duration))
        anim.setStartValue(0.0)
        anim.setEndValue(1.0)
        anim.valueChanged.connect(
            lambda t: self._apply_view_state(
                from_scale + (to_scale - from_scale) * t,
                from_center + (to_center - from_center) * t,
            )
        )
        anim.finished.connect(lambda: self._finish_view_anim(to_scale, to_center))
        self._view_anim = anim
        anim.start()

    def _finish_view_anim(self, scale, center):
        self._view_anim = None
        self._apply_view_state(scale, center)

    def _apply_view_state(self, scale, center_point: QPointF):
        if not self._canvas_alive():
            return
        self._canvas.resetTransform()
        self._canvas.scale(scale, scale)
        self._canvas.centerOn(center_point)

    def _cancel_view_anim(self):
        anim, self._view_anim = self._view_anim, None
        if anim is not None:
            anim.stop()

    # ---------- Locking and tracking ----------

    def lock_interactions(self):
        if not self._locked:
            self._locked = True
            self.interactionLocked.emit(True)

    def unlock_interactions(self):
        if self._locked:
            self._locked = False
            self.interactionLocked.emit(False)

    def stop_all_animations(self):
        """Stop everything in flight without running finalizers."""
        self._cancel_view_anim()
        running, self._running = self._running, []
        for animation in running:
            try:
                animation.finished.disconnect()
            except TypeError:
                pass
            animation.stop()
        self.unlock_interactions()

    def _track_animation(self, animation, finalizer=None):
        """
        Start animation, keep a reference so it is not garbage collected and
        run finalizer once it has finished.
        """
        if animation is None:
            if finalizer:
                finalizer()
            return

        self.lock_interactions()
        self._running.append(animation)

        def _cleanup():
            if animation in self._running:
                self._running.remove(animation)
            if finalizer:
                finalizer()
            if not self._running:
                self.unlock_interactions()

        animation.finished.connect(_cleanup)
        animation.start()
