from PyQt5.QtCore import Qt
from PyQt5.QtGui import QPainter, QWheelEvent
from PyQt5.QtWidgets import QGraphicsView


class CustomGraphicsView(QGraphicsView):
    """
    Canvas for the tree:
    - wheel pans vertically (deep, skewed trees grow downwards)
    - Ctrl + wheel zooms by 1.1 within [min_zoom, max_zoom]
    """

    min_zoom = 0.05
    max_zoom = 4.0

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setRenderHints(self.renderHints() | QPainter.Antialiasing | QPainter.TextAntialiasing)
        self.setDragMode(QGraphicsView.ScrollHandDrag)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self._pan_factor = 0.2

    def zoom_level(self) -> float:
        return self.transform().m11()

    def zoom_by(self, factor: float):
        target = self.zoom_level() * factor
        if target < self.min_zoom or target > self.max_zoom:
            return
        self.scale(factor, factor)

    def wheelEvent(self, event: QWheelEvent):
        delta = event.angleDelta().y()
        if event.modifiers() & Qt.ControlModifier:
            self.zoom_by(1.1 if delta > 0 else 1 / 1.1)
        else:
            self.translate(0, -delta * self._pan_factor)
        event.accept()
