import logging
import sys

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QSlider,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from bst.bst_ctrl import BSTController
from core.global_ctrl import GlobalController
from widgets.graphics_view import CustomGraphicsView


class MainWindow(QMainWindow):
    """Canvas and operation panel on the left, traversal output on the right."""

    def __init__(self, global_ctrl: GlobalController = None):
        super().__init__()
        self.setWindowTitle("Binary Search Tree Visualizer")
        self.resize(1280, 760)

        self.global_ctrl = global_ctrl or GlobalController()
        self.controller = BSTController(self.global_ctrl)

        self._build_ui()
        self._connect_signals()

        self.controller.on_activate(self.graphics_view)

    def _build_ui(self):
        central = QWidget(self)
        self.setCentralWidget(central)

        root_layout = QHBoxLayout(central)
        root_layout.setContentsMargins(8, 8, 8, 8)
        root_layout.setSpacing(8)

        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)
        left_layout.setContentsMargins(0, 0, 0, 0)
        left_layout.setSpacing(6)

        self.graphics_view = CustomGraphicsView()
        left_layout.addWidget(self.graphics_view, 1)

        speed_layout = QHBoxLayout()
        self.speed_value_label = QLabel(f"{self.global_ctrl.speed:.1f}×")
        self.speed_slider = QSlider(Qt.Horizontal)
        self.speed_slider.setRange(50, 300)  # 0.5x – 3x
        self.speed_slider.setValue(int(self.global_ctrl.speed * 100))
        speed_layout.addWidget(QLabel("Animation Speed"))
        speed_layout.addWidget(self.speed_slider, 1)
        speed_layout.addWidget(self.speed_value_label)
        left_layout.addLayout(speed_layout)
        left_layout.addWidget(self.controller.build_panel(), 0)

        right_panel = QWidget()
        right_layout = QVBoxLayout(right_panel)
        right_layout.setContentsMargins(0, 0, 0, 0)
        self.output = QTextEdit()
        self.output.setReadOnly(True)
        self.output.setPlaceholderText("In-order traversal output appears here.")
        right_layout.addWidget(QLabel("Traversal"))
        right_layout.addWidget(self.output, 1)

        root_layout.addWidget(left_panel, 14)
        root_layout.addWidget(right_panel, 6)

    def _connect_signals(self):
        self.speed_slider.valueChanged.connect(self._on_speed_slider_changed)
        self.controller.traversalReady.connect(self.output.setPlainText)
        self.controller.statusChanged.connect(self.statusBar().showMessage)

    def _on_speed_slider_changed(self, value):
        speed = value / 100.0
        self.speed_value_label.setText(f"{speed:.1f}×")
        self.global_ctrl.set_speed(speed)


def main():
    global_ctrl = GlobalController.from_env()
    logging.basicConfig(
        level=global_ctrl.log_level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    app = QApplication(sys.argv)
    window = MainWindow(global_ctrl)
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
