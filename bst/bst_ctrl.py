import logging
import math
import re
from typing import List, Optional, Tuple

from PyQt5.QtCore import pyqtSignal
from PyQt5.QtWidgets import (
    QFormLayout,
    QGridLayout,
    QGroupBox,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from bst.bst_model import BinaryTree
from bst.bst_view import BSTView
from core.global_ctrl import GlobalController

logger = logging.getLogger(__name__)


class BSTController(QWidget):
    """
    Operation panel for the binary tree: bridges BinaryTree (model) and
    BSTView (drawing). Keys are numbers, values free text.
    """

    traversalReady = pyqtSignal(str)
    statusChanged = pyqtSignal(str)

    def __init__(self, global_ctrl: GlobalController, model: Optional[BinaryTree] = None):
        super().__init__()
        self.model = model if model is not None else BinaryTree(default_factory=str)
        self.view = BSTView(global_ctrl)
        self._panel_locked = False

        self._build_inputs()
        self.panel = self._create_panel()

        self.view.interactionLocked.connect(self._on_lock_state)
        self.view.eraseRequested.connect(self._handle_erase_from_view)
        self.view.findRequested.connect(self._handle_find_from_view)
        self.view.lookupFinished.connect(self._on_lookup_finished)

        self._refresh_inputs()

    # ---------- UI 构建 ----------

    def _build_inputs(self):
        self.insert_key_edit = QLineEdit()
        self.insert_key_edit.setPlaceholderText("Key")
        self.insert_value_edit = QLineEdit()
        self.insert_value_edit.setPlaceholderText("Value")
        self.insert_value_edit.returnPressed.connect(self._on_insert)

        self.erase_key_edit = QLineEdit()
        self.erase_key_edit.setPlaceholderText("Key")
        self.erase_key_edit.returnPressed.connect(self._on_erase)

        self.find_key_edit = QLineEdit()
        self.find_key_edit.setPlaceholderText("Key")
        self.find_key_edit.returnPressed.connect(self._on_find)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)

    def _create_panel(self):
        container = QWidget()
        layout = QGridLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setHorizontalSpacing(12)
        layout.setVerticalSpacing(12)
        layout.setColumnStretch(0, 1)
        layout.setColumnStretch(1, 1)

        self.create_btn = QPushButton("Create From List")
        self.create_btn.clicked.connect(self._on_create)
        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self._on_clear)
        layout.addWidget(self._button_group("Create", self.create_btn, self.clear_btn), 0, 0)

        self.insert_btn = QPushButton("Insert / Assign")
        self.insert_btn.clicked.connect(self._on_insert)
        layout.addWidget(
            self._form_group("Insert", [("Key:", self.insert_key_edit), ("Value:", self.insert_value_edit)], self.insert_btn),
            1,
            0,
        )

        self.erase_btn = QPushButton("Erase")
        self.erase_btn.clicked.connect(self._on_erase)
        layout.addWidget(self._form_group("Erase", [("Key:", self.erase_key_edit)], self.erase_btn), 2, 0)

        self.find_btn = QPushButton("Contains")
        self.find_btn.clicked.connect(self._on_find)
        layout.addWidget(self._form_group("Contains", [("Key:", self.find_key_edit)], self.find_btn), 0, 1)

        self.traverse_btn = QPushButton("In-order Traversal")
        self.traverse_btn.clicked.connect(self._on_traverse)
        layout.addWidget(self._button_group("Iterate", self.traverse_btn), 1, 1)

        layout.addWidget(self.status_label, 2, 1)
        layout.setRowStretch(3, 1)
        return container

    @staticmethod
    def _form_group(title, rows, button):
        group = QGroupBox(title)
        group.setStyleSheet("QGroupBox { color: white; }")
        form = QFormLayout()
        form.setContentsMargins(12, 8, 12, 12)
        form.setSpacing(6)
        for label, edit in rows:
            form.addRow(label, edit)
        form.addRow(button)
        group.setLayout(form)
        return group

    @staticmethod
    def _button_group(title, *buttons):
        group = QGroupBox(title)
        group.setStyleSheet("QGroupBox { color: white; }")
        vlayout = QVBoxLayout(group)
        vlayout.setContentsMargins(12, 10, 12, 12)
        vlayout.setSpacing(6)
        for button in buttons:
            vlayout.addWidget(button)
        return group

    def build_panel(self):
        return self.panel

    # ---------- 生命周期 ----------

    def on_activate(self, graphics_view):
        self.view.bind_canvas(graphics_view)

    def on_deactivate(self):
        self.view.stop_all_animations()

    # ---------- 操作回调 ----------

    def _on_create(self):
        text, ok = QInputDialog.getText(
            self,
            "Create Binary Tree",
            "Enter key[:value] items (comma-separated):",
        )
        if not ok:
            return
        self.create_from_text(text)

    def create_from_text(self, text: str) -> bool:
        try:
            items = self._parse_items(text)
        except ValueError:
            QMessageBox.warning(self, "Invalid Key", "Every key must be numeric (int or float).")
            return False

        self.model.clear()
        for key, value in items:
            if value is None:
                self.model.get_or_insert(key)
            else:
                self.model[key] = value
        snapshot = self.model.snapshot()
        if snapshot["nodes"]:
            self.view.animate_build(snapshot)
        else:
            self.view.reset()
        self._set_status(f"Built tree with {len(self.model)} keys.")
        self._refresh_inputs()
        return True

    def _on_insert(self):
        key = self._require_key(self.insert_key_edit, "insert")
        if key is None:
            return
        value = self.insert_value_edit.text().strip()
        self.insert(key, value)

    def insert(self, key, value):
        path = self.model.path(key)
        created = not self.model.contains(key)
        self.model[key] = value
        node_id = self.model.node_id_of(key)
        self.view.animate_insert(self.model.snapshot(), node_id, path, created)
        self._set_status(f"{'Inserted' if created else 'Assigned'} {key!r} → {value!r}.")
        self._refresh_inputs()

    def _on_erase(self):
        if not self.model:
            return
        key = self._require_key(self.erase_key_edit, "erase")
        if key is None:
            return
        self.erase(key)

    def erase(self, key):
        path = self.model.path(key)
        target_id = self.model.node_id_of(key)
        if target_id is None:
            self.model.erase(key)
            self.view.animate_find(self.model.snapshot(), None, path)
            self._set_status(f"{key!r} is not in the tree; nothing erased.")
            return

        before = {node["id"] for node in self.model.snapshot()["nodes"]}
        self.model.erase(key)
        snapshot = self.model.snapshot()
        removed = before - {node["id"] for node in snapshot["nodes"]}
        removed_id = removed.pop() if removed else target_id
        self.view.animate_erase(snapshot, target_id, removed_id, path)
        self._set_status(f"Erased {key!r}.")
        self._refresh_inputs()

    def _on_find(self):
        if not self.model:
            return
        key = self._require_key(self.find_key_edit, "look up")
        if key is None:
            return
        self.find(key)

    def find(self, key) -> bool:
        found = self.model.contains(key)
        found_id = self.model.node_id_of(key) if found else None
        self.view.animate_find(self.model.snapshot(), found_id, self.model.path(key))
        return found

    def _on_traverse(self):
        self.traverse()

    def traverse(self) -> List[Tuple]:
        """Walk the tree with its iterator and publish the visited pairs."""
        pairs: List[Tuple] = []
        ordered_ids: List[int] = []
        it = self.model.begin()
        end = self.model.end()
        while it != end:
            key, value = it.current()
            pairs.append((key, value))
            ordered_ids.append(self.model.node_id_of(key))
            it.advance()

        self.traversalReady.emit("\n".join(f"{key!r}: {value!r}" for key, value in pairs))
        self.view.animate_traversal(ordered_ids)
        self._set_status(f"Visited {len(pairs)} keys in order.")
        return pairs

    def _on_clear(self):
        released = self.model.clear()
        self.view.reset()
        self._set_status(f"Released {released} nodes.")
        self._refresh_inputs()

    def _on_lookup_finished(self, found: bool):
        if not found:
            self._set_status("Key not found.")
        else:
            self._set_status("Key found.")

    def _handle_erase_from_view(self, node_id):
        key = self._key_of(node_id)
        if key is None:
            return
        self.erase_key_edit.setText(str(key))
        self.erase(key)

    def _handle_find_from_view(self, node_id):
        key = self._key_of(node_id)
        if key is None:
            return
        self.find_key_edit.setText(str(key))
        self.find(key)

    # ---------- 状态管理 ----------

    def _refresh_inputs(self):
        has_nodes = bool(self.model)
        locked = self._panel_locked
        for widget in (self.create_btn, self.insert_btn, self.insert_key_edit, self.insert_value_edit):
            widget.setDisabled(locked)
        for widget in (
            self.erase_btn,
            self.erase_key_edit,
            self.find_btn,
            self.find_key_edit,
            self.traverse_btn,
            self.clear_btn,
        ):
            widget.setDisabled(locked or not has_nodes)

    def _on_lock_state(self, locked):
        self._panel_locked = locked
        self._refresh_inputs()

    def _set_status(self, text: str):
        logger.info(text)
        self.status_label.setText(text)
        self.statusChanged.emit(text)

    # ---------- Helpers ----------

    def _key_of(self, node_id):
        for node in self.model.snapshot()["nodes"]:
            if node["id"] == node_id:
                return node["key"]
        return None

    def _require_key(self, edit: QLineEdit, action: str):
        raw = edit.text().strip()
        if not raw:
            QMessageBox.warning(self, "Missing Key", f"Enter the key to {action} first.")
            return None
        try:
            return self._coerce_value(raw)
        except ValueError:
            QMessageBox.warning(self, "Invalid Key", "Keys must be numeric (int or float).")
            return None

    @staticmethod
    def _parse_items(text: str) -> List[Tuple[object, Optional[str]]]:
        """
        "5:a, 3:b 8" → [(5, "a"), (3, "b"), (8, None)]. A None value means the
        key keeps the tree's default.
        """
        if not text:
            return []
        normalized = text.replace("，", ",").replace("：", ":")
        items = []
        for token in re.split(r"[,\s]+", normalized):
            token = token.strip()
            if not token:
                continue
            if ":" in token:
                raw_key, value = token.split(":", 1)
                items.append((BSTController._coerce_value(raw_key), value))
            else:
                items.append((BSTController._coerce_value(token), None))
        return items

    @staticmethod
    def _coerce_value(value):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            number = float(value)
        except ValueError:
            raise ValueError("value is not numeric")
        # nan breaks ordering, inf is not a usable label
        if not math.isfinite(number):
            raise ValueError("value is not finite")
        return number
