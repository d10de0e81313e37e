import math
from typing import Dict, List, Optional, Set

from PyQt5.QtCore import QPointF, QRectF, Qt, QTimer, pyqtSignal
from PyQt5.QtGui import QBrush, QColor, QFont, QPainter, QPainterPath, QPen
from PyQt5.QtWidgets import QGraphicsItem, QGraphicsObject, QGraphicsPathItem, QMenu

from core.base_view import BaseStructureView

PATH_COLOR = QColor("#4fc3f7")
FOUND_COLOR = QColor("#ff5252")
ERASE_COLOR = QColor("#ff7043")
VISITED_COLOR = QColor("#aed581")


class BSTView(BaseStructureView):
    """
    Draws a BinaryTree snapshot and animates the container operations.
    Nodes are tracked by node id so that an erase which promotes the
    in-order predecessor relabels the matched circle and removes the
    predecessor's circle, exactly as the model does.
    """

    eraseRequested = pyqtSignal(int)
    findRequested = pyqtSignal(int)
    lookupFinished = pyqtSignal(bool)
    traversalVisited = pyqtSignal(int)

    h_gap = 90
    v_gap = 130
    single_child_offset = 60

    def __init__(self, global_ctrl):
        super().__init__(global_ctrl)
        self.node_items: Dict[int, BSTNodeItem] = {}
        self.edge_items: Dict[tuple, BSTEdgeItem] = {}
        self._last_snapshot = {"root": None, "nodes": []}
        self._traversal_timer: Optional[QTimer] = None

    # ---------- Public API ----------

    def reset(self):
        self.stop_all_animations()
        self.scene.clear()
        self.node_items.clear()
        self.edge_items.clear()
        self._last_snapshot = {"root": None, "nodes": []}

    def show_snapshot(self, snapshot):
        """Redraw without animation."""
        self._finalize_snapshot(snapshot, self._compute_layout(snapshot))

    def animate_build(self, snapshot):
        self.reset()
        if not snapshot["nodes"]:
            return

        positions = self._compute_layout(snapshot)
        tree = self._index(snapshot)
        sequence = self.anim.sequential()
        for node_id in self._level_order(snapshot):
            info = tree[node_id]
            item = self._create_node_item(node_id, info["key"], info["value"])
            target = positions[node_id]
            item.setPos(QPointF(target.x(), target.y() - 160))
            item.setOpacity(0.0)
            sequence.addAnimation(
                self.anim.parallel(
                    self.anim.move_item(item, target, duration=560),
                    self.anim.fade_item(item, 0.0, 1.0, duration=560),
                )
            )
        sequence.addAnimation(self.anim.pause(140))
        self._track_animation(
            sequence,
            finalizer=lambda: self._finalize_snapshot(snapshot, positions),
        )

    def animate_insert(self, snapshot, node_id, path_ids, created=True):
        """
        Flash the search path, then either drop the vivified leaf into place
        or pulse the existing node whose value was assigned.
        """
        positions = self._compute_layout(snapshot)
        info = self._index(snapshot).get(node_id)
        if info is None:
            self.show_snapshot(snapshot)
            return

        restore: List[tuple] = []
        walked = [nid for nid in (path_ids or []) if nid != node_id]
        sequence = self.anim.sequential()
        traversal = self._build_path_flash(walked, restore)
        if traversal:
            sequence.addAnimation(traversal)

        item = self.node_items.get(node_id)
        if created or item is None:
            item = item or self._create_node_item(node_id, info["key"], info["value"])
            target = positions[node_id]
            parent_item = self.node_items.get(walked[-1]) if walked else None
            spawn = parent_item.pos() if parent_item else QPointF(target.x(), target.y() - 160)
            item.setPos(spawn)
            item.setOpacity(0.0)
            sequence.addAnimation(
                self.anim.parallel(
                    self.anim.move_item(item, target, duration=780),
                    self.anim.fade_item(item, 0.0, 1.0, duration=780),
                )
            )
            relayout = self._animate_relayout(positions, skip_ids={node_id})
            if relayout:
                sequence.addAnimation(relayout)
        else:
            restore.append((item, QColor(item.fillColor)))
            item.set_label(info["key"], info["value"])
            sequence.addAnimation(
                self.anim.flash_brush(item.setFillColor, item.fillColor, FOUND_COLOR, duration=360, loops=2)
            )

        self._track_animation(
            sequence,
            finalizer=lambda: self._finalize_with_colors(snapshot, positions, restore),
        )

    def animate_erase(self, snapshot, target_id, removed_id, path_ids):
        """
        target_id is the node that held the key, removed_id the node that
        left the tree. They differ when the predecessor was promoted.
        """
        target = self.node_items.get(target_id)
        removed = self.node_items.get(removed_id)
        if target is None or removed is None:
            self.show_snapshot(snapshot)
            return

        positions = self._compute_layout(snapshot)
        restore: List[tuple] = []
        sequence = self.anim.sequential()
        traversal = self._build_path_flash([nid for nid in path_ids if nid != target_id], restore)
        if traversal:
            sequence.addAnimation(traversal)

        restore.append((target, QColor(target.fillColor)))
        sequence.addAnimation(
            self.anim.flash_brush(target.setFillColor, target.fillColor, ERASE_COLOR, duration=360, loops=2)
        )

        if removed is not target:
            # 前驱节点先移到目标位置，再接管目标的键值
            sequence.addAnimation(self.anim.move_item(removed, target.pos(), duration=520))
        sequence.addAnimation(
            self.anim.parallel(
                self.anim.move_item(removed, removed.pos() + QPointF(0, -150), duration=420)
                if removed is target else None,
                self.anim.fade_item(removed, 1.0, 0.0, duration=420),
            )
        )

        relayout = self._animate_relayout(positions, skip_ids={removed_id})
        if relayout:
            sequence.addAnimation(relayout)

        self._track_animation(
            sequence,
            finalizer=lambda: self._finalize_with_colors(snapshot, positions, restore, removed_id),
        )

    def animate_find(self, snapshot, found_id, path_ids):
        positions = self._compute_layout(snapshot)
        restore: List[tuple] = []
        sequence = self.anim.sequential()

        walked = list(path_ids or [])
        if found_id is not None and walked and walked[-1] == found_id:
            walked = walked[:-1]
        traversal = self._build_path_flash(walked, restore, duration_scale=1.25)
        if traversal:
            sequence.addAnimation(traversal)

        target = self.node_items.get(found_id) if found_id is not None else None
        if target is not None:
            restore.append((target, QColor(target.fillColor)))
            sequence.addAnimation(
                self.anim.flash_brush(target.setFillColor, target.fillColor, FOUND_COLOR, duration=520, loops=2)
            )

        def _finalize():
            self._finalize_with_colors(snapshot, positions, restore)
            self.lookupFinished.emit(found_id is not None)

        self._track_animation(sequence, finalizer=_finalize)

    def animate_traversal(self, ordered_ids: List[int]):
        """
        Tint nodes one per timer tick in the order the iterator yielded
        them; colours are restored after the last step.
        """
        self._stop_traversal()
        pending = [nid for nid in ordered_ids if nid in self.node_items]
        if not pending:
            return

        restore: List[tuple] = []
        timer = QTimer(self)
        timer.setInterval(self.anim.global_ctrl.traversal_interval())

        def _tick():
            if not pending:
                self._stop_traversal()
                for item, color in restore:
                    if item.scene():
                        item.setFillColor(color)
                self.unlock_interactions()
                return
            node_id = pending.pop(0)
            item = self.node_items.get(node_id)
            if item is not None:
                restore.append((item, QColor(item.fillColor)))
                item.setFillColor(VISITED_COLOR)
            self.traversalVisited.emit(node_id)

        timer.timeout.connect(_tick)
        self._traversal_timer = timer
        self.lock_interactions()
        timer.start()

    def stop_all_animations(self):
        self._stop_traversal()
        super().stop_all_animations()

    def _stop_traversal(self):
        timer = self._traversal_timer
        if timer is not None:
            timer.stop()
            timer.deleteLater()
            self._traversal_timer = None

    # ---------- Layout ----------

    def _compute_layout(self, snapshot) -> Dict[int, QPointF]:
        """
        Subtree-width layout: a parent sits centred above its children, the
        left subtree entirely to its left and the right subtree to its right.
        """
        root_id = snapshot.get("root")
        if root_id is None:
            return {}

        tree = self._index(snapshot)
        node_width = BSTNodeItem.width
        widths: Dict[int, float] = {}

        # 后序计算子树宽度
        for node_id in reversed(self._level_order(snapshot)):
            node = tree[node_id]
            left_w = widths.get(node["left"], 0) if node["left"] is not None else 0
            right_w = widths.get(node["right"], 0) if node["right"] is not None else 0
            if not left_w and not right_w:
                width = node_width
            elif left_w and right_w:
                width = left_w + right_w + self.h_gap
            else:
                only = left_w or right_w
                width = max(
                    node_width / 2 + self.single_child_offset,
                    only + node_width / 2 + self.h_gap / 2,
                )
            widths[node_id] = width

        positions: Dict[int, QPointF] = {}
        pending = [(root_id, 0.0, 0)]
        while pending:
            node_id, x_center, depth = pending.pop()
            node = tree[node_id]
            positions[node_id] = QPointF(x_center - node_width / 2, depth * self.v_gap)
            left_id, right_id = node["left"], node["right"]
            if left_id is not None and right_id is not None:
                pending.append((left_id, x_center - self.h_gap / 2 - widths[left_id] / 2, depth + 1))
                pending.append((right_id, x_center + self.h_gap / 2 + widths[right_id] / 2, depth + 1))
            elif left_id is not None:
                pending.append((left_id, x_center - self.single_child_offset, depth + 1))
            elif right_id is not None:
                pending.append((right_id, x_center + self.single_child_offset, depth + 1))
        return positions

    @staticmethod
    def _index(snapshot):
        return {node["id"]: node for node in snapshot["nodes"]}

    def _level_order(self, snapshot) -> List[int]:
        root_id = snapshot.get("root")
        if root_id is None:
            return []
        tree = self._index(snapshot)
        order = [root_id]
        head = 0
        while head < len(order):
            node = tree[order[head]]
            head += 1
            for child_id in (node["left"], node["right"]):
                if child_id is not None:
                    order.append(child_id)
        return order

    # ---------- Internal helpers ----------

    def _create_node_item(self, node_id, key, value):
        item = BSTNodeItem(node_id, key, value)
        item.contextErase.connect(self.eraseRequested.emit)
        item.contextFind.connect(self.findRequested.emit)
        self.scene.addItem(item)
        self.node_items[node_id] = item
        return item

    def _build_path_flash(self, path_ids, restore_store=None, duration_scale=1.0):
        if not path_ids:
            return None
        seq = self.anim.sequential()
        for node_id in path_ids:
            item = self.node_items.get(node_id)
            if not item:
                continue
            original = QColor(item.fillColor)
            if restore_store is not None:
                restore_store.append((item, original))
            seq.addAnimation(
                self.anim.flash_brush(item.setFillColor, original, PATH_COLOR, duration=int(240 * duration_scale))
            )
        return seq

    def _animate_relayout(self, positions, skip_ids: Optional[Set[int]] = None):
        skip_ids = skip_ids or set()
        motions = [
            self.anim.move_item(item, positions[node_id], duration=480)
            for node_id, item in self.node_items.items()
            if node_id not in skip_ids and node_id in positions
        ]
        if not motions:
            return None
        return self.anim.parallel(*motions)

    def _finalize_with_colors(self, snapshot, positions, restore, removed_id=None):
        for item, color in restore:
            if item and item.scene():
                item.setFillColor(color)
        self._finalize_snapshot(snapshot, positions, removed_id)

    def _finalize_snapshot(self, snapshot, positions, removed_id=None):
        keep_ids = {node["id"] for node in snapshot["nodes"]}
        if removed_id is not None:
            keep_ids.discard(removed_id)
        for node_id in list(self.node_items):
            if node_id not in keep_ids:
                item = self.node_items.pop(node_id)
                if item.scene():
                    self.scene.removeItem(item)

        for info in snapshot["nodes"]:
            item = self.node_items.get(info["id"])
            if item is None:
                item = self._create_node_item(info["id"], info["key"], info["value"])
            item.setOpacity(1.0)
            item.set_label(info["key"], info["value"])
            if info["id"] in positions:
                item.setPos(positions[info["id"]])

        self._last_snapshot = snapshot
        self._rebuild_edges(snapshot)
        self.auto_fit_view()

    def _rebuild_edges(self, snapshot):
        for edge in self.edge_items.values():
            if edge.scene():
                self.scene.removeItem(edge)
        self.edge_items.clear()

        for info in snapshot["nodes"]:
            parent_item = self.node_items.get(info["id"])
            for side in ("left", "right"):
                child_item = self.node_items.get(info[side]) if info[side] is not None else None
                if not parent_item or not child_item:
                    continue
                edge = BSTEdgeItem(parent_item, child_item)
                self.scene.addItem(edge)
                self.edge_items[(info["id"], info[side])] = edge


class BSTNodeItem(QGraphicsObject):
    contextErase = pyqtSignal(int)
    contextFind = pyqtSignal(int)
    positionChanged = pyqtSignal()

    width = 70
    height = 70

    def __init__(self, node_id, key, value):
        super().__init__()
        self.node_id = node_id
        self.fillColor = QColor("#e9e9ef")
        self.strokeColor = QColor("#4a4a52")
        self.textColor = QColor("#1f1f24")
        self.key_text = ""
        self.value_text = ""
        self.set_label(key, value)
        self.setZValue(2)
        self.setFlag(QGraphicsItem.ItemIsSelectable, True)
        self.setFlag(QGraphicsItem.ItemSendsGeometryChanges, True)

    def boundingRect(self):
        return QRectF(0, 0, self.width, self.height)

    def paint(self, painter, option, widget=None):
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setPen(QPen(self.strokeColor, 2))
        painter.setBrush(QBrush(self.fillColor))
        painter.drawEllipse(self.boundingRect())

        painter.setPen(self.textColor)
        key_font = QFont(painter.font())
        key_font.setBold(True)
        painter.setFont(key_font)
        painter.drawText(QRectF(0, 10, self.width, self.height / 2 - 6), Qt.AlignCenter, self.key_text)
        value_font = QFont(painter.font())
        value_font.setBold(False)
        value_font.setPointSizeF(max(6.0, value_font.pointSizeF() - 1))
        painter.setFont(value_font)
        painter.drawText(QRectF(4, self.height / 2, self.width - 8, self.height / 2 - 10), Qt.AlignCenter, self.value_text)

    def set_label(self, key, value):
        self.key_text = str(key)
        self.value_text = "" if value is None else str(value)
        self.setToolTip(f"{self.key_text}: {self.value_text}")
        self.update()

    def setFillColor(self, color: QColor):
        self.fillColor = QColor(color)
        self.update()

    def contextMenuEvent(self, event):
        menu = QMenu()
        erase_action = menu.addAction("Erase Key")
        find_action = menu.addAction("Contains?")
        chosen = menu.exec_(event.screenPos())
        if chosen == erase_action:
            self.contextErase.emit(self.node_id)
        elif chosen == find_action:
            self.contextFind.emit(self.node_id)

    def itemChange(self, change, value):
        if change == QGraphicsItem.ItemPositionHasChanged:
            self.positionChanged.emit()
        return super().itemChange(change, value)


class BSTEdgeItem(QGraphicsPathItem):
    def __init__(self, parent_item: BSTNodeItem, child_item: BSTNodeItem):
        super().__init__()
        self.parent_item = parent_item
        self.child_item = child_item

        pen = QPen(QColor("#9e9e9e"), 2)
        pen.setCapStyle(Qt.RoundCap)
        self.setPen(pen)
        self.setZValue(1)

        self.parent_item.positionChanged.connect(self.update_geometry)
        self.child_item.positionChanged.connect(self.update_geometry)
        self.update_geometry()

    def update_geometry(self):
        start = self._center(self.parent_item)
        end = self._center(self.child_item)
        direction = end - start
        length = math.hypot(direction.x(), direction.y())
        inset = BSTNodeItem.width / 2
        if length > 1e-6:
            offset = QPointF(direction.x() / length * inset, direction.y() / length * inset)
            start, end = start + offset, end - offset
        else:
            end = start

        path = QPainterPath(start)
        path.lineTo(end)
        self.setPath(path)

    @staticmethod
    def _center(node_item: BSTNodeItem):
        pos = node_item.scenePos()
        return QPointF(pos.x() + BSTNodeItem.width / 2, pos.y() + BSTNodeItem.height / 2)
