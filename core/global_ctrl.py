import logging
import os

from PyQt5.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)

SPEED_ENV = "BST_VIZ_SPEED"
LOG_LEVEL_ENV = "BST_VIZ_LOG_LEVEL"

MIN_SPEED = 0.5
MAX_SPEED = 3.0


class GlobalController(QObject):
    """
    Runtime settings shared by the tree view and its panel: playback speed,
    the pause between two in-order traversal steps and the log level.
    Speed changes are broadcast so running animations can follow them.
    """

    speedChanged = pyqtSignal(float)

    def __init__(self, speed: float = 1.0, traversal_step_ms: int = 520, log_level: str = "WARNING"):
        super().__init__()
        self._speed = self._clamp(speed)
        self.traversal_step_ms = traversal_step_ms
        self.log_level = log_level

    @classmethod
    def from_env(cls, environ=None) -> "GlobalController":
        """Build settings from BST_VIZ_* variables, ignoring malformed values."""
        environ = os.environ if environ is None else environ
        speed = 1.0
        raw_speed = environ.get(SPEED_ENV)
        if raw_speed:
            try:
                speed = float(raw_speed)
            except ValueError:
                logger.warning("ignoring %s=%r, not a number", SPEED_ENV, raw_speed)

        level = environ.get(LOG_LEVEL_ENV, "WARNING").upper()
        if not isinstance(logging.getLevelName(level), int):
            logger.warning("ignoring %s=%r, unknown level", LOG_LEVEL_ENV, level)
            level = "WARNING"
        return cls(speed=speed, log_level=level)

    @property
    def speed(self) -> float:
        return self._speed

    def set_speed(self, value: float):
        """Clamp to 0.5x - 3x and notify listeners when it actually changed."""
        value = self._clamp(value)
        if abs(value - self._speed) > 1e-3:
            self._speed = value
            self.speedChanged.emit(self._speed)

    def scale_duration(self, base_ms: int) -> int:
        """Higher speed → shorter duration, never below 1ms."""
        if self._speed <= 0:
            return base_ms
        return max(1, int(base_ms / self._speed))

    def traversal_interval(self) -> int:
        return self.scale_duration(self.traversal_step_ms)

    @staticmethod
    def _clamp(value: float) -> float:
        return max(MIN_SPEED, min(MAX_SPEED, value))
