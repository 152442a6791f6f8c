"""
Boundary capture for new geofences.

PointCollector holds the ordered list of picked points. CaptureSession wraps
it with the capture state machine and drains map-pick commands:

    IDLE -> COLLECTING -> READY -> SUBMITTED
      ^         |           |
      +---------+-----------+   (cancel / clear)

Everything here is synchronous and purely in-memory.
"""
from __future__ import annotations

import collections
import dataclasses
import enum
import logging

from .const import MIN_POLYGON_POINTS
from .errors import InsufficientPointsError
from .models import GeoPoint

_LOGGER = logging.getLogger(__name__)


class PointCollector:
    """Append-only list of picked points with last-in undo."""

    def __init__(self) -> None:
        self._points: list[GeoPoint] = []

    def add_point(self, point: GeoPoint) -> None:
        # Free draw: no dedup, no reordering, no intersection checks
        self._points.append(point)

    def remove_last(self) -> None:
        if self._points:
            self._points.pop()

    def clear(self) -> None:
        self._points.clear()

    def snapshot(self) -> tuple[GeoPoint, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)


class CaptureState(enum.Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    READY = "ready"
    SUBMITTED = "submitted"


@dataclasses.dataclass(frozen=True)
class MapPick:
    """A single click on the map."""

    latitude: float
    longitude: float


@dataclasses.dataclass(frozen=True)
class RemoveLastPoint:
    pass


@dataclasses.dataclass(frozen=True)
class ClearPoints:
    pass


CaptureCommand = MapPick | RemoveLastPoint | ClearPoints


class CaptureSession:
    """
    One boundary-drawing session.

    Map picks and edit commands are queued with submit() and applied in order
    by dispatch(), or applied immediately through the convenience methods.
    """

    def __init__(self) -> None:
        self._collector = PointCollector()
        self._state = CaptureState.IDLE
        self._commands: collections.deque[CaptureCommand] = collections.deque()

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        return self._collector.snapshot()

    @property
    def can_confirm(self) -> bool:
        return len(self._collector) >= MIN_POLYGON_POINTS

    # ------------------------------------------------------------------
    # Command queue
    # ------------------------------------------------------------------

    def submit(self, command: CaptureCommand) -> None:
        self._commands.append(command)

    def dispatch(self, command: CaptureCommand | None = None) -> CaptureState:
        """Queue command (if given) and drain the queue. Returns the resulting state."""
        if command is not None:
            self._commands.append(command)
        while self._commands:
            queued = self._commands.popleft()
            if isinstance(queued, MapPick):
                self.add_point(GeoPoint(queued.latitude, queued.longitude))
            elif isinstance(queued, RemoveLastPoint):
                self.remove_last()
            elif isinstance(queued, ClearPoints):
                self.clear()
            else:
                raise TypeError(f"Unknown capture command: {queued!r}")
        return self._state

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def add_point(self, point: GeoPoint) -> None:
        if self._state is CaptureState.SUBMITTED:
            # A submitted boundary is consumed; a new pick starts a new drawing
            self._collector.clear()
        self._collector.add_point(point)
        if self._state is not CaptureState.READY:
            self._state = CaptureState.COLLECTING
        _LOGGER.debug("Boundary point %s added (%s total)", point, len(self._collector))

    def remove_last(self) -> None:
        if self._state is CaptureState.SUBMITTED:
            return
        self._collector.remove_last()
        if not len(self._collector):
            self._state = CaptureState.IDLE
        elif self._state is CaptureState.READY and not self.can_confirm:
            self._state = CaptureState.COLLECTING

    def clear(self) -> None:
        self._collector.clear()
        self._state = CaptureState.IDLE

    cancel = clear

    def confirm(self) -> tuple[GeoPoint, ...]:
        """Move to READY. Raises InsufficientPointsError below three points."""
        if not self.can_confirm:
            raise InsufficientPointsError(len(self._collector), MIN_POLYGON_POINTS)
        self._state = CaptureState.READY
        return self._collector.snapshot()

    def mark_submitted(self) -> None:
        if self._state is not CaptureState.READY:
            raise RuntimeError(f"Cannot submit a boundary in state {self._state.value}")
        self._state = CaptureState.SUBMITTED
