"""Pointer hit-testing against the matrix, through the camera's inverse."""

import logging
import math

from linkmatrix.matrix import LinkMatrix
from linkmatrix.models import HoverState, NavigationRequest, PointerEvent
from linkmatrix.viewport import ViewportController

logger = logging.getLogger(__name__)

TOOLTIP_OFFSET = (15.0, -15.0)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class InteractionMapper:
    """Maps screen positions to matrix cells.

    Reads the controller's transform on every call, so it always sees the
    camera as it is now and never a copy taken when the viewer opened.
    """

    def __init__(self, matrix: LinkMatrix, controller: ViewportController, cell_scale: int) -> None:
        self.matrix = matrix
        self.controller = controller
        self.cell_scale = cell_scale

    def cell_at(self, x: float, y: float) -> tuple[int, int] | None:
        """(row, column) under the screen point, or None if it misses the matrix."""
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        raster_x, raster_y = self.controller.transform.to_raster(x, y)
        i = round_half_up(raster_y / self.cell_scale - 0.5)
        j = round_half_up(raster_x / self.cell_scale - 0.5)
        n = self.matrix.size
        if 0 <= i < n and 0 <= j < n:
            return i, j
        return None

    def linked_cell_at(self, x: float, y: float) -> tuple[int, int] | None:
        cell = self.cell_at(x, y)
        if cell is None or not self.matrix.is_linked(*cell):
            return None
        return cell

    def hover(self, x: float, y: float) -> HoverState:
        cell = self.linked_cell_at(x, y)
        if cell is None:
            return HoverState.hidden()
        i, j = cell
        docs = self.matrix.documents
        return HoverState(
            visible=True,
            label=f"{docs[i].display_name} → {docs[j].display_name}",
            source=i,
            target=j,
            tooltip_x=x + TOOLTIP_OFFSET[0],
            tooltip_y=y + TOOLTIP_OFFSET[1],
        )

    def click(self, x: float, y: float) -> NavigationRequest | None:
        """Clicking a linked cell opens the link's source document."""
        cell = self.linked_cell_at(x, y)
        if cell is None:
            return None
        source = self.matrix.documents[cell[0]]
        logger.debug("Navigate to %s", source.path)
        return NavigationRequest(document=source)


class PointerCoalescer:
    """Keeps only the newest pointer sample per window.

    The first sample opens a window; later samples inside it replace the
    pending one. Whoever opened the window calls ``flush`` when it ends.
    Dropped samples are never replayed.
    """

    def __init__(self, window: float) -> None:
        self.window = window
        self.dropped = 0
        self._pending: PointerEvent | None = None

    @property
    def pending(self) -> PointerEvent | None:
        return self._pending

    def offer(self, event: PointerEvent) -> bool:
        """Store ``event``; returns True when it opened a new window."""
        if self._pending is None:
            self._pending = event
            return True
        self._pending = event
        self.dropped += 1
        return False

    def flush(self) -> PointerEvent | None:
        event, self._pending = self._pending, None
        return event
