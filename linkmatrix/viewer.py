"""Viewer session: the matrix raster attached to a host view.

The host forwards pointer events as ``PointerEvent`` snapshots and supplies a
``Display``, a navigation callback and a notice callback. The session owns the
camera, the render loop and the hover state, and guarantees the loop stops
when it closes.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from linkmatrix.config import Config
from linkmatrix.export import export_image
from linkmatrix.interaction import InteractionMapper, PointerCoalescer
from linkmatrix.models import HoverState, NavigationRequest, PointerButton, PointerEvent
from linkmatrix.viewport import Display, RenderLoop, ViewportController
from linkmatrix.visualize import Visualization

logger = logging.getLogger(__name__)

# Pointer travel (px) after which a press no longer counts as a click.
CLICK_SLOP = 4.0

Navigate = Callable[[NavigationRequest], None]
Notify = Callable[[str], None]


def _log_notice(message: str) -> None:
    logger.info("Notice: %s", message)


class MatrixViewer:
    def __init__(
        self,
        visualization: Visualization,
        config: Config,
        display: Display,
        viewport_size: tuple[int, int],
        navigate: Navigate | None = None,
        notify: Notify | None = None,
        storage_root: Path | None = None,
    ) -> None:
        self.visualization = visualization
        self.config = config
        self.display = display
        self.viewport_size = viewport_size
        self.navigate = navigate
        self.notify = notify or _log_notice
        self.storage_root = storage_root

        self.controller: ViewportController | None = None
        self.mapper: InteractionMapper | None = None
        self.render_loop: RenderLoop | None = None
        self.hover_state = HoverState.hidden()

        self._coalescer = PointerCoalescer(config.viewport.hover_window_ms / 1000)
        self._hover_timer: asyncio.TimerHandle | None = None
        self._drag_from: tuple[float, float] | None = None
        self._travel = 0.0

    # --- Lifecycle ---

    @property
    def is_open(self) -> bool:
        return self.render_loop is not None

    def open(self) -> None:
        """Create the camera and start ticking. Needs a running event loop."""
        if self.is_open:
            return
        self.controller = ViewportController(
            self.visualization.raster,
            self.viewport_size,
            self.config.viewport,
            self.display,
        )
        self.mapper = InteractionMapper(
            self.visualization.matrix, self.controller, self.visualization.cell_scale,
        )
        self.render_loop = RenderLoop(self.controller, self.config.viewport.tick_interval)
        self.render_loop.start()
        logger.info(
            "Viewer opened: %d documents, fit scale %.3f",
            self.visualization.matrix.size, self.controller.fit_scale,
        )

    def close(self) -> None:
        if self.render_loop is not None:
            self.render_loop.stop()
            self.render_loop = None
        if self._hover_timer is not None:
            self._hover_timer.cancel()
            self._hover_timer = None
        self._coalescer.flush()
        self._drag_from = None
        self.hover_state = HoverState.hidden()
        logger.debug("Viewer closed")

    def __enter__(self) -> "MatrixViewer":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Pointer handlers ---

    def on_pointer_down(self, event: PointerEvent) -> None:
        if not self.is_open:
            return
        if event.button == PointerButton.SECONDARY:
            self.reset_view()
        elif event.button == PointerButton.PRIMARY:
            self._drag_from = (event.x, event.y)
            self._travel = 0.0

    def on_pointer_move(self, event: PointerEvent) -> None:
        """Drags apply at once; hover is recomputed for the newest sample only."""
        if not self.is_open or self.controller is None:
            return
        if event.primary_held and self._drag_from is not None:
            dx = event.x - self._drag_from[0]
            dy = event.y - self._drag_from[1]
            self.controller.drag(dx, dy)
            self._travel += abs(dx) + abs(dy)
            self._drag_from = (event.x, event.y)

        if self._coalescer.offer(event):
            self._hover_timer = asyncio.get_running_loop().call_later(
                self._coalescer.window, self._apply_pending_hover,
            )

    def _apply_pending_hover(self) -> None:
        self._hover_timer = None
        event = self._coalescer.flush()
        if event is None or self.mapper is None or not self.is_open:
            return
        self.hover_state = self.mapper.hover(event.x, event.y)

    def on_pointer_up(self, event: PointerEvent) -> None:
        self._drag_from = None

    def on_wheel(self, event: PointerEvent) -> None:
        if not self.is_open or self.controller is None:
            return
        self.controller.wheel(event.x, event.y, event.wheel_notches)

    def on_click(self, event: PointerEvent) -> NavigationRequest | None:
        """Open the source document of a clicked link and close the viewer."""
        if not self.is_open or self.mapper is None:
            return None
        if event.button == PointerButton.SECONDARY or self._travel > CLICK_SLOP:
            return None
        request = self.mapper.click(event.x, event.y)
        if request is None:
            return None
        logger.info("Opening %s", request.document.path)
        if self.navigate is not None:
            self.navigate(request)
        self.close()
        return request

    # --- Actions ---

    def reset_view(self) -> None:
        if self.controller is not None:
            self.controller.reset()

    def save_image(self, now: datetime | None = None) -> Path | None:
        """Export the cached raster; failures become notices, not exceptions."""
        if self.storage_root is None:
            self.notify("Image not saved: no storage folder is configured")
            return None
        try:
            path = export_image(self.visualization.raster, self.storage_root, self.config, now)
        except (ValueError, FileNotFoundError) as e:
            logger.warning("Export failed: %s", e)
            self.notify(f"Image not saved: {e}")
            return None
        self.notify(f"Image saved: {path.name}")
        return path
