"""Inertial pan/zoom camera over the cached matrix raster.

The camera is a uniform scale plus a pan expressed in raster space:

    screen = (raster - pan) * scale
    raster = screen / scale + pan

Pointer input only moves the *target* camera. Every tick the *chased* camera
follows the target with a damped spring, and the raster is blitted through the
chased transform.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import NamedTuple, Protocol

from PIL import Image

from linkmatrix.config import ViewportConfig

logger = logging.getLogger(__name__)

EPSILON_SCALE = 1e-6


class Affine(NamedTuple):
    """2×2 matrix plus translation: ``x' = a*x + b*y + c``, ``y' = d*x + e*y + f``."""
    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return self.a * x + self.b * y + self.c, self.d * x + self.e * y + self.f

    def inverted(self) -> "Affine":
        det = self.a * self.e - self.b * self.d
        if abs(det) < EPSILON_SCALE * EPSILON_SCALE:
            det = math.copysign(EPSILON_SCALE * EPSILON_SCALE, det or 1.0)
        a, b, d, e = self.e / det, -self.b / det, -self.d / det, self.a / det
        return Affine(a, b, -(a * self.c + b * self.f), d, e, -(d * self.c + e * self.f))


def safe_scale(scale: float) -> float:
    """Scales must stay positive and finite for the transform to invert."""
    if not math.isfinite(scale) or scale < EPSILON_SCALE:
        return EPSILON_SCALE
    return scale


@dataclass(frozen=True)
class Transform:
    scale: float
    pan_x: float = 0.0
    pan_y: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "scale", safe_scale(self.scale))

    @property
    def forward(self) -> Affine:
        s = self.scale
        return Affine(s, 0.0, -self.pan_x * s, 0.0, s, -self.pan_y * s)

    @property
    def inverse(self) -> Affine:
        return self.forward.inverted()

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        return self.forward.apply(x, y)

    def to_raster(self, x: float, y: float) -> tuple[float, float]:
        return self.inverse.apply(x, y)


@dataclass
class ViewportState:
    target_x: float
    target_y: float
    target_scale: float
    chased_x: float
    chased_y: float
    chased_scale: float
    velocity_x: float = 0.0
    velocity_y: float = 0.0
    velocity_scale: float = 0.0

    @classmethod
    def at_rest(cls, x: float, y: float, scale: float) -> "ViewportState":
        return cls(x, y, scale, x, y, scale)


class Display(Protocol):
    """Where frames go. Hosts implement this over their own widget."""

    def clear(self) -> None: ...

    def blit(self, raster: Image.Image, transform: Transform) -> None: ...


class FrameDisplay:
    """Headless display that composes each frame into a Pillow image."""

    def __init__(self, width: int, height: int, background: tuple[int, int, int] = (0, 0, 0)) -> None:
        self.size = (width, height)
        self.background = background
        self.frame = Image.new("RGB", self.size, background)
        self.frames_drawn = 0

    def clear(self) -> None:
        self.frame = Image.new("RGB", self.size, self.background)
        self.frames_drawn += 1

    def blit(self, raster: Image.Image, transform: Transform) -> None:
        if raster.width == 0 or raster.height == 0 or 0 in self.size:
            return
        # Pillow's AFFINE maps output pixels back to input pixels.
        self.frame = raster.convert("RGB").transform(
            self.size,
            Image.Transform.AFFINE,
            data=tuple(transform.inverse),
            resample=Image.Resampling.NEAREST,
            fillcolor=self.background,
        )


def fit_scale(raster_size: tuple[int, int], viewport_size: tuple[int, int]) -> float:
    """Largest scale at which the whole raster fits the viewport."""
    rw, rh = raster_size
    vw, vh = viewport_size
    if rw <= 0 or rh <= 0 or vw <= 0 or vh <= 0:
        return 1.0
    return safe_scale(min(vw / rw, vh / rh))


class ViewportController:
    """Owns the camera state, its transforms and the per-tick update."""

    def __init__(
        self,
        raster: Image.Image,
        viewport_size: tuple[int, int],
        config: ViewportConfig | None = None,
        display: Display | None = None,
    ) -> None:
        self.raster = raster
        self.viewport_size = viewport_size
        self.config = config or ViewportConfig()
        self.display = display
        self.fit_scale = fit_scale(raster.size, viewport_size)
        x, y = self._centered_pan(self.fit_scale)
        self.state = ViewportState.at_rest(x, y, self.fit_scale)
        self._rebuild()

    # --- Transforms ---

    def _rebuild(self) -> None:
        self.state.chased_scale = safe_scale(self.state.chased_scale)
        self.transform = Transform(self.state.chased_scale, self.state.chased_x, self.state.chased_y)

    @property
    def forward(self) -> Affine:
        return self.transform.forward

    @property
    def inverse(self) -> Affine:
        return self.transform.inverse

    @property
    def target_transform(self) -> Transform:
        return Transform(self.state.target_scale, self.state.target_x, self.state.target_y)

    def _centered_pan(self, scale: float) -> tuple[float, float]:
        rw, rh = self.raster.size
        vw, vh = self.viewport_size
        return rw / 2 - vw / (2 * scale), rh / 2 - vh / (2 * scale)

    def _clamp_scale(self, scale: float) -> float:
        return min(self.config.max_scale, max(self.config.min_scale, safe_scale(scale)))

    # --- Tick ---

    def _chase(self, target: float, chased: float, velocity: float) -> tuple[float, float]:
        velocity += (target - chased) * self.config.accel
        velocity *= self.config.drag
        chased += velocity
        if abs(target - chased) < self.config.settle_epsilon and abs(velocity) < self.config.settle_epsilon:
            return target, 0.0
        return chased, velocity

    def step(self) -> None:
        """Advance the chased camera one tick towards the target."""
        s = self.state
        s.chased_x, s.velocity_x = self._chase(s.target_x, s.chased_x, s.velocity_x)
        s.chased_y, s.velocity_y = self._chase(s.target_y, s.chased_y, s.velocity_y)
        s.chased_scale, s.velocity_scale = self._chase(s.target_scale, s.chased_scale, s.velocity_scale)
        if s.chased_scale < EPSILON_SCALE:
            logger.warning("Chased scale reached %r, clamping", s.chased_scale)
        self._rebuild()

    def draw(self) -> None:
        if self.display is None:
            return
        self.display.clear()
        self.display.blit(self.raster, self.transform)

    def tick(self) -> None:
        self.step()
        self.draw()

    @property
    def settled(self) -> bool:
        s = self.state
        return (
            s.chased_x == s.target_x
            and s.chased_y == s.target_y
            and s.chased_scale == s.target_scale
        )

    def settle(self, max_ticks: int = 1000) -> int:
        """Step until the camera reaches its target; returns the ticks taken."""
        for ticks in range(max_ticks):
            if self.settled:
                return ticks
            self.step()
        return max_ticks

    # --- Pointer-driven targets ---

    def drag(self, dx: float, dy: float) -> None:
        """Grab-and-drag: move the target pan by the raster-space delta."""
        if not (math.isfinite(dx) and math.isfinite(dy)):
            return
        scale = self.transform.scale
        self.state.target_x -= dx / scale
        self.state.target_y -= dy / scale

    def wheel(self, x: float, y: float, notches: float) -> None:
        """Zoom by ``zoom_factor ** notches`` keeping the point under (x, y) fixed."""
        if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(notches)) or notches == 0:
            return
        anchor_x, anchor_y = self.transform.to_raster(x, y)

        log_scale = math.log(safe_scale(self.state.target_scale)) + notches * math.log(self.config.zoom_factor)
        log_scale = min(math.log(self.config.max_scale), max(math.log(self.config.min_scale), log_scale))
        new_scale = self._clamp_scale(math.exp(log_scale))

        self.state.target_scale = new_scale
        self.state.target_x = anchor_x - x / new_scale
        self.state.target_y = anchor_y - y / new_scale

    def reset(self) -> None:
        """Back to the fit-to-viewport scale, centred."""
        self.state.target_scale = self.fit_scale
        self.state.target_x, self.state.target_y = self._centered_pan(self.fit_scale)


class RenderLoop:
    """Start/stop handle for the fixed-rate tick task.

    ``stop`` must be called when the viewer closes, otherwise the task keeps
    painting a detached display.
    """

    def __init__(self, controller: ViewportController, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.controller = controller
        self.interval = interval
        self.ticks = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop; no-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Render loop started at %.1f Hz", 1 / self.interval)

    async def _run(self) -> None:
        while True:
            try:
                self.controller.tick()
            except Exception:
                logger.exception("Render tick failed, stopping the loop")
                return
            self.ticks += 1
            await asyncio.sleep(self.interval)

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.debug("Render loop stopped after %d ticks", self.ticks)
