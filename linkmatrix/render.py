"""Paint the adjacency matrix and folder squares into one cached raster.

The raster is painted once per visualization; viewing only transforms it.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from PIL import Image, ImageColor, ImageDraw

from linkmatrix.config import Config
from linkmatrix.matrix import LinkMatrix
from linkmatrix.models import FolderSquare

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]

MIN_ALPHA = 1 / 255


@dataclass(frozen=True)
class RenderStyle:
    scale: int
    foreground: RGB
    background: RGB
    alpha_gain: float = 1 / 1.5
    alpha_offset: float = 1 / 3
    palette: tuple[RGB, ...] = field(default=((229, 72, 77),))
    outline_width: int = 1
    show_folders: bool = True

    @classmethod
    def from_config(cls, config: Config, n_documents: int) -> "RenderStyle":
        return cls(
            scale=config.resolve_cell_scale(n_documents),
            foreground=config.foreground_rgb,
            background=config.background_rgb,
            alpha_gain=config.alpha_gain,
            alpha_offset=config.alpha_offset,
            palette=tuple(ImageColor.getrgb(c)[:3] for c in config.folder_palette),
            outline_width=config.folder_outline_width,
            show_folders=config.show_folder_overlay,
        )

    def alpha_for(self, activity: float) -> float:
        """Row alpha in (0, 1] so busier source documents stand out."""
        alpha = activity * self.alpha_gain + self.alpha_offset
        if not math.isfinite(alpha):
            return 1.0
        return min(1.0, max(MIN_ALPHA, alpha))

    def depth_color(self, depth: int) -> RGB:
        return self.palette[(depth - 1) % len(self.palette)]


def blend(foreground: RGB, background: RGB, alpha: float) -> RGB:
    """Composite ``foreground`` at ``alpha`` over an opaque ``background``."""
    return tuple(  # type: ignore[return-value]
        round(bg + (fg - bg) * alpha) for fg, bg in zip(foreground, background)
    )


def _paint_cells(matrix: LinkMatrix, style: RenderStyle) -> Image.Image:
    """One pixel per cell; scaled up afterwards with nearest-neighbour."""
    n = matrix.size
    bg = bytes(style.background)
    rows = []
    for i, row in enumerate(matrix.cells):
        fg = bytes(blend(style.foreground, style.background, style.alpha_for(matrix.row_activity[i])))
        rows.append(b"".join(fg if cell else bg for cell in row))
    return Image.frombytes("RGB", (n, n), b"".join(rows))


def draw_folder_squares(
    img: Image.Image,
    squares: Mapping[int, Sequence[FolderSquare]],
    style: RenderStyle,
) -> None:
    draw = ImageDraw.Draw(img)
    s = style.scale
    for depth in sorted(squares):
        color = style.depth_color(depth)
        for square in squares[depth]:
            x0 = square.start * s
            x1 = (square.end + 1) * s - 1
            draw.rectangle([x0, x0, x1, x1], outline=color, width=style.outline_width)


def render_matrix(
    matrix: LinkMatrix,
    style: RenderStyle,
    squares: Mapping[int, Sequence[FolderSquare]] | None = None,
) -> Image.Image:
    """Render the (N·scale)×(N·scale) raster. N = 0 gives a 0×0 image."""
    n = matrix.size
    side = n * style.scale
    if n == 0:
        logger.info("No documents, rendering an empty surface")
        return Image.new("RGB", (0, 0), style.background)

    img = _paint_cells(matrix, style)
    if style.scale != 1:
        img = img.resize((side, side), Image.Resampling.NEAREST)

    if style.show_folders and squares:
        draw_folder_squares(img, squares, style)

    logger.info("Rendered %dx%d matrix at %dpx per cell (%dx%d)", n, n, style.scale, side, side)
    return img
