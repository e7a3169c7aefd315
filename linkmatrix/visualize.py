"""Visualization pipeline: graph -> matrix -> folder squares -> cached raster."""

import logging
import time
from dataclasses import dataclass, field

from PIL import Image

from linkmatrix.config import Config
from linkmatrix.folders import decompose, is_partition
from linkmatrix.graph.base import LinkGraph
from linkmatrix.matrix import DEFAULT_CHUNK_ROWS, LinkMatrix, build_matrix, build_matrix_async
from linkmatrix.models import Document, FolderSquare
from linkmatrix.render import RenderStyle, render_matrix

logger = logging.getLogger(__name__)


@dataclass
class Visualization:
    """Everything one viewer needs; rebuilt per request, never updated."""
    matrix: LinkMatrix
    style: RenderStyle
    raster: Image.Image
    squares: dict[int, list[FolderSquare]] = field(default_factory=dict)

    @property
    def documents(self) -> list[Document]:
        return self.matrix.documents

    @property
    def cell_scale(self) -> int:
        return self.style.scale

    def __repr__(self) -> str:
        return (
            f"Visualization({self.matrix.size} documents, {self.matrix.link_count} links, "
            f"{sum(len(s) for s in self.squares.values())} folder squares, "
            f"{self.raster.width}x{self.raster.height}px)"
        )


def _finish(matrix: LinkMatrix, config: Config, started: float) -> Visualization:
    squares: dict[int, list[FolderSquare]] = {}
    if config.show_folder_overlay:
        squares = decompose(matrix.documents)
        for depth, level in squares.items():
            if not is_partition(matrix.documents, level, depth):
                logger.warning("Folder squares at depth %d do not partition the documents", depth)

    style = RenderStyle.from_config(config, matrix.size)
    raster = render_matrix(matrix, style, squares)
    result = Visualization(matrix=matrix, style=style, raster=raster, squares=squares)
    logger.info("%r built in %.2fs", result, time.perf_counter() - started)
    return result


def build_visualization(graph: LinkGraph, config: Config) -> Visualization:
    started = time.perf_counter()
    matrix = build_matrix(graph)
    return _finish(matrix, config, started)


async def build_visualization_async(
    graph: LinkGraph,
    config: Config,
    chunk_rows: int = DEFAULT_CHUNK_ROWS,
) -> Visualization:
    """Like ``build_visualization`` but lets the event loop run during the matrix build."""
    started = time.perf_counter()
    matrix = await build_matrix_async(graph, chunk_rows=chunk_rows)
    return _finish(matrix, config, started)


class VisualizationRequests:
    """Only the newest request's result is kept.

    A build still running when a newer request arrives finishes, but its
    result is discarded.
    """

    def __init__(self, config: Config, chunk_rows: int = DEFAULT_CHUNK_ROWS) -> None:
        self.config = config
        self.chunk_rows = chunk_rows
        self.generation = 0
        self.latest: Visualization | None = None

    async def request(self, graph: LinkGraph) -> Visualization | None:
        self.generation += 1
        generation = self.generation
        result = await build_visualization_async(graph, self.config, chunk_rows=self.chunk_rows)
        if generation != self.generation:
            logger.debug("Discarding superseded visualization #%d", generation)
            return None
        self.latest = result
        return result
