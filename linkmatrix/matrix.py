"""Adjacency matrix and row activity from a link graph.

Cost is one ``is_linked`` call per ordered pair, so O(N²) when the predicate is
a set lookup (as in the bundled graphs) and worse when the predicate scans a
document's links.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from linkmatrix.graph.base import LinkGraph
from linkmatrix.models import Document

logger = logging.getLogger(__name__)

Matrix = tuple[tuple[int, ...], ...]

DEFAULT_CHUNK_ROWS = 64


@dataclass(frozen=True)
class LinkMatrix:
    """Point-in-time snapshot of the corpus links."""
    documents: list[Document]
    cells: Matrix
    row_activity: tuple[float, ...] = field(default=())

    @property
    def size(self) -> int:
        return len(self.documents)

    @property
    def link_count(self) -> int:
        return sum(sum(row) for row in self.cells)

    def is_linked(self, i: int, j: int) -> bool:
        """Bounds-checked cell lookup; out-of-range indices are unlinked."""
        n = len(self.cells)
        return 0 <= i < n and 0 <= j < n and self.cells[i][j] == 1

    def row_sums(self) -> list[int]:
        return [sum(row) for row in self.cells]


def row_activity(cells: Sequence[Sequence[int]]) -> tuple[float, ...]:
    """Row sums normalised by the largest row sum.

    All-zero rows (or no rows at all) give all-zero activity rather than NaN.
    """
    sums = [sum(row) for row in cells]
    peak = max(sums, default=0)
    if peak == 0:
        return tuple(0.0 for _ in sums)
    return tuple(s / peak for s in sums)


def _checked_documents(graph: LinkGraph) -> list[Document]:
    documents = graph.list_documents()
    for position, doc in enumerate(documents):
        if doc.index != position:
            raise ValueError(
                f"Document {doc.path!r} has index {doc.index} but sits at position {position}"
            )
    return documents


def _build_row(graph: LinkGraph, i: int, n: int) -> tuple[int, ...]:
    return tuple(1 if graph.is_linked(i, j) else 0 for j in range(n))


def build_matrix(graph: LinkGraph) -> LinkMatrix:
    """Build the N×N 0/1 matrix; ``cells[i][j] == 1`` iff i links to j."""
    documents = _checked_documents(graph)
    n = len(documents)
    cells = tuple(_build_row(graph, i, n) for i in range(n))
    matrix = LinkMatrix(documents=documents, cells=cells, row_activity=row_activity(cells))
    logger.debug("Built %dx%d matrix with %d links", n, n, matrix.link_count)
    return matrix


async def build_matrix_async(graph: LinkGraph, chunk_rows: int = DEFAULT_CHUNK_ROWS) -> LinkMatrix:
    """Same as ``build_matrix`` but yields to the event loop every ``chunk_rows`` rows."""
    if chunk_rows < 1:
        raise ValueError("chunk_rows must be at least 1")
    documents = _checked_documents(graph)
    n = len(documents)
    rows: list[tuple[int, ...]] = []
    for i in range(n):
        rows.append(_build_row(graph, i, n))
        if (i + 1) % chunk_rows == 0:
            await asyncio.sleep(0)
    cells = tuple(rows)
    return LinkMatrix(documents=documents, cells=cells, row_activity=row_activity(cells))
