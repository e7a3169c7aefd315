"""Folder squares: per-depth partition of the document order into folder runs.

At depth d, every document with at least d folder components is keyed by its
first d components. Adjacent documents with the same key form a run, and each
maximal run (the first and last included) becomes one square. Runs come from
the fixed order alone; nothing is re-sorted here.
"""

import logging
from collections.abc import Sequence
from itertools import groupby

from linkmatrix.models import Document, FolderSquare

logger = logging.getLogger(__name__)

# Stands in for the folder of documents at the vault root.
ROOT_COMPONENT = "@@ROOT"


def folder_components(path: str) -> list[str]:
    """Folder names leading to ``path``; root documents get ``[ROOT_COMPONENT]``."""
    parts = [p for p in path.replace("\\", "/").split("/") if p]
    folders = parts[:-1]
    return folders or [ROOT_COMPONENT]


def decompose(documents: Sequence[Document]) -> dict[int, list[FolderSquare]]:
    """Squares per depth ``1..max_depth``; empty dict when there are no documents."""
    components = [folder_components(doc.path) for doc in documents]
    max_depth = max((len(c) for c in components), default=0)

    squares: dict[int, list[FolderSquare]] = {}
    for depth in range(1, max_depth + 1):
        selected = [
            (position, tuple(comps[:depth]))
            for position, comps in enumerate(components)
            if len(comps) >= depth
        ]
        level: list[FolderSquare] = []
        for _, run in groupby(selected, key=lambda item: item[1]):
            run = list(run)
            level.append(FolderSquare(depth=depth, start=run[0][0], end=run[-1][0]))
        squares[depth] = level

    logger.debug(
        "Folder squares: %s",
        ", ".join(f"depth {d}={len(s)}" for d, s in squares.items()) or "none",
    )
    return squares


def is_partition(
    documents: Sequence[Document],
    squares: Sequence[FolderSquare],
    depth: int,
) -> bool:
    """Do ``squares`` cover each document with ``depth`` components exactly once?

    A square may span shallower documents sitting between its members (its
    range is contiguous in the full order), so only qualifying positions count.
    """
    qualifying = [
        position for position, doc in enumerate(documents)
        if len(folder_components(doc.path)) >= depth
    ]
    covered: list[int] = []
    for square in sorted(squares, key=lambda s: s.start):
        if square.depth != depth:
            return False
        covered.extend(p for p in qualifying if square.start <= p <= square.end)
    return covered == qualifying
