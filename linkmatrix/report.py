"""Plain-data reports over a matrix, shared by the CLI and the MCP server."""

import logging
from datetime import datetime
from pathlib import Path

from linkmatrix.config import Config, find_config, load_config
from linkmatrix.export import export_image
from linkmatrix.graph.vault import VaultLinkGraph
from linkmatrix.matrix import LinkMatrix, build_matrix
from linkmatrix.models import Document, FolderSquare
from linkmatrix.visualize import build_visualization

logger = logging.getLogger(__name__)


def open_vault(vault_path: str | Path, config_path: Path | None = None) -> tuple[VaultLinkGraph, Config]:
    """Graph and config for a vault folder; vault-local config wins."""
    root = Path(vault_path).expanduser()
    if not root.is_dir():
        raise FileNotFoundError(f"Vault path does not exist: {vault_path}")
    config = load_config(config_path or find_config(root))
    return VaultLinkGraph(root), config


def find_document(matrix: LinkMatrix, name: str) -> Document:
    """Look a document up by path or display name (case-insensitive)."""
    key = name.casefold()
    for doc in matrix.documents:
        if doc.path.casefold() == key or doc.display_name.casefold() == key:
            return doc
    raise ValueError(f"Document not found: {name}")


def matrix_stats(matrix: LinkMatrix, top: int = 10) -> dict[str, object]:
    n = matrix.size
    sums = matrix.row_sums()
    self_links = sum(matrix.cells[i][i] for i in range(n))
    busiest = sorted(range(n), key=lambda i: (-sums[i], i))[:top]
    return {
        "documents": n,
        "links": matrix.link_count,
        "self_links": self_links,
        "density": matrix.link_count / (n * n) if n else 0.0,
        "unlinked_documents": sum(1 for s in sums if s == 0),
        "busiest_sources": [
            {
                "path": matrix.documents[i].path,
                "outgoing": sums[i],
                "activity": round(matrix.row_activity[i], 4),
            }
            for i in busiest if sums[i] > 0
        ],
    }


def folder_square_rows(
    matrix: LinkMatrix,
    squares: dict[int, list[FolderSquare]],
    depth: int | None = None,
) -> list[dict[str, object]]:
    if depth is not None and depth not in squares:
        raise ValueError(f"No folder squares at depth {depth} (max depth {max(squares, default=0)})")
    rows: list[dict[str, object]] = []
    for d in sorted(squares):
        if depth is not None and d != depth:
            continue
        for square in squares[d]:
            first = matrix.documents[square.start].path
            rows.append({
                "depth": d,
                "start": square.start,
                "end": square.end,
                "size": square.size,
                "folder": "/".join(first.split("/")[:d]) if "/" in first else "/",
            })
    return rows


def cell_info(matrix: LinkMatrix, source: int, target: int) -> dict[str, object]:
    n = matrix.size
    if not (0 <= source < n and 0 <= target < n):
        raise ValueError(f"Cell ({source}, {target}) is outside a {n}x{n} matrix")
    return {
        "source": matrix.documents[source].path,
        "target": matrix.documents[target].path,
        "linked": matrix.is_linked(source, target),
        "label": f"{matrix.documents[source].display_name} → {matrix.documents[target].display_name}",
    }


def document_links(matrix: LinkMatrix, name: str) -> dict[str, object]:
    doc = find_document(matrix, name)
    i = doc.index
    return {
        "document": doc.path,
        "outgoing": [d.path for d in matrix.documents if matrix.cells[i][d.index]],
        "incoming": [d.path for d in matrix.documents if matrix.cells[d.index][i]],
    }


def vault_stats(
    vault_path: str | Path,
    config_path: Path | None = None,
    top: int = 10,
) -> dict[str, object]:
    graph, _ = open_vault(vault_path, config_path)
    return matrix_stats(build_matrix(graph), top=top)


def export_vault_image(
    vault_path: str | Path,
    config_path: Path | None = None,
    output_dir: Path | None = None,
    now: datetime | None = None,
) -> Path:
    """Build the matrix image for a vault and save it.

    ``output_dir`` replaces the configured vault-relative export folder.
    """
    graph, config = open_vault(vault_path, config_path)
    visualization = build_visualization(graph, config)
    if output_dir is not None:
        config = config.model_copy(update={"export_folder_path": "/"})
        return export_image(visualization.raster, output_dir, config, now)
    return export_image(visualization.raster, graph.root, config, now)
