#!/usr/bin/env python3
"""Link matrix MCP server: inspect and export a vault's adjacency matrix."""

import json
import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from linkmatrix import report
from linkmatrix.folders import decompose
from linkmatrix.matrix import build_matrix

mcp = FastMCP("linkmatrix")
logger = logging.getLogger(__name__)

# Redirect all logging to stderr so stdout stays clean for MCP stdio transport
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@mcp.tool()
def matrix_stats(vault_path: str, top: int = 10) -> str:
    """Document and link counts for a vault, with the documents linking out the most."""
    try:
        return json.dumps(report.vault_stats(vault_path, top=top))
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def folder_squares(vault_path: str, depth: Optional[int] = None) -> str:
    """Folder squares (contiguous index ranges per folder) at every depth or one depth."""
    try:
        graph, _ = report.open_vault(vault_path)
        matrix = build_matrix(graph)
        rows = report.folder_square_rows(matrix, decompose(matrix.documents), depth=depth)
        return json.dumps(rows)
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def cell_info(vault_path: str, source: int, target: int) -> str:
    """Whether document ``source`` links to document ``target`` (matrix indices)."""
    try:
        graph, _ = report.open_vault(vault_path)
        return json.dumps(report.cell_info(build_matrix(graph), source, target))
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def document_links(vault_path: str, name: str) -> str:
    """Outgoing and incoming links of one document, by path or name."""
    try:
        graph, _ = report.open_vault(vault_path)
        return json.dumps(report.document_links(build_matrix(graph), name))
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def export_matrix_image(vault_path: str) -> str:
    """Render the matrix and save it as a PNG in the vault's configured export folder."""
    try:
        path = report.export_vault_image(vault_path)
        return json.dumps({"status": "ok", "path": str(path)})
    except (ValueError, FileNotFoundError) as e:
        return json.dumps({"error": str(e)})


if __name__ == "__main__":
    mcp.run()
