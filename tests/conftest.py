"""Shared test fixtures for linkmatrix tests."""

import pytest

from linkmatrix.config import Config, ViewportConfig
from linkmatrix.graph.base import InMemoryLinkGraph


def write_note(root, rel_path: str, content: str = "") -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture()
def config():
    """Defaults with a fixed cell scale so raster sizes are predictable."""
    return Config(cell_scale=4, viewport=ViewportConfig())


@pytest.fixture()
def abc_graph():
    """A, B, C at the root; only A links to B."""
    return InMemoryLinkGraph(["A.md", "B.md", "C.md"], links=[(0, 1)])


@pytest.fixture()
def folder_graph():
    """Six notes in nested folders with a handful of links."""
    paths = [
        "index.md",
        "x/a.md",
        "x/b.md",
        "x/y/c.md",
        "x/y/d.md",
        "z/e.md",
    ]
    links = [(0, 1), (0, 5), (1, 2), (2, 1), (3, 3), (4, 0), (5, 0)]
    return InMemoryLinkGraph(paths, links=links)


@pytest.fixture()
def vault(tmp_path):
    """A small vault on disk, with wikilinks, markdown links and noise."""
    root = tmp_path / "vault"
    write_note(root, "Home.md", "# Home\nSee [[Projects/Alpha]] and [[Beta|the beta]].\n")
    write_note(root, "Inbox.md", "Nothing here, just [a site](https://example.com).\n")
    write_note(root, "Projects/Alpha.md", "Back to [[Home#Top]]. Also [beta](Beta.md).\n")
    write_note(root, "Projects/Beta.md", "```\n[[Home]] inside a fence\n```\nInline `[[Inbox]]` too.\n")
    write_note(root, "Projects/Archive/Old.md", "![[Alpha]] embedded, [[Missing note]] dangling.\n")
    write_note(root, "Reading/Books.md", "[up](../Home.md) and [[Books]] to itself.\n")
    write_note(root, ".obsidian/workspace.md", "[[Home]]\n")
    (root / "attachments").mkdir()
    return root
