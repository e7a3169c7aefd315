"""Tests for the markdown vault link graph."""

from pathlib import Path

import pytest

import linkmatrix.graph.vault as vault_mod
from linkmatrix.folders import decompose
from linkmatrix.graph.base import InMemoryLinkGraph, display_name_for
from linkmatrix.graph.vault import VaultLinkGraph, document_sort_key, extract_link_targets
from linkmatrix.matrix import build_matrix

from conftest import write_note


def _targets(graph, i):
    n = len(graph.list_documents())
    return [j for j in range(n) if graph.is_linked(i, j)]


class TestExtractLinkTargets:
    def test_wikilink_forms(self):
        wikilinks, _ = extract_link_targets("[[A]] [[B|alias]] [[C#Heading]] ![[D]] [[#Local]]")
        assert wikilinks == ["A", "B", "C", "D"]

    def test_markdown_links(self):
        _, mdlinks = extract_link_targets(
            '[a](a.md) [b](<with space.md>) [c](https://x.org) [d](d.md#part "title") [e](e%20f.md)'
        )
        assert mdlinks == ["a.md", "with space.md", "d.md", "e f.md"]

    def test_code_is_ignored(self):
        text = "```\n[[Fenced]]\n```\nand `[[Inline]]` but [[Real]]"
        wikilinks, _ = extract_link_targets(text)
        assert wikilinks == ["Real"]


class TestDocumentOrder:
    def test_root_first_then_folders(self):
        paths = ["b/z.md", "a.md", "b/c/y.md", "B/x.md", "c.md"]
        ordered = sorted(paths, key=document_sort_key)
        assert ordered[:2] == ["a.md", "c.md"]
        # files of a folder come before its subfolders
        assert ordered.index("b/z.md") < ordered.index("b/c/y.md")

    def test_folders_differing_in_case_stay_apart(self):
        ordered = sorted(["A/x.md", "a/y.md", "A/z.md"], key=document_sort_key)
        assert ordered == ["A/x.md", "A/z.md", "a/y.md"]

    def test_display_name_is_stem(self):
        assert display_name_for("Projects/Alpha.md") == "Alpha"
        assert display_name_for("notes/v1.2 draft.md") == "v1.2 draft"


class TestVaultLinkGraph:
    def test_documents_in_order(self, vault):
        graph = VaultLinkGraph(vault)
        paths = [d.path for d in graph.list_documents()]
        assert paths == [
            "Home.md",
            "Inbox.md",
            "Projects/Alpha.md",
            "Projects/Beta.md",
            "Projects/Archive/Old.md",
            "Reading/Books.md",
        ]
        assert [d.index for d in graph.list_documents()] == list(range(6))

    def test_hidden_folders_are_skipped(self, vault):
        graph = VaultLinkGraph(vault)
        assert all(".obsidian" not in d.path for d in graph.list_documents())

    def test_resolved_links(self, vault):
        graph = VaultLinkGraph(vault)
        assert _targets(graph, 0) == [2, 3]  # Home -> Alpha, Beta
        assert _targets(graph, 1) == []  # external links only
        assert _targets(graph, 2) == [0, 3]  # heading link, relative markdown link
        assert _targets(graph, 3) == []  # links inside code
        assert _targets(graph, 4) == [2]  # embed resolves, dangling link does not
        assert _targets(graph, 5) == [0, 5]  # ../ link and self link

    def test_matrix_from_vault(self, vault):
        matrix = build_matrix(VaultLinkGraph(vault))
        assert matrix.size == 6
        assert matrix.link_count == 7
        assert matrix.is_linked(5, 5)
        assert not matrix.is_linked(3, 0)

    def test_bare_name_prefers_own_folder(self, tmp_path):
        write_note(tmp_path, "a/Note.md")
        write_note(tmp_path, "b/Note.md")
        write_note(tmp_path, "b/Source.md", "[[Note]]")
        graph = VaultLinkGraph(tmp_path)
        paths = [d.path for d in graph.list_documents()]
        assert _targets(graph, paths.index("b/Source.md")) == [paths.index("b/Note.md")]

    def test_path_suffix_wikilink(self, tmp_path):
        write_note(tmp_path, "deep/inside/Target.md")
        write_note(tmp_path, "Start.md", "[[inside/Target]]")
        graph = VaultLinkGraph(tmp_path)
        assert _targets(graph, 0) == [1]

    def test_relative_link_cannot_escape(self, tmp_path):
        write_note(tmp_path, "Start.md", "[out](../Start.md)")
        graph = VaultLinkGraph(tmp_path)
        assert _targets(graph, 0) == []

    def test_empty_vault(self, tmp_path):
        graph = VaultLinkGraph(tmp_path)
        assert graph.list_documents() == []
        assert build_matrix(graph).size == 0

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            VaultLinkGraph(tmp_path / "nope")

    def test_case_distinct_folders_form_one_square_each(self, tmp_path):
        write_note(tmp_path, "A/x.md")
        if (tmp_path / "a").exists():
            pytest.skip("case-insensitive filesystem")
        write_note(tmp_path, "a/y.md")
        write_note(tmp_path, "A/z.md")
        docs = VaultLinkGraph(tmp_path).list_documents()
        assert [d.path for d in docs] == ["A/x.md", "A/z.md", "a/y.md"]
        assert [(s.start, s.end) for s in decompose(docs)[1]] == [(0, 1), (2, 2)]

    def test_unreadable_note_has_no_links(self, tmp_path, monkeypatch, caplog):
        write_note(tmp_path, "Broken.md", "[[Fine]]")
        write_note(tmp_path, "Fine.md", "[[Broken]]")
        read_text = Path.read_text

        def failing_read(self, *args, **kwargs):
            if self.name == "Broken.md":
                raise PermissionError("denied")
            return read_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", failing_read)
        graph = VaultLinkGraph(tmp_path)
        assert [d.path for d in graph.list_documents()] == ["Broken.md", "Fine.md"]
        assert _targets(graph, 0) == []
        assert _targets(graph, 1) == [0]
        assert "Could not read Broken.md" in caplog.text

    def test_large_note_links_are_skipped(self, tmp_path, monkeypatch):
        monkeypatch.setattr(vault_mod, "MAX_FILE_SIZE", 10)
        write_note(tmp_path, "Big.md", "[[Small]] " + "x" * 100)
        write_note(tmp_path, "Small.md", "[[Big]]")
        graph = VaultLinkGraph(tmp_path)
        assert _targets(graph, 0) == []
        assert _targets(graph, 1) == [0]
        assert build_matrix(graph).link_count == 1


class TestInMemoryLinkGraph:
    def test_rejects_out_of_range_links(self):
        with pytest.raises(ValueError):
            InMemoryLinkGraph(["a.md"], links=[(0, 1)])

    def test_linked_targets(self, folder_graph):
        assert _targets(folder_graph, 0) == [1, 5]
        assert _targets(folder_graph, 3) == [3]
