"""Link graph over a folder of markdown notes."""

import logging
import posixpath
import re
from collections import defaultdict
from pathlib import Path
from urllib.parse import unquote

from linkmatrix.graph.base import LinkGraph, display_name_for
from linkmatrix.models import Document

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5_000_000

# [[target]], [[target|alias]], [[target#heading]], ![[embed]]
WIKILINK_PATTERN = re.compile(r"!?\[\[([^\[\]\n]+?)\]\]")
# [text](target.md), [text](<target with spaces.md>), optional "title"
MDLINK_PATTERN = re.compile(r"!?\[[^\]\n]*\]\((<[^>\n]+>|[^)\s]+)(?:\s+\"[^\"\n]*\")?\)")
URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
FENCE_PATTERN = re.compile(r"^(```|~~~).*?^\1[^\n]*$", re.MULTILINE | re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"`[^`\n]*`")


def document_sort_key(rel_path: str) -> tuple[tuple[tuple[str, str], ...], str, str]:
    """Root files first, then each folder's files before its subfolders.

    Folder names compare casefolded first and then as written, so folders that
    differ only in case (``A/`` and ``a/``) stay apart instead of interleaving.
    """
    parts = rel_path.split("/")
    folders = tuple((p.casefold(), p) for p in parts[:-1])
    return folders, parts[-1].casefold(), rel_path


def strip_code(text: str) -> str:
    """Drop fenced blocks and inline code, where links are not links."""
    return INLINE_CODE_PATTERN.sub("", FENCE_PATTERN.sub("", text))


def extract_link_targets(text: str) -> tuple[list[str], list[str]]:
    """Return raw (wikilink targets, markdown link targets) from note text."""
    text = strip_code(text)
    wikilinks = []
    for match in WIKILINK_PATTERN.finditer(text):
        target = match.group(1).split("|", 1)[0]
        target = target.split("#", 1)[0].strip()
        if target:
            wikilinks.append(target)

    mdlinks = []
    for match in MDLINK_PATTERN.finditer(text):
        target = match.group(1)
        if target.startswith("<") and target.endswith(">"):
            target = target[1:-1]
        if URL_SCHEME_PATTERN.match(target):
            continue
        target = unquote(target.split("#", 1)[0]).strip()
        if target:
            mdlinks.append(target)
    return wikilinks, mdlinks


class VaultLinkGraph(LinkGraph):
    """Documents are the ``*.md`` files under ``root``; links are resolved once.

    Each document keeps the set of target indices it resolves to, so
    ``is_linked`` is a set lookup and a full matrix build stays O(N²).
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        if not root.is_dir():
            raise FileNotFoundError(f"Vault folder not found: {root}")

        rel_paths = sorted(
            (p.relative_to(root).as_posix() for p in root.rglob("*.md") if self._visible(p)),
            key=document_sort_key,
        )
        self._documents = [
            Document(index=i, path=rel, display_name=display_name_for(rel))
            for i, rel in enumerate(rel_paths)
        ]

        self._by_path: dict[str, int] = {}
        self._by_stem: dict[str, list[int]] = defaultdict(list)
        for doc in self._documents:
            self._by_path[doc.path.casefold()] = doc.index
            self._by_stem[doc.display_name.casefold()].append(doc.index)

        self._targets: list[set[int]] = [self._resolve_document(doc) for doc in self._documents]
        total = sum(len(t) for t in self._targets)
        logger.info("Vault %s: %d documents, %d resolved links", root, len(self._documents), total)

    def _visible(self, path: Path) -> bool:
        if not path.is_file():
            return False
        rel_parts = path.relative_to(self.root).parts
        return not any(part.startswith(".") for part in rel_parts)

    def list_documents(self) -> list[Document]:
        return list(self._documents)

    def is_linked(self, from_index: int, to_index: int) -> bool:
        return to_index in self._targets[from_index]

    # --- Resolution ---

    def _resolve_document(self, doc: Document) -> set[int]:
        full_path = self.root / doc.path
        try:
            if full_path.stat().st_size > MAX_FILE_SIZE:
                logger.info("Skipping links of large file %s", doc.path)
                return set()
            text = full_path.read_text(errors="replace")
        except OSError as exc:
            logger.warning("Could not read %s: %s", doc.path, exc)
            return set()

        wikilinks, mdlinks = extract_link_targets(text)
        targets: set[int] = set()
        for target in wikilinks:
            index = self.resolve_wikilink(target, doc.path)
            if index is not None:
                targets.add(index)
        for target in mdlinks:
            index = self.resolve_relative(target, doc.path)
            if index is not None:
                targets.add(index)
        return targets

    def _lookup_path(self, path: str) -> int | None:
        key = path.casefold()
        if key in self._by_path:
            return self._by_path[key]
        if not key.endswith(".md"):
            return self._by_path.get(key + ".md")
        return None

    def resolve_wikilink(self, target: str, source_path: str) -> int | None:
        """Resolve a wikilink target the way note apps do.

        Paths are taken from the vault root (or as a path suffix); bare names
        match by stem, preferring a note in the source's own folder.
        """
        target = target.replace("\\", "/").strip().lstrip("/")
        if not target:
            return None

        if "/" in target:
            index = self._lookup_path(target)
            if index is not None:
                return index
            suffix = "/" + target.casefold()
            if not suffix.endswith(".md"):
                suffix += ".md"
            for doc in self._documents:
                if doc.path.casefold().endswith(suffix):
                    return doc.index
            return None

        stem = target[:-3] if target.casefold().endswith(".md") else target
        candidates = self._by_stem.get(stem.casefold())
        if not candidates:
            return None
        source_folder = posixpath.dirname(source_path).casefold()
        for index in candidates:
            if posixpath.dirname(self._documents[index].path).casefold() == source_folder:
                return index
        return candidates[0]

    def resolve_relative(self, target: str, source_path: str) -> int | None:
        """Resolve a markdown link relative to the source's folder."""
        target = target.replace("\\", "/").strip()
        if target.startswith("/"):
            joined = target.lstrip("/")
        else:
            joined = posixpath.join(posixpath.dirname(source_path), target)
        normalized = posixpath.normpath(joined)
        if normalized.startswith("..") or normalized == ".":
            return None
        return self._lookup_path(normalized)
