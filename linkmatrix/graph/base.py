"""Link graph interface consumed by the matrix and folder decomposition."""

import abc
import logging
from collections.abc import Iterable
from pathlib import PurePosixPath

from linkmatrix.models import Document

logger = logging.getLogger(__name__)


class LinkGraph(abc.ABC):
    """Ordered documents plus a resolved-link predicate.

    The order returned by ``list_documents`` is shared by every component and
    must keep documents of the same folder contiguous.
    """

    @abc.abstractmethod
    def list_documents(self) -> list[Document]:
        """Return the documents in their fixed order.

        ``Document.index`` equals the position in the returned list.
        """
        ...

    @abc.abstractmethod
    def is_linked(self, from_index: int, to_index: int) -> bool:
        """Does document ``from_index`` have a resolved link to ``to_index``?"""
        ...


def display_name_for(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/")).stem


class InMemoryLinkGraph(LinkGraph):
    """Graph over explicit paths and ``(from, to)`` index pairs."""

    def __init__(self, paths: Iterable[str], links: Iterable[tuple[int, int]] = ()) -> None:
        self._documents = [
            Document(index=i, path=path, display_name=display_name_for(path))
            for i, path in enumerate(paths)
        ]
        n = len(self._documents)
        self._targets: list[set[int]] = [set() for _ in range(n)]
        for src, dst in links:
            if not (0 <= src < n and 0 <= dst < n):
                raise ValueError(f"Link ({src}, {dst}) is outside 0..{n - 1}")
            self._targets[src].add(dst)
        logger.debug("In-memory graph: %d documents", n)

    def list_documents(self) -> list[Document]:
        return list(self._documents)

    def is_linked(self, from_index: int, to_index: int) -> bool:
        return to_index in self._targets[from_index]
