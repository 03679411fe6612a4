"""Substring search over graph nodes."""

import logging
from collections.abc import Collection

from ..graph.models import Graph
from ..graph.queries import find_nodes

logger = logging.getLogger(__name__)


class SearchController:
    """Holds the search query, its matches and the highlighted match."""

    def __init__(self):
        self.query = ""
        self.matches: list[str] = []
        self.highlighted_id: str | None = None

    @property
    def active(self) -> bool:
        """Whether a non-blank query has at least one match."""
        return bool(self.query.strip()) and bool(self.matches)

    def set_query(
        self, query: str, graph: Graph | None, visible: Collection[str] | None = None
    ) -> str | None:
        """Replace the query and recompute matches.

        A new query drops the previous highlight, so the first match
        becomes highlighted.

        Args:
            query: Search text; blank clears the search
            graph: Graph to search
            visible: Ids of rendered nodes; only these can be auto-highlighted

        Returns:
            Id of the auto-highlighted match, or None
        """
        self.query = query
        self.highlighted_id = None
        return self.refresh(graph, visible)

    def refresh(
        self, graph: Graph | None, visible: Collection[str] | None = None
    ) -> str | None:
        """Recompute matches against a (possibly rebuilt) graph.

        An explicit highlight that still matches is kept. Otherwise the
        first match among the visible nodes is highlighted.

        Returns:
            Id of a newly auto-highlighted match, or None
        """
        self.matches = find_nodes(graph, self.query) if graph is not None else []
        if not self.matches:
            self.highlighted_id = None
            return None
        if self.highlighted_id in self.matches:
            return None
        candidates = [
            node_id for node_id in self.matches if visible is None or node_id in visible
        ]
        if not candidates:
            self.highlighted_id = None
            return None
        self.highlighted_id = candidates[0]
        logger.debug(f"Search '{self.query}': {len(self.matches)} matches")
        return self.highlighted_id

    def highlight(self, node_id: str) -> bool:
        """Explicitly highlight one of the current matches.

        Returns:
            True if the node is a match and is now highlighted
        """
        if node_id not in self.matches:
            return False
        self.highlighted_id = node_id
        return True

    def clear(self) -> None:
        self.query = ""
        self.matches = []
        self.highlighted_id = None
