"""Component nesting graph built with NetworkX.

Edge (F, T) means "file F renders a component tag T". The graph answers
which child tags a component's source file renders.
"""
from typing import Dict, Iterable, List, Optional

import networkx as nx

from ..models import ChildSummary, ParsedFile, to_posix
from .naming import comparison_form


class UsageGraph:
    """Directed file -> child tag graph for a whole project."""

    def __init__(self, native_tags: Iterable[str] = ()):
        """Initialize graph.

        Args:
            native_tags: Tags never counted as child components
        """
        self.graph = nx.DiGraph()
        self.native_forms = {comparison_form(tag) for tag in native_tags}

    @classmethod
    def from_parsed_files(cls, parsed_files: Iterable[ParsedFile], native_tags: Iterable[str] = ()) -> 'UsageGraph':
        usage_graph = cls(native_tags)
        for parsed in parsed_files:
            usage_graph.add_file(parsed)
        return usage_graph

    def add_file(self, parsed: ParsedFile):
        """Add a file node and an edge for every distinct child tag it renders."""
        file_node = ('file', to_posix(parsed.path))
        if file_node not in self.graph:
            self.graph.add_node(file_node, order=[])

        order: List[str] = self.graph.nodes[file_node]['order']
        for occurrence in parsed.tag_occurrences:
            tag = occurrence.tag_name
            if not tag or comparison_form(tag) in self.native_forms:
                continue
            if tag not in order:
                order.append(tag)
                self.graph.add_edge(file_node, ('tag', tag))

    def child_tags(self, path: str) -> List[str]:
        """Distinct child tags of a file, in order of first appearance."""
        file_node = ('file', to_posix(path))
        if file_node not in self.graph:
            return []
        return list(self.graph.nodes[file_node]['order'])

    def summary(self, path: str) -> Optional[ChildSummary]:
        """ChildSummary for a file, or None when the file is unknown."""
        file_node = ('file', to_posix(path))
        if file_node not in self.graph:
            return None
        tags = tuple(self.child_tags(path))
        return ChildSummary(tags=tags, total=len(tags), source=to_posix(path))

    def children_map(self) -> Dict[str, ChildSummary]:
        """Pre-built file -> ChildSummary map consumed by the source binder."""
        return {
            node[1]: self.summary(node[1])
            for node in self.graph.nodes
            if node[0] == 'file'
        }
