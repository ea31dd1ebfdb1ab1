"""
Provenance-tracking graph references.

A GraphRef wraps a graph together with the repository and graph name it
was taken from. Whether a Dataset can push a query down to a single
backend depends only on this information, so it is recorded once when
the Dataset is built and never changes afterwards.
"""

from __future__ import annotations

from typing import Iterator, Optional

from rdf_dataset.repository import RdfGraph, RdfRepository, SourceTrackedGraph
from rdf_dataset.terms import Iri, RdfTriple


class GraphRef(SourceTrackedGraph):
    """
    A read-only view of a graph plus optional provenance.

    ``source_graph_name`` None means the repository's own default graph,
    which is never named in a FROM clause.
    """

    def __init__(
        self,
        graph: RdfGraph,
        source_repository: Optional[RdfRepository] = None,
        source_graph_name: Optional[Iri] = None,
    ):
        if isinstance(graph, GraphRef):
            graph = graph.referenced_graph
        self._graph = graph
        self._repository = source_repository
        self._graph_name = source_graph_name

    @property
    def referenced_graph(self) -> RdfGraph:
        """The wrapped graph itself."""
        return self._graph

    @property
    def source_repository(self) -> Optional[RdfRepository]:
        return self._repository

    @property
    def source_graph_name(self) -> Optional[Iri]:
        return self._graph_name

    def has_provenance(self) -> bool:
        return self._repository is not None

    # RdfGraph delegation

    def has_triple(self, triple: RdfTriple) -> bool:
        return self._graph.has_triple(triple)

    def get_triples(self) -> list[RdfTriple]:
        return self._graph.get_triples()

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        return self._graph.get_triples_sequence()

    def size(self) -> int:
        return self._graph.size()

    def __repr__(self) -> str:
        if not self.has_provenance():
            return f"GraphRef({self._graph!r}, untracked)"
        name = self._graph_name.value if self._graph_name is not None else "DEFAULT"
        return f"GraphRef({self._graph!r}, repository={self._repository!r}, graph={name})"


def as_graph_ref(
    graph: RdfGraph,
    source_repository: Optional[RdfRepository] = None,
    source_graph_name: Optional[Iri] = None,
) -> GraphRef:
    """
    Wrap a graph as a GraphRef.

    An existing GraphRef is returned unchanged. A SourceTrackedGraph
    contributes its own provenance where none is passed explicitly.
    """
    if isinstance(graph, GraphRef):
        return graph
    if isinstance(graph, SourceTrackedGraph):
        return GraphRef(
            graph,
            source_repository if source_repository is not None else graph.source_repository,
            source_graph_name if source_graph_name is not None else graph.source_graph_name,
        )
    return GraphRef(graph, source_repository, source_graph_name)
