"""
Oxigraph-backed repository.

Wraps a pyoxigraph Store (in-memory, or on disk when a path is given)
behind the RdfRepository interface. Its graphs are source-tracked, so a
Dataset built from them can push queries straight into the store.

It is also the default private backend used when a Dataset has to
materialize graphs from several sources.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

import pyoxigraph as ox

from rdf_dataset.repository import (
    BindingSet,
    GraphEditor,
    MutableRdfGraph,
    RdfRepository,
    SourceTrackedGraph,
    SparqlQueryResult,
)
from rdf_dataset.sparql.queries import (
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlSelect,
    UpdateQuery,
)
from rdf_dataset.terms import (
    BlankNode,
    Iri,
    LangString,
    PlainLiteral,
    RdfTerm,
    RdfTriple,
    TripleTerm,
    TypedLiteral,
    Var,
    typed_literal,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Term conversion
# =============================================================================

def to_oxigraph(term: RdfTerm):
    """Convert a term to its pyoxigraph counterpart."""
    if isinstance(term, Iri):
        return ox.NamedNode(term.value)
    if isinstance(term, BlankNode):
        return ox.BlankNode(term.id)
    if isinstance(term, PlainLiteral):
        return ox.Literal(term.lexical)
    if isinstance(term, LangString):
        return ox.Literal(term.lexical, language=term.lang)
    if isinstance(term, TypedLiteral):
        return ox.Literal(term.lexical, datatype=ox.NamedNode(term.datatype.value))
    if isinstance(term, TripleTerm):
        t = term.triple
        return ox.Triple(to_oxigraph(t.subject), to_oxigraph(t.predicate), to_oxigraph(t.object))
    if isinstance(term, Var):
        raise TypeError(f"Variable {term} cannot be stored in a graph")
    raise TypeError(f"Unsupported RDF term: {type(term).__name__}")


def from_oxigraph(node) -> RdfTerm:
    """Convert a pyoxigraph term to the local term model."""
    if isinstance(node, ox.NamedNode):
        return Iri(node.value)
    if isinstance(node, ox.BlankNode):
        return BlankNode(node.value)
    if isinstance(node, ox.Literal):
        if node.language:
            return LangString(node.value, node.language)
        return typed_literal(node.value, Iri(node.datatype.value))
    if isinstance(node, ox.Triple):
        return TripleTerm(
            RdfTriple(
                from_oxigraph(node.subject),
                from_oxigraph(node.predicate),
                from_oxigraph(node.object),
            )
        )
    raise TypeError(f"Unsupported Oxigraph term: {type(node).__name__}")


def triple_from_oxigraph(value) -> RdfTriple:
    """Convert an Oxigraph Triple or Quad (graph ignored) to an RdfTriple."""
    return RdfTriple(
        from_oxigraph(value.subject),
        from_oxigraph(value.predicate),
        from_oxigraph(value.object),
    )


# =============================================================================
# Graph
# =============================================================================

class OxigraphGraph(MutableRdfGraph, SourceTrackedGraph):
    """
    One graph of an OxigraphRepository.

    ``graph_name`` None is the store's default graph.
    """

    def __init__(self, repository: "OxigraphRepository", graph_name: Optional[Iri] = None):
        self._repository = repository
        self._graph_name = graph_name

    @property
    def source_repository(self) -> "OxigraphRepository":
        return self._repository

    @property
    def source_graph_name(self) -> Optional[Iri]:
        return self._graph_name

    def _graph_node(self):
        if self._graph_name is None:
            return ox.DefaultGraph()
        return ox.NamedNode(self._graph_name.value)

    def _quad(self, triple: RdfTriple) -> ox.Quad:
        return ox.Quad(
            to_oxigraph(triple.subject),
            to_oxigraph(triple.predicate),
            to_oxigraph(triple.object),
            self._graph_node(),
        )

    def has_triple(self, triple: RdfTriple) -> bool:
        return self._quad(triple) in self._repository.store

    def get_triples(self) -> list[RdfTriple]:
        return list(self.get_triples_sequence())

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        quads = self._repository.store.quads_for_pattern(None, None, None, self._graph_node())
        for quad in quads:
            yield triple_from_oxigraph(quad)

    def size(self) -> int:
        store = self._repository.store
        return sum(1 for _ in store.quads_for_pattern(None, None, None, self._graph_node()))

    def add_triple(self, triple: RdfTriple) -> None:
        self._repository.store.add(self._quad(triple))

    def add_triples(self, triples: Iterable[RdfTriple]) -> int:
        store = self._repository.store
        count = 0
        for triple in triples:
            store.add(self._quad(triple))
            count += 1
        return count

    def remove_triple(self, triple: RdfTriple) -> bool:
        store = self._repository.store
        quad = self._quad(triple)
        if quad not in store:
            return False
        store.remove(quad)
        return True

    def clear(self) -> None:
        self._repository.store.clear_graph(self._graph_node())

    def __repr__(self) -> str:
        name = self._graph_name.value if self._graph_name is not None else "DEFAULT"
        return f"OxigraphGraph({name})"


# =============================================================================
# Repository
# =============================================================================

class OxigraphRepository(RdfRepository):
    """
    RdfRepository backed by pyoxigraph.

    Args:
        path: directory of a persistent store; None keeps everything in memory

    Queries see the store's default graph as their default graph; FROM
    clauses replace it with the listed graphs, as SPARQL prescribes.
    """

    def __init__(self, path: Optional[str] = None):
        self._store: Optional[ox.Store] = ox.Store(path) if path else ox.Store()
        self._path = path
        self._default_graph = OxigraphGraph(self)

    @property
    def store(self) -> ox.Store:
        """The underlying pyoxigraph Store."""
        if self._store is None:
            raise RuntimeError("Repository is closed")
        return self._store

    @property
    def closed(self) -> bool:
        return self._store is None

    def close(self) -> None:
        if self._store is None:
            return
        if self._path:
            self._store.flush()
        self._store = None
        logger.debug(f"Closed Oxigraph repository {self._path or '(in-memory)'}")

    # Graph operations

    @property
    def default_graph(self) -> OxigraphGraph:
        return self._default_graph

    def get_graph(self, name: Iri) -> Optional[OxigraphGraph]:
        if not self.store.contains_named_graph(ox.NamedNode(name.value)):
            return None
        return OxigraphGraph(self, name)

    def has_graph(self, name: Iri) -> bool:
        return self.store.contains_named_graph(ox.NamedNode(name.value))

    def list_graphs(self) -> list[Iri]:
        return [
            Iri(g.value) for g in self.store.named_graphs()
            if isinstance(g, ox.NamedNode)
        ]

    def create_graph(self, name: Iri) -> OxigraphGraph:
        self.store.add_graph(ox.NamedNode(name.value))
        return OxigraphGraph(self, name)

    def remove_graph(self, name: Iri) -> bool:
        node = ox.NamedNode(name.value)
        if not self.store.contains_named_graph(node):
            return False
        self.store.remove_graph(node)
        return True

    def edit_default_graph(self) -> GraphEditor:
        return self._default_graph

    def edit_graph(self, name: Iri) -> GraphEditor:
        return self.create_graph(name)

    # Query operations

    def select(self, query: SparqlSelect) -> SparqlQueryResult:
        results = self.store.query(query.sparql)
        if not isinstance(results, ox.QuerySolutions):
            raise ValueError("SELECT expected, query produced a different result form")
        variables = [v.value for v in results.variables]
        rows = []
        for solution in results:
            bindings = {}
            for name in variables:
                value = solution[name]
                if value is not None:
                    bindings[name] = from_oxigraph(value)
            rows.append(BindingSet(bindings))
        return SparqlQueryResult(variables, rows)

    def ask(self, query: SparqlAsk) -> bool:
        return bool(self.store.query(query.sparql))

    def construct(self, query: SparqlConstruct) -> Iterator[RdfTriple]:
        results = self.store.query(query.sparql)
        return (triple_from_oxigraph(t) for t in results)

    def describe(self, query: SparqlDescribe) -> Iterator[RdfTriple]:
        results = self.store.query(query.sparql)
        return (triple_from_oxigraph(t) for t in results)

    def update(self, query: UpdateQuery) -> None:
        self.store.update(query.sparql)

    def __len__(self) -> int:
        """Number of quads across all graphs."""
        return len(self.store)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"OxigraphRepository(path={self._path!r}, {state})"
