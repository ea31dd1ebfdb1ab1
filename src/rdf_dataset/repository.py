"""
Backend interfaces.

A repository executes SPARQL and owns a default graph plus named graphs;
a graph enumerates and tests triples. Everything in the Dataset layer is
written against these abstract classes, so any store can be plugged in.

Also provides the result types shared by all backends (BindingSet,
SparqlQueryResult) and MemoryGraph, a plain in-memory graph that carries
no provenance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator, Optional

import polars as pl

from rdf_dataset.terms import (
    BlankNode,
    Iri,
    LangString,
    PlainLiteral,
    RdfTerm,
    RdfTriple,
    TypedLiteral,
    format_term,
)
from rdf_dataset.sparql.queries import (
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlSelect,
    UpdateQuery,
)


# =============================================================================
# Graphs
# =============================================================================

class RdfGraph(ABC):
    """A read-only set of triples."""

    @abstractmethod
    def has_triple(self, triple: RdfTriple) -> bool:
        ...

    @abstractmethod
    def get_triples(self) -> list[RdfTriple]:
        """Return all triples as a fully realized list."""
        ...

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        """Return triples lazily. Implementations backed by I/O should override."""
        return iter(self.get_triples())

    def size(self) -> int:
        return len(self.get_triples())

    def __iter__(self) -> Iterator[RdfTriple]:
        return self.get_triples_sequence()

    def __contains__(self, triple: RdfTriple) -> bool:
        return self.has_triple(triple)

    def __len__(self) -> int:
        return self.size()


class GraphEditor(ABC):
    """Write access to a graph."""

    @abstractmethod
    def add_triple(self, triple: RdfTriple) -> None:
        ...

    @abstractmethod
    def remove_triple(self, triple: RdfTriple) -> bool:
        """Remove a triple; returns False if it was not present."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    def add_triples(self, triples: Iterable[RdfTriple]) -> int:
        count = 0
        for triple in triples:
            self.add_triple(triple)
            count += 1
        return count

    def remove_triples(self, triples: Iterable[RdfTriple]) -> int:
        return sum(1 for triple in triples if self.remove_triple(triple))


class MutableRdfGraph(RdfGraph, GraphEditor):
    """A graph that can be both read and edited."""


class SourceTrackedGraph(RdfGraph):
    """
    A graph that knows where it lives.

    ``source_graph_name`` is None for the repository's own default graph.
    """

    @property
    @abstractmethod
    def source_repository(self) -> Optional["RdfRepository"]:
        ...

    @property
    @abstractmethod
    def source_graph_name(self) -> Optional[Iri]:
        ...


class MemoryGraph(MutableRdfGraph):
    """
    An insertion-ordered in-memory graph.

    Has no backing repository, so a Dataset built from it always takes
    the materializing path.
    """

    def __init__(self, triples: Iterable[RdfTriple] = ()):
        # dict keys keep insertion order and give O(1) membership
        self._triples: dict[RdfTriple, None] = {}
        self.add_triples(triples)

    def has_triple(self, triple: RdfTriple) -> bool:
        return triple in self._triples

    def get_triples(self) -> list[RdfTriple]:
        return list(self._triples)

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        return iter(list(self._triples))

    def size(self) -> int:
        return len(self._triples)

    def add_triple(self, triple: RdfTriple) -> None:
        self._triples[triple] = None

    def remove_triple(self, triple: RdfTriple) -> bool:
        if triple not in self._triples:
            return False
        del self._triples[triple]
        return True

    def clear(self) -> None:
        self._triples.clear()

    def __repr__(self) -> str:
        return f"MemoryGraph(size={len(self._triples)})"


# =============================================================================
# Query results
# =============================================================================

def term_to_string(term: Optional[RdfTerm]) -> Optional[str]:
    """Plain string value of a term: IRI string, lexical form, or label."""
    if term is None:
        return None
    if isinstance(term, Iri):
        return term.value
    if isinstance(term, (PlainLiteral, LangString, TypedLiteral)):
        return term.lexical
    if isinstance(term, BlankNode):
        return term.id
    return format_term(term)


class BindingSet:
    """One solution of a SELECT query: variable name -> bound term."""

    __slots__ = ("_bindings",)

    def __init__(self, bindings: dict[str, RdfTerm]):
        self._bindings = dict(bindings)

    def get(self, name: str) -> Optional[RdfTerm]:
        return self._bindings.get(name.lstrip("?$"))

    def __getitem__(self, name: str) -> RdfTerm:
        return self._bindings[name.lstrip("?$")]

    def __contains__(self, name: str) -> bool:
        return name.lstrip("?$") in self._bindings

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BindingSet):
            return NotImplemented
        return self._bindings == other._bindings

    def __hash__(self) -> int:
        return hash(frozenset(self._bindings.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={format_term(v)}" for k, v in self._bindings.items())
        return f"BindingSet({inner})"

    @property
    def variable_names(self) -> list[str]:
        return list(self._bindings)

    def get_string(self, name: str) -> Optional[str]:
        return term_to_string(self.get(name))

    def get_int(self, name: str) -> Optional[int]:
        value = self.get_string(name)
        return None if value is None else int(value)

    def get_float(self, name: str) -> Optional[float]:
        value = self.get_string(name)
        return None if value is None else float(value)

    def get_bool(self, name: str) -> Optional[bool]:
        value = self.get_string(name)
        return None if value is None else value in ("true", "1")

    def to_dict(self) -> dict[str, RdfTerm]:
        return dict(self._bindings)


class SparqlQueryResult:
    """
    Fully realized SELECT results.

    Rows are held in memory so a result stays valid after the backend
    that produced it has been closed.
    """

    def __init__(self, variables: Iterable[str], rows: Iterable[BindingSet]):
        self.variables = [v.lstrip("?$") for v in variables]
        self._rows = list(rows)

    def __iter__(self) -> Iterator[BindingSet]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index: int) -> BindingSet:
        return self._rows[index]

    def __repr__(self) -> str:
        return f"SparqlQueryResult(variables={self.variables}, rows={len(self._rows)})"

    def count(self) -> int:
        return len(self._rows)

    def first(self) -> Optional[BindingSet]:
        return self._rows[0] if self._rows else None

    def to_list(self) -> list[BindingSet]:
        return list(self._rows)

    def to_polars(self) -> pl.DataFrame:
        """
        Tabular view: one Utf8 column per variable holding the SPARQL form
        of each bound term, null where unbound.
        """
        columns: dict[str, Any] = {
            name: pl.Series(
                name,
                [
                    format_term(row.get(name)) if row.get(name) is not None else None
                    for row in self._rows
                ],
                dtype=pl.Utf8,
            )
            for name in self.variables
        }
        return pl.DataFrame(columns)


# =============================================================================
# Repositories
# =============================================================================

class RdfRepository(ABC):
    """
    A SPARQL-capable store holding a default graph and named graphs.

    Identity matters: the Dataset layer groups graphs by the repository
    object they come from, using ``is`` comparison.
    """

    @property
    @abstractmethod
    def default_graph(self) -> RdfGraph:
        ...

    @abstractmethod
    def get_graph(self, name: Iri) -> Optional[RdfGraph]:
        """Return the named graph, or None if the repository has no such graph."""
        ...

    @abstractmethod
    def create_graph(self, name: Iri) -> MutableRdfGraph:
        ...

    @abstractmethod
    def edit_default_graph(self) -> GraphEditor:
        ...

    @abstractmethod
    def select(self, query: SparqlSelect) -> SparqlQueryResult:
        ...

    @abstractmethod
    def ask(self, query: SparqlAsk) -> bool:
        ...

    @abstractmethod
    def construct(self, query: SparqlConstruct) -> Iterator[RdfTriple]:
        ...

    @abstractmethod
    def describe(self, query: SparqlDescribe) -> Iterator[RdfTriple]:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def has_graph(self, name: Iri) -> bool:
        return self.get_graph(name) is not None

    def list_graphs(self) -> list[Iri]:
        return []

    def remove_graph(self, name: Iri) -> bool:
        raise NotImplementedError(f"{type(self).__name__} does not support removing graphs")

    def edit_graph(self, name: Iri) -> GraphEditor:
        graph = self.get_graph(name)
        if isinstance(graph, GraphEditor):
            return graph
        return self.create_graph(name)

    def update(self, query: UpdateQuery) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not support SPARQL Update")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
