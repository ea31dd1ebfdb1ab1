"""Shared fixtures and test doubles."""

from typing import Iterable, Iterator, Optional

import pytest

from rdf_dataset.repository import (
    GraphEditor,
    MemoryGraph,
    MutableRdfGraph,
    RdfGraph,
    RdfRepository,
    SparqlQueryResult,
)
from rdf_dataset.sparql.queries import (
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlSelect,
)
from rdf_dataset.storage.oxigraph import OxigraphRepository
from rdf_dataset.terms import Iri, PlainLiteral, RdfTriple


EX = "http://example.org/"


def ex(local: str) -> Iri:
    return Iri(EX + local)


def t(s: str, p: str, o: str) -> RdfTriple:
    """Triple of example IRIs with a plain literal object."""
    return RdfTriple(ex(s), ex(p), PlainLiteral(o))


# =============================================================================
# Test doubles
# =============================================================================

class CapturingRepository(RdfRepository):
    """
    In-memory repository that records every query it receives.

    Answers are canned: ``select_result`` for SELECT, ``ask_result`` for
    ASK and ``graph_result`` for CONSTRUCT / DESCRIBE.
    """

    def __init__(
        self,
        triples: Iterable[RdfTriple] = (),
        select_result: Optional[SparqlQueryResult] = None,
        ask_result: bool = True,
        graph_result: Iterable[RdfTriple] = (),
    ):
        self.queries = []
        self.close_calls = 0
        self.select_result = select_result or SparqlQueryResult([], [])
        self.ask_result = ask_result
        self.graph_result = list(graph_result)
        self._default = MemoryGraph(triples)
        self._graphs: dict[Iri, MemoryGraph] = {}

    @property
    def default_graph(self) -> MemoryGraph:
        return self._default

    def get_graph(self, name: Iri) -> Optional[MemoryGraph]:
        return self._graphs.get(name)

    def create_graph(self, name: Iri) -> MutableRdfGraph:
        return self._graphs.setdefault(name, MemoryGraph())

    def edit_default_graph(self) -> GraphEditor:
        return self._default

    def select(self, query: SparqlSelect) -> SparqlQueryResult:
        self.queries.append(query)
        return self.select_result

    def ask(self, query: SparqlAsk) -> bool:
        self.queries.append(query)
        return self.ask_result

    def construct(self, query: SparqlConstruct) -> Iterator[RdfTriple]:
        self.queries.append(query)
        return iter(self.graph_result)

    def describe(self, query: SparqlDescribe) -> Iterator[RdfTriple]:
        self.queries.append(query)
        return iter(self.graph_result)

    def close(self) -> None:
        self.close_calls += 1

    def __repr__(self) -> str:
        return f"CapturingRepository(id={id(self)})"


class FailingGraph(RdfGraph):
    """Yields its triples, then raises RuntimeError mid-iteration."""

    def __init__(self, triples: Iterable[RdfTriple] = (), message: str = "source failed"):
        self.triples = list(triples)
        self.message = message

    def has_triple(self, triple: RdfTriple) -> bool:
        return triple in self.triples

    def get_triples(self) -> list:
        return list(self.get_triples_sequence())

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        yield from self.triples
        raise RuntimeError(self.message)


class TrackingGraph(RdfGraph):
    """Counts how many triples have been pulled from its lazy sequence."""

    def __init__(self, triples: Iterable[RdfTriple]):
        self.triples = list(triples)
        self.pulled = 0
        self.realized = 0

    def has_triple(self, triple: RdfTriple) -> bool:
        return triple in self.triples

    def get_triples(self) -> list:
        self.realized += 1
        return list(self.triples)

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        for triple in self.triples:
            self.pulled += 1
            yield triple


class ClosableGraph(MemoryGraph):
    """MemoryGraph with a close() that counts calls."""

    def __init__(self, triples: Iterable[RdfTriple] = ()):
        super().__init__(triples)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1


class TrackedOxigraphRepository(OxigraphRepository):
    """OxigraphRepository that counts close() calls."""

    def __init__(self):
        super().__init__()
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class TrackingFactory:
    """Fallback repository factory that keeps every repository it created."""

    def __init__(self):
        self.created: list[TrackedOxigraphRepository] = []

    def __call__(self) -> TrackedOxigraphRepository:
        repository = TrackedOxigraphRepository()
        self.created.append(repository)
        return repository


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def factory():
    """A fallback factory that records created repositories."""
    return TrackingFactory()


@pytest.fixture
def oxigraph():
    """An in-memory Oxigraph repository, closed after the test."""
    repository = OxigraphRepository()
    yield repository
    repository.close()


@pytest.fixture
def capturing():
    return CapturingRepository()
