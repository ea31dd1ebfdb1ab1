"""
Read-only union views over a Dataset's default graphs.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence

from rdf_dataset.repository import RdfGraph, RdfRepository
from rdf_dataset.sparql import builders as sb
from rdf_dataset.terms import Iri, RdfTriple

logger = logging.getLogger(__name__)


class OptimizedUnionGraph(RdfGraph):
    """
    Union of graphs that all live in one repository.

    Nothing is copied: every call becomes an ASK or SELECT against the
    repository, with one FROM clause per named source graph. A None name
    stands for the repository's own default graph and adds no clause.

    Args:
        repository: the shared repository
        graph_names: source graph names, None for the default graph
        count_fallback: when the COUNT query fails, count the triples
            returned by ``get_triples()`` instead of re-raising
    """

    def __init__(
        self,
        repository: RdfRepository,
        graph_names: Sequence[Optional[Iri]],
        count_fallback: bool = True,
    ):
        self.repository = repository
        self.graph_names = tuple(graph_names)
        self.count_fallback = count_fallback

    def _from_graphs(self) -> List[Iri]:
        names: List[Iri] = []
        for name in self.graph_names:
            if name is not None and name not in names:
                names.append(name)
        return names

    def _with_dataset(self, builder):
        for name in self._from_graphs():
            builder.from_graph(name)
        return builder

    def has_triple(self, triple: RdfTriple) -> bool:
        query = self._with_dataset(sb.ask()).where(
            lambda w: w.triple(triple.subject, triple.predicate, triple.object)
        )
        return self.repository.ask(query.to_query())

    def get_triples(self) -> List[RdfTriple]:
        return list(self.get_triples_sequence())

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        query = self._with_dataset(sb.select("?s", "?p", "?o")).where(
            lambda w: w.triple("?s", "?p", "?o")
        )
        for row in self.repository.select(query.to_query()):
            s, p, o = row.get("s"), row.get("p"), row.get("o")
            if s is None or not isinstance(p, Iri) or o is None:
                continue
            yield RdfTriple(s, p, o)

    def size(self) -> int:
        query = self._with_dataset(
            sb.select().expression(sb.count(), "count")
        ).where(lambda w: w.triple("?s", "?p", "?o"))
        try:
            row = self.repository.select(query.to_query()).first()
            count = row.get_int("count") if row is not None else None
        except Exception as e:
            if not self.count_fallback:
                raise
            logger.warning(f"COUNT over union graph failed, counting triples instead: {e}")
            return len(self.get_triples())
        if count is None:
            return len(self.get_triples())
        return count

    def __repr__(self) -> str:
        names = ", ".join(n.value if n is not None else "DEFAULT" for n in self.graph_names)
        return f"OptimizedUnionGraph({self.repository!r}, [{names}])"


class UnionGraph(RdfGraph):
    """
    Union of arbitrary graphs, deduplicated by triple value.

    Triples keep the order in which they are first seen, walking the
    member graphs in order.
    """

    def __init__(self, graphs: Sequence[RdfGraph]):
        self.graphs = list(graphs)

    def has_triple(self, triple: RdfTriple) -> bool:
        return any(graph.has_triple(triple) for graph in self.graphs)

    def get_triples(self) -> List[RdfTriple]:
        seen: dict[RdfTriple, None] = {}
        for graph in self.graphs:
            for triple in graph.get_triples():
                seen.setdefault(triple, None)
        return list(seen)

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        # pulls from each member only as far as the consumer reads
        seen = set()
        for graph in self.graphs:
            for triple in graph.get_triples_sequence():
                if triple not in seen:
                    seen.add(triple)
                    yield triple

    def size(self) -> int:
        return len(self.get_triples())

    def __repr__(self) -> str:
        return f"UnionGraph({len(self.graphs)} graphs)"
