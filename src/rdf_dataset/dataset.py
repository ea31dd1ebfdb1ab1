"""
Datasets: one default graph plus named graphs, queried with SPARQL.

A Dataset is assembled from graphs that may live in different
repositories. Each query takes one of two paths:

- optimized: every default graph carries provenance, all tracked
  graphs share one repository, and FROM / FROM NAMED clauses can name
  exactly those graphs. The query text gets the clauses and runs
  directly on that repository.
- fallback: all graphs are streamed into a private temporary repository
  that is closed as soon as the results have been read.

Example:
    repo = OxigraphRepository()
    ...
    dataset = (
        DatasetBuilder()
        .default_graph(repo)
        .named_graph(iri("http://example.org/people"), repo)
        .build()
    )
    rows = dataset.select(select("?s").where(lambda w: w.triple("?s", "?p", "?o")))
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from rdf_dataset.config import DatasetConfigurationError, FederationConfig
from rdf_dataset.federation import (
    DatasetClauseRewriter,
    FallbackMaterializer,
    RepositoryGroup,
    group_by_repository,
)
from rdf_dataset.graph_ref import GraphRef, as_graph_ref
from rdf_dataset.repository import RdfGraph, RdfRepository, SparqlQueryResult
from rdf_dataset.sparql.ast import SparqlQueryAst
from rdf_dataset.sparql.queries import (
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlQuery,
    SparqlSelect,
    to_query,
)
from rdf_dataset.terms import Iri, RdfTriple
from rdf_dataset.union import OptimizedUnionGraph, UnionGraph

logger = logging.getLogger(__name__)

__all__ = ["Dataset", "DatasetBuilder", "DatasetConfigurationError"]

GraphSource = Union[RdfGraph, RdfRepository]
RepositoryFactory = Callable[[], RdfRepository]


def _as_iri(name: Union[Iri, str]) -> Iri:
    return name if isinstance(name, Iri) else Iri(name)


class Dataset:
    """
    An immutable SPARQL dataset over graphs from one or more repositories.

    Args:
        default_graphs: graphs whose union forms the default graph (at
            least one)
        named_graphs: mapping or sequence of (name, graph) pairs; names
            must be unique
        fallback_factory: creates the temporary repository of the
            fallback path (an in-memory OxigraphRepository by default)
        config: execution settings

    Raises:
        DatasetConfigurationError: no default graph, or a duplicate
            named-graph name
    """

    def __init__(
        self,
        default_graphs: Sequence[RdfGraph],
        named_graphs: Union[Mapping[Iri, RdfGraph], Iterable[Tuple[Iri, RdfGraph]]] = (),
        fallback_factory: Optional[RepositoryFactory] = None,
        config: Optional[FederationConfig] = None,
    ):
        default_refs = tuple(as_graph_ref(g) for g in default_graphs)
        if not default_refs:
            raise DatasetConfigurationError("A dataset needs at least one default graph")

        items = named_graphs.items() if isinstance(named_graphs, Mapping) else named_graphs
        named_refs: dict[Iri, GraphRef] = {}
        for name, graph in items:
            name = _as_iri(name)
            if name in named_refs:
                raise DatasetConfigurationError(f"Duplicate named graph: <{name.value}>")
            named_refs[name] = as_graph_ref(graph)

        self._default_refs = default_refs
        self._named_refs = named_refs
        self._fallback_factory = fallback_factory
        self.config = config or FederationConfig()
        self._groups = group_by_repository(default_refs, named_refs)

        self._default_graph: Optional[RdfGraph] = None
        self._default_graph_ready = False

    def __repr__(self) -> str:
        return (
            f"Dataset(default_graphs={len(self._default_refs)}, "
            f"named_graphs={len(self._named_refs)}, repositories={len(self._groups)})"
        )

    # -------------------------------------------------------------------------
    # Graph access
    # -------------------------------------------------------------------------

    @property
    def default_graphs(self) -> Tuple[GraphRef, ...]:
        return self._default_refs

    @property
    def named_graphs(self) -> dict[Iri, GraphRef]:
        return dict(self._named_refs)

    @property
    def default_graph(self) -> RdfGraph:
        """
        The union of all default graphs, computed on first access.

        Graphs sharing one repository are viewed through an
        OptimizedUnionGraph; a single graph is returned as is; anything
        else becomes a deduplicating UnionGraph.
        """
        if not self._default_graph_ready:
            self._default_graph = self._build_default_graph()
            self._default_graph_ready = True
        return self._default_graph

    def _build_default_graph(self) -> RdfGraph:
        group = self._single_group()
        if group is not None and len(group.default_graph_names) == len(self._default_refs):
            return OptimizedUnionGraph(
                group.repository,
                group.default_graph_names,
                count_fallback=self.config.count_fallback,
            )
        if len(self._default_refs) == 1:
            return self._default_refs[0].referenced_graph
        return UnionGraph([ref.referenced_graph for ref in self._default_refs])

    def get_named_graph(self, name: Union[Iri, str]) -> Optional[RdfGraph]:
        ref = self._named_refs.get(_as_iri(name))
        return ref.referenced_graph if ref is not None else None

    def has_named_graph(self, name: Union[Iri, str]) -> bool:
        return _as_iri(name) in self._named_refs

    def list_named_graphs(self) -> List[Iri]:
        return list(self._named_refs)

    def graph(self, name: Union[Iri, str, None] = None) -> RdfGraph:
        """The named graph ``name``, or the default graph when there is none by that name."""
        if name is not None:
            graph = self.get_named_graph(name)
            if graph is not None:
                return graph
        return self.default_graph

    def repository_groups(self) -> List[RepositoryGroup]:
        return list(self._groups)

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def _single_group(self) -> Optional[RepositoryGroup]:
        """The one repository every tracked graph lives in, if there is one."""
        if not self.config.optimize:
            return None
        if any(not ref.has_provenance() for ref in self._default_refs):
            return None
        if len(self._groups) != 1:
            return None
        group = self._groups[0]
        reason = self._rewrite_blocker(group)
        if reason is not None:
            logger.debug(f"Not pushing down to {group.repository!r}: {reason}")
            return None
        return group

    def _rewrite_blocker(self, group: RepositoryGroup) -> Optional[str]:
        """Why FROM / FROM NAMED clauses cannot describe this Dataset, if they cannot."""
        # no clause names the repository's own default graph, and any
        # dataset clause replaces it
        if None in group.default_graph_names:
            if any(name is not None for name in group.default_graph_names):
                return "repository default graph mixed with FROM graphs"
            if group.named_graph_names:
                return "repository default graph combined with FROM NAMED graphs"
        for name in group.named_graph_names:
            source_name = self._named_refs[name].source_graph_name
            if source_name != name:
                stored = source_name.value if source_name is not None else "DEFAULT"
                return f"named graph <{name.value}> is stored as {stored}"
        return None

    def _materializer(self) -> FallbackMaterializer:
        return FallbackMaterializer(
            self._default_refs, self._named_refs, self._fallback_factory
        )

    def _execute(
        self,
        query: SparqlQuery,
        run: Callable[[RdfRepository, SparqlQuery], Any],
        realize: Callable[[Any], Any],
    ) -> Any:
        group = self._single_group()
        if group is not None:
            logger.debug(f"{query.kind.name} pushed down to {group.repository!r}")
            rewritten = DatasetClauseRewriter(group, self._named_refs).rewrite(query)
            return run(group.repository, rewritten)

        logger.debug(f"{query.kind.name} executed on materialized graphs")
        with self._materializer().materialized() as repository:
            # results must not outlive the temporary repository
            return realize(run(repository, query))

    @staticmethod
    def _coerce(query: Union[SparqlQuery, SparqlQueryAst], expected: type) -> SparqlQuery:
        if isinstance(query, SparqlQueryAst):
            query = to_query(query)
        if not isinstance(query, expected):
            raise TypeError(f"Expected {expected.__name__}, got {type(query).__name__}")
        return query

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def select(self, query: Union[SparqlSelect, SparqlQueryAst]) -> SparqlQueryResult:
        query = self._coerce(query, SparqlSelect)
        return self._execute(query, lambda repo, q: repo.select(q), lambda result: result)

    def ask(self, query: Union[SparqlAsk, SparqlQueryAst]) -> bool:
        query = self._coerce(query, SparqlAsk)
        return self._execute(query, lambda repo, q: repo.ask(q), bool)

    def construct(self, query: Union[SparqlConstruct, SparqlQueryAst]) -> Iterator[RdfTriple]:
        query = self._coerce(query, SparqlConstruct)
        return self._execute(query, lambda repo, q: repo.construct(q), lambda triples: iter(list(triples)))

    def describe(self, query: Union[SparqlDescribe, SparqlQueryAst]) -> Iterator[RdfTriple]:
        query = self._coerce(query, SparqlDescribe)
        return self._execute(query, lambda repo, q: repo.describe(q), lambda triples: iter(list(triples)))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close every distinct referenced graph that can be closed."""
        seen = set()
        refs = list(self._default_refs) + list(self._named_refs.values())
        for ref in refs:
            graph = ref.referenced_graph
            if id(graph) in seen:
                continue
            seen.add(id(graph))
            close = getattr(graph, "close", None)
            if callable(close):
                close()

    def __enter__(self) -> "Dataset":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class DatasetBuilder:
    """
    Collects graphs for a Dataset.

    A repository passed where a graph is expected contributes its default
    graph (``default_graph``) or the graph with the given name
    (``named_graph``), with provenance recorded automatically.
    """

    def __init__(self):
        self._default: List[GraphRef] = []
        self._named: List[Tuple[Iri, GraphRef]] = []
        self._fallback_factory: Optional[RepositoryFactory] = None
        self._config: Optional[FederationConfig] = None

    def default_graph(self, source: GraphSource) -> "DatasetBuilder":
        if isinstance(source, RdfRepository):
            self._default.append(GraphRef(source.default_graph, source, None))
        else:
            self._default.append(as_graph_ref(source))
        return self

    def default_graphs(self, *sources: GraphSource) -> "DatasetBuilder":
        for source in sources:
            self.default_graph(source)
        return self

    def named_graph(
        self,
        name: Union[Iri, str],
        source: GraphSource,
        source_graph_name: Union[Iri, str, None] = None,
    ) -> "DatasetBuilder":
        """
        Add a named graph.

        With a repository as ``source``, the graph ``source_graph_name``
        (defaulting to ``name``) is looked up in it.

        Raises:
            DatasetConfigurationError: the repository has no such graph
        """
        name = _as_iri(name)
        if isinstance(source, RdfRepository):
            graph_name = _as_iri(source_graph_name) if source_graph_name is not None else name
            graph = source.get_graph(graph_name)
            if graph is None:
                raise DatasetConfigurationError(
                    f"Repository {source!r} has no graph <{graph_name.value}>"
                )
            self._named.append((name, GraphRef(graph, source, graph_name)))
        else:
            self._named.append((name, as_graph_ref(source)))
        return self

    def named_graphs(self, *entries: Tuple) -> "DatasetBuilder":
        """Add several named graphs given as (name, source[, source_graph_name])."""
        for entry in entries:
            self.named_graph(*entry)
        return self

    def fallback_repository(self, factory: RepositoryFactory) -> "DatasetBuilder":
        self._fallback_factory = factory
        return self

    def config(self, config: FederationConfig) -> "DatasetBuilder":
        self._config = config
        return self

    def build(self) -> Dataset:
        return Dataset(
            self._default,
            self._named,
            fallback_factory=self._fallback_factory,
            config=self._config,
        )
