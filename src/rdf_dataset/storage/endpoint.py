"""
Remote SPARQL endpoint repository.

Talks the SPARQL 1.1 Protocol over httpx:
- queries are POSTed as ``application/sparql-query``
- updates are POSTed as ``application/sparql-update``
- SELECT / ASK answers are read as ``application/sparql-results+json``
- CONSTRUCT / DESCRIBE answers are read as N-Triples and parsed with pyoxigraph

Transport failures (connection refused, timeouts) are retried up to
``EndpointConfig.max_retries`` times. HTTP error statuses are not retried
and surface as SparqlEndpointError.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterator, Optional

import httpx
import pyoxigraph as ox

from rdf_dataset.config import EndpointConfig
from rdf_dataset.repository import (
    BindingSet,
    GraphEditor,
    MutableRdfGraph,
    RdfRepository,
    SourceTrackedGraph,
    SparqlQueryResult,
)
from rdf_dataset.sparql import builders as sb
from rdf_dataset.sparql.ast import GraphScope, NamedGraphPatternAst, TriplePatternAst
from rdf_dataset.sparql.queries import (
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlSelect,
    UpdateQuery,
)
from rdf_dataset.storage.oxigraph import triple_from_oxigraph
from rdf_dataset.terms import (
    BlankNode,
    Iri,
    LangString,
    PlainLiteral,
    RdfTerm,
    RdfTriple,
    TripleTerm,
    Var,
    typed_literal,
)

logger = logging.getLogger(__name__)

SPARQL_QUERY = "application/sparql-query"
SPARQL_UPDATE = "application/sparql-update"
SPARQL_RESULTS_JSON = "application/sparql-results+json"
N_TRIPLES = "application/n-triples"


class SparqlEndpointError(Exception):
    """A remote SPARQL endpoint rejected a request or could not be reached."""

    def __init__(self, message: str, query: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.query = query
        self.status_code = status_code


# =============================================================================
# SPARQL JSON results
# =============================================================================

def decode_json_term(value: Dict[str, Any]) -> RdfTerm:
    """
    Decode one RDF term from the SPARQL 1.1 JSON results format.

    Supports the RDF-star ``triple`` extension.
    """
    kind = value.get("type")
    if kind == "uri":
        return Iri(value["value"])
    if kind == "bnode":
        return BlankNode(value["value"])
    if kind in ("literal", "typed-literal"):
        lang = value.get("xml:lang")
        if lang:
            return LangString(value["value"], lang)
        datatype = value.get("datatype")
        if datatype:
            return typed_literal(value["value"], Iri(datatype))
        return PlainLiteral(value["value"])
    if kind == "triple":
        inner = value["value"]
        return TripleTerm(
            RdfTriple(
                decode_json_term(inner["subject"]),
                decode_json_term(inner["predicate"]),
                decode_json_term(inner["object"]),
            )
        )
    raise ValueError(f"Unknown SPARQL JSON term type: {kind!r}")


def decode_select_results(data: Dict[str, Any]) -> SparqlQueryResult:
    variables = data.get("head", {}).get("vars", [])
    rows = []
    for binding in data.get("results", {}).get("bindings", []):
        rows.append(
            BindingSet({name: decode_json_term(term) for name, term in binding.items()})
        )
    return SparqlQueryResult(variables, rows)


# =============================================================================
# Repository
# =============================================================================

class SparqlEndpointRepository(RdfRepository):
    """
    RdfRepository backed by a remote SPARQL endpoint.

    Args:
        config: endpoint URLs, timeouts, retries and credentials
        client: optional preconfigured httpx.Client (e.g. with a
            MockTransport in tests); the repository closes only clients it
            created itself
    """

    def __init__(self, config: EndpointConfig, client: Optional[httpx.Client] = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout_seconds)
        self._closed = False
        self._default_graph = SparqlEndpointGraph(self)

    def __repr__(self) -> str:
        return f"SparqlEndpointRepository({self.config.url!r})"

    # Transport

    def _headers(self, content_type: str, accept: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": content_type}
        if accept:
            headers["Accept"] = accept
        if self.config.auth_token:
            headers["Authorization"] = f"Bearer {self.config.auth_token}"
        headers.update(self.config.headers)
        return headers

    def _post(self, url: str, body: str, content_type: str, accept: Optional[str]) -> httpx.Response:
        if self._closed:
            raise RuntimeError("Repository is closed")

        headers = self._headers(content_type, accept)
        attempts = self.config.max_retries + 1
        for attempt in range(attempts):
            try:
                response = self._client.post(
                    url,
                    content=body.encode("utf-8"),
                    headers=headers,
                    timeout=self.config.timeout_seconds,
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                raise SparqlEndpointError(
                    f"Endpoint {url} returned HTTP {e.response.status_code}: "
                    f"{e.response.text[:200]}",
                    query=body,
                    status_code=e.response.status_code,
                ) from e
            except httpx.TransportError as e:
                if attempt + 1 >= attempts:
                    raise SparqlEndpointError(
                        f"Endpoint {url} unreachable after {attempts} attempts: {e}",
                        query=body,
                    ) from e
                logger.warning(
                    f"Request to {url} failed (attempt {attempt + 1}/{attempts}): {e}"
                )
                time.sleep(self.config.retry_backoff_seconds * (attempt + 1))

    def _query(self, query: str, accept: str) -> httpx.Response:
        return self._post(self.config.url, query, SPARQL_QUERY, accept)

    # Query operations

    def select(self, query: SparqlSelect) -> SparqlQueryResult:
        response = self._query(query.sparql, SPARQL_RESULTS_JSON)
        return decode_select_results(response.json())

    def ask(self, query: SparqlAsk) -> bool:
        response = self._query(query.sparql, SPARQL_RESULTS_JSON)
        data = response.json()
        if "boolean" not in data:
            raise SparqlEndpointError("ASK response has no boolean", query=query.sparql)
        return bool(data["boolean"])

    def _graph_query(self, sparql: str) -> Iterator[RdfTriple]:
        response = self._query(sparql, N_TRIPLES)
        parsed = ox.parse(input=response.content, format=ox.RdfFormat.N_TRIPLES)
        return (triple_from_oxigraph(t) for t in parsed)

    def construct(self, query: SparqlConstruct) -> Iterator[RdfTriple]:
        return self._graph_query(query.sparql)

    def describe(self, query: SparqlDescribe) -> Iterator[RdfTriple]:
        return self._graph_query(query.sparql)

    def update(self, query: UpdateQuery) -> None:
        self._post(self.config.effective_update_url, query.sparql, SPARQL_UPDATE, None)

    # Graph operations

    @property
    def default_graph(self) -> "SparqlEndpointGraph":
        return self._default_graph

    def has_graph(self, name: Iri) -> bool:
        query = sb.ask().where(
            NamedGraphPatternAst(name, sb.pattern(lambda p: p.triple("?s", "?p", "?o")))
        )
        return self.ask(query.to_query())

    def get_graph(self, name: Iri) -> Optional["SparqlEndpointGraph"]:
        if not self.has_graph(name):
            return None
        return SparqlEndpointGraph(self, name)

    def list_graphs(self) -> list[Iri]:
        query = sb.select("?g").distinct().where(
            lambda w: w.graph(Var("g"), lambda g: g.triple("?s", "?p", "?o"))
        )
        result = self.select(query.to_query())
        return [row["g"] for row in result if isinstance(row.get("g"), Iri)]

    def create_graph(self, name: Iri) -> "SparqlEndpointGraph":
        self.update(sb.update().create(name, silent=True).to_query())
        return SparqlEndpointGraph(self, name)

    def remove_graph(self, name: Iri) -> bool:
        existed = self.has_graph(name)
        self.update(sb.update().drop(name, silent=True).to_query())
        return existed

    def edit_default_graph(self) -> GraphEditor:
        return self._default_graph

    def edit_graph(self, name: Iri) -> GraphEditor:
        return SparqlEndpointGraph(self, name)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            self._client.close()


class SparqlEndpointGraph(MutableRdfGraph, SourceTrackedGraph):
    """
    One graph of a remote endpoint, read and written through SPARQL.
    """

    def __init__(self, repository: SparqlEndpointRepository, graph_name: Optional[Iri] = None):
        self._repository = repository
        self._graph_name = graph_name

    @property
    def source_repository(self) -> SparqlEndpointRepository:
        return self._repository

    @property
    def source_graph_name(self) -> Optional[Iri]:
        return self._graph_name

    def _scoped(self, pattern: TriplePatternAst):
        group = sb.pattern(lambda p: p.add(pattern))
        if self._graph_name is None:
            return group
        return sb.pattern(lambda p: p.add(NamedGraphPatternAst(self._graph_name, group)))

    def has_triple(self, triple: RdfTriple) -> bool:
        pattern = TriplePatternAst(triple.subject, triple.predicate, triple.object)
        return self._repository.ask(sb.ask().where(self._scoped(pattern)).to_query())

    def get_triples(self) -> list[RdfTriple]:
        return list(self.get_triples_sequence())

    def get_triples_sequence(self) -> Iterator[RdfTriple]:
        pattern = TriplePatternAst(Var("s"), Var("p"), Var("o"))
        query = sb.select("?s", "?p", "?o").where(self._scoped(pattern)).to_query()
        for row in self._repository.select(query):
            yield RdfTriple(row["s"], row["p"], row["o"])

    def size(self) -> int:
        pattern = TriplePatternAst(Var("s"), Var("p"), Var("o"))
        query = sb.select().expression(sb.count(), "count").where(self._scoped(pattern)).to_query()
        row = self._repository.select(query).first()
        count = row.get_int("count") if row is not None else None
        return count or 0

    def add_triple(self, triple: RdfTriple) -> None:
        self.add_triples([triple])

    def add_triples(self, triples) -> int:
        batch = list(triples)
        if not batch:
            return 0
        self._repository.update(
            sb.update().insert_data(_data_pattern(batch), graph=self._graph_name).to_query()
        )
        return len(batch)

    def remove_triple(self, triple: RdfTriple) -> bool:
        if not self.has_triple(triple):
            return False
        self._repository.update(
            sb.update().delete_data(_data_pattern([triple]), graph=self._graph_name).to_query()
        )
        return True

    def clear(self) -> None:
        builder = sb.update()
        if self._graph_name is None:
            builder.clear(scope=GraphScope.DEFAULT, silent=True)
        else:
            builder.clear(self._graph_name, silent=True)
        self._repository.update(builder.to_query())

    def __repr__(self) -> str:
        name = self._graph_name.value if self._graph_name is not None else "DEFAULT"
        return f"SparqlEndpointGraph({self._repository.config.url}, {name})"


def _data_pattern(triples):
    def fill(p):
        for t in triples:
            p.triple(t.subject, t.predicate, t.object)
    return fill
