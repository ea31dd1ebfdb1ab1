"""Tests for the SPARQL 1.1 Protocol repository, using httpx.MockTransport."""

import json

import httpx
import pytest

from rdf_dataset.config import EndpointConfig
from rdf_dataset.dataset import DatasetBuilder
from rdf_dataset.sparql import builders as sb
from rdf_dataset.storage.endpoint import (
    SparqlEndpointError,
    SparqlEndpointRepository,
    decode_json_term,
    decode_select_results,
)
from rdf_dataset.terms import (
    XSD_INTEGER,
    BlankNode,
    LangString,
    PlainLiteral,
    TripleTerm,
    TypedLiteral,
)

from conftest import ex, t


URL = "http://sparql.example.org/query"
UPDATE_URL = "http://sparql.example.org/update"
XSD = "http://www.w3.org/2001/XMLSchema#"


def select_json(variables, *rows):
    return {"head": {"vars": list(variables)}, "results": {"bindings": list(rows)}}


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.requests = []
        self.responses = list(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_repository(handler, **config):
    config.setdefault("retry_backoff_seconds", 0)
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return SparqlEndpointRepository(EndpointConfig(url=URL, **config), client=client), client


# =============================================================================
# JSON results decoding
# =============================================================================

class TestJsonDecoding:
    """Tests for SPARQL JSON term decoding."""

    def test_terms(self):
        """Test every term type of the JSON results format."""
        assert decode_json_term({"type": "uri", "value": "http://example.org/a"}) == ex("a")
        assert decode_json_term({"type": "bnode", "value": "b1"}) == BlankNode("b1")
        assert decode_json_term({"type": "literal", "value": "x"}) == PlainLiteral("x")
        assert decode_json_term({"type": "literal", "value": "x", "xml:lang": "en"}) == LangString("x", "en")
        assert decode_json_term(
            {"type": "literal", "value": "4", "datatype": XSD + "integer"}
        ) == TypedLiteral("4", XSD_INTEGER)
        assert decode_json_term(
            {"type": "typed-literal", "value": "s", "datatype": XSD + "string"}
        ) == PlainLiteral("s")

    def test_quoted_triple(self):
        """Test the RDF-star triple extension."""
        term = decode_json_term({
            "type": "triple",
            "value": {
                "subject": {"type": "uri", "value": "http://example.org/a"},
                "predicate": {"type": "uri", "value": "http://example.org/p"},
                "object": {"type": "literal", "value": "1"},
            },
        })
        assert isinstance(term, TripleTerm)
        assert term.triple == t("a", "p", "1")

    def test_unknown_type(self):
        """Test unknown term types are rejected."""
        with pytest.raises(ValueError):
            decode_json_term({"type": "mystery", "value": "?"})

    def test_unbound_variables_omitted(self):
        """Test variables missing from a binding are unbound in the row."""
        result = decode_select_results(select_json(
            ["s", "o"],
            {"s": {"type": "uri", "value": "http://example.org/a"}},
        ))
        assert result.variables == ["s", "o"]
        assert result.first().get("o") is None


# =============================================================================
# Queries
# =============================================================================

class TestQueries:
    """Tests for query requests and responses."""

    def test_select(self):
        """Test SELECT is POSTed and its JSON answer decoded."""
        handler = Recorder(httpx.Response(200, json=select_json(
            ["s"], {"s": {"type": "uri", "value": "http://example.org/a"}}
        )))
        repo, _ = make_repository(handler, auth_token="secret", headers={"X-Trace": "1"})
        query = sb.select("?s").where(lambda w: w.triple("?s", "?p", "?o")).to_query()

        result = repo.select(query)

        assert [row["s"] for row in result] == [ex("a")]
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == URL
        assert request.headers["Content-Type"] == "application/sparql-query"
        assert request.headers["Accept"] == "application/sparql-results+json"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["X-Trace"] == "1"
        assert request.content.decode("utf-8") == query.sparql

    def test_ask(self):
        """Test ASK reads the boolean member."""
        repo, _ = make_repository(Recorder(httpx.Response(200, json={"head": {}, "boolean": True})))
        assert repo.ask(sb.ask().where(lambda w: w.triple("?s", "?p", "?o")).to_query()) is True

    def test_ask_without_boolean(self):
        """Test a malformed ASK answer is reported."""
        repo, _ = make_repository(Recorder(httpx.Response(200, json={"head": {}})))
        with pytest.raises(SparqlEndpointError, match="boolean"):
            repo.ask(sb.ask().to_query())

    def test_construct(self):
        """Test CONSTRUCT answers are parsed as N-Triples."""
        body = (
            '<http://example.org/a> <http://example.org/p> "1" .\n'
            '<http://example.org/b> <http://example.org/p> "2" .\n'
        )
        handler = Recorder(httpx.Response(200, text=body))
        repo, _ = make_repository(handler)
        query = (
            sb.construct()
            .template(lambda c: c.triple("?s", "?p", "?o"))
            .where(lambda w: w.triple("?s", "?p", "?o"))
            .to_query()
        )

        assert list(repo.construct(query)) == [t("a", "p", "1"), t("b", "p", "2")]
        assert handler.requests[0].headers["Accept"] == "application/n-triples"

    def test_update_url(self):
        """Test updates go to the update endpoint."""
        handler = Recorder(httpx.Response(204))
        repo, _ = make_repository(handler, update_url=UPDATE_URL)

        repo.update(sb.update().clear(ex("g")).to_query())

        request = handler.requests[0]
        assert str(request.url) == UPDATE_URL
        assert request.headers["Content-Type"] == "application/sparql-update"
        assert "Accept" not in request.headers or request.headers["Accept"] == "*/*"
        assert request.content == b"CLEAR GRAPH <http://example.org/g>\n"


# =============================================================================
# Errors and retries
# =============================================================================

class TestErrors:
    """Tests for HTTP errors and transport retries."""

    def test_http_error_not_retried(self):
        """Test an error status raises immediately."""
        handler = Recorder(httpx.Response(400, text="Parse error at line 1"))
        repo, _ = make_repository(handler, max_retries=3)
        query = sb.select().to_query()

        with pytest.raises(SparqlEndpointError) as raised:
            repo.select(query)

        assert raised.value.status_code == 400
        assert raised.value.query == query.sparql
        assert "Parse error" in str(raised.value)
        assert len(handler.requests) == 1

    def test_transport_error_retried(self):
        """Test connection failures are retried until a request succeeds."""
        refused = httpx.ConnectError("connection refused")
        handler = Recorder(refused, refused, httpx.Response(200, json={"boolean": False}))
        repo, _ = make_repository(handler, max_retries=2)

        assert repo.ask(sb.ask().to_query()) is False
        assert len(handler.requests) == 3

    def test_retries_exhausted(self):
        """Test the last transport failure is reported after all attempts."""
        handler = Recorder(httpx.ConnectError("connection refused"))
        repo, _ = make_repository(handler, max_retries=2)

        with pytest.raises(SparqlEndpointError, match="after 3 attempts") as raised:
            repo.select(sb.select().to_query())

        assert raised.value.status_code is None
        assert isinstance(raised.value.__cause__, httpx.ConnectError)
        assert len(handler.requests) == 3

    def test_no_retries(self):
        """Test max_retries=0 makes a single attempt."""
        handler = Recorder(httpx.ReadTimeout("timed out"))
        repo, _ = make_repository(handler, max_retries=0)

        with pytest.raises(SparqlEndpointError):
            repo.select(sb.select().to_query())
        assert len(handler.requests) == 1


# =============================================================================
# Graphs and lifecycle
# =============================================================================

class TestGraphs:
    """Tests for graph operations expressed as SPARQL."""

    def test_size_uses_count(self):
        """Test graph size is read from a COUNT query."""
        handler = Recorder(httpx.Response(200, json=select_json(
            ["count"], {"count": {"type": "literal", "datatype": XSD + "integer", "value": "7"}}
        )))
        repo, _ = make_repository(handler)

        assert repo.default_graph.size() == 7
        assert "COUNT(*)" in handler.requests[0].content.decode("utf-8")

    def test_named_graph_scoped(self):
        """Test reads of a named graph wrap the pattern in GRAPH."""
        handler = Recorder(
            httpx.Response(200, json={"boolean": True}),
            httpx.Response(200, json=select_json(
                ["s", "p", "o"],
                {
                    "s": {"type": "uri", "value": "http://example.org/a"},
                    "p": {"type": "uri", "value": "http://example.org/p"},
                    "o": {"type": "literal", "value": "1"},
                },
            )),
        )
        repo, _ = make_repository(handler)

        graph = repo.get_graph(ex("g1"))

        assert graph.source_graph_name == ex("g1")
        assert graph.get_triples() == [t("a", "p", "1")]
        assert "GRAPH <http://example.org/g1>" in handler.requests[1].content.decode("utf-8")

    def test_add_triples_batched(self):
        """Test inserts are sent as one INSERT DATA request."""
        handler = Recorder(httpx.Response(204))
        repo, _ = make_repository(handler)

        count = repo.edit_graph(ex("g1")).add_triples([t("a", "p", "1"), t("b", "p", "2")])

        assert count == 2
        assert len(handler.requests) == 1
        body = handler.requests[0].content.decode("utf-8")
        assert body.startswith("INSERT DATA {\n  GRAPH <http://example.org/g1> {")

    def test_pushed_down_from_dataset(self):
        """Test a dataset over endpoint graphs sends FROM clauses to the endpoint."""
        handler = Recorder(
            httpx.Response(200, json={"boolean": True}),
            httpx.Response(200, json=select_json(["s"])),
        )
        repo, _ = make_repository(handler)
        dataset = DatasetBuilder().default_graph(repo.get_graph(ex("g1"))).build()

        dataset.select(sb.select("?s").where(lambda w: w.triple("?s", "?p", "?o")).to_query())

        sent = handler.requests[1].content.decode("utf-8")
        assert "FROM <http://example.org/g1>\nWHERE" in sent


class TestLifecycle:
    """Tests for client ownership."""

    def test_injected_client_left_open(self):
        """Test a client passed in by the caller is not closed."""
        repo, client = make_repository(Recorder(httpx.Response(204)))
        repo.close()
        repo.close()

        assert not client.is_closed
        with pytest.raises(RuntimeError, match="closed"):
            repo.select(sb.select().to_query())
        client.close()

    def test_owned_client_closed(self):
        """Test a client created by the repository is closed with it."""
        repo = SparqlEndpointRepository(EndpointConfig(url=URL))
        client = repo._client
        repo.close()
        assert client.is_closed

    def test_config_round_trip(self):
        """Test endpoint settings survive JSON without the token."""
        config = EndpointConfig(url=URL, auth_token="secret", headers={"X-Trace": "1"})
        data = json.loads(json.dumps(config.to_dict()))
        assert "auth_token" not in data
        assert EndpointConfig.from_dict(data).headers == {"X-Trace": "1"}
