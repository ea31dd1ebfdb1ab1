"""Tests for SPARQL rendering."""

import pytest

from rdf_dataset.sparql import builders as sb
from rdf_dataset.sparql.ast import (
    GraphPatternAst,
    GraphScope,
    GroupPatternAst,
    OrderDirection,
    SelectQueryAst,
)
from rdf_dataset.sparql.renderer import SparqlRenderer, render, render_query
from rdf_dataset.terms import Iri, Var

from conftest import ex


EX_P = "<http://example.org/p>"


# =============================================================================
# Query forms
# =============================================================================

class TestQueryRendering:
    """Tests for query form rendering."""

    def test_select_wildcard(self):
        """Test an empty projection renders as SELECT *."""
        text = sb.select().where(lambda w: w.triple("?s", "?p", "?o")).to_query().sparql
        assert text == "SELECT *\nWHERE {\n  ?s ?p ?o .\n}\n"

    def test_clause_order(self):
        """Test declarations, dataset clauses, body and modifiers are ordered."""
        text = (
            sb.select("?s", "?o")
            .version("1.2")
            .prefix("ex", "http://example.org/")
            .from_graph(ex("g1"))
            .from_named(ex("g2"))
            .where(lambda w: w.triple("?s", ex("p"), "?o"))
            .group_by("?s")
            .having(sb.gt(sb.count("?o"), 1))
            .order_by("?s")
            .limit(10)
            .offset(20)
            .to_query()
            .sparql
        )
        markers = [
            'VERSION "1.2"',
            "PREFIX ex: <http://example.org/>",
            "SELECT ?s ?o",
            "FROM <http://example.org/g1>",
            "FROM NAMED <http://example.org/g2>",
            "WHERE {",
            "GROUP BY ?s",
            "HAVING (COUNT(?o) > ",
            "ORDER BY ASC(?s)",
            "LIMIT 10",
            "OFFSET 20",
        ]
        positions = [text.index(m) for m in markers]
        assert positions == sorted(positions)

    def test_dataset_clauses_keep_declaration_order(self):
        """Test FROM clauses render in the order they were added."""
        text = (
            sb.ask()
            .from_graph(ex("b"))
            .from_graph(ex("a"))
            .where(lambda w: w.triple("?s", "?p", "?o"))
            .to_query()
            .sparql
        )
        assert text == (
            "ASK\n"
            "FROM <http://example.org/b>\n"
            "FROM <http://example.org/a>\n"
            "WHERE {\n  ?s ?p ?o .\n}\n"
        )

    def test_select_modifiers(self):
        """Test DISTINCT, aliases and ORDER BY DESC."""
        text = (
            sb.select("?s")
            .distinct()
            .expression(sb.count("?o", distinct=True), "n")
            .where(lambda w: w.triple("?s", ex("p"), "?o"))
            .group_by("?s")
            .order_by(Var("n"), OrderDirection.DESC)
            .to_query()
            .sparql
        )
        assert text.startswith("SELECT DISTINCT ?s (COUNT(DISTINCT ?o) AS ?n)\n")
        assert "ORDER BY DESC(?n)\n" in text

    def test_ask_without_where(self):
        """Test a missing WHERE renders as an empty group."""
        assert sb.ask().to_query().sparql == "ASK\nWHERE {}\n"

    def test_construct(self):
        """Test CONSTRUCT template, dataset clause and WHERE."""
        text = (
            sb.construct()
            .template(lambda t: t.triple("?s", ex("p"), "?o"))
            .from_graph(ex("g"))
            .where(lambda w: w.triple("?s", ex("q"), "?o"))
            .to_query()
            .sparql
        )
        assert text == (
            "CONSTRUCT {\n"
            f"  ?s {EX_P} ?o .\n"
            "}\n"
            "FROM <http://example.org/g>\n"
            "WHERE {\n"
            "  ?s <http://example.org/q> ?o .\n"
            "}\n"
        )

    def test_describe(self):
        """Test DESCRIBE targets and the wildcard form."""
        assert sb.describe(ex("a")).to_query().sparql == "DESCRIBE <http://example.org/a>\n"
        assert sb.describe().to_query().sparql == "DESCRIBE *\n"

    def test_deterministic(self):
        """Test rendering the same AST twice gives identical text."""
        query = (
            sb.select("?s")
            .prefix("ex", "http://example.org/")
            .where(lambda w: (
                w.triple("?s", ex("p"), "?o")
                 .optional(lambda o: o.triple("?o", ex("q"), "?x"))
                 .filter(sb.regex("?x", "^a", "i"))
            ))
            .build()
        )
        assert render_query(query) == render_query(query)
        assert render(query) == SparqlRenderer().render(query)

    def test_unknown_node(self):
        """Test unknown nodes raise TypeError."""
        class Strange(GraphPatternAst):
            pass

        with pytest.raises(TypeError):
            render_query(SelectQueryAst(where=GroupPatternAst((Strange(),))))
        with pytest.raises(TypeError):
            render_query("SELECT * {}")


# =============================================================================
# Graph patterns
# =============================================================================

class TestPatternRendering:
    """Tests for graph pattern rendering."""

    def where(self, block) -> str:
        return sb.select().where(block).to_query().sparql

    def test_union(self):
        """Test UNION operands are wrapped in braces."""
        text = self.where(
            lambda w: w.triple("?s", ex("a"), "?o").union(lambda u: u.triple("?s", ex("b"), "?o"))
        )
        assert text == (
            "SELECT *\n"
            "WHERE {\n"
            "  {\n"
            "    ?s <http://example.org/a> ?o .\n"
            "  }\n"
            "  UNION {\n"
            "    ?s <http://example.org/b> ?o .\n"
            "  }\n"
            "}\n"
        )

    def test_optional_and_minus(self):
        """Test OPTIONAL and MINUS blocks."""
        text = self.where(
            lambda w: (
                w.triple("?s", ex("a"), "?o")
                 .optional(lambda o: o.triple("?s", ex("b"), "?x"))
                 .minus(lambda m: m.triple("?s", ex("c"), "?o"))
            )
        )
        assert "  OPTIONAL {\n    ?s <http://example.org/b> ?x .\n  }\n" in text
        assert "  MINUS {\n    ?s <http://example.org/c> ?o .\n  }\n" in text

    def test_graph_and_service(self):
        """Test GRAPH and SERVICE SILENT blocks."""
        text = self.where(
            lambda w: (
                w.graph("?g", lambda g: g.triple("?s", "?p", "?o"))
                 .service(ex("sparql"), lambda s: s.triple("?s", "?p", "?o"), silent=True)
            )
        )
        assert "  GRAPH ?g {\n    ?s ?p ?o .\n  }\n" in text
        assert "  SERVICE SILENT <http://example.org/sparql> {\n" in text

    def test_values(self):
        """Test VALUES with UNDEF."""
        text = self.where(lambda w: w.values(["?x", "?y"], [(ex("a"), "b"), (None, "c")]))
        assert 'VALUES (?x ?y) { (<http://example.org/a> "b") (UNDEF "c") }' in text

        single = self.where(lambda w: w.values("?x", [ex("a"), ex("b")]))
        assert "VALUES ?x { <http://example.org/a> <http://example.org/b> }" in single

    def test_bind_and_filter(self):
        """Test BIND and FILTER expressions."""
        text = self.where(
            lambda w: (
                w.triple("?s", ex("p"), "?o")
                 .bind("?len", sb.strlen("?o"))
                 .filter(sb.and_(sb.gt("?len", sb.to_term(2)), sb.not_(sb.eq("?o", "x"))))
            )
        )
        assert "BIND(STRLEN(?o) AS ?len)" in text
        assert (
            'FILTER((?len > "2"^^<http://www.w3.org/2001/XMLSchema#integer> && !(?o = "x")))'
            in text
        )

    def test_function_names(self):
        """Test extension functions named by any IRI scheme are bracketed."""
        text = self.where(
            lambda w: (
                w.triple("?s", ex("p"), "?o")
                 .filter(sb.function(Iri("urn:x:fn"), "?o"))
                 .filter(sb.function(ex("fn"), "?o"))
                 .filter(sb.function("geof:distance", "?o", "?s"))
            )
        )
        assert "FILTER(<urn:x:fn>(?o))" in text
        assert "FILTER(<http://example.org/fn>(?o))" in text
        assert "FILTER(geof:distance(?o, ?s))" in text

    def test_exists(self):
        """Test FILTER NOT EXISTS renders its group."""
        text = self.where(
            lambda w: (
                w.triple("?s", ex("p"), "?o")
                 .filter(sb.not_exists(lambda e: e.triple("?s", ex("q"), "?o")))
            )
        )
        assert "FILTER(NOT EXISTS {\n    ?s <http://example.org/q> ?o .\n  })" in text

    def test_sub_select(self):
        """Test nested SELECT is braced and indented."""
        text = self.where(
            lambda w: w.sub_select(
                lambda s: s.variable("?s").where(lambda i: i.triple("?s", "?p", "?o")).limit(1)
            )
        )
        assert text == (
            "SELECT *\n"
            "WHERE {\n"
            "  {\n"
            "    SELECT ?s\n"
            "    WHERE {\n"
            "      ?s ?p ?o .\n"
            "    }\n"
            "    LIMIT 1\n"
            "  }\n"
            "}\n"
        )

    def test_quoted_triple_annotation(self):
        """Test RDF-star statement patterns."""
        quoted = sb.pattern(lambda q: q.quoted_triple("?s", ex("p"), "?o")).patterns[0]
        text = self.where(lambda w: w.annotated(quoted, ex("source"), "?src"))
        assert f"<< ?s {EX_P} ?o >> <http://example.org/source> ?src ." in text

    def test_literal_escaping(self):
        """Test quotes, backslashes and control characters are escaped."""
        text = self.where(lambda w: w.triple("?s", ex("p"), 'a"b\\c\nd\te'))
        assert '"a\\"b\\\\c\\nd\\te"' in text

    def test_group_concat_separator(self):
        """Test GROUP_CONCAT with a separator."""
        text = (
            sb.select()
            .expression(sb.group_concat("?name", separator=", "), "names")
            .where(lambda w: w.triple("?s", ex("name"), "?name"))
            .to_query()
            .sparql
        )
        assert 'SELECT (GROUP_CONCAT(?name; SEPARATOR=", ") AS ?names)' in text


# =============================================================================
# Property paths
# =============================================================================

class TestPathRendering:
    """Tests for property path rendering."""

    A = "<http://example.org/a>"
    B = "<http://example.org/b>"
    C = "<http://example.org/c>"

    def render(self, path) -> str:
        return SparqlRenderer().render_path(path)

    def test_unary(self):
        """Test postfix and prefix operators."""
        assert self.render(sb.path(ex("a")).one_or_more()) == f"{self.A}+"
        assert self.render(sb.path(ex("a")).zero_or_more()) == f"{self.A}*"
        assert self.render(sb.path(ex("a")).zero_or_one()) == f"{self.A}?"
        assert self.render(sb.path(ex("a")).inverse()) == f"^{self.A}"
        assert self.render(sb.path(ex("a")).negation()) == f"!{self.A}"

    def test_alternative_inside_sequence(self):
        """Test compound operands are parenthesized."""
        left = sb.path(ex("a")).alternative(ex("b")).sequence(ex("c"))
        assert self.render(left) == f"({self.A}|{self.B})/{self.C}"

        right = sb.path(ex("a")).sequence(sb.path(ex("b")).alternative(ex("c")))
        assert self.render(right) == f"{self.A}/({self.B}|{self.C})"

    def test_compound_under_modifier(self):
        """Test a modifier applies to the whole compound path."""
        path = sb.path(ex("a")).sequence(ex("b")).one_or_more()
        assert self.render(path) == f"({self.A}/{self.B})+"
        assert self.render(sb.path(ex("a")).inverse().zero_or_more()) == f"(^{self.A})*"

    def test_ranges(self):
        """Test repetition ranges."""
        assert self.render(sb.path(ex("a")).exactly(2)) == f"{self.A}{{2}}"
        assert self.render(sb.path(ex("a")).at_least(1)) == f"{self.A}{{1,}}"
        assert self.render(sb.path(ex("a")).at_most(3)) == f"{self.A}{{,3}}"
        assert self.render(sb.path(ex("a")).between(1, 3)) == f"{self.A}{{1,3}}"

    def test_path_pattern(self):
        """Test a path inside a WHERE clause."""
        text = (
            sb.select()
            .where(lambda w: w.property_path("?s", sb.path(ex("a")).one_or_more(), "?o"))
            .to_query()
            .sparql
        )
        assert f"  ?s {self.A}+ ?o .\n" in text


# =============================================================================
# Updates
# =============================================================================

class TestUpdateRendering:
    """Tests for SPARQL Update rendering."""

    def test_insert_data(self):
        """Test INSERT DATA into the default graph."""
        text = sb.update().insert_data(lambda d: d.triple(ex("s"), ex("p"), "v")).to_query().sparql
        assert text == (
            "INSERT DATA {\n"
            f'  <http://example.org/s> {EX_P} "v" .\n'
            "}\n"
        )

    def test_delete_data_in_graph(self):
        """Test DELETE DATA wrapped in GRAPH."""
        text = (
            sb.update()
            .delete_data(lambda d: d.triple(ex("s"), ex("p"), "v"), graph=ex("g"))
            .to_query()
            .sparql
        )
        assert text == (
            "DELETE DATA {\n"
            "  GRAPH <http://example.org/g> {\n"
            f'    <http://example.org/s> {EX_P} "v" .\n'
            "  }\n"
            "}\n"
        )

    def test_modify_clause_order(self):
        """Test WITH, DELETE, INSERT, USING, WHERE ordering."""
        text = sb.update().modify(
            lambda m: (
                m.using(ex("u"))
                 .where(lambda w: w.triple("?s", ex("p"), "?o"))
                 .insert(lambda i: i.triple("?s", ex("q"), "?o"))
                 .delete(lambda d: d.triple("?s", ex("p"), "?o"))
                 .with_graph(ex("g"))
            )
        ).to_query().sparql
        markers = ["WITH <http://example.org/g>", "DELETE {", "INSERT {", "USING <http://example.org/u>", "WHERE {"]
        positions = [text.index(m) for m in markers]
        assert positions == sorted(positions)

    def test_graph_management(self):
        """Test several operations joined with semicolons."""
        text = (
            sb.update()
            .prefix("ex", "http://example.org/")
            .clear(ex("g"))
            .drop(scope=GraphScope.ALL, silent=True)
            .create(ex("h"))
            .copy(None, ex("g"))
            .load(ex("doc"), into=ex("g"))
            .to_query()
            .sparql
        )
        assert text == (
            "PREFIX ex: <http://example.org/>\n"
            "CLEAR GRAPH <http://example.org/g> ;\n"
            "DROP SILENT ALL ;\n"
            "CREATE GRAPH <http://example.org/h> ;\n"
            "COPY DEFAULT TO <http://example.org/g> ;\n"
            "LOAD <http://example.org/doc> INTO GRAPH <http://example.org/g>\n"
        )

    def test_delete_where(self):
        """Test DELETE WHERE shorthand."""
        text = sb.update().delete_where(lambda w: w.triple("?s", ex("p"), "?o")).to_query().sparql
        assert text == f"DELETE WHERE {{\n  ?s {EX_P} ?o .\n}}\n"
