"""
Query value objects.

A query value object is an immutable ``(text, kind)`` pair. Backends and
the Dataset only ever see these; the AST stays on the caller side.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from rdf_dataset.sparql.ast import (
    AskQueryAst,
    ConstructQueryAst,
    DescribeQueryAst,
    SelectQueryAst,
    SparqlQueryAst,
    UpdateRequestAst,
)
from rdf_dataset.sparql.renderer import render_query, render_update


class QueryKind(Enum):
    """Kind of SPARQL request."""
    SELECT = "select"
    ASK = "ask"
    CONSTRUCT = "construct"
    DESCRIBE = "describe"
    UPDATE = "update"


@dataclass(frozen=True)
class SparqlQuery:
    """Base class of the read query value objects."""
    sparql: str

    kind = None

    def with_text(self, sparql: str) -> "SparqlQuery":
        """Return a query of the same kind carrying different text."""
        return replace(self, sparql=sparql)

    def __str__(self) -> str:
        return self.sparql


@dataclass(frozen=True)
class SparqlSelect(SparqlQuery):
    kind = QueryKind.SELECT


@dataclass(frozen=True)
class SparqlAsk(SparqlQuery):
    kind = QueryKind.ASK


@dataclass(frozen=True)
class SparqlConstruct(SparqlQuery):
    kind = QueryKind.CONSTRUCT


@dataclass(frozen=True)
class SparqlDescribe(SparqlQuery):
    kind = QueryKind.DESCRIBE


@dataclass(frozen=True)
class UpdateQuery:
    """Rendered SPARQL Update text."""
    sparql: str

    kind = QueryKind.UPDATE

    def __str__(self) -> str:
        return self.sparql


AnyQuery = Union[SparqlSelect, SparqlAsk, SparqlConstruct, SparqlDescribe]


def to_query(ast: Union[SparqlQueryAst, UpdateRequestAst]):
    """
    Render an AST and wrap the text in the matching value object.

    Raises:
        TypeError: if ``ast`` is not a query or update request node
    """
    if isinstance(ast, SelectQueryAst):
        return SparqlSelect(render_query(ast))
    if isinstance(ast, AskQueryAst):
        return SparqlAsk(render_query(ast))
    if isinstance(ast, ConstructQueryAst):
        return SparqlConstruct(render_query(ast))
    if isinstance(ast, DescribeQueryAst):
        return SparqlDescribe(render_query(ast))
    if isinstance(ast, UpdateRequestAst):
        return UpdateQuery(render_update(ast))
    raise TypeError(f"Cannot build a query from {type(ast).__name__}")
