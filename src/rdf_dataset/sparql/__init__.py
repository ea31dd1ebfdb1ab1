"""
SPARQL query model.

AST nodes (``ast``), builders (``builders``), text rendering
(``renderer``) and the query value objects handed to repositories
(``queries``).
"""

from rdf_dataset.sparql.queries import (
    AnyQuery,
    QueryKind,
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlQuery,
    SparqlSelect,
    UpdateQuery,
    to_query,
)
from rdf_dataset.sparql.renderer import SparqlRenderer, render, render_query, render_update
from rdf_dataset.sparql.builders import (
    AskBuilder,
    ConstructBuilder,
    DescribeBuilder,
    ModifyBuilder,
    PatternBuilder,
    SelectBuilder,
    UpdateBuilder,
    ask,
    construct,
    describe,
    path,
    pattern,
    select,
    update,
)

__all__ = [
    "AnyQuery",
    "QueryKind",
    "SparqlAsk",
    "SparqlConstruct",
    "SparqlDescribe",
    "SparqlQuery",
    "SparqlSelect",
    "UpdateQuery",
    "to_query",
    "SparqlRenderer",
    "render",
    "render_query",
    "render_update",
    # Builders
    "AskBuilder",
    "ConstructBuilder",
    "DescribeBuilder",
    "ModifyBuilder",
    "PatternBuilder",
    "SelectBuilder",
    "UpdateBuilder",
    "ask",
    "construct",
    "describe",
    "path",
    "pattern",
    "select",
    "update",
]
