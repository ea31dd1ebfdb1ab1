"""
RDF Term Model.

Immutable value types for the terms that can appear in triples and
SPARQL patterns:

- Iri: Internationalized Resource Identifier
- BlankNode: anonymous resource
- PlainLiteral / LangString / TypedLiteral: the three literal shapes
- Var: SPARQL variable (patterns only)
- TripleTerm: RDF-star quoted triple used as a term

All terms compare structurally and are hashable, so they can be used as
dictionary keys and in sets (the union views rely on this for dedupe).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union


# =============================================================================
# Well-known IRIs
# =============================================================================

XSD_NS = "http://www.w3.org/2001/XMLSchema#"
RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"

# Characters that may not appear inside <...> (SPARQL IRIREF production)
_INVALID_IRI_CHARS = re.compile(r'[<>"{}|^`\\\x00-\x20]')
_VAR_NAME = re.compile(r"^\w+$")


@dataclass(frozen=True, slots=True)
class Iri:
    """
    An IRI term.

    The value is the bare IRI string; ``str()`` gives the ``<iri>`` form
    suitable for SPARQL and N-Triples.
    """
    value: str

    def __post_init__(self):
        if not self.value:
            raise ValueError("IRI cannot be empty")
        if _INVALID_IRI_CHARS.search(self.value):
            raise ValueError(f"Invalid IRI: {self.value!r}")

    def __str__(self) -> str:
        return f"<{self.value}>"


XSD_STRING = Iri(XSD_NS + "string")
XSD_BOOLEAN = Iri(XSD_NS + "boolean")
XSD_INTEGER = Iri(XSD_NS + "integer")
XSD_DECIMAL = Iri(XSD_NS + "decimal")
XSD_DOUBLE = Iri(XSD_NS + "double")
XSD_DATE = Iri(XSD_NS + "date")
XSD_DATETIME = Iri(XSD_NS + "dateTime")
RDF_LANGSTRING = Iri(RDF_NS + "langString")
RDF_TYPE = Iri(RDF_NS + "type")


@dataclass(frozen=True, slots=True)
class BlankNode:
    """A blank node, identified by a local label."""
    id: str

    def __post_init__(self):
        if self.id.startswith("_:"):
            object.__setattr__(self, "id", self.id[2:])
        if not self.id:
            raise ValueError("Blank node label cannot be empty")

    def __str__(self) -> str:
        return f"_:{self.id}"


@dataclass(frozen=True, slots=True)
class PlainLiteral:
    """A simple string literal (datatype xsd:string)."""
    lexical: str

    @property
    def datatype(self) -> Iri:
        return XSD_STRING

    def __str__(self) -> str:
        return format_term(self)


@dataclass(frozen=True, slots=True)
class LangString:
    """A language-tagged string (datatype rdf:langString)."""
    lexical: str
    lang: str

    @property
    def datatype(self) -> Iri:
        return RDF_LANGSTRING

    def __str__(self) -> str:
        return format_term(self)


@dataclass(frozen=True, slots=True)
class TypedLiteral:
    """A literal with an explicit datatype IRI."""
    lexical: str
    datatype: Iri

    def __str__(self) -> str:
        return format_term(self)


@dataclass(frozen=True, slots=True)
class Var:
    """
    A SPARQL variable (e.g. ?name).

    Only meaningful inside query patterns; never stored in a graph.
    """
    name: str

    def __post_init__(self):
        if self.name[:1] in ("?", "$"):
            object.__setattr__(self, "name", self.name[1:])
        if not _VAR_NAME.match(self.name):
            raise ValueError(f"Invalid variable name: {self.name!r}")

    def __str__(self) -> str:
        return f"?{self.name}"


@dataclass(frozen=True, slots=True)
class RdfTriple:
    """
    A concrete RDF triple.

    Subjects are resources (IRI, blank node, quoted triple); the predicate
    is always an IRI.
    """
    subject: "RdfResource"
    predicate: Iri
    object: "RdfTerm"

    def __str__(self) -> str:
        return f"{format_term(self.subject)} {self.predicate} {format_term(self.object)} ."


@dataclass(frozen=True, slots=True)
class TripleTerm:
    """An RDF-star quoted triple used as a subject or object."""
    triple: RdfTriple

    def __str__(self) -> str:
        return format_term(self)


Literal = Union[PlainLiteral, LangString, TypedLiteral]
RdfResource = Union[Iri, BlankNode, TripleTerm]
RdfTerm = Union[Iri, BlankNode, PlainLiteral, LangString, TypedLiteral, Var, TripleTerm]

LITERAL_TYPES = (PlainLiteral, LangString, TypedLiteral)
RESOURCE_TYPES = (Iri, BlankNode, TripleTerm)


# =============================================================================
# Formatting
# =============================================================================

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_string(lexical: str) -> str:
    """Escape a lexical form for use inside a double-quoted SPARQL string."""
    return "".join(_ESCAPES.get(ch, ch) for ch in lexical)


def format_term(term: RdfTerm) -> str:
    """
    Render a term in SPARQL / N-Triples syntax.

    Raises:
        TypeError: if the value is not one of the known term types
    """
    if isinstance(term, Iri):
        return f"<{term.value}>"
    if isinstance(term, BlankNode):
        return f"_:{term.id}"
    if isinstance(term, Var):
        return f"?{term.name}"
    if isinstance(term, PlainLiteral):
        return f'"{escape_string(term.lexical)}"'
    if isinstance(term, LangString):
        return f'"{escape_string(term.lexical)}"@{term.lang}'
    if isinstance(term, TypedLiteral):
        return f'"{escape_string(term.lexical)}"^^<{term.datatype.value}>'
    if isinstance(term, TripleTerm):
        t = term.triple
        return (
            f"<< {format_term(t.subject)} {format_term(t.predicate)} "
            f"{format_term(t.object)} >>"
        )
    raise TypeError(f"Unsupported RDF term: {type(term).__name__}")


def is_literal(term: Any) -> bool:
    return isinstance(term, LITERAL_TYPES)


def is_resource(term: Any) -> bool:
    return isinstance(term, RESOURCE_TYPES)


# =============================================================================
# Factories
# =============================================================================

def iri(value: str) -> Iri:
    """Create an IRI term."""
    return Iri(value)


def bnode(label: str) -> BlankNode:
    """Create a blank node."""
    return BlankNode(label)


def var(name: str) -> Var:
    """Create a SPARQL variable (leading ? or $ is stripped)."""
    return Var(name)


def lang_string(lexical: str, lang: str) -> LangString:
    return LangString(lexical, lang)


def typed_literal(lexical: str, datatype: Iri) -> Literal:
    """
    Create a typed literal.

    xsd:string collapses to PlainLiteral so that equal RDF literals are
    equal Python values.
    """
    if datatype == XSD_STRING:
        return PlainLiteral(lexical)
    return TypedLiteral(lexical, datatype)


def literal(
    value: Any,
    datatype: Optional[Iri] = None,
    lang: Optional[str] = None,
) -> Literal:
    """
    Create a literal, inferring the datatype from Python values.

    Examples:
        literal("Alice")            -> "Alice"
        literal("Alice", lang="en") -> "Alice"@en
        literal(42)                 -> "42"^^xsd:integer
        literal(True)               -> "true"^^xsd:boolean
    """
    if lang is not None:
        return LangString(str(value), lang)
    if datatype is not None:
        lexical = _lexical_form(value)
        return typed_literal(lexical, datatype)

    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return TypedLiteral("true" if value else "false", XSD_BOOLEAN)
    if isinstance(value, int):
        return TypedLiteral(str(value), XSD_INTEGER)
    if isinstance(value, float):
        return TypedLiteral(repr(value), XSD_DOUBLE)
    if isinstance(value, Decimal):
        return TypedLiteral(format(value.normalize(), "f"), XSD_DECIMAL)
    if isinstance(value, datetime):
        return TypedLiteral(value.isoformat(), XSD_DATETIME)
    if isinstance(value, date):
        return TypedLiteral(value.isoformat(), XSD_DATE)
    if isinstance(value, str):
        return PlainLiteral(value)
    raise TypeError(f"Cannot create a literal from {type(value).__name__}")


def _lexical_form(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def triple(subject: RdfResource, predicate: Iri, obj: RdfTerm) -> RdfTriple:
    """Create a triple."""
    return RdfTriple(subject, predicate, obj)


def quoted(subject: RdfResource, predicate: Iri, obj: RdfTerm) -> TripleTerm:
    """Create an RDF-star quoted triple term."""
    return TripleTerm(RdfTriple(subject, predicate, obj))
