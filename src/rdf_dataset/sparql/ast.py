"""
Abstract Syntax Tree (AST) nodes for SPARQL 1.1 / 1.2 queries and updates.

Every SPARQL construct has exactly one node type. Nodes are frozen
dataclasses whose sequence fields are normalized to tuples, so an AST
can never change after it has been built and rendering it twice gives
the same text.

Node families:
- Query forms: SelectQueryAst, AskQueryAst, ConstructQueryAst, DescribeQueryAst
- Select items: VariableSelectItemAst, AliasedSelectItemAst, WildcardSelectItemAst
- Graph patterns: TriplePatternAst, GroupPatternAst, OptionalPatternAst, ...
- Property paths: BasicPathAst, SequencePathAst, AlternativePathAst, ...
- Expressions: TermExpressionAst, ComparisonExpressionAst, FunctionCallAst, ...
- Updates: UpdateRequestAst holding InsertDataOperationAst, ModifyOperationAst, ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from rdf_dataset.terms import Iri, RdfTerm, Var


def _freeze(node, *names: str) -> None:
    """Normalize list-valued fields of a frozen node to tuples."""
    for name in names:
        value = getattr(node, name)
        if not isinstance(value, tuple):
            object.__setattr__(node, name, tuple(value))


# =============================================================================
# Prologue
# =============================================================================

@dataclass(frozen=True)
class PrefixDeclaration:
    """A PREFIX declaration, e.g. ``PREFIX foaf: <http://xmlns.com/foaf/0.1/>``."""
    prefix: str
    namespace: str

    def __str__(self) -> str:
        return f"PREFIX {self.prefix}: <{self.namespace}>"


# =============================================================================
# Expressions
# =============================================================================

class ExpressionAst:
    """Base class of all expression nodes."""


class FilterExpressionAst(ExpressionAst):
    """Expressions that evaluate to a boolean and can appear in FILTER."""


class ComparisonOperator(Enum):
    """Comparison operators for FILTER expressions."""
    EQ = "="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="

    @property
    def symbol(self) -> str:
        return self.value

    @classmethod
    def from_str(cls, op: str) -> "ComparisonOperator":
        mapping = {
            "=": cls.EQ, "==": cls.EQ,
            "!=": cls.NE, "<>": cls.NE,
            "<": cls.LT, "<=": cls.LTE,
            ">": cls.GT, ">=": cls.GTE,
        }
        return mapping[op]


class ArithmeticOperator(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"

    @property
    def symbol(self) -> str:
        return self.value


class AggregateFunction(Enum):
    """SPARQL aggregate functions, valued by their keyword."""
    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"
    GROUP_CONCAT = "GROUP_CONCAT"
    SAMPLE = "SAMPLE"


@dataclass(frozen=True)
class TermExpressionAst(ExpressionAst):
    """A constant term or variable used as an expression."""
    term: RdfTerm


@dataclass(frozen=True)
class ComparisonExpressionAst(FilterExpressionAst):
    left: ExpressionAst
    operator: ComparisonOperator
    right: ExpressionAst


@dataclass(frozen=True)
class AndExpressionAst(FilterExpressionAst):
    left: FilterExpressionAst
    right: FilterExpressionAst


@dataclass(frozen=True)
class OrExpressionAst(FilterExpressionAst):
    left: FilterExpressionAst
    right: FilterExpressionAst


@dataclass(frozen=True)
class NotExpressionAst(FilterExpressionAst):
    expression: FilterExpressionAst


@dataclass(frozen=True)
class FunctionCallAst(FilterExpressionAst):
    """
    A built-in or extension function call.

    ``name`` is a SPARQL keyword or prefixed name (``STRLEN``,
    ``geof:distance``), rendered as is, or an Iri for extension
    functions (rendered as ``<iri>(...)``).
    """
    name: Union[str, Iri]
    arguments: tuple[ExpressionAst, ...] = ()

    def __post_init__(self):
        _freeze(self, "arguments")


@dataclass(frozen=True)
class ConditionalExpressionAst(ExpressionAst):
    """``IF(condition, then, else)``."""
    condition: FilterExpressionAst
    then_value: ExpressionAst
    else_value: ExpressionAst


@dataclass(frozen=True)
class AggregateExpressionAst(ExpressionAst):
    """
    An aggregate such as ``COUNT(DISTINCT ?x)``.

    ``expression=None`` means ``*`` (only meaningful for COUNT).
    ``separator`` applies to GROUP_CONCAT only.
    """
    function: AggregateFunction
    expression: Optional[ExpressionAst] = None
    distinct: bool = False
    separator: Optional[str] = None


@dataclass(frozen=True)
class ArithmeticExpressionAst(ExpressionAst):
    left: ExpressionAst
    operator: ArithmeticOperator
    right: ExpressionAst


@dataclass(frozen=True)
class ExistsExpressionAst(FilterExpressionAst):
    """``EXISTS { ... }`` or ``NOT EXISTS { ... }``."""
    pattern: "GraphPatternAst"
    negated: bool = False


# =============================================================================
# ORDER BY
# =============================================================================

class OrderDirection(Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class OrderClauseAst:
    expression: ExpressionAst
    direction: OrderDirection = OrderDirection.ASC


# =============================================================================
# Property Paths
# =============================================================================

class PropertyPathAst:
    """
    Base class of property path nodes.

    Provides chainable combinators so paths read left to right:

        path(FOAF_KNOWS).one_or_more().sequence(FOAF_NAME)
    """

    def one_or_more(self) -> "OneOrMorePathAst":
        return OneOrMorePathAst(self)

    def zero_or_more(self) -> "ZeroOrMorePathAst":
        return ZeroOrMorePathAst(self)

    def zero_or_one(self) -> "ZeroOrOnePathAst":
        return ZeroOrOnePathAst(self)

    def inverse(self) -> "InversePathAst":
        return InversePathAst(self)

    def negation(self) -> "NegationPathAst":
        return NegationPathAst(self)

    def alternative(self, other: Union["PropertyPathAst", RdfTerm]) -> "AlternativePathAst":
        return AlternativePathAst(self, as_path(other))

    def sequence(self, other: Union["PropertyPathAst", RdfTerm]) -> "SequencePathAst":
        return SequencePathAst(self, as_path(other))

    def exactly(self, n: int) -> "RangePathAst":
        return RangePathAst(self, n, n)

    def at_least(self, n: int) -> "RangePathAst":
        return RangePathAst(self, n, None)

    def at_most(self, m: int) -> "RangePathAst":
        return RangePathAst(self, 0, m)

    def between(self, n: int, m: int) -> "RangePathAst":
        return RangePathAst(self, n, m)


@dataclass(frozen=True)
class BasicPathAst(PropertyPathAst):
    """A single predicate (IRI or, in negated sets, ``a``)."""
    term: RdfTerm


@dataclass(frozen=True)
class OneOrMorePathAst(PropertyPathAst):
    path: PropertyPathAst


@dataclass(frozen=True)
class ZeroOrMorePathAst(PropertyPathAst):
    path: PropertyPathAst


@dataclass(frozen=True)
class ZeroOrOnePathAst(PropertyPathAst):
    path: PropertyPathAst


@dataclass(frozen=True)
class InversePathAst(PropertyPathAst):
    path: PropertyPathAst


@dataclass(frozen=True)
class NegationPathAst(PropertyPathAst):
    path: PropertyPathAst


@dataclass(frozen=True)
class AlternativePathAst(PropertyPathAst):
    left: PropertyPathAst
    right: PropertyPathAst


@dataclass(frozen=True)
class SequencePathAst(PropertyPathAst):
    left: PropertyPathAst
    right: PropertyPathAst


@dataclass(frozen=True)
class RangePathAst(PropertyPathAst):
    """``path{n}``, ``path{n,}``, ``path{,m}`` or ``path{n,m}``."""
    path: PropertyPathAst
    min: int
    max: Optional[int] = None

    def __post_init__(self):
        if self.min < 0:
            raise ValueError(f"Path repetition minimum must be >= 0, got {self.min}")
        if self.max is not None and self.max < self.min:
            raise ValueError(
                f"Path repetition maximum {self.max} is below minimum {self.min}"
            )


def as_path(value: Union[PropertyPathAst, RdfTerm]) -> PropertyPathAst:
    """Wrap a bare term as a BasicPathAst; paths pass through."""
    if isinstance(value, PropertyPathAst):
        return value
    return BasicPathAst(value)


# =============================================================================
# Graph Patterns
# =============================================================================

class GraphPatternAst:
    """Base class of graph pattern nodes."""


@dataclass(frozen=True)
class TriplePatternAst(GraphPatternAst):
    subject: RdfTerm
    predicate: RdfTerm
    object: RdfTerm


@dataclass(frozen=True)
class GroupPatternAst(GraphPatternAst):
    """``{ p1 p2 ... }``, an ordered list of sub-patterns."""
    patterns: tuple[GraphPatternAst, ...] = ()

    def __post_init__(self):
        _freeze(self, "patterns")


@dataclass(frozen=True)
class OptionalPatternAst(GraphPatternAst):
    pattern: GraphPatternAst


@dataclass(frozen=True)
class UnionPatternAst(GraphPatternAst):
    left: GraphPatternAst
    right: GraphPatternAst


@dataclass(frozen=True)
class MinusPatternAst(GraphPatternAst):
    left: GraphPatternAst
    right: GraphPatternAst


@dataclass(frozen=True)
class NamedGraphPatternAst(GraphPatternAst):
    """``GRAPH <name> { ... }``; the name may be a variable."""
    graph_name: RdfTerm
    pattern: GraphPatternAst


@dataclass(frozen=True)
class ServicePatternAst(GraphPatternAst):
    endpoint: RdfTerm
    pattern: GraphPatternAst
    silent: bool = False


@dataclass(frozen=True)
class ValuesPatternAst(GraphPatternAst):
    """
    Inline data. Each row has one entry per variable; ``None`` renders
    as ``UNDEF``.
    """
    variables: tuple[Var, ...]
    values: tuple[tuple[Optional[RdfTerm], ...], ...]

    def __post_init__(self):
        _freeze(self, "variables")
        object.__setattr__(self, "values", tuple(tuple(row) for row in self.values))
        for row in self.values:
            if len(row) != len(self.variables):
                raise ValueError(
                    f"VALUES row has {len(row)} entries for {len(self.variables)} variables"
                )


@dataclass(frozen=True)
class PropertyPathPatternAst(GraphPatternAst):
    subject: RdfTerm
    path: PropertyPathAst
    object: RdfTerm


@dataclass(frozen=True)
class QuotedTriplePatternAst(GraphPatternAst):
    """An RDF-star quoted triple ``<< s p o >>`` whose parts may be variables."""
    subject: RdfTerm
    predicate: RdfTerm
    object: RdfTerm


@dataclass(frozen=True)
class RdfStarTriplePatternAst(GraphPatternAst):
    """A triple pattern whose subject is a quoted triple."""
    quoted_triple: QuotedTriplePatternAst
    predicate: RdfTerm
    object: RdfTerm


@dataclass(frozen=True)
class BindPatternAst(GraphPatternAst):
    variable: Var
    expression: ExpressionAst


@dataclass(frozen=True)
class FilterPatternAst(GraphPatternAst):
    expression: FilterExpressionAst


@dataclass(frozen=True)
class SubSelectPatternAst(GraphPatternAst):
    query: "SelectQueryAst"


# =============================================================================
# Select Items
# =============================================================================

class SelectItemAst:
    """Base class of projection items."""


@dataclass(frozen=True)
class VariableSelectItemAst(SelectItemAst):
    variable: Var


@dataclass(frozen=True)
class AliasedSelectItemAst(SelectItemAst):
    """``(expression AS ?alias)``."""
    expression: ExpressionAst
    alias: str


@dataclass(frozen=True)
class WildcardSelectItemAst(SelectItemAst):
    """``*``."""


# =============================================================================
# Query Forms
# =============================================================================

class SparqlQueryAst:
    """
    Base class of the four query forms.

    All forms share an optional VERSION, PREFIX declarations, a WHERE
    pattern and FROM / FROM NAMED dataset clauses.
    """


def _check_non_negative(name: str, value: Optional[int]) -> None:
    if value is not None and value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class SelectQueryAst(SparqlQueryAst):
    """
    A SELECT query. An empty ``select_items`` tuple projects ``*``.
    """
    select_items: tuple[SelectItemAst, ...] = ()
    version: Optional[str] = None
    prefixes: tuple[PrefixDeclaration, ...] = ()
    where: Optional[GraphPatternAst] = None
    from_graphs: tuple[Iri, ...] = ()
    from_named: tuple[Iri, ...] = ()
    group_by: tuple[Var, ...] = ()
    having: tuple[FilterExpressionAst, ...] = ()
    order_by: tuple[OrderClauseAst, ...] = ()
    limit: Optional[int] = None
    offset: Optional[int] = None
    distinct: bool = False
    reduced: bool = False

    def __post_init__(self):
        _freeze(
            self, "select_items", "prefixes", "from_graphs", "from_named",
            "group_by", "having", "order_by",
        )
        if self.distinct and self.reduced:
            raise ValueError("SELECT cannot be both DISTINCT and REDUCED")
        _check_non_negative("LIMIT", self.limit)
        _check_non_negative("OFFSET", self.offset)


@dataclass(frozen=True)
class AskQueryAst(SparqlQueryAst):
    version: Optional[str] = None
    prefixes: tuple[PrefixDeclaration, ...] = ()
    where: Optional[GraphPatternAst] = None
    from_graphs: tuple[Iri, ...] = ()
    from_named: tuple[Iri, ...] = ()

    def __post_init__(self):
        _freeze(self, "prefixes", "from_graphs", "from_named")


@dataclass(frozen=True)
class ConstructQueryAst(SparqlQueryAst):
    template: tuple[TriplePatternAst, ...] = ()
    version: Optional[str] = None
    prefixes: tuple[PrefixDeclaration, ...] = ()
    where: Optional[GraphPatternAst] = None
    from_graphs: tuple[Iri, ...] = ()
    from_named: tuple[Iri, ...] = ()

    def __post_init__(self):
        _freeze(self, "template", "prefixes", "from_graphs", "from_named")


@dataclass(frozen=True)
class DescribeQueryAst(SparqlQueryAst):
    """DESCRIBE; an empty ``describe_terms`` tuple describes ``*``."""
    describe_terms: tuple[RdfTerm, ...] = ()
    version: Optional[str] = None
    prefixes: tuple[PrefixDeclaration, ...] = ()
    where: Optional[GraphPatternAst] = None
    from_graphs: tuple[Iri, ...] = ()
    from_named: tuple[Iri, ...] = ()

    def __post_init__(self):
        _freeze(self, "describe_terms", "prefixes", "from_graphs", "from_named")


# =============================================================================
# Update Operations
# =============================================================================

class UpdateOperationAst:
    """Base class of SPARQL Update operations."""


class GraphScope(Enum):
    """Target of CLEAR / DROP when no single graph IRI is given."""
    DEFAULT = "DEFAULT"
    NAMED = "NAMED"
    ALL = "ALL"


@dataclass(frozen=True)
class InsertDataOperationAst(UpdateOperationAst):
    """``INSERT DATA { ... }``, optionally inside ``GRAPH <g> { }``."""
    data: tuple[TriplePatternAst, ...]
    graph: Optional[Iri] = None

    def __post_init__(self):
        _freeze(self, "data")


@dataclass(frozen=True)
class DeleteDataOperationAst(UpdateOperationAst):
    data: tuple[TriplePatternAst, ...]
    graph: Optional[Iri] = None

    def __post_init__(self):
        _freeze(self, "data")


@dataclass(frozen=True)
class ModifyOperationAst(UpdateOperationAst):
    """
    ``[WITH <g>] [DELETE {..}] [INSERT {..}] [USING ..] WHERE {..}``.

    USING / USING NAMED / WITH only exist on this operation; the other
    update operations have no dataset clauses in the SPARQL grammar.
    """
    delete: tuple[TriplePatternAst, ...] = ()
    insert: tuple[TriplePatternAst, ...] = ()
    where: Optional[GraphPatternAst] = None
    using: tuple[Iri, ...] = ()
    using_named: tuple[Iri, ...] = ()
    with_graph: Optional[Iri] = None

    def __post_init__(self):
        _freeze(self, "delete", "insert", "using", "using_named")
        if not self.delete and not self.insert:
            raise ValueError("Modify operation needs a DELETE or INSERT template")


@dataclass(frozen=True)
class DeleteWhereOperationAst(UpdateOperationAst):
    where: GraphPatternAst


@dataclass(frozen=True)
class LoadOperationAst(UpdateOperationAst):
    source: Iri
    into: Optional[Iri] = None
    silent: bool = False


@dataclass(frozen=True)
class ClearOperationAst(UpdateOperationAst):
    """CLEAR a single graph, or DEFAULT / NAMED / ALL when ``graph`` is None."""
    graph: Optional[Iri] = None
    scope: GraphScope = GraphScope.DEFAULT
    silent: bool = False


@dataclass(frozen=True)
class CreateOperationAst(UpdateOperationAst):
    graph: Iri
    silent: bool = False


@dataclass(frozen=True)
class DropOperationAst(UpdateOperationAst):
    graph: Optional[Iri] = None
    scope: GraphScope = GraphScope.DEFAULT
    silent: bool = False


@dataclass(frozen=True)
class CopyOperationAst(UpdateOperationAst):
    """COPY; ``None`` on either side stands for the DEFAULT graph."""
    source: Optional[Iri]
    destination: Optional[Iri]
    silent: bool = False


@dataclass(frozen=True)
class MoveOperationAst(UpdateOperationAst):
    source: Optional[Iri]
    destination: Optional[Iri]
    silent: bool = False


@dataclass(frozen=True)
class AddOperationAst(UpdateOperationAst):
    source: Optional[Iri]
    destination: Optional[Iri]
    silent: bool = False


@dataclass(frozen=True)
class UpdateRequestAst:
    """A sequence of update operations sharing one prologue."""
    operations: tuple[UpdateOperationAst, ...]
    version: Optional[str] = None
    prefixes: tuple[PrefixDeclaration, ...] = ()

    def __post_init__(self):
        _freeze(self, "operations", "prefixes")
        if not self.operations:
            raise ValueError("Update request needs at least one operation")
