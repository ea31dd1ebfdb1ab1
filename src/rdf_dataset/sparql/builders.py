"""
Builders for SPARQL queries and updates.

Builders are plain mutable objects with chainable methods; ``build()``
freezes the collected state into an immutable AST and ``to_query()``
renders it into a query value object.

Nested blocks (WHERE, OPTIONAL, UNION, ...) are given as callables that
receive a fresh PatternBuilder, or as an already built pattern:

    query = (
        select("?name", "?mbox")
        .prefix("foaf", "http://xmlns.com/foaf/0.1/")
        .where(lambda w: (
            w.triple(var("p"), FOAF_NAME, var("name"))
             .optional(lambda o: o.triple(var("p"), FOAF_MBOX, var("mbox")))
        ))
        .order_by(var("name"))
        .limit(10)
        .to_query()
    )

Expression helpers (``eq``, ``and_``, ``count``, ``regex`` ...) are
module-level functions that accept AST nodes, terms or plain Python
values. Strings beginning with ``?`` or ``$`` are variables; other plain
values become literals.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Union

from rdf_dataset.terms import Iri, Var, literal
from rdf_dataset.sparql.ast import (
    AddOperationAst,
    AggregateExpressionAst,
    AggregateFunction,
    AliasedSelectItemAst,
    AndExpressionAst,
    ArithmeticExpressionAst,
    ArithmeticOperator,
    AskQueryAst,
    BasicPathAst,
    BindPatternAst,
    ClearOperationAst,
    ComparisonExpressionAst,
    ComparisonOperator,
    ConditionalExpressionAst,
    ConstructQueryAst,
    CopyOperationAst,
    CreateOperationAst,
    DeleteDataOperationAst,
    DeleteWhereOperationAst,
    DescribeQueryAst,
    DropOperationAst,
    ExistsExpressionAst,
    ExpressionAst,
    FilterExpressionAst,
    FilterPatternAst,
    FunctionCallAst,
    GraphPatternAst,
    GraphScope,
    GroupPatternAst,
    InsertDataOperationAst,
    LoadOperationAst,
    MinusPatternAst,
    ModifyOperationAst,
    MoveOperationAst,
    NamedGraphPatternAst,
    NotExpressionAst,
    OptionalPatternAst,
    OrExpressionAst,
    OrderClauseAst,
    OrderDirection,
    PrefixDeclaration,
    PropertyPathAst,
    PropertyPathPatternAst,
    QuotedTriplePatternAst,
    RdfStarTriplePatternAst,
    SelectItemAst,
    SelectQueryAst,
    ServicePatternAst,
    SubSelectPatternAst,
    TermExpressionAst,
    TriplePatternAst,
    UnionPatternAst,
    UpdateOperationAst,
    UpdateRequestAst,
    ValuesPatternAst,
    VariableSelectItemAst,
    as_path,
)
from rdf_dataset.sparql.queries import (
    SparqlAsk,
    SparqlConstruct,
    SparqlDescribe,
    SparqlSelect,
    UpdateQuery,
    to_query,
)

PatternBlock = Union[Callable[["PatternBuilder"], Any], GraphPatternAst]


# =============================================================================
# Coercion helpers
# =============================================================================

def to_term(value: Any):
    """Coerce a Python value to an RDF term (``"?x"`` becomes a variable)."""
    if isinstance(value, str):
        if value[:1] in ("?", "$"):
            return Var(value)
        return literal(value)
    if isinstance(value, (bool, int, float)):
        return literal(value)
    return value


def to_expression(value: Any) -> ExpressionAst:
    """Coerce a term or Python value to an expression node."""
    if isinstance(value, ExpressionAst):
        return value
    return TermExpressionAst(to_term(value))


def _to_var(value: Union[str, Var]) -> Var:
    return value if isinstance(value, Var) else Var(value)


def _nested(block: PatternBlock) -> GraphPatternAst:
    if isinstance(block, GraphPatternAst):
        return block
    builder = PatternBuilder()
    block(builder)
    return builder.build()


# =============================================================================
# Graph pattern builder
# =============================================================================

class PatternBuilder:
    """
    Collects the members of one group graph pattern, in order.

    ``union`` and ``minus`` are positional: they combine the pattern added
    immediately before them with the new block. Called on an empty group
    they add the block as-is.
    """

    def __init__(self):
        self._patterns: list[GraphPatternAst] = []

    def add(self, pattern: GraphPatternAst) -> "PatternBuilder":
        """Append an already built pattern."""
        self._patterns.append(pattern)
        return self

    def triple(self, subject, predicate, obj) -> "PatternBuilder":
        return self.add(TriplePatternAst(to_term(subject), to_term(predicate), to_term(obj)))

    def optional(self, block: PatternBlock) -> "PatternBuilder":
        return self.add(OptionalPatternAst(_nested(block)))

    def union(self, block: PatternBlock) -> "PatternBuilder":
        right = _nested(block)
        if self._patterns:
            left = self._patterns.pop()
            return self.add(UnionPatternAst(left, right))
        return self.add(right)

    def minus(self, block: PatternBlock) -> "PatternBuilder":
        right = _nested(block)
        if self._patterns:
            left = self._patterns.pop()
            return self.add(MinusPatternAst(left, right))
        return self.add(right)

    def graph(self, graph_name, block: PatternBlock) -> "PatternBuilder":
        return self.add(NamedGraphPatternAst(to_term(graph_name), _nested(block)))

    def service(self, endpoint, block: PatternBlock, silent: bool = False) -> "PatternBuilder":
        return self.add(ServicePatternAst(to_term(endpoint), _nested(block), silent))

    def values(self, variables, rows: Iterable) -> "PatternBuilder":
        """
        Add inline data.

        ``variables`` is a single variable (``rows`` is then a flat list of
        values) or a sequence of variables (``rows`` is a list of tuples).
        """
        if isinstance(variables, (str, Var)):
            vars_ = (_to_var(variables),)
            data = [(None if v is None else to_term(v),) for v in rows]
        else:
            vars_ = tuple(_to_var(v) for v in variables)
            data = [tuple(None if v is None else to_term(v) for v in row) for row in rows]
        return self.add(ValuesPatternAst(vars_, data))

    def property_path(self, subject, path_: Union[PropertyPathAst, Iri], obj) -> "PatternBuilder":
        return self.add(PropertyPathPatternAst(to_term(subject), as_path(path_), to_term(obj)))

    def quoted_triple(self, subject, predicate, obj) -> "PatternBuilder":
        return self.add(QuotedTriplePatternAst(to_term(subject), to_term(predicate), to_term(obj)))

    def annotated(self, quoted: QuotedTriplePatternAst, predicate, obj) -> "PatternBuilder":
        """Add ``<< s p o >> predicate obj .`` (a statement about a triple)."""
        return self.add(RdfStarTriplePatternAst(quoted, to_term(predicate), to_term(obj)))

    def bind(self, variable, expression) -> "PatternBuilder":
        return self.add(BindPatternAst(_to_var(variable), to_expression(expression)))

    def filter(self, expression: FilterExpressionAst) -> "PatternBuilder":
        return self.add(FilterPatternAst(expression))

    def sub_select(self, block: Callable[["SelectBuilder"], Any]) -> "PatternBuilder":
        builder = SelectBuilder()
        block(builder)
        return self.add(SubSelectPatternAst(builder.build()))

    def build(self) -> GroupPatternAst:
        return GroupPatternAst(tuple(self._patterns))


# =============================================================================
# Query builders
# =============================================================================

class _QueryBuilder:
    """Prologue, dataset clauses and WHERE shared by all query forms."""

    def __init__(self):
        self._version: Optional[str] = None
        self._prefixes: list[PrefixDeclaration] = []
        self._from: list[Iri] = []
        self._from_named: list[Iri] = []
        self._where: Optional[GraphPatternAst] = None

    def version(self, version: str):
        self._version = version
        return self

    def prefix(self, prefix: str, namespace: str):
        self._prefixes.append(PrefixDeclaration(prefix, namespace))
        return self

    def from_graph(self, graph: Iri):
        self._from.append(graph)
        return self

    def from_named(self, graph: Iri):
        self._from_named.append(graph)
        return self

    def where(self, block: PatternBlock):
        self._where = _nested(block)
        return self

    def to_query(self):
        return to_query(self.build())

    def build(self):
        raise NotImplementedError


class SelectBuilder(_QueryBuilder):
    """Builds a SelectQueryAst. No projected variables means ``SELECT *``."""

    def __init__(self, *variables: Union[str, Var]):
        super().__init__()
        self._items: list[SelectItemAst] = [VariableSelectItemAst(_to_var(v)) for v in variables]
        self._group_by: list[Var] = []
        self._having: list[FilterExpressionAst] = []
        self._order_by: list[OrderClauseAst] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._distinct = False
        self._reduced = False

    def variable(self, variable: Union[str, Var]) -> "SelectBuilder":
        self._items.append(VariableSelectItemAst(_to_var(variable)))
        return self

    def expression(self, expression, alias: str) -> "SelectBuilder":
        self._items.append(AliasedSelectItemAst(to_expression(expression), Var(alias).name))
        return self

    def aggregate(
        self,
        function: AggregateFunction,
        expression,
        alias: str,
        distinct: bool = False,
    ) -> "SelectBuilder":
        expr = None if expression is None else to_expression(expression)
        return self.expression(AggregateExpressionAst(function, expr, distinct), alias)

    def distinct(self) -> "SelectBuilder":
        self._distinct = True
        return self

    def reduced(self) -> "SelectBuilder":
        self._reduced = True
        return self

    def group_by(self, *variables: Union[str, Var]) -> "SelectBuilder":
        self._group_by.extend(_to_var(v) for v in variables)
        return self

    def having(self, expression: FilterExpressionAst) -> "SelectBuilder":
        self._having.append(expression)
        return self

    def order_by(self, expression, direction: OrderDirection = OrderDirection.ASC) -> "SelectBuilder":
        self._order_by.append(OrderClauseAst(to_expression(expression), direction))
        return self

    def limit(self, value: int) -> "SelectBuilder":
        self._limit = value
        return self

    def offset(self, value: int) -> "SelectBuilder":
        self._offset = value
        return self

    def build(self) -> SelectQueryAst:
        return SelectQueryAst(
            select_items=tuple(self._items),
            version=self._version,
            prefixes=tuple(self._prefixes),
            where=self._where,
            from_graphs=tuple(self._from),
            from_named=tuple(self._from_named),
            group_by=tuple(self._group_by),
            having=tuple(self._having),
            order_by=tuple(self._order_by),
            limit=self._limit,
            offset=self._offset,
            distinct=self._distinct,
            reduced=self._reduced,
        )

    def to_query(self) -> SparqlSelect:
        return to_query(self.build())


class AskBuilder(_QueryBuilder):

    def build(self) -> AskQueryAst:
        return AskQueryAst(
            version=self._version,
            prefixes=tuple(self._prefixes),
            where=self._where,
            from_graphs=tuple(self._from),
            from_named=tuple(self._from_named),
        )

    def to_query(self) -> SparqlAsk:
        return to_query(self.build())


def _triples_only(pattern: GroupPatternAst, context: str) -> tuple[TriplePatternAst, ...]:
    triples = []
    for member in pattern.patterns:
        if not isinstance(member, TriplePatternAst):
            raise ValueError(
                f"{context} accepts triple patterns only, got {type(member).__name__}"
            )
        triples.append(member)
    return tuple(triples)


class ConstructBuilder(_QueryBuilder):

    def __init__(self):
        super().__init__()
        self._template: tuple[TriplePatternAst, ...] = ()

    def template(self, block: Callable[[PatternBuilder], Any]) -> "ConstructBuilder":
        self._template = _triples_only(_nested(block), "CONSTRUCT template")
        return self

    def build(self) -> ConstructQueryAst:
        return ConstructQueryAst(
            template=self._template,
            version=self._version,
            prefixes=tuple(self._prefixes),
            where=self._where,
            from_graphs=tuple(self._from),
            from_named=tuple(self._from_named),
        )

    def to_query(self) -> SparqlConstruct:
        return to_query(self.build())


class DescribeBuilder(_QueryBuilder):
    """Builds DESCRIBE; no terms means ``DESCRIBE *``."""

    def __init__(self, *terms):
        super().__init__()
        self._terms = [to_term(t) for t in terms]

    def term(self, term) -> "DescribeBuilder":
        self._terms.append(to_term(term))
        return self

    def build(self) -> DescribeQueryAst:
        return DescribeQueryAst(
            describe_terms=tuple(self._terms),
            version=self._version,
            prefixes=tuple(self._prefixes),
            where=self._where,
            from_graphs=tuple(self._from),
            from_named=tuple(self._from_named),
        )

    def to_query(self) -> SparqlDescribe:
        return to_query(self.build())


# =============================================================================
# Update builders
# =============================================================================

class ModifyBuilder:
    """Builds a DELETE/INSERT ... WHERE operation."""

    def __init__(self):
        self._delete: tuple[TriplePatternAst, ...] = ()
        self._insert: tuple[TriplePatternAst, ...] = ()
        self._where: Optional[GraphPatternAst] = None
        self._using: list[Iri] = []
        self._using_named: list[Iri] = []
        self._with: Optional[Iri] = None

    def delete(self, block: Callable[[PatternBuilder], Any]) -> "ModifyBuilder":
        self._delete = _triples_only(_nested(block), "DELETE template")
        return self

    def insert(self, block: Callable[[PatternBuilder], Any]) -> "ModifyBuilder":
        self._insert = _triples_only(_nested(block), "INSERT template")
        return self

    def where(self, block: PatternBlock) -> "ModifyBuilder":
        self._where = _nested(block)
        return self

    def using(self, graph: Iri) -> "ModifyBuilder":
        self._using.append(graph)
        return self

    def using_named(self, graph: Iri) -> "ModifyBuilder":
        self._using_named.append(graph)
        return self

    def with_graph(self, graph: Iri) -> "ModifyBuilder":
        self._with = graph
        return self

    def build(self) -> ModifyOperationAst:
        return ModifyOperationAst(
            delete=self._delete,
            insert=self._insert,
            where=self._where,
            using=tuple(self._using),
            using_named=tuple(self._using_named),
            with_graph=self._with,
        )


class UpdateBuilder:
    """Builds an UpdateRequestAst from a sequence of operations."""

    def __init__(self):
        self._version: Optional[str] = None
        self._prefixes: list[PrefixDeclaration] = []
        self._operations: list[UpdateOperationAst] = []

    def version(self, version: str) -> "UpdateBuilder":
        self._version = version
        return self

    def prefix(self, prefix: str, namespace: str) -> "UpdateBuilder":
        self._prefixes.append(PrefixDeclaration(prefix, namespace))
        return self

    def operation(self, op: UpdateOperationAst) -> "UpdateBuilder":
        self._operations.append(op)
        return self

    def insert_data(self, block: Callable[[PatternBuilder], Any], graph: Optional[Iri] = None) -> "UpdateBuilder":
        data = _triples_only(_nested(block), "INSERT DATA")
        return self.operation(InsertDataOperationAst(data, graph))

    def delete_data(self, block: Callable[[PatternBuilder], Any], graph: Optional[Iri] = None) -> "UpdateBuilder":
        data = _triples_only(_nested(block), "DELETE DATA")
        return self.operation(DeleteDataOperationAst(data, graph))

    def modify(self, block: Callable[[ModifyBuilder], Any]) -> "UpdateBuilder":
        builder = ModifyBuilder()
        block(builder)
        return self.operation(builder.build())

    def delete_where(self, block: PatternBlock) -> "UpdateBuilder":
        return self.operation(DeleteWhereOperationAst(_nested(block)))

    def load(self, source: Iri, into: Optional[Iri] = None, silent: bool = False) -> "UpdateBuilder":
        return self.operation(LoadOperationAst(source, into, silent))

    def clear(
        self,
        graph: Optional[Iri] = None,
        scope: GraphScope = GraphScope.DEFAULT,
        silent: bool = False,
    ) -> "UpdateBuilder":
        return self.operation(ClearOperationAst(graph, scope, silent))

    def create(self, graph: Iri, silent: bool = False) -> "UpdateBuilder":
        return self.operation(CreateOperationAst(graph, silent))

    def drop(
        self,
        graph: Optional[Iri] = None,
        scope: GraphScope = GraphScope.DEFAULT,
        silent: bool = False,
    ) -> "UpdateBuilder":
        return self.operation(DropOperationAst(graph, scope, silent))

    def copy(self, source: Optional[Iri], destination: Optional[Iri], silent: bool = False) -> "UpdateBuilder":
        return self.operation(CopyOperationAst(source, destination, silent))

    def move(self, source: Optional[Iri], destination: Optional[Iri], silent: bool = False) -> "UpdateBuilder":
        return self.operation(MoveOperationAst(source, destination, silent))

    def add(self, source: Optional[Iri], destination: Optional[Iri], silent: bool = False) -> "UpdateBuilder":
        return self.operation(AddOperationAst(source, destination, silent))

    def build(self) -> UpdateRequestAst:
        return UpdateRequestAst(
            operations=tuple(self._operations),
            version=self._version,
            prefixes=tuple(self._prefixes),
        )

    def to_query(self) -> UpdateQuery:
        return to_query(self.build())


# =============================================================================
# Entry points
# =============================================================================

def select(*variables: Union[str, Var]) -> SelectBuilder:
    return SelectBuilder(*variables)


def ask() -> AskBuilder:
    return AskBuilder()


def construct() -> ConstructBuilder:
    return ConstructBuilder()


def describe(*terms) -> DescribeBuilder:
    return DescribeBuilder(*terms)


def update() -> UpdateBuilder:
    return UpdateBuilder()


def pattern(block: Callable[[PatternBuilder], Any]) -> GroupPatternAst:
    """Build a standalone group pattern."""
    return _nested(block)


def path(term: Iri) -> BasicPathAst:
    """Start a property path from a predicate."""
    return BasicPathAst(term)


# =============================================================================
# Expression helpers
# =============================================================================

def _compare(left, op: ComparisonOperator, right) -> ComparisonExpressionAst:
    return ComparisonExpressionAst(to_expression(left), op, to_expression(right))


def eq(left, right) -> ComparisonExpressionAst:
    return _compare(left, ComparisonOperator.EQ, right)


def ne(left, right) -> ComparisonExpressionAst:
    return _compare(left, ComparisonOperator.NE, right)


def lt(left, right) -> ComparisonExpressionAst:
    return _compare(left, ComparisonOperator.LT, right)


def lte(left, right) -> ComparisonExpressionAst:
    return _compare(left, ComparisonOperator.LTE, right)


def gt(left, right) -> ComparisonExpressionAst:
    return _compare(left, ComparisonOperator.GT, right)


def gte(left, right) -> ComparisonExpressionAst:
    return _compare(left, ComparisonOperator.GTE, right)


def and_(first: FilterExpressionAst, *rest: FilterExpressionAst) -> FilterExpressionAst:
    """Left-fold the operands with ``&&``."""
    result = first
    for expr in rest:
        result = AndExpressionAst(result, expr)
    return result


def or_(first: FilterExpressionAst, *rest: FilterExpressionAst) -> FilterExpressionAst:
    result = first
    for expr in rest:
        result = OrExpressionAst(result, expr)
    return result


def not_(expression: FilterExpressionAst) -> NotExpressionAst:
    return NotExpressionAst(expression)


def exists(block: PatternBlock) -> ExistsExpressionAst:
    return ExistsExpressionAst(_nested(block))


def not_exists(block: PatternBlock) -> ExistsExpressionAst:
    return ExistsExpressionAst(_nested(block), negated=True)


def function(name: Union[str, Iri], *args) -> FunctionCallAst:
    """Call a built-in by keyword or prefixed name, or an extension function by Iri."""
    return FunctionCallAst(name, tuple(to_expression(a) for a in args))


def if_(condition: FilterExpressionAst, then_value, else_value) -> ConditionalExpressionAst:
    return ConditionalExpressionAst(condition, to_expression(then_value), to_expression(else_value))


def _arith(left, op: ArithmeticOperator, right) -> ArithmeticExpressionAst:
    return ArithmeticExpressionAst(to_expression(left), op, to_expression(right))


def add(left, right) -> ArithmeticExpressionAst:
    return _arith(left, ArithmeticOperator.ADD, right)


def subtract(left, right) -> ArithmeticExpressionAst:
    return _arith(left, ArithmeticOperator.SUBTRACT, right)


def multiply(left, right) -> ArithmeticExpressionAst:
    return _arith(left, ArithmeticOperator.MULTIPLY, right)


def divide(left, right) -> ArithmeticExpressionAst:
    return _arith(left, ArithmeticOperator.DIVIDE, right)


# Built-in functions

def bound(variable) -> FunctionCallAst:
    return function("BOUND", variable)


def is_iri(expr) -> FunctionCallAst:
    return function("isIRI", expr)


def is_blank(expr) -> FunctionCallAst:
    return function("isBLANK", expr)


def is_literal(expr) -> FunctionCallAst:
    return function("isLITERAL", expr)


def is_numeric(expr) -> FunctionCallAst:
    return function("isNUMERIC", expr)


def str_(expr) -> FunctionCallAst:
    return function("STR", expr)


def lang(expr) -> FunctionCallAst:
    return function("LANG", expr)


def lang_matches(expr, range_: str) -> FunctionCallAst:
    return function("LANGMATCHES", expr, literal(range_))


def datatype(expr) -> FunctionCallAst:
    return function("DATATYPE", expr)


def regex(expr, pattern_: str, flags: Optional[str] = None) -> FunctionCallAst:
    args = [expr, literal(pattern_)]
    if flags is not None:
        args.append(literal(flags))
    return function("REGEX", *args)


def replace(expr, pattern_: str, replacement: str, flags: Optional[str] = None) -> FunctionCallAst:
    args = [expr, literal(pattern_), literal(replacement)]
    if flags is not None:
        args.append(literal(flags))
    return function("REPLACE", *args)


def concat(*exprs) -> FunctionCallAst:
    return function("CONCAT", *exprs)


def strlen(expr) -> FunctionCallAst:
    return function("STRLEN", expr)


def ucase(expr) -> FunctionCallAst:
    return function("UCASE", expr)


def lcase(expr) -> FunctionCallAst:
    return function("LCASE", expr)


def substr(expr, start: int, length: Optional[int] = None) -> FunctionCallAst:
    if length is None:
        return function("SUBSTR", expr, start)
    return function("SUBSTR", expr, start, length)


def contains(expr, substring: str) -> FunctionCallAst:
    return function("CONTAINS", expr, literal(substring))


def str_starts(expr, prefix: str) -> FunctionCallAst:
    return function("STRSTARTS", expr, literal(prefix))


def str_ends(expr, suffix: str) -> FunctionCallAst:
    return function("STRENDS", expr, literal(suffix))


def str_before(expr, substring: str) -> FunctionCallAst:
    return function("STRBEFORE", expr, literal(substring))


def str_after(expr, substring: str) -> FunctionCallAst:
    return function("STRAFTER", expr, literal(substring))


def encode_for_uri(expr) -> FunctionCallAst:
    return function("ENCODE_FOR_URI", expr)


def now() -> FunctionCallAst:
    return function("NOW")


def rand() -> FunctionCallAst:
    return function("RAND")


# RDF-star functions

def triple_term(subject, predicate, obj) -> FunctionCallAst:
    return function("TRIPLE", subject, predicate, obj)


def is_triple(expr) -> FunctionCallAst:
    return function("isTRIPLE", expr)


def subject(expr) -> FunctionCallAst:
    return function("SUBJECT", expr)


def predicate(expr) -> FunctionCallAst:
    return function("PREDICATE", expr)


def object_(expr) -> FunctionCallAst:
    return function("OBJECT", expr)


# Aggregates

def _aggregate(fn: AggregateFunction, expr, distinct: bool, separator: Optional[str] = None):
    inner = None if expr is None else to_expression(expr)
    return AggregateExpressionAst(fn, inner, distinct, separator)


def count(expr=None, distinct: bool = False) -> AggregateExpressionAst:
    """``COUNT(expr)``; with no argument ``COUNT(*)``."""
    return _aggregate(AggregateFunction.COUNT, expr, distinct)


def sum_(expr, distinct: bool = False) -> AggregateExpressionAst:
    return _aggregate(AggregateFunction.SUM, expr, distinct)


def avg(expr, distinct: bool = False) -> AggregateExpressionAst:
    return _aggregate(AggregateFunction.AVG, expr, distinct)


def min_(expr) -> AggregateExpressionAst:
    return _aggregate(AggregateFunction.MIN, expr, False)


def max_(expr) -> AggregateExpressionAst:
    return _aggregate(AggregateFunction.MAX, expr, False)


def sample(expr) -> AggregateExpressionAst:
    return _aggregate(AggregateFunction.SAMPLE, expr, False)


def group_concat(expr, separator: Optional[str] = None, distinct: bool = False) -> AggregateExpressionAst:
    return _aggregate(AggregateFunction.GROUP_CONCAT, expr, distinct, separator)

