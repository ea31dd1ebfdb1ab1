"""
SPARQL Renderer.

Turns query and update ASTs into SPARQL 1.1 / 1.2 text. Rendering is a
pure function of the AST: the same tree always yields the same string.

Layout of a rendered query:

    VERSION "1.2"
    PREFIX ex: <http://example.org/>
    SELECT ?s ?o
    FROM <http://example.org/g1>
    FROM NAMED <http://example.org/g2>
    WHERE {
      ?s ex:p ?o .
    }
    GROUP BY ?s
    HAVING (COUNT(?o) > 1)
    ORDER BY ASC(?s)
    LIMIT 10
    OFFSET 20

Dataset clauses follow the projection (or CONSTRUCT template / DESCRIBE
targets) and precede WHERE, which is where the SPARQL grammar puts them.
"""

from __future__ import annotations

from typing import Union

from rdf_dataset.terms import Iri, Var, escape_string, format_term
from rdf_dataset.sparql.ast import (
    AggregateExpressionAst,
    AggregateFunction,
    AliasedSelectItemAst,
    AlternativePathAst,
    AndExpressionAst,
    ArithmeticExpressionAst,
    AskQueryAst,
    AddOperationAst,
    BasicPathAst,
    BindPatternAst,
    ClearOperationAst,
    ComparisonExpressionAst,
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
    FilterPatternAst,
    FunctionCallAst,
    GraphPatternAst,
    GroupPatternAst,
    InsertDataOperationAst,
    InversePathAst,
    LoadOperationAst,
    MinusPatternAst,
    ModifyOperationAst,
    MoveOperationAst,
    NamedGraphPatternAst,
    NegationPathAst,
    NotExpressionAst,
    OneOrMorePathAst,
    OptionalPatternAst,
    OrExpressionAst,
    OrderClauseAst,
    PrefixDeclaration,
    PropertyPathAst,
    PropertyPathPatternAst,
    QuotedTriplePatternAst,
    RangePathAst,
    RdfStarTriplePatternAst,
    SelectItemAst,
    SelectQueryAst,
    SequencePathAst,
    ServicePatternAst,
    SparqlQueryAst,
    SubSelectPatternAst,
    TermExpressionAst,
    TriplePatternAst,
    UnionPatternAst,
    UpdateOperationAst,
    UpdateRequestAst,
    ValuesPatternAst,
    VariableSelectItemAst,
    WildcardSelectItemAst,
    ZeroOrMorePathAst,
    ZeroOrOnePathAst,
)


INDENT = "  "


def _pad(depth: int) -> str:
    return INDENT * depth


def _indent_lines(text: str, depth: int) -> str:
    pad = _pad(depth)
    return "\n".join(pad + line if line else line for line in text.split("\n"))


class SparqlRenderer:
    """
    Renders SPARQL ASTs to text.

    Each node family is dispatched with an isinstance chain; an unknown
    node type raises TypeError instead of being silently dropped.
    """

    # =========================================================================
    # Entry points
    # =========================================================================

    def render(self, node: Union[SparqlQueryAst, UpdateRequestAst]) -> str:
        if isinstance(node, UpdateRequestAst):
            return self.render_update(node)
        return self.render_query(node)

    def render_query(self, query: SparqlQueryAst) -> str:
        if isinstance(query, SelectQueryAst):
            lines = self._prologue(query.version, query.prefixes)
            lines.extend(self._select_lines(query))
        elif isinstance(query, AskQueryAst):
            lines = self._prologue(query.version, query.prefixes)
            lines.append("ASK")
            lines.extend(self._dataset_lines(query.from_graphs, query.from_named))
            lines.append(self._where(query.where))
        elif isinstance(query, ConstructQueryAst):
            lines = self._prologue(query.version, query.prefixes)
            lines.append("CONSTRUCT " + self._template(query.template, 0))
            lines.extend(self._dataset_lines(query.from_graphs, query.from_named))
            lines.append(self._where(query.where))
        elif isinstance(query, DescribeQueryAst):
            lines = self._prologue(query.version, query.prefixes)
            if query.describe_terms:
                targets = " ".join(format_term(t) for t in query.describe_terms)
            else:
                targets = "*"
            lines.append(f"DESCRIBE {targets}")
            lines.extend(self._dataset_lines(query.from_graphs, query.from_named))
            if query.where is not None:
                lines.append(self._where(query.where))
        else:
            raise TypeError(f"Unsupported query node: {type(query).__name__}")
        return "\n".join(lines) + "\n"

    def render_update(self, update: UpdateRequestAst) -> str:
        lines = self._prologue(update.version, update.prefixes)
        operations = [self._update_operation(op) for op in update.operations]
        lines.append(" ;\n".join(operations))
        return "\n".join(lines) + "\n"

    # =========================================================================
    # Query forms
    # =========================================================================

    def _prologue(self, version, prefixes: tuple[PrefixDeclaration, ...]) -> list[str]:
        lines = []
        if version is not None:
            lines.append(f'VERSION "{escape_string(version)}"')
        for prefix in prefixes:
            lines.append(f"PREFIX {prefix.prefix}: <{prefix.namespace}>")
        return lines

    def _dataset_lines(self, from_graphs, from_named) -> list[str]:
        lines = [f"FROM {format_term(g)}" for g in from_graphs]
        lines.extend(f"FROM NAMED {format_term(g)}" for g in from_named)
        return lines

    def _select_lines(self, query: SelectQueryAst) -> list[str]:
        head = "SELECT"
        if query.distinct:
            head += " DISTINCT"
        if query.reduced:
            head += " REDUCED"
        if query.select_items:
            head += " " + " ".join(self._select_item(i) for i in query.select_items)
        else:
            head += " *"

        lines = [head]
        lines.extend(self._dataset_lines(query.from_graphs, query.from_named))
        lines.append(self._where(query.where))

        if query.group_by:
            lines.append("GROUP BY " + " ".join(format_term(v) for v in query.group_by))
        if query.having:
            lines.append(
                "HAVING " + " ".join(f"({self.render_expression(e)})" for e in query.having)
            )
        if query.order_by:
            lines.append("ORDER BY " + " ".join(self._order_clause(o) for o in query.order_by))
        if query.limit is not None:
            lines.append(f"LIMIT {query.limit}")
        if query.offset is not None:
            lines.append(f"OFFSET {query.offset}")
        return lines

    def _select_item(self, item: SelectItemAst) -> str:
        if isinstance(item, VariableSelectItemAst):
            return format_term(item.variable)
        if isinstance(item, AliasedSelectItemAst):
            return f"({self.render_expression(item.expression)} AS {format_term(Var(item.alias))})"
        if isinstance(item, WildcardSelectItemAst):
            return "*"
        raise TypeError(f"Unsupported select item: {type(item).__name__}")

    def _where(self, pattern) -> str:
        if pattern is None:
            return "WHERE {}"
        return "WHERE " + self._block(pattern, 0)

    def _template(self, triples: tuple[TriplePatternAst, ...], depth: int) -> str:
        if not triples:
            return "{}"
        body = "\n".join(
            _pad(depth + 1) + self.render_pattern(t, depth + 1) for t in triples
        )
        return "{\n" + body + "\n" + _pad(depth) + "}"

    def _order_clause(self, clause: OrderClauseAst) -> str:
        return f"{clause.direction.value}({self.render_expression(clause.expression)})"

    # =========================================================================
    # Graph patterns
    # =========================================================================

    def _block(self, pattern: GraphPatternAst, depth: int) -> str:
        """Render a pattern in a position where the grammar requires braces."""
        if isinstance(pattern, GroupPatternAst):
            return self._group(pattern, depth)
        if isinstance(pattern, SubSelectPatternAst):
            return self.render_pattern(pattern, depth)
        return self._group(GroupPatternAst((pattern,)), depth)

    def _group(self, group: GroupPatternAst, depth: int) -> str:
        if not group.patterns:
            return "{}"
        body = "\n".join(
            _pad(depth + 1) + self.render_pattern(p, depth + 1) for p in group.patterns
        )
        return "{\n" + body + "\n" + _pad(depth) + "}"

    def render_pattern(self, pattern: GraphPatternAst, depth: int = 0) -> str:
        """
        Render one graph pattern.

        ``depth`` is the nesting level of the line the pattern starts on;
        continuation lines are indented relative to it.
        """
        if isinstance(pattern, TriplePatternAst):
            return (
                f"{format_term(pattern.subject)} {format_term(pattern.predicate)} "
                f"{format_term(pattern.object)} ."
            )
        if isinstance(pattern, GroupPatternAst):
            return self._group(pattern, depth)
        if isinstance(pattern, OptionalPatternAst):
            return "OPTIONAL " + self._block(pattern.pattern, depth)
        if isinstance(pattern, UnionPatternAst):
            left = pattern.left
            if isinstance(left, UnionPatternAst):
                left_text = self.render_pattern(left, depth)
            else:
                left_text = self._block(left, depth)
            return f"{left_text}\n{_pad(depth)}UNION {self._block(pattern.right, depth)}"
        if isinstance(pattern, MinusPatternAst):
            left_text = self.render_pattern(pattern.left, depth)
            return f"{left_text}\n{_pad(depth)}MINUS {self._block(pattern.right, depth)}"
        if isinstance(pattern, NamedGraphPatternAst):
            return f"GRAPH {format_term(pattern.graph_name)} " + self._block(pattern.pattern, depth)
        if isinstance(pattern, ServicePatternAst):
            keyword = "SERVICE SILENT" if pattern.silent else "SERVICE"
            return f"{keyword} {format_term(pattern.endpoint)} " + self._block(pattern.pattern, depth)
        if isinstance(pattern, ValuesPatternAst):
            return self._values(pattern)
        if isinstance(pattern, PropertyPathPatternAst):
            return (
                f"{format_term(pattern.subject)} {self.render_path(pattern.path)} "
                f"{format_term(pattern.object)} ."
            )
        if isinstance(pattern, QuotedTriplePatternAst):
            return self._quoted(pattern)
        if isinstance(pattern, RdfStarTriplePatternAst):
            return (
                f"{self._quoted(pattern.quoted_triple)} {format_term(pattern.predicate)} "
                f"{format_term(pattern.object)} ."
            )
        if isinstance(pattern, BindPatternAst):
            return (
                f"BIND({self.render_expression(pattern.expression, depth)} "
                f"AS {format_term(pattern.variable)})"
            )
        if isinstance(pattern, FilterPatternAst):
            return f"FILTER({self.render_expression(pattern.expression, depth)})"
        if isinstance(pattern, SubSelectPatternAst):
            inner = "\n".join(self._select_lines(pattern.query))
            return "{\n" + _indent_lines(inner, depth + 1) + "\n" + _pad(depth) + "}"
        raise TypeError(f"Unsupported graph pattern: {type(pattern).__name__}")

    def _quoted(self, pattern: QuotedTriplePatternAst) -> str:
        return (
            f"<< {format_term(pattern.subject)} {format_term(pattern.predicate)} "
            f"{format_term(pattern.object)} >>"
        )

    def _values(self, pattern: ValuesPatternAst) -> str:
        def cell(term) -> str:
            return "UNDEF" if term is None else format_term(term)

        if len(pattern.variables) == 1:
            cells = " ".join(cell(row[0]) for row in pattern.values)
            return f"VALUES {format_term(pattern.variables[0])} {{ {cells} }}"
        header = " ".join(format_term(v) for v in pattern.variables)
        rows = " ".join(
            "(" + " ".join(cell(t) for t in row) + ")" for row in pattern.values
        )
        return f"VALUES ({header}) {{ {rows} }}"

    # =========================================================================
    # Property paths
    # =========================================================================

    def render_path(self, path: PropertyPathAst) -> str:
        if isinstance(path, BasicPathAst):
            return format_term(path.term)
        if isinstance(path, OneOrMorePathAst):
            return self._path_operand(path.path) + "+"
        if isinstance(path, ZeroOrMorePathAst):
            return self._path_operand(path.path) + "*"
        if isinstance(path, ZeroOrOnePathAst):
            return self._path_operand(path.path) + "?"
        if isinstance(path, InversePathAst):
            return "^" + self._path_operand(path.path)
        if isinstance(path, NegationPathAst):
            return "!" + self._path_operand(path.path)
        if isinstance(path, AlternativePathAst):
            return f"{self._path_operand(path.left)}|{self._path_operand(path.right)}"
        if isinstance(path, SequencePathAst):
            return f"{self._path_operand(path.left)}/{self._path_operand(path.right)}"
        if isinstance(path, RangePathAst):
            operand = self._path_operand(path.path)
            if path.max is None:
                return f"{operand}{{{path.min},}}"
            if path.min == path.max:
                return f"{operand}{{{path.min}}}"
            if path.min == 0:
                return f"{operand}{{,{path.max}}}"
            return f"{operand}{{{path.min},{path.max}}}"
        raise TypeError(f"Unsupported property path: {type(path).__name__}")

    def _path_operand(self, path: PropertyPathAst) -> str:
        # Any compound operand is parenthesized so | and / never re-associate
        if isinstance(path, BasicPathAst):
            return self.render_path(path)
        return f"({self.render_path(path)})"

    # =========================================================================
    # Expressions
    # =========================================================================

    def render_expression(self, expr: ExpressionAst, depth: int = 0) -> str:
        if isinstance(expr, TermExpressionAst):
            return format_term(expr.term)
        if isinstance(expr, ComparisonExpressionAst):
            return (
                f"{self.render_expression(expr.left, depth)} {expr.operator.symbol} "
                f"{self.render_expression(expr.right, depth)}"
            )
        if isinstance(expr, AndExpressionAst):
            return (
                f"({self.render_expression(expr.left, depth)} && "
                f"{self.render_expression(expr.right, depth)})"
            )
        if isinstance(expr, OrExpressionAst):
            return (
                f"({self.render_expression(expr.left, depth)} || "
                f"{self.render_expression(expr.right, depth)})"
            )
        if isinstance(expr, NotExpressionAst):
            return f"!({self.render_expression(expr.expression, depth)})"
        if isinstance(expr, FunctionCallAst):
            args = ", ".join(self.render_expression(a, depth) for a in expr.arguments)
            name = format_term(expr.name) if isinstance(expr.name, Iri) else expr.name
            return f"{name}({args})"
        if isinstance(expr, ConditionalExpressionAst):
            return (
                f"IF({self.render_expression(expr.condition, depth)}, "
                f"{self.render_expression(expr.then_value, depth)}, "
                f"{self.render_expression(expr.else_value, depth)})"
            )
        if isinstance(expr, AggregateExpressionAst):
            return self._aggregate(expr, depth)
        if isinstance(expr, ArithmeticExpressionAst):
            return (
                f"({self.render_expression(expr.left, depth)} {expr.operator.symbol} "
                f"{self.render_expression(expr.right, depth)})"
            )
        if isinstance(expr, ExistsExpressionAst):
            keyword = "NOT EXISTS" if expr.negated else "EXISTS"
            return f"{keyword} {self._block(expr.pattern, depth)}"
        raise TypeError(f"Unsupported expression: {type(expr).__name__}")

    def _aggregate(self, expr: AggregateExpressionAst, depth: int) -> str:
        inner = "DISTINCT " if expr.distinct else ""
        if expr.expression is None:
            inner += "*"
        else:
            inner += self.render_expression(expr.expression, depth)
        if expr.function is AggregateFunction.GROUP_CONCAT and expr.separator is not None:
            inner += f'; SEPARATOR="{escape_string(expr.separator)}"'
        return f"{expr.function.value}({inner})"

    # =========================================================================
    # Update operations
    # =========================================================================

    def _data_block(self, data, graph) -> str:
        if graph is None:
            return self._template(data, 0)
        inner = f"GRAPH {format_term(graph)} " + self._template(data, 1)
        return "{\n" + _pad(1) + inner + "\n}"

    def _update_operation(self, op: UpdateOperationAst) -> str:
        if isinstance(op, InsertDataOperationAst):
            return "INSERT DATA " + self._data_block(op.data, op.graph)
        if isinstance(op, DeleteDataOperationAst):
            return "DELETE DATA " + self._data_block(op.data, op.graph)
        if isinstance(op, ModifyOperationAst):
            lines = []
            if op.with_graph is not None:
                lines.append(f"WITH {format_term(op.with_graph)}")
            if op.delete:
                lines.append("DELETE " + self._template(op.delete, 0))
            if op.insert:
                lines.append("INSERT " + self._template(op.insert, 0))
            lines.extend(f"USING {format_term(g)}" for g in op.using)
            lines.extend(f"USING NAMED {format_term(g)}" for g in op.using_named)
            lines.append(self._where(op.where))
            return "\n".join(lines)
        if isinstance(op, DeleteWhereOperationAst):
            return "DELETE WHERE " + self._block(op.where, 0)
        if isinstance(op, LoadOperationAst):
            text = self._silent("LOAD", op.silent) + f" {format_term(op.source)}"
            if op.into is not None:
                text += f" INTO GRAPH {format_term(op.into)}"
            return text
        if isinstance(op, (ClearOperationAst, DropOperationAst)):
            keyword = "CLEAR" if isinstance(op, ClearOperationAst) else "DROP"
            target = f"GRAPH {format_term(op.graph)}" if op.graph is not None else op.scope.value
            return f"{self._silent(keyword, op.silent)} {target}"
        if isinstance(op, CreateOperationAst):
            return f"{self._silent('CREATE', op.silent)} GRAPH {format_term(op.graph)}"
        if isinstance(op, (CopyOperationAst, MoveOperationAst, AddOperationAst)):
            if isinstance(op, CopyOperationAst):
                keyword = "COPY"
            elif isinstance(op, MoveOperationAst):
                keyword = "MOVE"
            else:
                keyword = "ADD"
            return (
                f"{self._silent(keyword, op.silent)} {self._graph_or_default(op.source)} "
                f"TO {self._graph_or_default(op.destination)}"
            )
        raise TypeError(f"Unsupported update operation: {type(op).__name__}")

    @staticmethod
    def _silent(keyword: str, silent: bool) -> str:
        return f"{keyword} SILENT" if silent else keyword

    @staticmethod
    def _graph_or_default(graph) -> str:
        return "DEFAULT" if graph is None else format_term(graph)


_renderer = SparqlRenderer()


def render_query(query: SparqlQueryAst) -> str:
    """Render a query AST to SPARQL text."""
    return _renderer.render_query(query)


def render_update(update: UpdateRequestAst) -> str:
    """Render an update request AST to SPARQL Update text."""
    return _renderer.render_update(update)


def render(node: Union[SparqlQueryAst, UpdateRequestAst]) -> str:
    return _renderer.render(node)
