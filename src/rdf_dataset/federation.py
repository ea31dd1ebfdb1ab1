"""
Query planning for Datasets.

Provides:
- RepositoryGroup / group_by_repository: partition graph references by the
  repository object they come from
- DatasetClauseRewriter: push a query down to a single repository by
  adding FROM / FROM NAMED clauses to its text
- FallbackMaterializer: copy every graph into a private temporary
  repository when no single repository can answer the query
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from rdf_dataset.graph_ref import GraphRef
from rdf_dataset.repository import RdfRepository
from rdf_dataset.sparql.queries import SparqlQuery
from rdf_dataset.storage.oxigraph import OxigraphRepository
from rdf_dataset.terms import Iri

logger = logging.getLogger(__name__)


# =============================================================================
# Grouping
# =============================================================================

@dataclass(frozen=True)
class RepositoryGroup:
    """
    Graph names a Dataset uses from one repository.

    ``default_graph_names`` may contain None, meaning the repository's own
    default graph. ``named_graph_names`` are the names the graphs carry in
    the Dataset.
    """
    repository: RdfRepository
    default_graph_names: Tuple[Optional[Iri], ...] = ()
    named_graph_names: Tuple[Iri, ...] = ()


def group_by_repository(
    default_refs: Sequence[GraphRef],
    named_refs: Mapping[Iri, GraphRef],
) -> List[RepositoryGroup]:
    """
    Partition tracked references by repository identity.

    Untracked references are skipped. Groups are ordered by the first
    appearance of their repository, default graphs before named graphs.
    """
    order: List[RdfRepository] = []
    defaults: dict[int, List[Optional[Iri]]] = {}
    named: dict[int, List[Iri]] = {}

    def slot(repository: RdfRepository) -> int:
        key = id(repository)
        if key not in defaults:
            order.append(repository)
            defaults[key] = []
            named[key] = []
        return key

    for ref in default_refs:
        if ref.has_provenance():
            defaults[slot(ref.source_repository)].append(ref.source_graph_name)

    for name, ref in named_refs.items():
        if ref.has_provenance():
            named[slot(ref.source_repository)].append(name)

    return [
        RepositoryGroup(
            repository=repository,
            default_graph_names=tuple(defaults[id(repository)]),
            named_graph_names=tuple(named[id(repository)]),
        )
        for repository in order
    ]


# =============================================================================
# FROM / FROM NAMED rewriting
# =============================================================================

class DatasetClauseRewriter:
    """
    Adds the dataset clauses of one RepositoryGroup to query text.

    Clauses are inserted where SPARQL expects them: after the query form
    (and after the CONSTRUCT template) and before the top-level WHERE
    clause, group pattern or solution modifiers.

    The rewrite never raises. The query is returned unchanged when:
    - it already declares a dataset (a line starting with FROM, or a FROM
      clause in the query head)
    - the group contributes no clauses
    - the query form or the insertion point cannot be recognized
    """

    # A line that starts with FROM
    EXISTING_FROM = re.compile(r"^\s*FROM\s+", re.MULTILINE | re.IGNORECASE)

    # Prologue (comments, BASE, PREFIX, VERSION) followed by the query form
    QUERY_HEAD = re.compile(
        r"""
        (?:
            \s
          | \#[^\n]*
          | PREFIX\s+[\w.\-]*:\s*<[^<>\s]*>
          | BASE\s*<[^<>\s]*>
          | VERSION\s+(?:"[^"\n]*"|'[^'\n]*'|\d[\w.]*)
        )*
        (?P<keyword>SELECT|ASK|CONSTRUCT|DESCRIBE)\b
        """,
        re.IGNORECASE | re.VERBOSE,
    )

    # Tokens that matter for finding the insertion point. IRIs, strings
    # and comments are matched only so that their contents are skipped.
    TOKEN = re.compile(
        "|".join([
            r'(?P<iri><[^<>"{}|^`\\\s]*>)',
            r'(?P<string>"""[\s\S]*?"""|\'\'\'[\s\S]*?\'\'\''
            r'|"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\')',
            r"(?P<comment>#[^\n]*)",
            r"(?P<from>(?<![?$:\w])FROM\b)",
            r"(?P<where>(?<![?$:\w])WHERE\b)",
            r"(?P<modifier>(?<![?$:\w])(?:GROUP\s+BY|HAVING|ORDER\s+BY|LIMIT|OFFSET|VALUES)\b)",
            r"(?P<open>\{)",
            r"(?P<close>\})",
        ]),
        re.IGNORECASE,
    )

    def __init__(
        self,
        group: RepositoryGroup,
        named_refs: Optional[Mapping[Iri, GraphRef]] = None,
    ):
        self.group = group
        self.named_refs = dict(named_refs or {})

    def from_clauses(self) -> List[str]:
        clauses: List[str] = []
        for name in self.group.default_graph_names:
            # the repository's own default graph is never named
            if name is None:
                continue
            clause = f"FROM <{name.value}>"
            if clause not in clauses:
                clauses.append(clause)
        return clauses

    def from_named_clauses(self) -> List[str]:
        names: List[Iri] = list(self.group.named_graph_names)
        for name, ref in self.named_refs.items():
            if ref.has_provenance() and ref.source_repository is self.group.repository:
                if name not in names:
                    names.append(name)

        clauses: List[str] = []
        for name in names:
            clause = f"FROM NAMED <{name.value}>"
            if clause not in clauses:
                clauses.append(clause)
        return clauses

    def dataset_clauses(self) -> List[str]:
        return self.from_clauses() + self.from_named_clauses()

    @classmethod
    def has_dataset_clause(cls, text: str) -> bool:
        return bool(cls.EXISTING_FROM.search(text))

    @classmethod
    def find_insertion_point(cls, text: str) -> Optional[int]:
        """
        Offset at which dataset clauses belong, or None when the text is
        not a recognizable query or already carries a FROM clause.
        """
        head = cls.QUERY_HEAD.match(text)
        if head is None:
            return None

        keyword = head.group("keyword").upper()
        template_pending = keyword == "CONSTRUCT"
        depth = 0

        for token in cls.TOKEN.finditer(text, head.end()):
            kind = token.lastgroup
            if kind in ("iri", "string", "comment"):
                continue
            if kind == "close":
                depth -= 1
                if depth < 0:
                    return None
                continue
            if depth > 0:
                if kind == "open":
                    depth += 1
                continue
            if kind == "from":
                return None
            if kind == "open":
                if template_pending:
                    template_pending = False
                    depth += 1
                    continue
                return token.start()
            # where / modifier at top level
            return token.start()

        if keyword == "DESCRIBE" and depth == 0:
            return len(text.rstrip())
        return None

    def rewrite_text(self, text: str) -> str:
        if self.has_dataset_clause(text):
            logger.debug("Query already declares a dataset, not rewriting")
            return text

        clauses = self.dataset_clauses()
        if not clauses:
            logger.debug("No dataset clauses for this repository, not rewriting")
            return text

        position = self.find_insertion_point(text)
        if position is None:
            logger.debug("Could not locate the query form, not rewriting")
            return text

        before, after = text[:position].rstrip(" \t"), text[position:]
        if before and not before.endswith("\n"):
            before += "\n"
        block = "\n".join(clauses)
        if not after.strip():
            return f"{before}{block}\n"
        return f"{before}{block}\n{after}"

    def rewrite(self, query: SparqlQuery) -> SparqlQuery:
        """Return a query of the same kind with dataset clauses added."""
        text = self.rewrite_text(query.sparql)
        if text == query.sparql:
            return query
        return query.with_text(text)


# =============================================================================
# Fallback materialization
# =============================================================================

class FallbackMaterializer:
    """
    Copies a Dataset's graphs into a temporary repository.

    Triples are streamed from each source straight into the temporary
    repository. The repository lives only for the duration of the
    ``materialized()`` block and is closed on every exit path.
    """

    def __init__(
        self,
        default_refs: Sequence[GraphRef],
        named_refs: Mapping[Iri, GraphRef],
        factory: Optional[Callable[[], RdfRepository]] = None,
    ):
        self.default_refs = list(default_refs)
        self.named_refs = dict(named_refs)
        self.factory = factory or OxigraphRepository

    def populate(self, repository: RdfRepository) -> Tuple[int, int]:
        """
        Stream every graph into ``repository``.

        Returns:
            (default triples copied, named triples copied)
        """
        default_count = 0
        editor = repository.edit_default_graph()
        for ref in self.default_refs:
            default_count += editor.add_triples(ref.get_triples_sequence())

        named_count = 0
        for name, ref in self.named_refs.items():
            target = repository.create_graph(name)
            named_count += target.add_triples(ref.get_triples_sequence())

        return default_count, named_count

    @contextmanager
    def materialized(self) -> Iterator[RdfRepository]:
        repository = self.factory()
        try:
            default_count, named_count = self.populate(repository)
            logger.debug(
                f"Materialized {default_count} default and {named_count} named triples "
                f"from {len(self.default_refs)} default and {len(self.named_refs)} named graphs"
            )
            yield repository
        finally:
            repository.close()
