"""
rdf-dataset: SPARQL datasets over graphs from any number of repositories.

Queries are pushed down to a single repository with FROM / FROM NAMED
clauses when every graph lives there, and answered from a temporary
materialized copy otherwise.
"""

__version__ = "0.1.0"

from rdf_dataset.terms import (
    BlankNode,
    Iri,
    LangString,
    PlainLiteral,
    RdfTriple,
    TripleTerm,
    TypedLiteral,
    Var,
    bnode,
    iri,
    lang_string,
    literal,
    triple,
    var,
)
from rdf_dataset.config import (
    ConfigValidationError,
    DatasetConfigurationError,
    EndpointConfig,
    FederationConfig,
)
from rdf_dataset.repository import (
    BindingSet,
    GraphEditor,
    MemoryGraph,
    MutableRdfGraph,
    RdfGraph,
    RdfRepository,
    SourceTrackedGraph,
    SparqlQueryResult,
)
from rdf_dataset.graph_ref import GraphRef, as_graph_ref
from rdf_dataset.dataset import Dataset, DatasetBuilder
from rdf_dataset.federation import (
    DatasetClauseRewriter,
    FallbackMaterializer,
    RepositoryGroup,
    group_by_repository,
)
from rdf_dataset.union import OptimizedUnionGraph, UnionGraph
from rdf_dataset.storage import (
    OxigraphRepository,
    SparqlEndpointError,
    SparqlEndpointRepository,
)

__all__ = [
    # Terms
    "BlankNode",
    "Iri",
    "LangString",
    "PlainLiteral",
    "RdfTriple",
    "TripleTerm",
    "TypedLiteral",
    "Var",
    "bnode",
    "iri",
    "lang_string",
    "literal",
    "triple",
    "var",
    # Configuration
    "ConfigValidationError",
    "DatasetConfigurationError",
    "EndpointConfig",
    "FederationConfig",
    # Repository interfaces
    "BindingSet",
    "GraphEditor",
    "MemoryGraph",
    "MutableRdfGraph",
    "RdfGraph",
    "RdfRepository",
    "SourceTrackedGraph",
    "SparqlQueryResult",
    "GraphRef",
    "as_graph_ref",
    # Datasets
    "Dataset",
    "DatasetBuilder",
    "DatasetClauseRewriter",
    "FallbackMaterializer",
    "RepositoryGroup",
    "group_by_repository",
    "OptimizedUnionGraph",
    "UnionGraph",
    # Repositories
    "OxigraphRepository",
    "SparqlEndpointError",
    "SparqlEndpointRepository",
]
