"""
Repository implementations.

- OxigraphRepository: in-process store backed by pyoxigraph
- SparqlEndpointRepository: remote SPARQL 1.1 Protocol endpoint over httpx
"""

from rdf_dataset.storage.oxigraph import OxigraphGraph, OxigraphRepository
from rdf_dataset.storage.endpoint import (
    SparqlEndpointError,
    SparqlEndpointGraph,
    SparqlEndpointRepository,
)

__all__ = [
    "OxigraphGraph",
    "OxigraphRepository",
    "SparqlEndpointError",
    "SparqlEndpointGraph",
    "SparqlEndpointRepository",
]
