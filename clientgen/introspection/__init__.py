"""
API Introspection Module

Discovers web services and their response examples from the server's
self-describing metadata.
Supports:
- Web service catalog parsing (services, actions, params, changelog)
- JSON response examples
- Opaque text/XML/SVG/log/proto examples
- Example caching (1 hour TTL)
"""

from .example_fetcher import ExampleFetcher, OPAQUE_FORMATS
from .models import Action, ChangelogEntry, Param, WebService, WebServiceCatalog

__all__ = [
    "ExampleFetcher",
    "OPAQUE_FORMATS",
    "Action",
    "ChangelogEntry",
    "Param",
    "WebService",
    "WebServiceCatalog",
]
