"""Persistence for sessions and usage counters.

Backends:
    - MappingDocumentStore: browser-local storage (NiceGUI user storage)
    - SqlDocumentStore: remote per-user documents in a SQL database
"""

from parseai.storage.documents import (
    DocumentStore,
    LazyDocumentStore,
    MappingDocumentStore,
    SqlDocumentStore,
    get_remote_store,
)
from parseai.storage.sessions import SessionRepository

__all__ = [
    "DocumentStore",
    "LazyDocumentStore",
    "MappingDocumentStore",
    "SessionRepository",
    "SqlDocumentStore",
    "get_remote_store",
]
