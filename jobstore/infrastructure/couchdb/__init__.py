"""CouchDB infrastructure package."""

from .couchdb_client import CouchDBClient

__all__ = ["CouchDBClient"]
