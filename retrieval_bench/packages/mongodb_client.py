"""
MongoDB client factory for the Atlas search engine.
"""

import logging
from typing import Optional
from urllib.parse import quote_plus

from pymongo import MongoClient

logger = logging.getLogger(__name__)


class MongoDBClient:
    """Factory for creating MongoDB client connections."""

    def __init__(self, uri: str, username: Optional[str] = None, password: Optional[str] = None,
                 timeout: float = 30.0):
        """Initialize MongoDB client configuration."""
        self.uri = uri
        self.username = username
        self.password = password
        self.timeout_ms = int(timeout * 1000)

    def build_connection_string(self) -> str:
        """
        Construct MongoDB URI, injecting credentials when they are configured separately.
        Expected format: mongodb+srv://cluster.mongodb.net/?retryWrites=true&w=majority
        """
        if "://" not in self.uri:
            raise ValueError(
                "Invalid MongoDB URI format. Expected format: mongodb+srv://cluster.mongodb.net/?retryWrites=true&w=majority")

        if not self.username or not self.password:
            return self.uri

        protocol, rest = self.uri.split("://", 1)

        # Drop credentials already embedded in the URI
        if "@" in rest:
            rest = rest.split("@", 1)[1]

        return f"{protocol}://{quote_plus(self.username)}:{quote_plus(self.password)}@{rest}"

    def get_client(self) -> MongoClient:
        """Create and return a new MongoDB client instance."""
        logger.info("Creating MongoDB client")
        return MongoClient(
            self.build_connection_string(),
            serverSelectionTimeoutMS=self.timeout_ms,
            socketTimeoutMS=self.timeout_ms,
            appname="retrieval-bench",
        )
