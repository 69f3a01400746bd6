"""
MongoDB client for storing and querying parsed codebook variables.

- Connection string and database name from arguments, environment or a .env file
- TLS with the certifi CA bundle for Atlas (mongodb+srv://) URIs
- Context manager that connects on entry and closes on exit
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import certifi
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

DEFAULT_URI = "mongodb://localhost:27017/"
DEFAULT_DATABASE = "gss_codebook"


def load_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """Load a .env file into a dictionary (KEY=value lines, # comments)."""
    if not dotenv_path.exists():
        return {}

    values: Dict[str, str] = {}
    for line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            values[key] = value.strip().strip("'").strip('"')
    return values


def _safe_uri(uri: str) -> str:
    """Redact password in URI for logs."""
    return re.sub(r"(mongodb(?:\+srv)?://[^:]+):[^@]+@", r"\1:***@", uri)


class MongoDBClient:
    """MongoDB client for database operations."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        database_name: Optional[str] = None,
        dotenv_path: Optional[Path] = None,
    ):
        if dotenv_path is None:
            dotenv_path = Path(__file__).resolve().parent.parent.parent / ".env"
        env_vars = load_dotenv(dotenv_path)

        def _get(key: str) -> Optional[str]:
            raw = os.getenv(key) or env_vars.get(key)
            return (raw.strip() or None) if raw else None

        self.connection_string = (
            (connection_string or "").strip() or _get("MONGODB_CONNECTION_STRING") or DEFAULT_URI
        )
        self.database_name = (
            (database_name or "").strip() or _get("MONGODB_DATABASE_NAME") or DEFAULT_DATABASE
        )

        self.client: Optional[MongoClient] = None
        self.db: Optional[Database] = None

    def _build_tls_kwargs(self) -> Dict[str, Any]:
        """Timeouts for every connection; certifi-backed TLS for Atlas."""
        uri = self.connection_string
        kwargs: Dict[str, Any] = {
            "serverSelectionTimeoutMS": 30000,
            "connectTimeoutMS": 20000,
            "socketTimeoutMS": 20000,
        }
        if uri.startswith("mongodb+srv://") or "mongodb.net" in uri:
            kwargs["tls"] = True
            kwargs["tlsCAFile"] = certifi.where()
        return kwargs

    def connect(self) -> None:
        """Connect to MongoDB and select database."""
        try:
            print("MongoDB URI (safe):", _safe_uri(self.connection_string))
            self.client = MongoClient(self.connection_string, **self._build_tls_kwargs())
            self.client.admin.command("ping")
            self.db = self.client[self.database_name]
            print(f"Connected to MongoDB database: {self.database_name}")
        except Exception as e:
            raise ConnectionError(f"Failed to connect to MongoDB: {e}") from e

    def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
        self.client = None
        self.db = None
        print("Disconnected from MongoDB")

    def get_collection(self, collection_name: str) -> Collection:
        """Get a collection from the database."""
        if self.db is None:
            raise RuntimeError("Not connected to database. Call connect() first.")
        return self.db[collection_name]

    def create_indexes(self, collection_name: str, indexes: list) -> None:
        """Create indexes on a collection."""
        collection = self.get_collection(collection_name)
        for index_spec in indexes:
            collection.create_index(index_spec)
        print(f"Created indexes on {collection_name}")

    def __enter__(self) -> "MongoDBClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()
