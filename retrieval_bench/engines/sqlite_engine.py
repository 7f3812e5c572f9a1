"""
SQLite search engine: FTS5 for BM25 text search, sqlite-vec for KNN vector search.
"""

import logging
import re
import sqlite3
from typing import List, Optional, Sequence

import sqlite_vec
from sqlite_vec import serialize_float32

from retrieval_bench.packages.evaluation_framework import (
    Document,
    DocumentId,
    Embedding,
    QueryText,
    SearchEngine,
    SearchResult,
)

logger = logging.getLogger(__name__)


def build_fts_query(query_text: str) -> str:
    """Turn free text into an FTS5 OR-query of quoted words.

    Punctuation is stripped and single-character words are dropped.
    """
    words = re.sub(r"[^\w\s]", "", query_text).split()
    return " OR ".join(f'"{w}"' for w in words if len(w) > 1)


class SQLiteEngine(SearchEngine):
    """In-memory SQLite with FTS5 and a vec0 virtual table."""

    name = "SQLite + FTS5 + sqlite-vec"

    def __init__(self, dimensions: int, **kwargs):
        super().__init__(**kwargs)
        self.dimensions = dimensions
        self.conn: Optional[sqlite3.Connection] = None

    def _index(self, documents: Sequence[Document], embeddings: Sequence[Embedding]) -> None:
        self.conn = sqlite3.connect(":memory:")
        self.conn.enable_load_extension(True)
        sqlite_vec.load(self.conn)
        self.conn.enable_load_extension(False)

        self.conn.executescript(f"""
            CREATE TABLE documents (
                id INTEGER PRIMARY KEY,
                doc_id TEXT NOT NULL UNIQUE,
                text TEXT NOT NULL
            );
            CREATE VIRTUAL TABLE documents_fts USING fts5(
                doc_id UNINDEXED,
                text,
                tokenize = 'porter unicode61'
            );
            CREATE VIRTUAL TABLE documents_vec USING vec0(
                embedding float[{int(self.dimensions)}]
            );
        """)

        # vec0 rows share the documents table's integer key
        with self.conn:
            for rowid, (doc, embedding) in enumerate(zip(documents, embeddings), start=1):
                self.conn.execute(
                    "INSERT INTO documents (id, doc_id, text) VALUES (?, ?, ?)",
                    (rowid, doc.id, doc.text))
                self.conn.execute(
                    "INSERT INTO documents_fts (doc_id, text) VALUES (?, ?)",
                    (doc.id, doc.text))
                self.conn.execute(
                    "INSERT INTO documents_vec (rowid, embedding) VALUES (?, ?)",
                    (rowid, serialize_float32(embedding)))

        logger.info(f"Indexed {len(documents)} documents into SQLite")

    def _search_vector(self, query_embedding: Embedding, top_k: int) -> List[SearchResult]:
        rows = self.conn.execute(
            """
            SELECT d.doc_id, v.distance
            FROM (
                SELECT rowid, distance
                FROM documents_vec
                WHERE embedding MATCH ? AND k = ?
            ) v
            JOIN documents d ON d.id = v.rowid
            ORDER BY v.distance
            """,
            (serialize_float32(query_embedding), top_k),
        ).fetchall()

        return [SearchResult(doc_id=DocumentId(doc_id), score=1.0 / (1.0 + distance))
                for doc_id, distance in rows]

    def _search_fts(self, query_text: QueryText, top_k: int) -> List[SearchResult]:
        fts_query = build_fts_query(query_text)
        if not fts_query:
            return []

        try:
            rows = self.conn.execute(
                """
                SELECT doc_id, rank
                FROM documents_fts
                WHERE documents_fts MATCH ?
                ORDER BY rank
                LIMIT ?
                """,
                (fts_query, top_k),
            ).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"SQLite FTS unavailable for query '{query_text}': {e}")
            return []

        # FTS5 rank is negative BM25; flip it so higher is better
        return [SearchResult(doc_id=DocumentId(doc_id), score=-rank) for doc_id, rank in rows]

    def _release(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
