"""
DuckDB search engine: VSS extension (HNSW, cosine) and FTS extension (BM25).
"""

import logging
from typing import List, Optional, Sequence

import duckdb

from retrieval_bench.packages.evaluation_framework import (
    Document,
    DocumentId,
    Embedding,
    QueryText,
    SearchEngine,
    SearchResult,
)

logger = logging.getLogger(__name__)

EXTENSIONS = ("vss", "fts")


class DuckDBEngine(SearchEngine):
    """In-memory DuckDB with an HNSW vector index and a BM25 full-text index."""

    name = "DuckDB + VSS + FTS"

    def __init__(self, dimensions: int, **kwargs):
        super().__init__(**kwargs)
        self.dimensions = int(dimensions)
        self.conn: Optional[duckdb.DuckDBPyConnection] = None

    def _index(self, documents: Sequence[Document], embeddings: Sequence[Embedding]) -> None:
        self.conn = duckdb.connect(":memory:")
        for extension in EXTENSIONS:
            self.conn.install_extension(extension)
            self.conn.load_extension(extension)

        self.conn.execute(f"""
            CREATE TABLE documents (
                id VARCHAR PRIMARY KEY,
                text VARCHAR,
                embedding FLOAT[{self.dimensions}]
            )
        """)
        self.conn.executemany(
            f"INSERT INTO documents VALUES (?, ?, ?::FLOAT[{self.dimensions}])",
            [(doc.id, doc.text, list(embedding)) for doc, embedding in zip(documents, embeddings)],
        )

        self.conn.execute(
            "CREATE INDEX vec_idx ON documents USING HNSW (embedding) WITH (metric = 'cosine')")
        self.conn.execute(
            "PRAGMA create_fts_index('documents', 'id', 'text', "
            "stemmer = 'english', stopwords = 'english', lower = 1)")

        logger.info(f"Indexed {len(documents)} documents into DuckDB")

    def _search_vector(self, query_embedding: Embedding, top_k: int) -> List[SearchResult]:
        # Constant LIMIT lets the planner use the HNSW index
        rows = self.conn.execute(
            f"""
            SELECT id, array_cosine_distance(embedding, ?::FLOAT[{self.dimensions}]) AS distance
            FROM documents
            ORDER BY distance ASC
            LIMIT {int(top_k)}
            """,
            [list(query_embedding)],
        ).fetchall()

        return [SearchResult(doc_id=DocumentId(doc_id), score=1.0 - (distance or 0.0))
                for doc_id, distance in rows]

    def _search_fts(self, query_text: QueryText, top_k: int) -> List[SearchResult]:
        try:
            rows = self.conn.execute(
                f"""
                SELECT id, fts_main_documents.match_bm25(id, ?, fields := 'text') AS score
                FROM documents
                WHERE score IS NOT NULL
                ORDER BY score DESC
                LIMIT {int(top_k)}
                """,
                [query_text],
            ).fetchall()
        except duckdb.Error as e:
            logger.warning(f"DuckDB FTS unavailable for query '{query_text}': {e}")
            return []

        return [SearchResult(doc_id=DocumentId(doc_id), score=score or 0.0)
                for doc_id, score in rows]

    def _release(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None
