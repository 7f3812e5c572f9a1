"""
LanceDB search engine: on-disk table with a native FTS index and vector search.
"""

import logging
from typing import List, Sequence

import lancedb
from lancedb.index import FTS, IvfPq

from retrieval_bench.packages.evaluation_framework import (
    Document,
    DocumentId,
    Embedding,
    QueryText,
    SearchEngine,
    SearchResult,
)

logger = logging.getLogger(__name__)

# IVF-PQ training needs enough rows; smaller tables are searched exhaustively
IVF_PQ_MIN_ROWS = 256
IVF_PQ_SUB_VECTORS = 16


class LanceDBEngine(SearchEngine):
    """LanceDB table holding id, text and vector columns."""

    name = "LanceDB"

    def __init__(self, uri: str = "data/lancedb", table_name: str = "documents", **kwargs):
        super().__init__(**kwargs)
        self.uri = uri
        self.table_name = table_name
        self.db = None
        self.table = None

    def _index(self, documents: Sequence[Document], embeddings: Sequence[Embedding]) -> None:
        self.db = lancedb.connect(self.uri)

        rows = [
            {"id": doc.id, "text": doc.text, "vector": [float(x) for x in embedding]}
            for doc, embedding in zip(documents, embeddings)
        ]
        self.table = self.db.create_table(self.table_name, data=rows, mode="overwrite")
        self.table.create_index("text", config=FTS(), replace=True)

        if len(documents) >= IVF_PQ_MIN_ROWS:
            self.table.create_index(
                "vector",
                config=IvfPq(num_partitions=min(4, len(documents)),
                             num_sub_vectors=IVF_PQ_SUB_VECTORS),
                replace=True,
            )

        logger.info(f"Indexed {len(documents)} documents into LanceDB at {self.uri}")

    def _search_vector(self, query_embedding: Embedding, top_k: int) -> List[SearchResult]:
        rows = self.table.search(list(query_embedding)).limit(top_k).to_list()

        return [SearchResult(doc_id=DocumentId(r["id"]), score=1.0 / (1.0 + r.get("_distance", 0.0)))
                for r in rows]

    def _search_fts(self, query_text: QueryText, top_k: int) -> List[SearchResult]:
        # LanceDB raises assorted error types when FTS cannot serve a query
        try:
            rows = self.table.search(query_text, query_type="fts").limit(top_k).to_list()
        except Exception as e:
            logger.warning(f"LanceDB FTS unavailable for query '{query_text}': {e}")
            return []

        return [SearchResult(doc_id=DocumentId(r["id"]), score=r.get("_score", 1.0 / (i + 1)))
                for i, r in enumerate(rows)]

    def _release(self) -> None:
        if self.db is not None and self.table is not None:
            self.db.drop_table(self.table_name)
        self.table = None
        self.db = None
