"""
Dataset management for corpus documents, queries and relevance labels.
"""

import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

from .models import Document, DocumentId, Query, QueryText

logger = logging.getLogger(__name__)

DOCUMENTS_FILE = "documents.jsonl"
QUERIES_FILE = "queries.jsonl"

T = TypeVar("T")


class Dataset:
    """Ground truth: documents + queries + relevance labels. Read-only once built."""

    def __init__(self, name: str, documents: Sequence[Document], queries: Sequence[Query]):
        """Initialize dataset with documents and queries."""
        logger.info(
            f"Initializing dataset '{name}' with {len(documents)} documents and {len(queries)} queries")
        self.name = name
        self._documents: Tuple[Document, ...] = tuple(documents)
        self._queries: Tuple[Query, ...] = tuple(queries)
        self._document_map: Dict[DocumentId, Document] = {d.id: d for d in self._documents}
        self._validate()

    def _validate(self) -> None:
        """Validate dataset integrity."""
        # Check for duplicate document IDs
        if len(self._document_map) != len(self._documents):
            seen = set()
            duplicates = []
            for doc in self._documents:
                if doc.id in seen:
                    duplicates.append(doc.id)
                seen.add(doc.id)

            duplicate_list = "\n".join(f"  - {d}" for d in duplicates)
            raise ValueError(f"Duplicate document IDs in dataset '{self.name}':\n{duplicate_list}")

        for query in self._queries:
            if len(query.relevant_doc_ids) == 0:
                logger.warning(f"Query '{query.id}' has 0 relevant documents")

            unknown = query.relevant_doc_ids - self._document_map.keys()
            if unknown:
                logger.warning(f"Query '{query.id}' references unknown documents: {sorted(unknown)}")

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._documents

    @property
    def queries(self) -> Tuple[Query, ...]:
        return self._queries

    def get_document(self, doc_id: str) -> Document:
        """Get specific document by ID."""
        if doc_id not in self._document_map:
            raise KeyError(f"Document not found: {doc_id}")
        return self._document_map[DocumentId(doc_id)]

    @classmethod
    def from_jsonl(cls, name: str, directory: Path) -> "Dataset":
        """Load dataset from a directory holding documents.jsonl and queries.jsonl."""
        logger.info(f"Loading dataset '{name}' from {directory}")
        directory = Path(directory)

        documents = _read_jsonl(directory / DOCUMENTS_FILE, lambda data: Document(
            id=DocumentId(data['id']),
            text=data['text'],
            metadata=dict(data.get('metadata', {}))
        ))
        queries = _read_jsonl(directory / QUERIES_FILE, lambda data: Query(
            id=data['id'],
            text=QueryText(data['query']),
            relevant_doc_ids=frozenset(DocumentId(d) for d in data.get('relevant_docs', []))
        ))

        return cls(name, documents, queries)


def _read_jsonl(path: Path, parse: Callable[[dict], T]) -> List[T]:
    """Parse every non-empty line of a JSONL file."""
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")

    records: List[T] = []
    with open(path, 'r', encoding='utf-8') as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                records.append(parse(json.loads(line)))
            except (json.JSONDecodeError, KeyError) as e:
                raise ValueError(f"Error parsing line {line_num} in {path}: {e}") from e

    logger.info(f"Loaded {len(records)} records from {path}")
    return records
