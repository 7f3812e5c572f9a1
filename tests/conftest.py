from typing import Dict, List, Sequence

import pytest

from retrieval_bench.packages.evaluation_framework import (
    Dataset,
    Document,
    DocumentId,
    Query,
    QueryText,
    SearchEngine,
    SearchResult,
)

DOC_VECTORS = {
    "apple banana": [1.0, 0.0, 0.0],
    "cherry date": [0.0, 1.0, 0.0],
    "elder fig": [0.0, 0.0, 1.0],
}
QUERY_VECTORS = {
    "banana": [1.0, 0.0, 0.0],
    "fig": [0.0, 0.0, 1.0],
}


class FakeEngine(SearchEngine):
    """Brute-force engine: dot-product vectors, word-overlap text search."""

    name = "fake"

    def __init__(self, name: str = "fake", fail_on_init: bool = False,
                 fail_on_release: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.name = name
        self.fail_on_init = fail_on_init
        self.fail_on_release = fail_on_release
        self.released = False
        self.search_calls: List[tuple] = []
        self._docs: List[Document] = []
        self._vectors: List[List[float]] = []

    def _index(self, documents, embeddings):
        if self.fail_on_init:
            raise RuntimeError("extension not found")
        self._docs = list(documents)
        self._vectors = [list(e) for e in embeddings]

    def _search_vector(self, query_embedding, top_k):
        self.search_calls.append(("vector", top_k))
        scored = [
            SearchResult(doc_id=doc.id, score=sum(a * b for a, b in zip(vector, query_embedding)))
            for doc, vector in zip(self._docs, self._vectors)
        ]
        return sorted(scored, key=lambda r: r.score, reverse=True)[:top_k]

    def _search_fts(self, query_text, top_k):
        self.search_calls.append(("fts", top_k))
        words = set(query_text.lower().split())
        scored = [
            SearchResult(doc_id=doc.id, score=float(len(words & set(doc.text.lower().split()))))
            for doc in self._docs
        ]
        return sorted([r for r in scored if r.score > 0], key=lambda r: r.score, reverse=True)[:top_k]

    def _release(self):
        self.released = True
        if self.fail_on_release:
            raise RuntimeError("database is locked")


class FakeEmbeddingService:
    def __init__(self, vectors: Dict[str, List[float]]):
        self.vectors = vectors
        self.calls: List[List[str]] = []

    def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self.vectors[t] for t in texts]


class FakeClock:
    """Advances 10ms on every reading."""

    def __init__(self, step: float = 0.01):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def make_dataset(name: str = "Fruit") -> Dataset:
    documents = [
        Document(id=DocumentId("d1"), text="apple banana", metadata={"topic": "yellow"}),
        Document(id=DocumentId("d2"), text="cherry date"),
        Document(id=DocumentId("d3"), text="elder fig"),
    ]
    queries = [
        Query(id="q1", text=QueryText("banana"), relevant_doc_ids=frozenset({DocumentId("d1")})),
        Query(id="q2", text=QueryText("fig"), relevant_doc_ids=frozenset({DocumentId("d3")})),
    ]
    return Dataset(name, documents, queries)


@pytest.fixture
def dataset() -> Dataset:
    return make_dataset()


@pytest.fixture
def doc_embeddings() -> List[List[float]]:
    return list(DOC_VECTORS.values())


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService({**DOC_VECTORS, **QUERY_VECTORS})


@pytest.fixture
def fake_engine(dataset, doc_embeddings) -> FakeEngine:
    engine = FakeEngine()
    engine.init(dataset.documents, doc_embeddings)
    return engine
