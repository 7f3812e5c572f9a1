import json
import logging

import pytest

from retrieval_bench.datasets.providers import DATASET_MAP, get_code_dataset, get_fantasy_dataset
from retrieval_bench.packages.evaluation_framework import Dataset, Document, Query


def write_jsonl(path, records):
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")


@pytest.fixture
def dataset_dir(tmp_path):
    write_jsonl(tmp_path / "documents.jsonl", [
        {"id": "d1", "text": "first", "metadata": {"lang": "ts"}},
        {"id": "d2", "text": "second"},
    ])
    write_jsonl(tmp_path / "queries.jsonl", [
        {"id": "q1", "query": "which one is first", "relevant_docs": ["d1"]},
    ])
    return tmp_path


class TestDataset:

    def test_duplicate_document_ids_rejected(self):
        documents = [Document(id="d1", text="a"), Document(id="d1", text="b")]
        with pytest.raises(ValueError, match="Duplicate document IDs"):
            Dataset("dupes", documents, [])

    def test_get_document(self, dataset):
        assert dataset.get_document("d2").text == "cherry date"
        with pytest.raises(KeyError):
            dataset.get_document("missing")

    def test_collections_are_read_only(self, dataset):
        assert isinstance(dataset.documents, tuple)
        assert isinstance(dataset.queries, tuple)

    def test_unknown_relevant_ids_warned(self, caplog):
        query = Query(id="q1", text="t", relevant_doc_ids=frozenset({"ghost"}))
        with caplog.at_level(logging.WARNING):
            Dataset("warn", [Document(id="d1", text="a")], [query])

        assert "unknown documents" in caplog.text

    def test_empty_relevant_set_warned(self, caplog):
        query = Query(id="q1", text="t", relevant_doc_ids=frozenset())
        with caplog.at_level(logging.WARNING):
            Dataset("warn", [Document(id="d1", text="a")], [query])

        assert "0 relevant documents" in caplog.text


class TestFromJsonl:

    def test_loads_documents_and_queries(self, dataset_dir):
        dataset = Dataset.from_jsonl("Tiny", dataset_dir)

        assert dataset.name == "Tiny"
        assert [d.id for d in dataset.documents] == ["d1", "d2"]
        assert dataset.documents[0].metadata == {"lang": "ts"}
        assert dataset.documents[1].metadata == {}
        assert dataset.queries[0].text == "which one is first"
        assert dataset.queries[0].relevant_doc_ids == frozenset({"d1"})

    def test_blank_lines_ignored(self, dataset_dir):
        path = dataset_dir / "queries.jsonl"
        path.write_text("\n" + path.read_text(encoding="utf-8") + "\n\n", encoding="utf-8")

        assert len(Dataset.from_jsonl("Tiny", dataset_dir).queries) == 1

    def test_missing_file(self, dataset_dir):
        (dataset_dir / "queries.jsonl").unlink()
        with pytest.raises(FileNotFoundError):
            Dataset.from_jsonl("Tiny", dataset_dir)

    def test_malformed_line_names_line_number(self, dataset_dir):
        with open(dataset_dir / "documents.jsonl", "a", encoding="utf-8") as f:
            f.write("{not json\n")

        with pytest.raises(ValueError, match="line 3"):
            Dataset.from_jsonl("Tiny", dataset_dir)

    def test_missing_field(self, dataset_dir):
        write_jsonl(dataset_dir / "queries.jsonl", [{"id": "q1", "relevant_docs": ["d1"]}])
        with pytest.raises(ValueError, match="line 1"):
            Dataset.from_jsonl("Tiny", dataset_dir)


class TestBundledDatasets:

    @pytest.mark.parametrize("provider", [get_code_dataset, get_fantasy_dataset])
    def test_labels_reference_known_documents(self, provider):
        dataset = provider()
        doc_ids = {d.id for d in dataset.documents}

        assert len(dataset.documents) == 20
        assert len(dataset.queries) == 20
        for query in dataset.queries:
            assert query.relevant_doc_ids
            assert query.relevant_doc_ids <= doc_ids

    def test_dataset_map(self):
        assert set(DATASET_MAP) == {"code", "fantasy"}
        assert DATASET_MAP["code"]().name == "Code Search"
        assert DATASET_MAP["fantasy"]().name == "Fantasy Books"
