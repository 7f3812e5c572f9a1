"""
Unit tests for the OpenAI-compatible embedding service.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from retrieval_bench.packages.embedding_service import OpenAIEmbeddingService


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "http://embeddings.test/v1/embeddings"))


def shuffled_response(input, model):
    """Echo each text's number as its vector, with items listed in reverse order."""
    items = [
        SimpleNamespace(index=i, embedding=[float(text.split("-")[1])])
        for i, text in enumerate(input)
    ]
    return SimpleNamespace(data=list(reversed(items)))


@pytest.fixture
def client():
    client = MagicMock()
    client.embeddings.create.side_effect = shuffled_response
    return client


def make_service(client, **kwargs):
    options = {"batch_pause": 0, "retry_delay": 0}
    options.update(kwargs)
    return OpenAIEmbeddingService(
        api_key="test-key", base_url="http://embeddings.test/v1", model="test-embed",
        client=client, **options)


class TestGenerateEmbeddings:

    def test_order_restored_across_batches(self, client):
        texts = [f"text-{i}" for i in range(70)]
        service = make_service(client)

        embeddings = service.generate_embeddings(texts)

        assert embeddings == [[float(i)] for i in range(70)]
        batch_sizes = [len(c.kwargs["input"]) for c in client.embeddings.create.call_args_list]
        assert batch_sizes == [32, 32, 6]

    def test_model_sent(self, client):
        make_service(client).generate_embeddings(["text-1"])
        assert client.embeddings.create.call_args.kwargs["model"] == "test-embed"

    def test_empty_input_makes_no_request(self, client):
        assert make_service(client).generate_embeddings([]) == []
        client.embeddings.create.assert_not_called()

    def test_single_embedding(self, client):
        assert make_service(client).generate_embedding("text-7") == [7.0]

    def test_pause_only_between_batches(self, client):
        service = make_service(client, batch_size=2, batch_pause=0.5)

        with patch("retrieval_bench.packages.embedding_service.time.sleep") as sleep:
            service.generate_embeddings([f"text-{i}" for i in range(5)])

        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_no_pause_for_single_batch(self, client):
        service = make_service(client, batch_pause=0.5)

        with patch("retrieval_bench.packages.embedding_service.time.sleep") as sleep:
            service.generate_embeddings(["text-1", "text-2"])

        sleep.assert_not_called()

    def test_rejects_bad_batch_size(self, client):
        with pytest.raises(ValueError):
            make_service(client, batch_size=0)


class TestRetry:

    def test_recovers_on_third_attempt(self, client):
        client.embeddings.create.side_effect = [
            connection_error(),
            connection_error(),
            shuffled_response(input=["text-3"], model="test-embed"),
        ]

        embeddings = make_service(client).generate_embeddings(["text-3"])

        assert embeddings == [[3.0]]
        assert client.embeddings.create.call_count == 3

    def test_gives_up_after_three_attempts(self, client):
        client.embeddings.create.side_effect = connection_error()

        with pytest.raises(openai.APIConnectionError):
            make_service(client).generate_embeddings(["text-3"])

        assert client.embeddings.create.call_count == 3

    def test_configurable_attempts(self, client):
        client.embeddings.create.side_effect = connection_error()

        with pytest.raises(openai.APIConnectionError):
            make_service(client, max_attempts=1).generate_embeddings(["text-3"])

        assert client.embeddings.create.call_count == 1

    def test_wrong_vector_count_not_retried(self, client):
        client.embeddings.create.side_effect = None
        client.embeddings.create.return_value = SimpleNamespace(data=[])

        with pytest.raises(ValueError, match="0 vectors for 1 inputs"):
            make_service(client).generate_embeddings(["text-3"])

        assert client.embeddings.create.call_count == 1

    def test_wrong_dimension_rejected(self, client):
        with pytest.raises(ValueError, match="dimension 1"):
            make_service(client, dimensions=4).generate_embeddings(["text-3"])

    def test_delay_grows_linearly_with_attempt(self, client):
        client.embeddings.create.side_effect = connection_error()

        with patch("time.sleep") as sleep:
            with pytest.raises(openai.APIConnectionError):
                make_service(client, retry_delay=1.5).generate_embeddings(["text-3"])

        assert [c.args[0] for c in sleep.call_args_list] == [1.5, 3.0]
        assert client.embeddings.create.call_count == 3
