"""Embedding backfill and indexed search tests."""

from unittest.mock import MagicMock

import pytest

from tasklens.config import Config
from tasklens.constants.indexing import MESSAGES_COLLECTION, TASKS_COLLECTION
from tasklens.indexing.backfill import (
    EmbeddingBackfill,
    message_embedding_text,
    task_embedding_text,
)
from tasklens.search.errors import EmbeddingUnavailable
from tasklens.search.service import SemanticSearchService
from tasklens.tasks.index import TaskIndex
from tasklens.tasks.schemas import MessageCreate, TaskCreate


@pytest.fixture
def task_index(task_store, temp_vectorstore):
    """TaskIndex over the temporary database and vector store."""
    return TaskIndex(task_store, temp_vectorstore)


@pytest.fixture
def seeded(task_store):
    """Two tasks; the report task's thread mentions login."""
    login = task_store.create_task(
        TaskCreate(name="Fix login redirect", description="OAuth callback loses session")
    )
    report = task_store.create_task(
        TaskCreate(name="Quarterly report", description="Compile numbers", tags=["finance"])
    )
    message = task_store.add_message(
        report.id,
        MessageCreate(content="the login page broke again after deploy", sender_id="u1"),
    )
    return {"login": login, "report": report, "message": message}


class TestEmbeddingText:
    """Tests for the text that gets embedded."""

    def test_task_text_joins_name_description_and_tags(self, make_task):
        task = make_task("T1", name="Ship", description="Release v2", tags=["ops", "q3"])

        assert task_embedding_text(task) == "Ship Release v2 ops q3"

    def test_task_text_without_description(self, make_task):
        assert task_embedding_text(make_task("T1", name="Ship")) == "Ship"

    def test_message_text_is_stripped(self, make_message):
        assert message_embedding_text(make_message("M1", "T1", content="  hi  ")) == "hi"


class TestEmbeddingBackfill:
    """Tests for EmbeddingBackfill.run."""

    def test_embeds_pending_records(
        self, task_store, task_index, temp_vectorstore, keyword_embedder, seeded
    ):
        backfill = EmbeddingBackfill(task_store, task_index, keyword_embedder, batch_size=1)

        result = backfill.run()

        assert result.tasks_embedded == 2
        assert result.messages_embedded == 1
        assert result.failed == []
        assert temp_vectorstore.count(TASKS_COLLECTION) == 2
        assert temp_vectorstore.count(MESSAGES_COLLECTION) == 1
        assert task_index.vector_counts() == (2, 1)
        assert task_store.pending_task_ids() == []
        assert task_store.pending_message_ids() == []

    def test_second_run_is_a_no_op(self, task_store, task_index, keyword_embedder, seeded):
        backfill = EmbeddingBackfill(task_store, task_index, keyword_embedder)
        backfill.run()
        keyword_embedder.calls.clear()

        result = backfill.run()

        assert result.tasks_embedded == 0
        assert result.messages_embedded == 0
        assert keyword_embedder.calls == []

    def test_force_re_embeds(
        self, task_store, task_index, temp_vectorstore, keyword_embedder, seeded
    ):
        backfill = EmbeddingBackfill(task_store, task_index, keyword_embedder)
        backfill.run()

        result = backfill.run(force=True)

        assert result.tasks_embedded == 2
        assert temp_vectorstore.count(TASKS_COLLECTION) == 2

    def test_failed_records_stay_pending(self, task_store, task_index, seeded):
        embedder = MagicMock()
        embedder.embed_many.side_effect = EmbeddingUnavailable("model offline")
        embedder.embed.side_effect = EmbeddingUnavailable("model offline")
        backfill = EmbeddingBackfill(task_store, task_index, embedder)

        result = backfill.run()

        assert result.tasks_embedded == 0
        assert set(result.failed) == {
            seeded["login"].id,
            seeded["report"].id,
            seeded["message"].id,
        }
        assert len(task_store.pending_task_ids()) == 2

    def test_each_batch_is_embedded_in_one_call(
        self, task_store, task_index, keyword_embedder, seeded
    ):
        EmbeddingBackfill(task_store, task_index, keyword_embedder, batch_size=50).run()

        assert [len(batch) for batch in keyword_embedder.batches] == [2, 1]

    def test_batch_size_splits_calls(self, task_store, task_index, keyword_embedder, seeded):
        EmbeddingBackfill(task_store, task_index, keyword_embedder, batch_size=1).run()

        assert [len(batch) for batch in keyword_embedder.batches] == [1, 1, 1]

    def test_failed_batch_falls_back_to_single_records(
        self, task_store, task_index, keyword_embedder, seeded
    ):
        def embed_one(text):
            if "Quarterly" in text:
                raise EmbeddingUnavailable("bad input")
            return keyword_embedder.embed(text)

        embedder = MagicMock()
        embedder.embed_many.side_effect = EmbeddingUnavailable("batch rejected")
        embedder.embed.side_effect = embed_one
        backfill = EmbeddingBackfill(task_store, task_index, embedder)

        result = backfill.run()

        assert result.tasks_embedded == 1
        assert result.messages_embedded == 1
        assert result.failed == [seeded["report"].id]
        assert task_store.pending_task_ids() == [seeded["report"].id]


class TestIndexedSearch:
    """Search over a real vector index populated by the backfill."""

    @pytest.fixture
    def service(self, task_store, task_index, keyword_embedder, seeded, tmp_path):
        EmbeddingBackfill(task_store, task_index, keyword_embedder).run()
        config = Config(data_dir=tmp_path).search
        return SemanticSearchService(keyword_embedder, task_index, config)

    async def test_direct_task_match_ranks_first(self, service, seeded):
        results = await service.search("login redirect")

        assert results[0].id == seeded["login"].id
        assert results[0].match_source in ("task", "task_and_message")
        assert results[0].task_context_snippet is not None

    async def test_task_found_through_its_thread(self, service, seeded):
        results = await service.search("login redirect")

        report = next(r for r in results if r.id == seeded["report"].id)
        assert report.match_source == "message"
        assert [m.id for m in report.relevant_messages] == [seeded["message"].id]
        assert report.task_context_snippet is None

    async def test_deleted_task_disappears(self, service, task_store, task_index, seeded):
        report = seeded["report"]
        message_ids = task_store.list_message_ids(report.id)
        task_store.delete_task(report.id)
        task_index.remove_task(report.id, message_ids)

        results = await service.search("login redirect")

        assert report.id not in {r.id for r in results}

    async def test_stale_vectors_are_ignored(self, service, task_store, seeded):
        """Rows deleted without cleaning the index never surface."""
        task_store.delete_task(seeded["report"].id)

        results = await service.search("login page deploy")

        assert seeded["report"].id not in {r.id for r in results}
