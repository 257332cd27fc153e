"""Unit tests for the in-memory document database."""

import pytest

from src.commons.infrastructure.documentdb.memory_provider import (
    InMemoryDocumentDB,
    matches,
)


class TestMatches:
    """Tests for the filter evaluator."""

    @pytest.mark.parametrize(
        ("filters", "expected"),
        [
            ({"status": "ready"}, True),
            ({"status": "error"}, False),
            ({"status": {"$in": ["ready", "processing"]}}, True),
            ({"status": {"$nin": ["ready"]}}, False),
            ({"status": {"$ne": "error"}}, True),
            ({"duration": {"$gte": 10, "$lt": 20}}, True),
            ({"duration": {"$gt": 12}}, False),
            ({"thumbnail_url": {"$exists": False}}, True),
            ({"thumbnail_url": {"$exists": True}}, False),
            ({"abstract": None}, True),
            ({"$or": [{"status": "error"}, {"duration": 12}]}, True),
            ({"$or": [{"status": "error"}, {"duration": 13}]}, False),
        ],
    )
    def test_operators(self, filters, expected):
        document = {"status": "ready", "duration": 12, "abstract": None}

        assert matches(document, filters) is expected

    def test_missing_field_never_equals(self):
        assert not matches({}, {"status": None})

    def test_range_skips_none(self):
        assert not matches({"duration": None}, {"duration": {"$lt": 5}})

    def test_unknown_operator(self):
        with pytest.raises(ValueError, match="Unsupported"):
            matches({"a": 1}, {"a": {"$regex": "x"}})


class TestInMemoryDocumentDB:
    """Tests for InMemoryDocumentDB."""

    @pytest.fixture
    def db(self) -> InMemoryDocumentDB:
        return InMemoryDocumentDB()

    async def test_insert_and_find_by_id(self, db):
        await db.insert("videos", {"id": "v1", "title": "One"})

        assert await db.find_by_id("videos", "v1") == {"id": "v1", "title": "One"}
        assert await db.find_by_id("videos", "v2") is None

    async def test_duplicate_id_rejected(self, db):
        await db.insert("videos", {"id": "v1"})

        with pytest.raises(ValueError, match="Duplicate id"):
            await db.insert("videos", {"id": "v1"})

    async def test_returned_documents_are_copies(self, db):
        await db.insert("videos", {"id": "v1", "meta": {"a": 1}})

        found = await db.find_by_id("videos", "v1")
        found["meta"]["a"] = 2

        assert (await db.find_by_id("videos", "v1"))["meta"] == {"a": 1}

    async def test_find_with_sort_skip_limit(self, db):
        for i, created in enumerate([3, 1, 2]):
            await db.insert("videos", {"id": f"v{i}", "created": created})

        docs = await db.find("videos", {}, sort=[("created", -1)], skip=1, limit=1)

        assert [d["created"] for d in docs] == [2]

    async def test_update_where_is_conditional(self, db):
        await db.insert("videos", {"id": "v1", "version": 1, "status": "processing"})

        lost = await db.update_where(
            "videos", {"id": "v1", "version": 0}, {"status": "ready"}
        )
        won = await db.update_where(
            "videos",
            {"id": "v1", "version": 1},
            {"status": "ready"},
            increments={"version": 1},
        )

        assert not lost
        assert won
        assert await db.find_by_id("videos", "v1") == {
            "id": "v1",
            "version": 2,
            "status": "ready",
        }

    async def test_find_one_and_update_picks_first_by_sort(self, db):
        await db.insert("jobs", {"id": "late", "status": "pending", "at": 2})
        await db.insert("jobs", {"id": "early", "status": "pending", "at": 1})

        doc = await db.find_one_and_update(
            "jobs",
            {"status": "pending"},
            {"status": "claimed"},
            increments={"attempts": 1},
            sort=[("at", 1)],
        )

        assert doc["id"] == "early"
        assert doc["attempts"] == 1
        assert (await db.find_by_id("jobs", "late"))["status"] == "pending"

    async def test_find_one_and_update_no_match(self, db):
        assert await db.find_one_and_update("jobs", {"status": "x"}, {"a": 1}) is None

    async def test_upsert_replaces(self, db):
        await db.upsert("phase_runs", "v1:tagging", {"state": "running", "extra": 1})
        await db.upsert("phase_runs", "v1:tagging", {"state": "done"})

        assert await db.find_by_id("phase_runs", "v1:tagging") == {
            "id": "v1:tagging",
            "state": "done",
        }

    async def test_delete_many_and_delete(self, db):
        await db.insert_many(
            "tags",
            [
                {"id": "t1", "video_id": "v1"},
                {"id": "t2", "video_id": "v1"},
                {"id": "t3", "video_id": "v2"},
            ],
        )

        assert await db.delete_many("tags", {"video_id": "v1"}) == 2
        assert await db.count("tags") == 1
        assert await db.delete("tags", "t3")
        assert not await db.delete("tags", "t3")

    async def test_health_check(self, db):
        health = await db.health_check()

        assert health.healthy
