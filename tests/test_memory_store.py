# tests/test_memory_store.py
"""
Tests for MemoryStore and MemoryHistory.

Uses the in-memory index and the bag-of-words FakeEmbedder; similarities
that must cross the reconcile threshold are pinned explicitly.
"""

from pathlib import Path
from typing import List

import pytest
from pydantic import ValidationError

from eidetic.core.exceptions import InvalidInputError, MemoryStoreError
from eidetic.memory.history import MemoryHistory
from eidetic.memory.models import ExtractedFact, MemoryEvent
from eidetic.memory.store import COLLECTION_NAME, MemoryStore

pytestmark = pytest.mark.tier2


class ListExtractor:
    """FactExtractor returning a fixed list and recording its inputs."""

    def __init__(self, facts: List[ExtractedFact]):
        self.facts = facts
        self.seen: List[str] = []

    def extract(self, content: str) -> List[ExtractedFact]:
        self.seen.append(content)
        return list(self.facts)


def unit(i: int, dim: int = 16, tilt: float = 0.0) -> List[float]:
    v = [0.0] * dim
    v[i] = 1.0
    v[(i + 1) % dim] = tilt
    return v


@pytest.fixture
def history(tmp_path: Path) -> MemoryHistory:
    h = MemoryHistory(tmp_path / "memory" / "history.db")
    yield h
    h.close()


@pytest.fixture
def store(embedder, index, config, history) -> MemoryStore:
    return MemoryStore(embedder, index, config, history)


class TestAddFacts:
    """Tests for the reconcile-then-write flow."""

    def test_add_new_fact(self, store, index, history):
        actions = store.add_facts(
            [ExtractedFact(fact="Project uses pnpm", category="tooling")], source="chat"
        )

        assert len(actions) == 1
        action = actions[0]
        assert action.event == MemoryEvent.ADD
        assert action.memory == "Project uses pnpm"
        assert action.previous is None

        point = index.get_by_id(COLLECTION_NAME, action.id)
        assert point.payload["relative_path"] == action.id
        assert point.payload["file_extension"] == "tooling"
        assert point.payload["language"] == "chat"
        assert point.payload["start_line"] == 0

        (entry,) = history.get_history(action.id)
        assert entry.event == MemoryEvent.ADD
        assert entry.new_value == "Project uses pnpm"
        assert entry.source == "chat"

    def test_known_fact_is_skipped(self, store, history):
        (first,) = store.add_facts([ExtractedFact(fact="Project uses pnpm")])

        again = store.add_facts([ExtractedFact(fact="  project USES pnpm ")])

        assert again == []
        assert len(history.get_history(first.id)) == 1

    def test_near_duplicate_updates(self, store, embedder, index, history):
        embedder.pinned["Node version is 18"] = unit(3)
        embedder.pinned["Node version is 20"] = unit(3, tilt=0.1)
        (added,) = store.add_facts([ExtractedFact(fact="Node version is 18", category="env")])
        created_at = index.get_by_id(COLLECTION_NAME, added.id).payload["created_at"]

        (updated,) = store.add_facts([ExtractedFact(fact="Node version is 20", category="env")])

        assert updated.event == MemoryEvent.UPDATE
        assert updated.id == added.id
        assert updated.previous == "Node version is 18"

        payload = index.get_by_id(COLLECTION_NAME, added.id).payload
        assert payload["memory"] == "Node version is 20"
        assert payload["created_at"] == created_at

        events = [e.event for e in history.get_history(added.id)]
        assert events == [MemoryEvent.ADD, MemoryEvent.UPDATE]

    def test_unrelated_fact_is_added(self, store, embedder):
        embedder.pinned["Deploys to fly.io"] = unit(1)
        embedder.pinned["Tests run with vitest"] = unit(9)

        actions = store.add_facts(
            [ExtractedFact(fact="Deploys to fly.io"), ExtractedFact(fact="Tests run with vitest")]
        )

        assert [a.event for a in actions] == [MemoryEvent.ADD, MemoryEvent.ADD]
        assert actions[0].id != actions[1].id

    def test_threshold_from_config(self, embedder, index, config, history):
        embedder.pinned["a fact"] = unit(2)
        embedder.pinned["another fact"] = unit(2, tilt=0.1)
        strict_config = config.model_copy(update={"similarity_threshold": 1.0})
        strict = MemoryStore(embedder, index, strict_config, history)

        strict.add_facts([ExtractedFact(fact="a fact")])
        (second,) = strict.add_facts([ExtractedFact(fact="another fact")])

        assert second.event == MemoryEvent.ADD


class TestAddMemory:
    """Tests for add_memory with a FactExtractor."""

    def test_requires_extractor(self, store):
        with pytest.raises(MemoryStoreError):
            store.add_memory("we use pnpm")

    def test_extracts_then_adds(self, embedder, index, config, history):
        extractor = ListExtractor([ExtractedFact(fact="Uses pnpm", category="tooling")])
        store = MemoryStore(embedder, index, config, history, extractor=extractor)

        actions = store.add_memory("In this repo we use pnpm everywhere", source="session")

        assert extractor.seen == ["In this repo we use pnpm everywhere"]
        assert [a.memory for a in actions] == ["Uses pnpm"]
        assert actions[0].source == "session"

    def test_blank_content(self, embedder, index, config, history):
        store = MemoryStore(embedder, index, config, history, extractor=ListExtractor([]))

        with pytest.raises(InvalidInputError):
            store.add_memory("   ")

    def test_blank_fact_rejected(self):
        with pytest.raises(ValidationError):
            ExtractedFact(fact="   ")


class TestReadAndDelete:
    """Tests for search, list and delete."""

    @pytest.fixture
    def populated(self, store, embedder):
        embedder.pinned["Deploys to fly.io"] = unit(1)
        embedder.pinned["Uses pnpm workspaces"] = unit(5)
        embedder.pinned["Postgres 16 in production"] = unit(9)
        store.add_facts([ExtractedFact(fact="Deploys to fly.io", category="deploy")])
        store.add_facts([ExtractedFact(fact="Uses pnpm workspaces", category="tooling")])
        store.add_facts([ExtractedFact(fact="Postgres 16 in production", category="deploy")])
        return store

    def test_search_finds_fact(self, populated, embedder):
        embedder.pinned["pnpm"] = unit(5)

        items = populated.search_memory("pnpm", limit=1)

        assert [i.memory for i in items] == ["Uses pnpm workspaces"]
        assert items[0].category == "tooling"

    def test_search_category_filter(self, populated):
        items = populated.search_memory("anything at all", category="deploy")

        assert {i.memory for i in items} == {"Deploys to fly.io", "Postgres 16 in production"}

    def test_list(self, populated):
        assert len(populated.list_memories()) == 3
        assert len(populated.list_memories(category="tooling")) == 1
        assert len(populated.list_memories(limit=2)) == 2

    def test_delete(self, populated, history):
        (item,) = populated.list_memories(category="tooling")

        assert populated.delete_memory(item.id) is True
        assert populated.delete_memory(item.id) is False

        assert len(populated.list_memories()) == 2
        last = populated.get_history(item.id)[-1]
        assert last.event == MemoryEvent.DELETE
        assert last.previous_value == "Uses pnpm workspaces"
        assert last.new_value is None

    @pytest.mark.parametrize("query", ["", "  "])
    def test_blank_query(self, store, query):
        with pytest.raises(InvalidInputError):
            store.search_memory(query)


class TestMemoryHistory:
    """Tests for the SQLite audit log."""

    def test_creates_parent_dir(self, tmp_path: Path):
        db = tmp_path / "deep" / "nested" / "history.db"

        h = MemoryHistory(db)
        h.close()

        assert db.exists()

    def test_ordered_per_memory(self, history):
        history.log("m1", MemoryEvent.ADD, "v1")
        history.log("m2", MemoryEvent.ADD, "other")
        history.log("m1", MemoryEvent.UPDATE, "v2", previous_value="v1", updated_at="t")
        history.log("m1", MemoryEvent.DELETE, None, previous_value="v2")

        entries = history.get_history("m1")

        assert [(e.event, e.previous_value, e.new_value) for e in entries] == [
            (MemoryEvent.ADD, None, "v1"),
            (MemoryEvent.UPDATE, "v1", "v2"),
            (MemoryEvent.DELETE, "v2", None),
        ]
        assert entries[1].updated_at == "t"

    def test_persists_across_connections(self, tmp_path: Path):
        db = tmp_path / "history.db"
        first = MemoryHistory(db)
        first.log("m1", MemoryEvent.ADD, "kept", source="cli")
        first.close()

        second = MemoryHistory(db)
        (entry,) = second.get_history("m1")
        second.close()

        assert entry.new_value == "kept"
        assert entry.source == "cli"

    def test_unknown_memory(self, history):
        assert history.get_history("missing") == []
