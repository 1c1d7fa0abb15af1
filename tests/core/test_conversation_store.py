import asyncio
import json

import pytest

from voicerelay.core.conversation_store import ConversationStore
from voicerelay.core.models import ConversationTurn


class TestConversationStore:
    """Bounded conversation log and its JSON file."""

    @pytest.mark.asyncio
    async def test_log_is_capped_and_drops_oldest_first(self, tmp_path):
        store = ConversationStore(path=str(tmp_path / "conversation.json"), max_history=2)
        for i in range(3):
            await store.append_exchange(f"question {i}", f"answer {i}")

        assert len(store) == 4
        assert store.snapshot() == [
            {"role": "user", "content": "question 1"},
            {"role": "assistant", "content": "answer 1"},
            {"role": "user", "content": "question 2"},
            {"role": "assistant", "content": "answer 2"},
        ]

    @pytest.mark.asyncio
    async def test_every_mutation_rewrites_the_file(self, tmp_path):
        path = tmp_path / "conversation.json"
        store = ConversationStore(path=str(path), max_history=5)
        await store.append_exchange("Kamusta?", "Mabuti naman!")

        assert json.loads(path.read_text(encoding="utf-8")) == store.snapshot()

        await store.append(ConversationTurn(role="user", content="again"))
        assert json.loads(path.read_text(encoding="utf-8"))[-1] == {"role": "user", "content": "again"}

    @pytest.mark.asyncio
    async def test_persisted_log_survives_restart(self, tmp_path):
        path = str(tmp_path / "conversation.json")
        first = ConversationStore(path=path, max_history=5)
        await first.append_exchange("hello", "hi there")

        second = ConversationStore(path=path, max_history=5)
        assert second.load() == 2
        assert second.snapshot() == first.snapshot()

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_serialized(self, tmp_path):
        path = tmp_path / "conversation.json"
        store = ConversationStore(path=str(path), max_history=50)

        await asyncio.gather(*(store.append_exchange(f"q{i}", f"a{i}") for i in range(20)))

        snapshot = store.snapshot()
        assert len(store) == 40
        assert json.loads(path.read_text(encoding="utf-8")) == snapshot
        # each question stays directly followed by its own answer
        for question, answer in zip(snapshot[::2], snapshot[1::2]):
            assert question["role"] == "user"
            assert answer == {"role": "assistant", "content": "a" + question["content"][1:]}
        assert sorted(turn["content"] for turn in snapshot[::2]) == sorted(f"q{i}" for i in range(20))

    def test_loaded_log_is_trimmed_to_cap(self, tmp_path):
        path = tmp_path / "conversation.json"
        turns = []
        for i in range(4):
            turns.append({"role": "user", "content": f"q{i}"})
            turns.append({"role": "assistant", "content": f"a{i}"})
        path.write_text(json.dumps(turns), encoding="utf-8")

        store = ConversationStore(path=str(path), max_history=2)
        assert store.load() == 4
        assert store.snapshot()[0] == {"role": "user", "content": "q2"}

    def test_missing_file_starts_empty(self, tmp_path):
        store = ConversationStore(path=str(tmp_path / "absent.json"))
        assert store.load() == 0
        assert store.snapshot() == []

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"role": "user", "content": "not a list"}),
            json.dumps([{"role": "system", "content": "bad role"}]),
            json.dumps(["just a string"]),
        ],
    )
    def test_corrupt_file_starts_empty(self, tmp_path, content):
        path = tmp_path / "conversation.json"
        path.write_text(content, encoding="utf-8")

        store = ConversationStore(path=str(path))
        assert store.load() == 0
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_write_failure_keeps_memory_log(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where a directory should be", encoding="utf-8")
        store = ConversationStore(path=str(blocker / "conversation.json"))

        await store.append_exchange("hello", "hi")

        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, tmp_path):
        store = ConversationStore(path=str(tmp_path / "conversation.json"))
        await store.append_exchange("a", "b")
        await store.clear()

        assert [p.name for p in tmp_path.iterdir()] == ["conversation.json"]
        assert json.loads((tmp_path / "conversation.json").read_text(encoding="utf-8")) == []

    @pytest.mark.asyncio
    async def test_memory_only_store(self):
        store = ConversationStore(path=None, max_history=1)
        await store.append_exchange("one", "1")
        await store.append_exchange("two", "2")

        assert store.path is None
        assert [t.content for t in store.turns()] == ["two", "2"]

    def test_rejects_zero_history(self):
        with pytest.raises(ValueError):
            ConversationStore(max_history=0)
