"""Tests for clawcraft.storage module."""

from pathlib import Path

import pytest
import pytest_asyncio

from clawcraft.domain import DialogueTurn, ParticipantId, PairKey, TurnKind
from clawcraft.storage import Database, SqliteMemoryStore

PAIR = PairKey("munger-naval")
IDS = (ParticipantId("naval"), ParticipantId("munger"))


def turns(*texts: str) -> list[DialogueTurn]:
    return [DialogueTurn(speaker_id=IDS[i % 2], text=text) for i, text in enumerate(texts)]


@pytest_asyncio.fixture
async def db(tmp_path: Path):
    database = Database(tmp_path / "memory.db")
    await database.connect()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def store(db: Database) -> SqliteMemoryStore:
    store = SqliteMemoryStore(db, records_per_pair=3, turns_per_record=2)
    await store.initialize()
    return store


class TestDatabase:
    """Tests for the connection manager."""

    def test_not_connected(self, tmp_path: Path):
        """Test using the connection before connect() raises."""
        with pytest.raises(RuntimeError):
            Database(tmp_path / "x.db").connection

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path):
        """Test the async context manager opens and closes."""
        async with Database(tmp_path / "nested" / "x.db") as database:
            rows = await database.fetch_all("SELECT 1 AS one")
            assert rows[0]["one"] == 1
        assert (tmp_path / "nested" / "x.db").exists()

    @pytest.mark.asyncio
    async def test_transaction_rolls_back(self, db: Database):
        """Test an error inside transaction() undoes its statements."""
        await db.apply_schema("CREATE TABLE IF NOT EXISTS t (v INTEGER);")

        with pytest.raises(ValueError):
            async with db.transaction():
                await db.execute("INSERT INTO t (v) VALUES (1)")
                raise ValueError("boom")

        assert await db.fetch_all("SELECT v FROM t") == []

    @pytest.mark.asyncio
    async def test_schema_outside_transaction_only(self, db: Database):
        """Test DDL cannot be applied in the middle of a transaction."""
        async with db.transaction():
            with pytest.raises(RuntimeError):
                await db.apply_schema("CREATE TABLE IF NOT EXISTS t (v INTEGER);")

    @pytest.mark.asyncio
    async def test_nested_transaction_rejected(self, db: Database):
        """Test nesting transaction() is refused."""
        async with db.transaction():
            with pytest.raises(RuntimeError):
                async with db.transaction():
                    pass


class TestSqliteMemoryStore:
    """Tests for persisted pair memory."""

    @pytest.mark.asyncio
    async def test_empty(self, store: SqliteMemoryStore):
        """Test an unknown pair has no records."""
        assert await store.get(PAIR) == []

    @pytest.mark.asyncio
    async def test_round_trip(self, store: SqliteMemoryStore):
        """Test a stored conversation comes back with its first turns."""
        await store.append(PAIR, IDS, turns("Hi.", "Hello.", "Bye."))

        records = await store.get(PAIR)

        assert len(records) == 1
        assert records[0].participant_ids == IDS
        assert [t.text for t in records[0].turns] == ["Hi.", "Hello."]
        assert records[0].turns[1].speaker_id == "munger"

    @pytest.mark.asyncio
    async def test_markers_not_stored(self, store: SqliteMemoryStore):
        """Test join and silence markers are filtered out."""
        mixed = [
            DialogueTurn(speaker_id=IDS[0], text="...", kind=TurnKind.SILENCE),
            DialogueTurn(speaker_id=IDS[1], text="Well."),
        ]
        await store.append(PAIR, IDS, mixed)

        records = await store.get(PAIR)
        assert [t.text for t in records[0].turns] == ["Well."]

    @pytest.mark.asyncio
    async def test_evicts_oldest(self, store: SqliteMemoryStore):
        """Test only the newest records_per_pair rows survive."""
        for n in range(5):
            await store.append(PAIR, IDS, turns(f"#{n}"))

        records = await store.get(PAIR)
        assert [r.turns[0].text for r in records] == ["#2", "#3", "#4"]

    @pytest.mark.asyncio
    async def test_pairs_isolated(self, store: SqliteMemoryStore):
        """Test eviction and lookup are per pair."""
        other = PairKey("feynman-naval")
        await store.append(PAIR, IDS, turns("ours"))
        for n in range(4):
            await store.append(other, (ParticipantId("naval"), ParticipantId("feynman")), turns(f"theirs {n}"))

        assert [r.turns[0].text for r in await store.get(PAIR)] == ["ours"]
        assert len(await store.get(other)) == 3

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path: Path):
        """Test records survive reopening the database file."""
        path = tmp_path / "memory.db"
        async with Database(path) as database:
            store = SqliteMemoryStore(database)
            await store.initialize()
            await store.append(PAIR, IDS, turns("Remember me."))

        async with Database(path) as database:
            store = SqliteMemoryStore(database)
            await store.initialize()
            records = await store.get(PAIR)

        assert records[0].turns[0].text == "Remember me."
