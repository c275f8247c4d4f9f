import sqlite3

import pytest

from scrobble_stats.config.store import InsertOutcome, SQLiteStore
from scrobble_stats.errors import StorageCommitError


class FailingCommitStore(SQLiteStore):
    """Store whose COMMIT is rejected by the backend."""

    def _run(self, sql: str) -> None:
        if sql == "COMMIT":
            raise sqlite3.OperationalError("disk I/O error")
        super()._run(sql)


def test_insert_or_ignore_reports_inserted_then_existing(store) -> None:
    row = {'name': 'Band X', 'mbid': 'first', 'image_url': ''}

    first = store.insert_or_ignore('artists', ('name',), row)
    second = store.insert_or_ignore('artists', ('name',), {**row, 'mbid': 'second'})

    assert first.outcome is InsertOutcome.INSERTED
    assert first.row_id is not None
    assert second.outcome is InsertOutcome.ALREADY_EXISTS
    assert second.row_id is None
    # First write wins
    assert store.select_one('artists', ('name',), ('Band X',))['mbid'] == 'first'


def test_artist_names_are_case_sensitive(store) -> None:
    store.insert_or_ignore('artists', ('name',), {'name': 'band x'})
    result = store.insert_or_ignore('artists', ('name',), {'name': 'Band X'})

    assert result.outcome is InsertOutcome.INSERTED


def test_non_unique_failures_are_reported_as_failed(store) -> None:
    missing_name = store.insert_or_ignore('artists', ('name',), {'name': None})
    empty_name = store.insert_or_ignore('artists', ('name',), {'name': ''})
    orphan = store.insert_or_ignore('albums', ('title', 'artist_id'), {'title': 'LP1', 'artist_id': 999})

    assert missing_name.outcome is InsertOutcome.FAILED
    assert empty_name.outcome is InsertOutcome.FAILED
    assert orphan.outcome is InsertOutcome.FAILED
    assert orphan.reason


def test_unknown_table_or_column_is_rejected(store) -> None:
    with pytest.raises(ValueError):
        store.insert_or_ignore('users', ('name',), {'name': 'x'})
    with pytest.raises(ValueError):
        store.select_one('artists', ('name; DROP TABLE artists',), ('x',))


def test_select_one_returns_none_when_missing(store) -> None:
    assert store.select_one('artists', ('name',), ('Nobody',)) is None


def test_select_one_key_length_mismatch(store) -> None:
    with pytest.raises(ValueError):
        store.select_one('albums', ('title', 'artist_id'), ('LP1',))


def test_rollback_discards_transaction(db, store) -> None:
    store.begin()
    store.insert_or_ignore('artists', ('name',), {'name': 'Temporary'})
    store.rollback()

    assert db.get_table_counts()['artists'] == 0
    assert not store.in_transaction


def test_rollback_to_savepoint_keeps_earlier_work(db, store) -> None:
    store.begin()
    store.insert_or_ignore('artists', ('name',), {'name': 'Kept'})
    store.savepoint('record')
    store.insert_or_ignore('artists', ('name',), {'name': 'Dropped'})
    store.rollback_to('record')
    store.commit()

    assert db.get_table_counts()['artists'] == 1
    assert store.select_one('artists', ('name',), ('Dropped',)) is None


def test_commit_failure_rolls_back_and_raises(db) -> None:
    store = FailingCommitStore.connect(db.db_path)
    try:
        store.begin()
        store.insert_or_ignore('artists', ('name',), {'name': 'Band X'})

        with pytest.raises(StorageCommitError):
            store.commit()

        assert not store.in_transaction
    finally:
        store.close()

    assert db.get_table_counts()['artists'] == 0


def test_close_rolls_back_open_transaction(db) -> None:
    with db.open_store() as store:
        store.begin()
        store.insert_or_ignore('artists', ('name',), {'name': 'Uncommitted'})

    assert db.get_table_counts()['artists'] == 0
