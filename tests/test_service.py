import json

import pytest

from conftest import play
from scrobble_stats.config.settings import DatabaseConfig, ImporterConfig, LoggingConfig, Settings
from scrobble_stats.errors import MalformedInputError, UnsupportedShapeError
from scrobble_stats.service import ScrobbleStatsService


@pytest.fixture
def service(tmp_path, logger):
    settings = Settings(
        database=DatabaseConfig(path=tmp_path / 'service.db'),
        importer=ImporterConfig(progress_interval=1),
        logging=LoggingConfig(path=tmp_path / 'service.log'),
    )
    return ScrobbleStatsService(settings=settings, logger=logger)


def test_import_file_and_clear(tmp_path, service) -> None:
    export = tmp_path / 'export.json'
    export.write_text(json.dumps([
        {'track': [play('Song A', 'Band X', 'LP1', 1000000000)]},
        {'track': [play('Song B', 'Band X', 'LP1', 1000000060)]},
    ]), encoding='utf-8')
    progress = []

    result = service.import_file(export, progress_callback=progress.append)

    assert result.processed_count == 2
    assert progress == [1, 2]
    assert service.clear() == {'scrobbles': 2, 'tracks': 2, 'albums': 1, 'artists': 1}


def test_import_bytes_propagates_fatal_errors(service) -> None:
    with pytest.raises(UnsupportedShapeError):
        service.import_bytes(b'"just text"')

    assert service.db.get_table_counts()['scrobbles'] == 0


def test_import_file_missing(tmp_path, service) -> None:
    with pytest.raises(FileNotFoundError):
        service.import_file(tmp_path / 'missing.json')


def test_bad_export_is_rejected_before_opening_storage(service, monkeypatch) -> None:
    opened = []

    def open_store():
        opened.append(True)
        raise AssertionError("storage opened for a malformed export")

    monkeypatch.setattr(service.db, 'open_store', open_store)

    with pytest.raises(MalformedInputError):
        service.import_bytes(b'{"recenttracks": ')
    with pytest.raises(UnsupportedShapeError):
        service.import_bytes(b'{"scrobbles": []}')

    assert opened == []
