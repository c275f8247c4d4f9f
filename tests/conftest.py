import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure tests can import the project package regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from scrobble_stats.config.database import DatabaseHandler  # noqa: E402

IMPORT_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def play(name, artist, album=None, uts=None, date_text=None, **extra):
    """Build a raw Last.fm-style play record."""
    record = {'name': name, 'artist': {'#text': artist, 'mbid': ''}}
    if album is not None:
        record['album'] = {'#text': album, 'mbid': ''}
    if uts is not None:
        record['date'] = {'uts': str(uts), '#text': date_text or ''}
    record.update(extra)
    return record


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep default config/data paths out of the real home directory."""
    monkeypatch.setenv('XDG_CONFIG_HOME', str(tmp_path / 'xdg'))
    monkeypatch.setenv('APPDATA', str(tmp_path / 'appdata'))
    return tmp_path / 'xdg'


@pytest.fixture
def db(tmp_path):
    return DatabaseHandler(tmp_path / 'scrobbles.db')


@pytest.fixture
def store(db):
    with db.open_store() as store:
        yield store


@pytest.fixture
def logger():
    return logging.getLogger('tests.importer')


@pytest.fixture
def clock():
    return lambda: IMPORT_TIME
