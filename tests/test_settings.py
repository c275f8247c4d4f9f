from pathlib import Path

import pytest

from scrobble_stats.config.settings import (
    DatabaseConfig,
    ImporterConfig,
    LoggingConfig,
    Settings,
    StatsConfig,
)


def test_defaults_live_in_config_dir(isolated_config_dir) -> None:
    settings = Settings()

    assert settings.database.path == isolated_config_dir / 'scrobble-stats' / 'scrobbles.db'
    assert settings.logging.path.parent == isolated_config_dir / 'scrobble-stats'
    assert settings.importer.progress_interval == 1000
    assert settings.stats.top_artists == 50
    assert settings.stats.loved_min_tracks == 9
    assert settings.logging.console_level == 'WARNING'


def test_save_and_load_round_trip(tmp_path) -> None:
    settings = Settings(
        database=DatabaseConfig(path=tmp_path / 'db.sqlite', timeout_seconds=5),
        importer=ImporterConfig(progress_interval=250),
        stats=StatsConfig(top_artists=10),
        logging=LoggingConfig(path=tmp_path / 'app.log', level='DEBUG', console_level='ERROR'),
    )
    config_path = tmp_path / 'config.yaml'

    settings.save(config_path)
    loaded = Settings.from_file(config_path)

    assert loaded == settings


def test_partial_file_keeps_defaults(tmp_path) -> None:
    config_path = tmp_path / 'config.yaml'
    config_path.write_text("database:\n  path: ~/music/scrobbles.db\nimporter:\n", encoding='utf-8')

    settings = Settings.from_file(config_path)

    assert settings.database.path == Path('~/music/scrobbles.db').expanduser()
    assert settings.importer.progress_interval == 1000


@pytest.mark.parametrize(
    'factory',
    [
        lambda: DatabaseConfig(timeout_seconds=0),
        lambda: ImporterConfig(progress_interval=0),
        lambda: StatsConfig(top_tracks=0),
        lambda: LoggingConfig(level='LOUD'),
        lambda: LoggingConfig(console_level='QUIET'),
    ],
)
def test_invalid_values_rejected(factory) -> None:
    with pytest.raises(ValueError):
        factory()


def test_unknown_key_is_a_value_error(tmp_path) -> None:
    config_path = tmp_path / 'config.yaml'
    config_path.write_text("importer:\n  batch_size: 10\n", encoding='utf-8')

    with pytest.raises(ValueError):
        Settings.from_file(config_path)


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        Settings.from_file(tmp_path / 'absent.yaml')


def test_invalid_file_falls_back_to_defaults(tmp_path) -> None:
    config_path = tmp_path / 'config.yaml'
    config_path.write_text("importer:\n  progress_interval: -5\n", encoding='utf-8')

    settings = Settings.from_file_or_default(config_path)

    assert settings.importer.progress_interval == 1000
