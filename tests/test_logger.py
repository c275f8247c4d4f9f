import logging

import pytest

from scrobble_stats.utils.logger import setup_logger


@pytest.fixture
def logger_name(request):
    name = f"tests.logger.{request.node.name}"
    yield name
    for handler in list(logging.getLogger(name).handlers):
        logging.getLogger(name).removeHandler(handler)
        handler.close()


def test_console_is_quieter_than_file(tmp_path, logger_name) -> None:
    log_file = tmp_path / 'logs' / 'import.log'

    logger = setup_logger(logger_name, log_file=log_file, level='INFO', console_level='WARNING')
    logger.info("Processed 1000 scrobbles...")
    for handler in logger.handlers:
        handler.flush()

    file_handler, console_handler = logger.handlers
    assert file_handler.level == logging.INFO
    assert console_handler.level == logging.WARNING
    assert "Processed 1000 scrobbles..." in log_file.read_text(encoding='utf-8')


def test_console_level_defaults_to_level(logger_name) -> None:
    logger = setup_logger(logger_name, level='DEBUG')

    assert logger.level == logging.DEBUG
    assert [handler.level for handler in logger.handlers] == [logging.DEBUG]


def test_setup_replaces_previous_handlers(tmp_path, logger_name) -> None:
    setup_logger(logger_name, log_file=tmp_path / 'a.log')
    logger = setup_logger(logger_name, log_file=tmp_path / 'b.log', console=False)

    assert len(logger.handlers) == 1
    assert logger.handlers[0].baseFilename == str(tmp_path / 'b.log')
