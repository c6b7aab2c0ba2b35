import logging

import pytest

import logger_setup


@pytest.fixture
def log_config():
    return {
        "run_id": "test-run",
        "master_seed": 7,
        "logging": {"level": "DEBUG", "format": "%(levelname)s - %(message)s"}
    }


@pytest.fixture
def app_logger():
    logger = logging.getLogger("star_sim")
    yield logger
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def read_log(logger, path):
    for handler in logger.handlers:
        handler.flush()
    return path.read_text()


def test_setup_logging_writes_to_run_directory(log_config, tmp_path, app_logger):
    logger = logger_setup.setup_logging(log_config, log_root=str(tmp_path / "runs"))

    assert logger is app_logger
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert len(logger.handlers) == 2

    logger.debug("Tick=0, Particles=1000")
    log_text = read_log(logger, tmp_path / "runs" / "test-run" / "simulation.log")
    assert "Logging initialized. Run ID: test-run, seed: 7." in log_text
    assert "DEBUG - Tick=0, Particles=1000" in log_text


def test_setup_logging_twice_does_not_duplicate_handlers(log_config, tmp_path, app_logger):
    logger_setup.setup_logging(log_config, log_root=str(tmp_path / "runs"))
    logger = logger_setup.setup_logging(log_config, log_root=str(tmp_path / "runs"))

    assert len(logger.handlers) == 2


def test_missing_logging_section_uses_defaults(tmp_path, app_logger):
    logger = logger_setup.setup_logging({"run_id": "bare"}, log_root=str(tmp_path / "runs"))

    assert logger.level == logging.INFO
    log_text = read_log(logger, tmp_path / "runs" / "bare" / "simulation.log")
    assert " - star_sim - INFO - Logging initialized. Run ID: bare" in log_text


def test_numba_logger_is_quieted(log_config, tmp_path, app_logger):
    logger_setup.setup_logging(log_config, log_root=str(tmp_path / "runs"))

    assert logging.getLogger("numba").level == logging.WARNING
