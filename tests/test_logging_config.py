import logging

from matmulverify.logging_config import PACKAGE_LOGGER, setup_logging


def test_setup_logging_installs_console_and_file_handlers(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging(level=logging.DEBUG, log_file=str(log_file))
    logger = logging.getLogger(PACKAGE_LOGGER)
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2

        logging.getLogger("matmulverify.verification").debug("suite started")
        for handler in logger.handlers:
            handler.flush()
        assert "suite started" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_setup_logging_does_not_duplicate_handlers():
    logger = logging.getLogger(PACKAGE_LOGGER)
    try:
        setup_logging()
        setup_logging()
        assert len(logger.handlers) == 1
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
