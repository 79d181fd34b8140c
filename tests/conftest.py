import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_localflag_logger():
    """Undo ``setup_logging`` from CLI tests so caplog sees library records."""
    yield
    logger = logging.getLogger("localflag")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
