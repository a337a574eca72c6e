import logging

import pytest


@pytest.fixture(autouse=True)
def reset_pressline_logger():
    """CLI commands install a RichHandler with propagate=False; undo it so caplog sees records."""
    yield
    logger = logging.getLogger("pressline")
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
