import logging

import pytest


@pytest.fixture(autouse=True)
def reset_snooze_logger():
    """Undo setup_logging() so records propagate to caplog in the next test."""
    yield
    root = logging.getLogger("snooze")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    root.propagate = True
