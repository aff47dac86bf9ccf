import logging

import pytest

from surfvis.utils import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_log_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "surfvis.log"
    setup_logging(log_file=str(log_file), debug=True)

    assert logging.getLogger().level == logging.DEBUG
    logging.getLogger("surfvis.test").debug("ray origin=%s", [0.0, 0.0, 0.0])
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "ray origin=[0.0, 0.0, 0.0]" in log_file.read_text()
