import logging
import os

import pytest

from plenpilot_api.app.core.logging_config import HANDLER_NAME, get_log_path, setup_logging


@pytest.fixture()
def root_logger():
    root = logging.getLogger()
    level = root.level
    existing = [h for h in root.handlers if h.get_name() == HANDLER_NAME]
    for handler in existing:
        root.removeHandler(handler)
    yield root
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
        handler.close()
    for handler in existing:
        root.addHandler(handler)
    root.setLevel(level)


def test_relative_log_path_is_under_package_root():
    path = get_log_path("logs/api.log")
    assert os.path.isabs(path)
    assert path.endswith(os.path.join("plenpilot_api", "logs", "api.log"))
    assert get_log_path("/var/log/plenpilot.log") == "/var/log/plenpilot.log"


def test_setup_logging_writes_file_and_runs_once(root_logger, tmp_path):
    logfile = tmp_path / "logs" / "api.log"
    setup_logging("INFO", str(logfile))
    setup_logging("DEBUG", str(logfile))

    ours = [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]
    assert len(ours) == 2
    assert root_logger.level == logging.INFO

    logging.getLogger("plenpilot.test").info("Klipping ferdig")
    for handler in ours:
        handler.flush()
    assert "[INFO] plenpilot.test: Klipping ferdig" in logfile.read_text(encoding="utf-8")
