import logging

import pytest

from hrms.utils.action_log import log_user_action
from hrms.utils.logging_config import TRAIL_LOGGERS, configure_trail_logging


@pytest.fixture
def trail_file(tmp_path):
    path = configure_trail_logging(tmp_path)
    yield path
    for name in TRAIL_LOGGERS:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def read(path):
    for name in TRAIL_LOGGERS:
        for handler in logging.getLogger(name).handlers:
            handler.flush()
    return path.read_text(encoding="utf-8")


def test_actions_and_audit_failures_share_the_trail_file(trail_file):
    log_user_action("TERMINATE_EMPLOYEE", user_id=3, role="HR", target=42)
    logging.getLogger("hrms.audit").error("Audit write failed: actor=3")
    logging.getLogger("hrms.routes.employees").info("not part of the trail")

    content = read(trail_file)
    assert "hrms.actions | USER_ACTION | user_id=3 | role=HR | TERMINATE_EMPLOYEE target=42" in content
    assert "hrms.audit | Audit write failed: actor=3" in content
    assert "not part of the trail" not in content


def test_configuring_twice_does_not_duplicate_lines(trail_file, tmp_path):
    configure_trail_logging(tmp_path)
    log_user_action("LOGIN", user_id=1)

    assert read(trail_file).count("LOGIN") == 1
    assert len(logging.getLogger("hrms.actions").handlers) == 1
