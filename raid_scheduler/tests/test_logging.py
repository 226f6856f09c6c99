"""Logging Setup 테스트."""

import logging

import ecs_logging
import pytest

from raid_scheduler.setup.config import Settings
from raid_scheduler.setup.logging import NOISY_LOGGERS, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    factory = logging.getLogRecordFactory()
    noisy_levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    logging.setLogRecordFactory(factory)
    for name, noisy_level in noisy_levels.items():
        logging.getLogger(name).setLevel(noisy_level)


class TestSetupLogging:
    """ECS 로깅 설정 테스트."""

    def test_installs_ecs_handler(self, restore_logging):
        setup_logging(Settings(log_level="DEBUG"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ecs_logging.StdlibFormatter)

    def test_quiets_noisy_loggers(self, restore_logging):
        setup_logging(Settings())

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_record_factory_adds_service_metadata(self, restore_logging):
        setup_logging(Settings(service_name="raid-test", environment="test"))

        record = logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", None, None)

        assert record.service == "raid-test"
        assert record.environment == "test"

    def test_unknown_level_falls_back_to_info(self, restore_logging):
        setup_logging(Settings(log_level="verbose"))

        assert logging.getLogger().level == logging.INFO
