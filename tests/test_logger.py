import logging

import pytest

from intake.config import get_settings, reset_settings
from intake.logger import ROOT_LOGGER_NAME, get_logger, resolve_level, set_level


@pytest.fixture
def restore_level():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    before = root.level
    yield
    set_level(before)


class TestResolveLevel:

    @pytest.mark.parametrize("raw, expected", [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("10", logging.DEBUG),
        (logging.ERROR, logging.ERROR),
        (None, logging.INFO),
        ("", logging.INFO),
    ])
    def test_names_and_numbers(self, raw, expected):
        assert resolve_level(raw) == expected

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            resolve_level("chatty")


def test_set_level_moves_tree_and_handler(restore_level):
    assert set_level("warning") == logging.WARNING
    root = logging.getLogger(ROOT_LOGGER_NAME)
    assert root.level == logging.WARNING
    assert [h.level for h in root.handlers] == [logging.WARNING]
    assert not get_logger("intake.reconcile.reconciler").isEnabledFor(logging.INFO)


def test_set_level_on_one_logger(restore_level):
    set_level("info")
    set_level("debug", "intake.mapping")
    assert logging.getLogger("intake.mapping").level == logging.DEBUG
    assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.INFO
    logging.getLogger("intake.mapping").setLevel(logging.NOTSET)


def test_log_level_setting_is_validated(monkeypatch):
    monkeypatch.setenv("INTAKE_LOG_LEVEL", "chatty")
    reset_settings()
    try:
        with pytest.raises(ValueError):
            get_settings()
        monkeypatch.setenv("INTAKE_LOG_LEVEL", "debug")
        reset_settings()
        assert resolve_level(get_settings().INTAKE_LOG_LEVEL) == logging.DEBUG
    finally:
        reset_settings()
