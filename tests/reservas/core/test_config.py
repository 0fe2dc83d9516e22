import logging

import pytest

from reservas.core import config
from reservas.core.logging_config import setup_logging


def test_validate_runtime_config_accepts_defaults() -> None:
    config.validate_runtime_config()


@pytest.mark.parametrize(
    ('name', 'value'),
    [
        ('SLOT_GRANULARITY_MINUTES', 0),
        ('PEAK_WINDOW_START_HOUR', 17),
        ('DEFAULT_MAX_OCCURRENCES', 0),
        ('RECURRENCE_CONFLICT_POLICY', 'merge'),
    ],
)
def test_validate_runtime_config_rejects_bad_scheduling_values(monkeypatch, name, value) -> None:
    monkeypatch.setattr(config, name, value)

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


def test_validate_runtime_config_requires_secret_in_production(monkeypatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


@pytest.mark.parametrize(
    ('raw', 'expected'),
    [(None, True), ('yes', True), (' ON ', True), ('off', False)],
)
def test_get_bool(raw, expected) -> None:
    assert config._get_bool(raw, default=True) is expected


def test_get_list_drops_blank_items() -> None:
    assert config._get_list(' a, ,b ', []) == ['a', 'b']


def test_setup_logging_quiets_sql_loggers() -> None:
    setup_logging('INFO')

    assert logging.getLogger('sqlalchemy.engine').level == logging.WARNING
