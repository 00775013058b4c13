import pytest
from pydantic import ValidationError

from montepi.config import SimulationConfig


def test_defaults():
    config = SimulationConfig.from_env({})
    assert config.square_size == 500
    assert config.offset == 50
    assert config.delay_ms == 500
    assert config.max_delay_ms == 1000
    assert config.seed is None
    assert config.db_path is None
    assert config.autostart is False
    assert config.log_level == "INFO"


def test_from_env_parses_values():
    config = SimulationConfig.from_env({
        "MONTEPI_SQUARE_SIZE": "200",
        "MONTEPI_OFFSET": "0",
        "MONTEPI_DELAY_MS": "0",
        "MONTEPI_SEED": "42",
        "MONTEPI_AUTOSTART": "true",
        "MONTEPI_LOG_LEVEL": "debug",
        "MONTEPI_DB_PATH": "  ",
        "UNRELATED": "x",
    })
    assert config.square_size == 200
    assert config.offset == 0
    assert config.delay_ms == 0
    assert config.seed == 42
    assert config.autostart is True
    assert config.log_level == "DEBUG"
    assert config.db_path is None


@pytest.mark.parametrize("env", [
    {"MONTEPI_SQUARE_SIZE": "0"},
    {"MONTEPI_SQUARE_SIZE": "-3"},
    {"MONTEPI_OFFSET": "-1"},
    {"MONTEPI_DELAY_MS": "-10"},
    {"MONTEPI_DELAY_MS": "1500"},
    {"MONTEPI_LOG_LEVEL": "chatty"},
    {"MONTEPI_HISTORY_SIZE": "0"},
])
def test_invalid_values_fail_fast(env):
    with pytest.raises(ValidationError):
        SimulationConfig.from_env(env)
