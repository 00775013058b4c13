# config.py
"""Environment-driven settings for the simulation server."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

ENV_PREFIX = "MONTEPI_"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


class SimulationConfig(BaseModel):
    square_size: float = Field(500.0, gt=0)
    offset: float = Field(50.0, ge=0)
    delay_ms: int = Field(500, ge=0)
    max_delay_ms: int = Field(1000, ge=0)
    seed: Optional[int] = None
    history_size: int = Field(1000, ge=1, le=100_000)
    db_path: Optional[str] = None
    autostart: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @field_validator("db_path")
    @classmethod
    def blank_db_path_disables_storage(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def delay_within_bounds(self):
        if self.delay_ms > self.max_delay_ms:
            raise ValueError(f"delay_ms ({self.delay_ms}) exceeds max_delay_ms ({self.max_delay_ms})")
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SimulationConfig":
        """Build a config from MONTEPI_* variables; unset variables keep their defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(**values)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
