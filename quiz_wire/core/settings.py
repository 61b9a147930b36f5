"""Runtime settings for the quiz server, validated with pydantic.

Defaults come from ``quiz_wire.constants``; every field can be overridden
through a ``QUIZ_*`` environment variable (see ``from_environ``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from quiz_wire.constants.network_constants import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_HOST,
    DEFAULT_PORT,
    REMOTE_FETCH_TIMEOUT_SECONDS,
    SHUTDOWN_GRACE_SECONDS,
)
from quiz_wire.constants.quiz_constants import (
    DEFAULT_ANSWER_DEADLINE_SECONDS,
    DEFAULT_BASE_POINTS,
    DEFAULT_DECAY_DIVISOR,
    DEFAULT_INTER_ROUND_PAUSE_SECONDS,
    DEFAULT_MINIMUM_POINTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_QUESTIONS_PATH,
)

_ENV_PREFIX = "QUIZ_"


class GameSettings(BaseModel):
    """Timing, scoring and start-gate configuration for one game."""

    answer_deadline_seconds: float = Field(default=DEFAULT_ANSWER_DEADLINE_SECONDS, gt=0)
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    inter_round_pause_seconds: float = Field(default=DEFAULT_INTER_ROUND_PAUSE_SECONDS, ge=0)
    base_points: int = Field(default=DEFAULT_BASE_POINTS, ge=0)
    minimum_points: int = Field(default=DEFAULT_MINIMUM_POINTS, ge=0)
    decay_divisor: int = Field(default=DEFAULT_DECAY_DIVISOR, gt=0)
    min_players: int | None = Field(default=None, ge=1)
    max_wait_seconds: float | None = Field(default=None, gt=0)
    operator_start_enabled: bool = True

    @model_validator(mode="after")
    def _check_consistency(self) -> "GameSettings":
        if self.minimum_points > self.base_points:
            raise ValueError("minimum_points cannot exceed base_points")
        if not self.operator_start_enabled and self.min_players is None and self.max_wait_seconds is None:
            raise ValueError("an automatic start needs min_players or max_wait_seconds")
        return self

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "GameSettings":
        return cls(**_collect(cls, os.environ if environ is None else environ))


class ServerSettings(BaseModel):
    """Network, transport and question-source configuration for the server process."""

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    tls_certfile: Path | None = None
    tls_keyfile: Path | None = None
    api_enabled: bool = True
    api_host: str = DEFAULT_API_HOST
    api_port: int = Field(default=DEFAULT_API_PORT, ge=0, le=65535)
    console_enabled: bool = True
    questions_path: Path | None = DEFAULT_QUESTIONS_PATH
    questions_url: str | None = None
    remote_timeout_seconds: float = Field(default=REMOTE_FETCH_TIMEOUT_SECONDS, gt=0)
    shutdown_grace_seconds: float = Field(default=SHUTDOWN_GRACE_SECONDS, ge=0)
    game: GameSettings = Field(default_factory=GameSettings)

    @model_validator(mode="after")
    def _check_tls_pair(self) -> "ServerSettings":
        if (self.tls_certfile is None) != (self.tls_keyfile is None):
            raise ValueError("tls_certfile and tls_keyfile must be configured together")
        return self

    @property
    def tls_enabled(self) -> bool:
        return self.tls_certfile is not None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "ServerSettings":
        source = os.environ if environ is None else environ
        values = _collect(cls, source, skip={"game"})
        return cls(game=GameSettings.from_environ(source), **values)


def _collect(model: type[BaseModel], environ: Mapping[str, str], skip: set[str] | None = None) -> dict[str, str]:
    # pydantic coerces the raw strings; blank values fall back to the defaults
    values: dict[str, str] = {}
    for name in model.model_fields:
        if skip and name in skip:
            continue
        raw = environ.get(_ENV_PREFIX + name.upper())
        if raw is not None and raw.strip():
            values[name] = raw.strip()
    return values
