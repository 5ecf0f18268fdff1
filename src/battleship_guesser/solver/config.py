"""Solver configuration."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field

ENV_PREFIX = "BATTLESHIP_GUESSER_"
DEFAULT_MAX_CONFIGS_TESTED = 10_000_000


class SolverConfig(BaseModel):
    """Bounds and seeding for a single move-generation pass."""

    max_configs_tested: int = Field(default=DEFAULT_MAX_CONFIGS_TESTED, gt=0)
    time_budget_seconds: float | None = Field(default=None, gt=0)
    seed: int | None = None
    progress_interval: int = Field(default=1_000_000, gt=0)

    @classmethod
    def from_env(cls, **overrides: Any) -> "SolverConfig":
        """Build a config from `BATTLESHIP_GUESSER_*` variables; overrides win."""

        data: Dict[str, Any] = {}
        env_fields = {
            "max_configs_tested": f"{ENV_PREFIX}MAX_CONFIGS",
            "time_budget_seconds": f"{ENV_PREFIX}TIME_BUDGET",
            "seed": f"{ENV_PREFIX}SEED",
        }
        for field_name, env_name in env_fields.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                data[field_name] = raw.strip()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)


@lru_cache(maxsize=1)
def load_solver_config() -> SolverConfig:
    """Load and cache solver config from the environment."""

    return SolverConfig.from_env()
