"""
Runtime settings read from the environment.

    BSMODELS_LOG_LEVEL       logging level name (default WARNING)
    BSMODELS_MC_PATHS        default Monte Carlo path count (default 100000)
    BSMODELS_MC_STEPS        default time steps per path (default 252)
    BSMODELS_MC_BATCH_SIZE   paths simulated per batch (default 10000)
    BSMODELS_MC_WORKERS      threads used for path batches (default 1)
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Library-wide defaults."""

    log_level: str = "WARNING"
    mc_paths: int = 100_000
    mc_steps: int = 252
    mc_batch_size: int = 10_000
    mc_workers: int = 1

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            log_level=env.get("BSMODELS_LOG_LEVEL", cls.log_level).upper(),
            mc_paths=_env_int(env, "BSMODELS_MC_PATHS", cls.mc_paths),
            mc_steps=_env_int(env, "BSMODELS_MC_STEPS", cls.mc_steps),
            mc_batch_size=_env_int(env, "BSMODELS_MC_BATCH_SIZE", cls.mc_batch_size),
            mc_workers=_env_int(env, "BSMODELS_MC_WORKERS", cls.mc_workers),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from the process environment, read once."""
    return Settings.from_env()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler. Intended for scripts, not library code."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,
    )
