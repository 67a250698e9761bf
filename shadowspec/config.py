# shadowspec/config.py
# Configuration management: frozen dataclasses populated from the environment

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from shadowspec.errors import ErrorCode, ShadowSpecError
from shadowspec.inference.merger import RequiredPolicy
from shadowspec.inference.samples import DEFAULT_MAX_SAMPLES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InferenceConfig:
    max_samples: int = DEFAULT_MAX_SAMPLES
    refine: bool = True
    required_policy: RequiredPolicy = RequiredPolicy.UNION

    def __post_init__(self):
        if self.max_samples <= 0:
            object.__setattr__(self, "max_samples", DEFAULT_MAX_SAMPLES)
        try:
            policy = RequiredPolicy(self.required_policy)
        except ValueError:
            raise ShadowSpecError(
                ErrorCode.CONFIG_INVALID,
                f"Unknown required policy: {self.required_policy!r}",
                details={"allowed": [p.value for p in RequiredPolicy]},
            )
        object.__setattr__(self, "required_policy", policy)


@dataclass(frozen=True)
class StorageConfig:
    base_dir: Path = field(default_factory=lambda: Path.home() / ".shadowspec")
    transactions_dir: str = "transactions"

    @property
    def transactions_path(self) -> Path:
        return self.base_dir / self.transactions_dir


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    file_enabled: bool = False
    file_name: str = "shadowspec.log"
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class ShadowSpecConfig:
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log: LogConfig = field(default_factory=LogConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "ShadowSpecConfig":
        inference = InferenceConfig(
            max_samples=_env_int("SHADOWSPEC_MAX_SAMPLES", DEFAULT_MAX_SAMPLES),
            refine=_env_bool("SHADOWSPEC_REFINE", True),
            required_policy=os.getenv("SHADOWSPEC_REQUIRED_POLICY", RequiredPolicy.UNION.value).lower(),
        )

        base_dir = Path(os.getenv("SHADOWSPEC_DATA_DIR", str(Path.home() / ".shadowspec")))
        storage = StorageConfig(base_dir=base_dir)

        log = LogConfig(
            level=os.getenv("SHADOWSPEC_LOG_LEVEL", "INFO"),
            file_enabled=_env_bool("SHADOWSPEC_LOG_FILE", False),
        )

        return cls(
            inference=inference,
            storage=storage,
            log=log,
            debug=_env_bool("SHADOWSPEC_DEBUG", False),
        )


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ShadowSpecError(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"{name} must be an integer",
            details={"value": raw},
        )


_config: Optional[ShadowSpecConfig] = None


def get_config() -> ShadowSpecConfig:
    global _config
    if _config is None:
        _config = ShadowSpecConfig.from_env()
    return _config


def set_config(config: Optional[ShadowSpecConfig]) -> None:
    global _config
    _config = config


def setup_logging(config: Optional[ShadowSpecConfig] = None) -> None:
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_enabled:
        from logging.handlers import RotatingFileHandler
        cfg.storage.base_dir.mkdir(parents=True, exist_ok=True)
        log_path = cfg.storage.base_dir / cfg.log.file_name
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
            backupCount=cfg.log.backup_count,
        )
        handlers.append(file_handler)

    level = "DEBUG" if cfg.debug else cfg.log.level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
    logger.debug(f"[Config] Logging configured at {level}")
