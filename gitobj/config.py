import os
from dataclasses import dataclass
from functools import cache

__all__ = ["Settings", "get_settings"]

ENV_PREFIX = "GITOBJ_"


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")


@dataclass(frozen=True, kw_only=True)
class Settings:
    compression_level: int = -1
    chunk_size: int = 64 * 1024
    spool_dir: str | None = None
    log_level: str = "WARNING"

    def __post_init__(self):
        if not -1 <= self.compression_level <= 9:
            raise ValueError(
                f"compression_level must be between -1 and 9, got {self.compression_level}"
            )
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            compression_level=_env_int("COMPRESSION_LEVEL", -1),
            chunk_size=_env_int("CHUNK_SIZE", 64 * 1024),
            spool_dir=os.environ.get(ENV_PREFIX + "SPOOL_DIR") or None,
            log_level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", "WARNING").upper(),
        )


@cache
def get_settings() -> Settings:
    return Settings.from_env()
