"""Retention and backend configuration from YAML plus environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"

DEFAULT_QUOTA_BYTES = 1024 * 1024 * 1024  # 1 GiB
DEFAULT_BUFFER_FRACTION = 0.10
DEFAULT_RECORD_BYTES = 1024

BACKENDS = ("sql", "document")


class RetentionPolicy(BaseModel):
    """Size quota that drives pruning."""

    quota_bytes: int = Field(default=DEFAULT_QUOTA_BYTES, gt=0)
    buffer_fraction: float = Field(default=DEFAULT_BUFFER_FRACTION, ge=0.0, lt=1.0)
    record_bytes: int = Field(default=DEFAULT_RECORD_BYTES, gt=0)  # per-record estimate

    @property
    def target_bytes(self) -> int:
        """Size pruning works down to: quota minus the buffer."""
        return int(self.quota_bytes - self.quota_bytes * self.buffer_fraction)


_ENV_OVERRIDES = {
    "DRILLBOOK_QUOTA_BYTES": ("quota_bytes", int),
    "DRILLBOOK_BUFFER_FRACTION": ("buffer_fraction", float),
    "DRILLBOOK_RECORD_BYTES": ("record_bytes", int),
}


def load_retention_policy(config_dir: Path | None = None) -> RetentionPolicy:
    """Load the retention policy.

    Precedence: environment variables, then ``retention.yaml`` in the
    config directory, then built-in defaults.

    Args:
        config_dir: Override for config directory (testing).
    """
    config_dir = config_dir or CONFIG_DIR
    retention_file = config_dir / "retention.yaml"

    values: dict = {}
    if retention_file.exists():
        with open(retention_file) as f:
            data = yaml.safe_load(f) or {}
        values.update(data.get("retention", {}))

    for env_name, (field, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw:
            try:
                values[field] = cast(raw)
            except ValueError:
                raise ValueError(f"{env_name} must be a number, got '{raw}'")

    policy = RetentionPolicy(**values)
    logger.debug(
        "Retention policy: quota=%d buffer=%.2f record_bytes=%d",
        policy.quota_bytes, policy.buffer_fraction, policy.record_bytes,
    )
    return policy


def backend_name() -> str:
    """Configured storage backend (``DRILLBOOK_BACKEND``, default ``sql``)."""
    name = os.environ.get("DRILLBOOK_BACKEND", "sql").strip().lower()
    if name not in BACKENDS:
        available = ", ".join(BACKENDS)
        raise KeyError(f"Backend '{name}' not found. Available: {available}")
    return name


def data_dir() -> Path:
    return Path(os.environ.get("DATA_DIR", "data"))
