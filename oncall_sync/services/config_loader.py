# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: YAML loading for the team configuration and the SLA metric list.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from oncall_sync.core.logging import get_logger
from oncall_sync.models.domain import Configuration, SLAMetric, SLAMetricsFile

logger = get_logger(__name__)


class ConfigError(Exception):
    """The configuration file is missing, unreadable or malformed."""


def _read_yaml(path: str | Path) -> dict:
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"error decoding yaml file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(path: str | Path) -> Configuration:
    """Read the teams → users → duty document."""
    data = _read_yaml(path)
    try:
        config = Configuration.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    logger.info("Loaded %d team(s) from %s", len(config.teams), path)
    return config


def load_sla_metrics(path: str | Path) -> list[SLAMetric]:
    """Read the SLA checker's metric list. At least one metric is required."""
    data = _read_yaml(path)
    try:
        metrics = SLAMetricsFile.model_validate(data).metrics
    except ValidationError as exc:
        raise ConfigError(f"{path}: {exc}") from exc
    if not metrics:
        raise ConfigError(f"{path}: no metrics loaded")
    return metrics
