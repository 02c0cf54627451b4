# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os
import re

_DURATION_UNITS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a Go-style duration ("30s", "1m", "1h30m", "500ms") into seconds."""
    raw = value.strip()
    if not raw:
        raise ValueError("empty duration")
    if re.fullmatch(r"\d+(?:\.\d+)?", raw):
        return float(raw)
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(raw):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(raw):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = "oncall-sync"

    def __init__(self) -> None:
        self.SERVICE_NAME = os.getenv("SERVICE_NAME", "oncall-sync")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # ── Remote on-call service ──
        self.ONCALL_URL: str = os.getenv("ONCALL_URL", "http://oncall-web:8080")
        self.ONCALL_USERNAME: str = os.getenv("ONCALL_USERNAME", "root")
        self.ONCALL_PASSWORD: str = os.getenv("ONCALL_PASSWORD", "root")
        self.LOGIN_TIMEOUT: float = float(os.getenv("LOGIN_TIMEOUT", "5.0"))
        self.REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10.0"))
        self.RELOGIN_INTERVAL: float = parse_duration(os.getenv("RELOGIN_INTERVAL", "1h"))
        self.CONFIG_FILE: str = os.getenv("CONFIG_FILE", "")

        # ── Roster exporter ──
        self.EXPORTER_SCRAPE_INTERVAL: float = parse_duration(
            os.getenv("EXPORTER_SCRAPE_INTERVAL", "30s")
        )
        self.EXPORTER_PORT: int = int(os.getenv("EXPORTER_PORT", "9213"))

        # ── SLA prober ──
        self.PROBER_SCRAPE_INTERVAL: float = parse_duration(
            os.getenv("PROBER_SCRAPE_INTERVAL", "60s")
        )
        self.PROBER_PORT: int = int(os.getenv("PROBER_PORT", "8080"))
        self.PROBER_SILENT: bool = _env_bool("PROBER_SILENT")

        # ── SLA checker ──
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.PROMETHEUS_URL: str = os.getenv("PROMETHEUS_URL", "http://oncall-prometheus:9090")
        self.PROMETHEUS_TIMEOUT: float = float(os.getenv("PROMETHEUS_TIMEOUT", "10.0"))
        self.SLA_SCRAPE_INTERVAL: float = parse_duration(os.getenv("SLA_SCRAPE_INTERVAL", "1m"))
        self.METRICS_FILE: str = os.getenv("METRICS_FILE", "")
        self.POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
        self.MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
        self.POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))


settings = Settings()
