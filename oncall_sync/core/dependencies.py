# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dependency wiring — build the session, client and services for one process.

Each process calls these once at start-up and keeps the objects until exit;
nothing here is a module-level singleton.
"""

import httpx
from sqlalchemy import create_engine

from oncall_sync.core.config import Settings
from oncall_sync.metrics.prometheus import MetricsSink
from oncall_sync.repositories.sla_repository import SLARepository
from oncall_sync.services.oncall_client import OncallClient
from oncall_sync.services.prometheus_query import PrometheusQueryClient
from oncall_sync.services.session import Session


def build_session(settings: Settings, transport: httpx.BaseTransport | None = None) -> Session:
    return Session(
        settings.ONCALL_URL,
        username=settings.ONCALL_USERNAME,
        password=settings.ONCALL_PASSWORD,
        login_timeout=settings.LOGIN_TIMEOUT,
        transport=transport,
    )


def build_client(
    settings: Settings,
    metrics: MetricsSink | None = None,
    transport: httpx.BaseTransport | None = None,
) -> OncallClient:
    """Create a logged-in client. LoginFailed / InvalidEndpoint propagate."""
    session = build_session(settings, transport)
    session.login()
    return OncallClient(session, timeout=settings.REQUEST_TIMEOUT, metrics=metrics)


def build_prometheus_client(settings: Settings) -> PrometheusQueryClient:
    http_client = httpx.Client(timeout=settings.PROMETHEUS_TIMEOUT)
    return PrometheusQueryClient(settings.PROMETHEUS_URL, http_client)


def build_sla_repository(settings: Settings) -> SLARepository:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )
    return SLARepository(engine)
