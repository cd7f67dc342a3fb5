"""
Pytest Configuration and Shared Fixtures for RevPace Tests.

Provides:
- An in-memory SQLite engine (StaticPool, so every connection sees the same
  database) with all tables created
- A SQLModel session bound to that engine
- A FastAPI TestClient whose get_session dependency yields that session
- Helpers for seeding platform metrics and flat-fee contracts

The TestClient is created without a context manager, so the application
lifespan (database bootstrap, scheduler) never runs during tests.
"""

from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.main import app
from app.database import get_session
from app.analyzer.pipeline import resolve_period
from app.models import contract_models, normalized_models, raw_models  # noqa: F401
from app.models.normalized_models import PlatformMetric
from app.models.pacing_models import ReportingPeriod


# ============================================================
# DATABASE FIXTURES
# ============================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================
# PERIOD FIXTURES
# ============================================================


@pytest.fixture
def november() -> ReportingPeriod:
    """November 2025 as of the 15th: 15 days accounted, 15 left."""
    return resolve_period("2025-11", "2025-11-15")


# ============================================================
# SEED HELPERS
# ============================================================


def add_metric(
    session: Session,
    platform_key: str,
    brand: str,
    day: str,
    weekly_revenue: float = 0.0,
    mtd_revenue: float = 0.0,
    mtd_gmv: float = 0.0,
    target_gmv: float = 0.0,
    total_contract_revenue: Optional[float] = None,
) -> PlatformMetric:
    metric = PlatformMetric(
        platform_key=platform_key,
        brand=brand,
        date=day,
        weekly_revenue=weekly_revenue,
        mtd_revenue=mtd_revenue,
        mtd_gmv=mtd_gmv,
        target_gmv=target_gmv,
        total_contract_revenue=total_contract_revenue,
    )
    session.add(metric)
    session.commit()
    return metric


@pytest.fixture
def seeded(session: Session) -> Session:
    """A small November 2025 book of business across three platforms.

    Latest snapshots (as of 2025-11-15):
      creator-connections / Acme    rev 3000  gmv 30000  target 90000
      creator-connections / Globex  rev 1000  gmv  5000  target 60000
      skimlinks / Initech           rev  500  gmv 10000  target 10000
    plus an earlier Acme snapshot (superseded), a December row outside the
    window, and an October row from the previous month.
    """
    add_metric(session, "creator-connections", "Acme", "2025-11-06", 1000, 1000, 10000, 90000)
    add_metric(session, "creator-connections", "Acme", "2025-11-13", 2000, 3000, 30000, 90000)
    add_metric(session, "creator-connections", "Globex", "2025-11-13", 1000, 1000, 5000, 60000)
    add_metric(session, "skimlinks", "Initech", "2025-11-13", 500, 500, 10000, 10000)
    add_metric(session, "skimlinks", "Initech", "2025-12-04", 800, 800, 2000, 10000)
    add_metric(session, "creator-connections", "Acme", "2025-10-30", 4000, 12000, 80000, 90000)
    return session
