"""
Test configuration and shared fixtures for the data selection test suite.
Provides sample resources, cells, metric sources and an in-memory database.
"""

import pytest
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generator, List, Optional

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Column, DateTime, Integer, String, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from dataselect.api.dependencies import DataSelectQueryDep
from dataselect.api.exception_handlers import register_exception_handlers
from dataselect.metrics.source import InMemoryMetricSource
from dataselect.metrics.service import MetricService
from dataselect.selection.cells import ObjectCell
from dataselect.selection.engine import DataSelector


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


# ===== SAMPLE RESOURCES =====

@dataclass
class Pod:
    """Minimal resource-like record used across the tests"""

    name: str
    namespace: str
    created_at: datetime
    restarts: int = 0
    status: Optional[str] = "Running"


POD_PROPERTY_MAP = {"creationTimestamp": "created_at"}


def pod_cell(pod: Pod) -> ObjectCell:
    return ObjectCell(pod, property_map=POD_PROPERTY_MAP, metric_key="name")


@pytest.fixture
def sample_pods() -> List[Pod]:
    """Twelve pods spread over two namespaces, created one minute apart"""
    return [
        Pod(
            name=f"pod-{i:02d}",
            namespace="default" if i % 2 == 0 else "kube-system",
            created_at=BASE_TIME + timedelta(minutes=i),
            restarts=i % 3,
        )
        for i in range(12)
    ]


@pytest.fixture
def pod_cells(sample_pods) -> List[ObjectCell]:
    """Sample pods wrapped as cells"""
    return [pod_cell(pod) for pod in sample_pods]


# ===== METRICS =====

@pytest.fixture
def metric_series():
    """Raw cpu series for a few pods; pod-02 has no data at all"""
    return {
        "pod-00": {"cpu/usage_rate": [(60, 1), (120, 2)], "memory/usage": [(60, 100)]},
        "pod-01": {"cpu/usage_rate": [(60, 3), (180, 4)]},
        "pod-03": {"cpu/usage_rate": [(120, 5)], "memory/usage": [(60, 50), (120, 70)]},
    }


@pytest.fixture
def metric_source(metric_series) -> InMemoryMetricSource:
    return InMemoryMetricSource(metric_series)


@pytest.fixture
def selector(metric_source) -> DataSelector:
    """Selector backed by the in-memory metric source"""
    return DataSelector(metric_service=MetricService(source=metric_source, timeout=1.0))


# ===== DATABASE SETUP =====

Base = declarative_base()


class DeploymentRecord(Base):
    """Stored deployment row used to exercise ModelCell"""

    __tablename__ = "deployments"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    namespace = Column(String, nullable=False)
    replicas = Column(Integer, default=1)
    created_at = Column(DateTime, nullable=False)

    @property
    def display_name(self) -> str:
        return f"{self.namespace}/{self.name}"


@pytest.fixture(scope="session")
def db_engine():
    """Create in-memory SQLite engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a database session and clean up all data after each test"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=db_engine)
        Base.metadata.create_all(bind=db_engine)


@pytest.fixture
def sample_deployments(db_session) -> List[DeploymentRecord]:
    """Create sample deployments for testing"""
    deployments = [
        DeploymentRecord(name="api", namespace="prod", replicas=3, created_at=BASE_TIME),
        DeploymentRecord(
            name="worker", namespace="prod", replicas=5, created_at=BASE_TIME + timedelta(hours=1)
        ),
        DeploymentRecord(
            name="web", namespace="staging", replicas=1, created_at=BASE_TIME + timedelta(hours=2)
        ),
        DeploymentRecord(
            name="cron", namespace="staging", replicas=1, created_at=BASE_TIME - timedelta(hours=1)
        ),
    ]
    for deployment in deployments:
        db_session.add(deployment)
    db_session.commit()
    return deployments


# ===== API CLIENT =====

@pytest.fixture
def client(sample_pods, selector) -> Generator[TestClient, None, None]:
    """FastAPI test client exposing a pod list built on the selection dependency"""
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/api/pods")
    def list_pods(query: DataSelectQueryDep):
        result = selector.select([pod_cell(pod) for pod in sample_pods], query)
        return {
            "listMeta": result.list_meta,
            "pods": [cell.item.name for cell in result.items],
            "metrics": result.metrics.model_dump(mode="json"),
        }

    @app.get("/api/broken")
    def list_broken(query: DataSelectQueryDep):
        selector.select([object()], query)

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
