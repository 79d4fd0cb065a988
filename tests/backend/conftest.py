# tests/backend/conftest.py
"""
Pytest fixtures for backend tests
In-memory database, IP pool registries and an API client
"""

import pytest
import sys
import os
from pathlib import Path

# Add paths for imports
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

# Keep the app module from touching a real database file
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.address_pool import AddressPoolEntry, AddressPoolRegistry, default_registry
from core.device_manager import DeviceManager
from core.ipam import IPAMService
from core.project_manager import ProjectManager
from database.models import Base, Device, Project


# ============================================
# Database Fixtures
# ============================================

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=True, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ============================================
# IP Pool Fixtures
# ============================================

@pytest.fixture
def registry():
    """The built-in pool table"""
    return default_registry()


@pytest.fixture
def small_registry():
    """Tiny table: three camera addresses and two catch-all addresses"""
    return AddressPoolRegistry([
        AddressPoolEntry("camera", "10.0.20", 20, 10, 12, "10.0.20.10"),
        AddressPoolEntry("network", "10.0.1", 1, 1, 5, "10.0.1.1"),
        AddressPoolEntry("other", "10.0.1", 1, 100, 101, "10.0.1.250"),
    ])


@pytest.fixture
def ipam(registry):
    return IPAMService(registry)


@pytest.fixture
def project_manager(ipam):
    return ProjectManager(ipam)


@pytest.fixture
def device_manager(ipam, project_manager):
    return DeviceManager(ipam, project_manager)


# ============================================
# Data Factories
# ============================================

@pytest.fixture
def make_project(db):
    """Insert a project directly"""
    def _make(name="Smith Residence", **kwargs):
        project = Project(name=name, **kwargs)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
    return _make


@pytest.fixture
def add_device(db):
    """Insert a device directly, bypassing IP assignment"""
    def _add(project, ip_address=None, name=None, category="camera",
             device_type="camera", vlan=1, **kwargs):
        device = Device(
            project_id=project.id,
            name=name or f"{device_type}-{ip_address or 'noip'}",
            category=category,
            device_type=device_type,
            ip_address=ip_address,
            vlan=vlan,
            **kwargs
        )
        db.add(device)
        db.commit()
        db.refresh(device)
        return device
    return _add


@pytest.fixture
def project(make_project):
    return make_project()


# ============================================
# API Client
# ============================================

@pytest.fixture
def app(session_factory, registry):
    from main import create_app
    from database.session import get_db

    app = create_app(registry)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)
