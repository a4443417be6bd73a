import os
import tempfile
from pathlib import Path

import pytest

# Configure the service before any app module reads its settings
_DB_DIR = tempfile.mkdtemp(prefix="unplug-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'unplug-test.db'}"
os.environ["DEVICE_SOURCE"] = "manual"
os.environ["TELEGRAM_ENABLED"] = "false"
os.environ["DEBUG"] = "false"

from fatigue_model import FatigueConfig, FatigueEngine, ManualClock  # noqa: E402


@pytest.fixture
def clock():
    return ManualClock(0.0)


@pytest.fixture
def engine(clock):
    """Engine with the short durations used throughout: 60s limit, 10s recovery."""
    return FatigueEngine(FatigueConfig(warning_threshold=60, recovery_time=10), clock)


@pytest.fixture
def signals(engine):
    """Every signal the engine emits, in order."""
    received = []
    engine.subscribe(lambda signal, snapshot: received.append((signal, snapshot)))
    return received


@pytest.fixture
def fresh_db():
    from app.core.database import Base, engine as db_engine, init_db

    init_db()
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)
    yield
    Base.metadata.drop_all(bind=db_engine)
