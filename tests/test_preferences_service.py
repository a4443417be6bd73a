import pytest

from app.core.database import SessionLocal
from app.models.preferences import UserPreferences
from app.services import preferences_service
from fatigue_model import FatigueConfig


@pytest.fixture
def db(fresh_db):
    session = SessionLocal()
    yield session
    session.close()


def test_defaults_when_nothing_saved(db):
    assert preferences_service.load_config(db) == FatigueConfig(3600, 600)


def test_save_then_load(db):
    saved = preferences_service.save_config(db, 1200, 240)
    assert saved == FatigueConfig(1200, 240)
    assert preferences_service.load_config(db) == saved
    assert db.query(UserPreferences).count() == 1


def test_invalid_values_are_rejected_before_writing(db):
    preferences_service.save_config(db, 1200, 240)
    with pytest.raises(ValueError):
        preferences_service.save_config(db, 0, 240)
    assert preferences_service.load_config(db) == FatigueConfig(1200, 240)


def test_corrupt_row_falls_back_to_defaults(db):
    db.add(UserPreferences(id=1, warning_threshold=0.0, recovery_time=-5.0))
    db.commit()
    assert preferences_service.load_config(db) == FatigueConfig(3600, 600)


def test_reset_to_defaults(db):
    preferences_service.save_config(db, 1200, 240)
    assert preferences_service.reset_to_defaults(db) == FatigueConfig(3600, 600)
    assert preferences_service.load_config(db) == FatigueConfig(3600, 600)
