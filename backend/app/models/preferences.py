"""
User Preferences Model
Persisted fatigue durations. A single row (id=1) holds the current values.
"""

from sqlalchemy import Column, Integer, Float, DateTime
from datetime import datetime
from app.core.database import Base


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    warning_threshold = Column(Float, nullable=False, default=3600.0)  # seconds
    recovery_time = Column(Float, nullable=False, default=600.0)  # seconds
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
