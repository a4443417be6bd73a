"""
Fatigue Alert Model
One row per warning the engine raised (usage limit / maximum fatigue).
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean
from datetime import datetime
from app.core.database import Base


class FatigueAlert(Base):
    __tablename__ = "fatigue_alerts"

    id = Column(Integer, primary_key=True, index=True)
    alert_type = Column(String(50), nullable=False)  # max_fatigue_reached, usage_limit_reached
    severity = Column(String(20), default="warning")  # critical, warning, info
    message = Column(String(500), nullable=False)
    fatigue_level = Column(Float, default=0.0)
    usage_duration = Column(Float, default=0.0)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
