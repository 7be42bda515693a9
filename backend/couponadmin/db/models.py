"""SQLAlchemy models for data owned by the admin app itself."""
from sqlalchemy import JSON, Column, DateTime, String
from couponadmin.db.base import Base


class SavedViewModel(Base):
    """Represents saved_views table: named grid filter presets."""

    __tablename__ = "saved_views"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    filters = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)
