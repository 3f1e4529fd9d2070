from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from shortlink_app.database.connection import Base


class UrlMapping(Base):
    """
    Short id to destination URL mapping.

    Rows are written once by create and afterwards only see atomic
    visit_count increments. creator_origin is kept for audit and is never
    returned by the API.
    """
    __tablename__ = "urls"

    # Client-chosen opaque token; the primary key enforces uniqueness
    id = Column(String(64), primary_key=True)
    original_url = Column(Text, nullable=False)
    visit_count = Column(Integer, nullable=False, default=0, server_default="0")
    creator_origin = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
