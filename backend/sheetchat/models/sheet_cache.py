"""Sheet data cache model"""
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime

from sheetchat.core.database import Base


class SheetCacheEntry(Base):
    """Last successfully fetched grid for a sheet, stored as JSON text"""
    __tablename__ = "sheet_cache"

    sheet_id = Column(String, primary_key=True)
    data = Column(Text, nullable=False)  # JSON-encoded list of rows
    fetched_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    fetched_by = Column(String, nullable=True)  # User who triggered the fetch

    def __repr__(self):
        return f"<SheetCacheEntry(sheet_id={self.sheet_id}, fetched_at={self.fetched_at})>"
