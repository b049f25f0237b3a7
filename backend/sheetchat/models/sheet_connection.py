"""Sheet connection model"""
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime

from sheetchat.core.database import Base


class SheetConnection(Base):
    """A Google Sheet a user has connected"""
    __tablename__ = "sheet_connections"

    owner_id = Column(String, primary_key=True)
    sheet_id = Column(String, primary_key=True)

    name = Column(String, nullable=False)
    url = Column(String, nullable=False)

    # Template with {{{sheetData}}} and {{{question}}} placeholders
    custom_prompt = Column(Text, nullable=True)

    added_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SheetConnection(owner_id={self.owner_id}, sheet_id={self.sheet_id}, name={self.name})>"
