"""Sheet connection service for managing a user's connected sheets"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from sheetchat.models.sheet_connection import SheetConnection


class SheetConnectionService:
    """CRUD for SheetConnection rows, scoped by owner"""

    def __init__(self, db: Session):
        self.db = db

    def connect(self, owner_id: str, sheet_id: str, name: str, url: str) -> SheetConnection:
        """Create or replace a connection; an existing custom prompt is kept"""
        connection = self.get(owner_id, sheet_id)
        if connection:
            connection.name = name
            connection.url = url
            connection.added_at = datetime.utcnow()
        else:
            connection = SheetConnection(owner_id=owner_id, sheet_id=sheet_id, name=name, url=url)
            self.db.add(connection)

        self.db.commit()
        self.db.refresh(connection)
        return connection

    def get(self, owner_id: str, sheet_id: str) -> Optional[SheetConnection]:
        return self.db.get(SheetConnection, (owner_id, sheet_id))

    def list_for_owner(self, owner_id: str) -> List[SheetConnection]:
        """Connections for an owner, most recently added first"""
        return (
            self.db.query(SheetConnection)
            .filter(SheetConnection.owner_id == owner_id)
            .order_by(SheetConnection.added_at.desc())
            .all()
        )

    def disconnect(self, owner_id: str, sheet_id: str) -> bool:
        """Delete a connection. Returns False if it didn't exist."""
        connection = self.get(owner_id, sheet_id)
        if not connection:
            return False

        self.db.delete(connection)
        self.db.commit()
        return True

    def update_prompt(self, owner_id: str, sheet_id: str, prompt: Optional[str]) -> Optional[SheetConnection]:
        """Set or clear the custom prompt template"""
        connection = self.get(owner_id, sheet_id)
        if not connection:
            return None

        connection.custom_prompt = prompt or None
        self.db.commit()
        self.db.refresh(connection)
        return connection
