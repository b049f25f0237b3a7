"""
Sheet Cache Service - Time-boxed read-through cache for sheet grids
"""

import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from sheetchat.config import settings
from sheetchat.models.sheet_cache import SheetCacheEntry
from sheetchat.services.google_sheets_service import GoogleSheetsService
from sheetchat.services.identity import Identity

logger = logging.getLogger(__name__)


class SheetCacheService:
    """
    Keyed upsert store for fetched grids

    The store does not judge freshness; callers use is_fresh(). Concurrent
    refreshes of one sheet are not coordinated and the last commit wins.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, sheet_id: str) -> Optional[SheetCacheEntry]:
        return self.db.get(SheetCacheEntry, sheet_id)

    def put(self, sheet_id: str, grid: List[List[str]], actor_id: str) -> SheetCacheEntry:
        """Store a successfully fetched grid, replacing any previous entry"""
        entry = self.db.merge(SheetCacheEntry(
            sheet_id=sheet_id,
            data=json.dumps(grid),
            fetched_at=datetime.utcnow(),
            fetched_by=actor_id,
        ))
        self.db.commit()
        return entry

    @staticmethod
    def load_grid(entry: SheetCacheEntry) -> List[List[str]]:
        return json.loads(entry.data)


def is_fresh(
    entry: Optional[SheetCacheEntry],
    now: Optional[datetime] = None,
    ttl: Optional[timedelta] = None,
) -> bool:
    """True if entry was fetched less than ttl ago (default SHEET_CACHE_TTL_SECONDS)"""
    if entry is None or entry.fetched_at is None:
        return False
    now = now or datetime.utcnow()
    ttl = ttl if ttl is not None else timedelta(seconds=settings.SHEET_CACHE_TTL_SECONDS)
    return now - entry.fetched_at < ttl


class SheetDataService:
    """Serve sheet grids from the cache, falling through to the Sheets API"""

    def __init__(self, db: Session, sheets_service: GoogleSheetsService):
        self.cache = SheetCacheService(db)
        self.sheets_service = sheets_service

    def get_sheet_data(self, sheet_id: str, identity: Identity) -> Tuple[List[List[str]], str]:
        """
        Get a sheet's grid

        Args:
            sheet_id: Spreadsheet ID
            identity: Caller; supplies the Google access token on a miss

        Returns:
            (grid, source) where source is "cache" or "api"
        """
        entry = self.cache.get(sheet_id)
        if is_fresh(entry):
            logger.info(f"Cache hit for sheet {sheet_id}")
            return self.cache.load_grid(entry), "cache"

        logger.info(f"Cache {'expired' if entry else 'miss'} for sheet {sheet_id}, fetching from API")
        if not identity.google_access_token:
            logger.warning(f"No Google access token for user {identity.user_id}; fetch will be refused")

        # A failed fetch raises here and leaves any previous entry untouched
        grid = self.sheets_service.fetch_grid(sheet_id, identity.google_access_token)
        self.cache.put(sheet_id, grid, identity.user_id)
        return grid, "api"
