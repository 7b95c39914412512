"""SQLite-backed implementation of the review data store"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

import config
from database import models
from fraud_detection.base import ReviewDataStore

logger = logging.getLogger(__name__)


class SQLiteReviewStore(ReviewDataStore):
    """
    Async facade over database.models

    Each call opens its own connection inside a worker thread, so the event
    loop never blocks on sqlite and connections are never shared between
    threads.
    """

    def __init__(self, db_path: str = config.DATABASE_PATH):
        self.db_path = db_path

    def _execute(self, func: Callable, *args, **kwargs):
        conn = models.get_db_connection(self.db_path)
        try:
            return func(conn, *args, **kwargs)
        finally:
            conn.close()

    async def _call(self, func: Callable, *args, **kwargs):
        return await asyncio.to_thread(self._execute, func, *args, **kwargs)

    async def find_user_by_id(self, user_id: Any) -> Optional[Dict]:
        return await self._call(models.get_user_by_id, user_id)

    async def find_reviews_by_user(self, user_id: Any, limit: Optional[int] = None) -> List[Dict]:
        return await self._call(models.get_reviews_by_user, user_id, limit)

    async def count_verified_bookings(
        self, user_id: Any, statuses: Sequence[str] = config.VERIFIED_BOOKING_STATUSES
    ) -> int:
        return await self._call(models.count_bookings_by_status, user_id, tuple(statuses))

    async def find_booking_by_id(self, booking_id: Any) -> Optional[Dict]:
        return await self._call(models.get_booking_by_id, booking_id)

    async def search_reviews_by_text(self, snippet: str, limit: int = 5) -> List[Dict]:
        return await self._call(models.search_reviews_by_text, snippet, limit)

    async def get_fraud_statistics(self, since: datetime) -> Dict:
        return await self._call(models.get_fraud_statistics, since)

    async def save_review(self, review: Dict) -> int:
        return await self._call(models.save_review, review)

    async def get_reviews_needing_moderation(self, limit: Optional[int] = None) -> List[Dict]:
        return await self._call(models.get_reviews_needing_moderation, limit)

    async def get_suspicious_reviews(self) -> List[Dict]:
        return await self._call(models.get_suspicious_reviews)

    async def update_review_status(self, review_id: Any, status: str) -> bool:
        return await self._call(models.update_review_status, review_id, status)

    async def add_report(self, review_id: Any, report: Dict) -> Optional[int]:
        return await self._call(models.add_report, review_id, report)

    async def get_reports_for_review(self, review_id: Any) -> List[Dict]:
        return await self._call(models.get_reports_for_review, review_id)

    async def flag_reported_review(self, review_id: Any) -> bool:
        return await self._call(models.flag_reported_review, review_id)
