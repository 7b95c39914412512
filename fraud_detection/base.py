"""Base classes for analyzers and the storage collaborator they read from"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import config


class Analyzer(ABC):
    """Base class for all fraud detection analyzers"""

    @abstractmethod
    async def analyze(self, *args, **kwargs):
        """
        Analyze one aspect of a review submission

        Implementations never raise for missing records or storage errors:
        they log and return a degraded result with ``analysis_error`` set.
        """

    @abstractmethod
    def timeout_result(self):
        """Neutral result used when the analyzer did not finish in time"""

    def get_name(self) -> str:
        """Get analyzer name"""
        return self.__class__.__name__


class ReviewDataStore(ABC):
    """
    Storage operations the fraud detector and the moderation workflow need

    Records are plain dicts. Reviews carry at least ``id``, ``user_id``,
    ``content``, ``rating`` and ``created_at``; bookings carry ``status``,
    ``end_date`` and ``check_out``; users carry ``created_at``.
    """

    @abstractmethod
    async def find_user_by_id(self, user_id: Any) -> Optional[Dict]:
        pass

    @abstractmethod
    async def find_reviews_by_user(self, user_id: Any, limit: Optional[int] = None) -> List[Dict]:
        """Reviews by user, newest first"""

    @abstractmethod
    async def count_verified_bookings(
        self, user_id: Any, statuses: Sequence[str] = config.VERIFIED_BOOKING_STATUSES
    ) -> int:
        pass

    @abstractmethod
    async def find_booking_by_id(self, booking_id: Any) -> Optional[Dict]:
        pass

    @abstractmethod
    async def search_reviews_by_text(self, snippet: str, limit: int = 5) -> List[Dict]:
        """Reviews whose content resembles snippet, best match first"""

    @abstractmethod
    async def get_fraud_statistics(self, since: datetime) -> Dict:
        """Aggregate review counts and risk scores for reviews created since"""

    @abstractmethod
    async def save_review(self, review: Dict) -> Any:
        """Persist a review with its verdict and moderation status, return its id"""

    @abstractmethod
    async def get_reviews_needing_moderation(self, limit: Optional[int] = None) -> List[Dict]:
        pass

    @abstractmethod
    async def get_suspicious_reviews(self) -> List[Dict]:
        pass

    @abstractmethod
    async def update_review_status(self, review_id: Any, status: str) -> bool:
        pass

    @abstractmethod
    async def add_report(self, review_id: Any, report: Dict) -> Optional[int]:
        """Store a community report, return the review's report count or None if the review is missing"""

    @abstractmethod
    async def get_reports_for_review(self, review_id: Any) -> List[Dict]:
        pass

    @abstractmethod
    async def flag_reported_review(self, review_id: Any) -> bool:
        """Flag a review (unless blocked) and mark its verdict as fake"""
