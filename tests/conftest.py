"""Shared fixtures: an in-memory review store and a fixed clock"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from fraud_detection.base import ReviewDataStore
from fraud_detection.results import to_datetime

# Tuesday afternoon, well inside normal hours
NOW = datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


class InMemoryReviewStore(ReviewDataStore):
    """ReviewDataStore backed by plain lists and dicts"""

    def __init__(self):
        self.users: Dict[Any, Dict] = {}
        self.bookings: Dict[Any, Dict] = {}
        self.reviews: List[Dict] = []
        self.reports: List[Dict] = []
        self.search_results: List[Dict] = []
        self.search_error: Optional[Exception] = None
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    # Test helpers

    def add_user(self, user_id, account_age_days: float) -> Dict:
        user = {'id': user_id, 'created_at': NOW - timedelta(days=account_age_days)}
        self.users[user_id] = user
        return user

    def add_booking(self, booking_id, user_id, hours_since_end: Optional[float] = 48,
                    status: str = 'completed') -> Dict:
        booking = {
            'id': booking_id,
            'user_id': user_id,
            'status': status,
            'end_date': NOW - timedelta(hours=hours_since_end) if hours_since_end is not None else None,
            'check_out': None,
        }
        self.bookings[booking_id] = booking
        return booking

    def add_review(self, user_id, rating: int, created_at: datetime,
                   content: str = 'Lovely stay by the lake.', risk_score: Optional[int] = None,
                   moderation_status: str = 'approved') -> Dict:
        review = {
            'id': len(self.reviews) + 1,
            'user_id': user_id,
            'content': content,
            'rating': rating,
            'created_at': created_at,
            'risk_score': risk_score,
            'moderation_status': moderation_status,
            'is_potential_fraud': False,
        }
        self.reviews.append(review)
        return review

    def _check(self, name: str):
        self.calls.append(name)
        if self.error:
            raise self.error

    # ReviewDataStore

    async def find_user_by_id(self, user_id):
        self._check('find_user_by_id')
        return self.users.get(user_id)

    async def find_reviews_by_user(self, user_id, limit=None):
        self._check('find_reviews_by_user')
        reviews = sorted(
            (r for r in self.reviews if r['user_id'] == user_id),
            key=lambda r: to_datetime(r['created_at']),
            reverse=True
        )
        return reviews[:limit] if limit is not None else reviews

    async def count_verified_bookings(self, user_id, statuses: Sequence[str] = ('confirmed', 'completed')):
        self._check('count_verified_bookings')
        return sum(1 for b in self.bookings.values() if b['user_id'] == user_id and b['status'] in statuses)

    async def find_booking_by_id(self, booking_id):
        self._check('find_booking_by_id')
        return self.bookings.get(booking_id)

    async def search_reviews_by_text(self, snippet, limit=5):
        self._check('search_reviews_by_text')
        if self.search_error:
            raise self.search_error
        return self.search_results[:limit]

    async def get_fraud_statistics(self, since):
        self._check('get_fraud_statistics')
        recent = [r for r in self.reviews if to_datetime(r['created_at']) >= since]
        scores = [r['risk_score'] for r in recent if r.get('risk_score') is not None]
        return {
            'total_reviews': len(recent),
            'flagged_reviews': sum(1 for r in recent if r.get('moderation_status') == 'flagged'),
            'high_risk_reviews': sum(1 for s in scores if s >= 70),
            'avg_risk_score': sum(scores) / len(scores) if scores else 0.0,
        }

    async def save_review(self, review):
        self._check('save_review')
        stored = dict(review, id=len(self.reviews) + 1)
        self.reviews.append(stored)
        return stored['id']

    async def get_reviews_needing_moderation(self, limit=None):
        self._check('get_reviews_needing_moderation')
        queue = [r for r in self.reviews if r.get('moderation_status') in ('pending', 'flagged')]
        queue.sort(key=lambda r: -(r.get('risk_score') or 0))
        return queue[:limit] if limit is not None else queue

    async def get_suspicious_reviews(self):
        self._check('get_suspicious_reviews')
        return [
            r for r in self.reviews
            if r.get('is_potential_fraud') or (r.get('risk_score') or 0) >= 70
            or r.get('moderation_status') == 'flagged'
        ]

    async def update_review_status(self, review_id, status):
        self._check('update_review_status')
        for review in self.reviews:
            if review['id'] == review_id:
                review['moderation_status'] = status
                return True
        return False

    async def add_report(self, review_id, report):
        self._check('add_report')
        if not any(r['id'] == review_id for r in self.reviews):
            return None
        self.reports.append(dict(report, review_id=review_id))
        return sum(1 for r in self.reports if r['review_id'] == review_id)

    async def get_reports_for_review(self, review_id):
        self._check('get_reports_for_review')
        return [r for r in self.reports if r['review_id'] == review_id]

    async def flag_reported_review(self, review_id):
        self._check('flag_reported_review')
        for review in self.reviews:
            if review['id'] == review_id:
                if review.get('moderation_status') != 'blocked':
                    review['moderation_status'] = 'flagged'
                review.setdefault('flags', {})['is_fake'] = True
                return True
        return False


def add_review_history(store: InMemoryReviewStore, user_id, ratings: Sequence[int],
                       start_days_ago: int = 30, spacing_days: int = 7, hour: int = 14):
    """Older reviews at the same hour of day, spaced a week apart (same weekday)"""
    for i, rating in enumerate(ratings):
        created_at = (NOW - timedelta(days=start_days_ago + i * spacing_days)).replace(hour=hour)
        store.add_review(user_id, rating, created_at)


WELL_FORMED_REVIEW = (
    "We spent three nights at the lodge near Bwindi before our gorilla trek. "
    "The rooms were clean and the beds were comfortable, although the hot water "
    "took a while to arrive in the mornings. Our guide Moses knew every trail and "
    "explained the habits of the family we visited in a calm and patient way. "
    "Meals were simple but tasty, with fresh fruit at breakfast and a warm soup "
    "every evening. The drive from Kampala is long and bumpy, so plan for a full "
    "day on the road and bring snacks. Staff at the front desk helped us arrange "
    "laundry and a packed lunch without any fuss. Prices are on the higher side "
    "for the region, yet the location and the quiet setting justify the cost. "
    "I would stay here again on a future visit to southwestern Uganda."
)


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def clock():
    return fixed_clock
