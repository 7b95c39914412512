"""User behavior analysis - account age, review volume and booking history"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

import config
from fraud_detection.base import Analyzer, ReviewDataStore
from fraud_detection.cache import LRUCache
from fraud_detection.results import UserProfileSnapshot, to_datetime, utc_now

logger = logging.getLogger(__name__)


class UserBehaviorAnalyzer(Analyzer):
    """
    Builds a profile of the reviewer from their history

    Profiles are cached per user for USER_CACHE_TTL_SECONDS. Failed lookups
    are never cached.
    """

    def __init__(self, store: ReviewDataStore, user_cache: Optional[LRUCache] = None,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self.user_cache = user_cache or LRUCache(
            max_size=config.USER_CACHE_MAX_SIZE,
            ttl=config.USER_CACHE_TTL_SECONDS
        )

    async def analyze(self, user_id: Any) -> UserProfileSnapshot:
        cached = self.user_cache.get(user_id)
        if cached is not None:
            return cached

        try:
            profile = await self._build_profile(user_id)
        except Exception as e:
            logger.error(f"Error analyzing user: user_id={user_id} error={e}")
            return UserProfileSnapshot(is_new_user=True, analysis_error=True)

        self.user_cache.put(user_id, profile)
        return profile

    def timeout_result(self) -> UserProfileSnapshot:
        return UserProfileSnapshot(is_new_user=False, timed_out=True)

    async def _build_profile(self, user_id: Any) -> UserProfileSnapshot:
        user = await self.store.find_user_by_id(user_id)
        if not user:
            raise LookupError(f"User not found: {user_id}")

        created_at = to_datetime(user.get('created_at'))
        if created_at is None:
            raise ValueError(f"User {user_id} has no valid creation date")

        now = self.clock()
        account_age_days = max(0, (now - created_at).days)

        reviews = await self.store.find_reviews_by_user(user_id)
        week_ago = now - timedelta(days=7)
        review_dates = [to_datetime(review.get('created_at')) for review in reviews]
        recent_reviews = [date for date in review_dates if date is not None and date > week_ago]

        verified_bookings = await self.store.count_verified_bookings(
            user_id, config.VERIFIED_BOOKING_STATUSES
        )

        review_count = len(reviews)
        average_rating = (
            sum(review['rating'] for review in reviews) / review_count
            if review_count > 0 else 0.0
        )

        return UserProfileSnapshot(
            account_age_days=account_age_days,
            review_count=review_count,
            average_rating=average_rating,
            review_frequency_last_7_days=len(recent_reviews),
            verified_bookings_count=verified_bookings,
            is_new_user=account_age_days < config.NEW_USER_DAYS,
            is_volume_reviewer=review_count > config.VOLUME_REVIEWER_COUNT,
            # A reviewer with no history averages 0 and counts as extreme
            has_extreme_average_rating=(
                average_rating < config.EXTREME_AVERAGE_LOW
                or average_rating > config.EXTREME_AVERAGE_HIGH
            ),
            recent_activity_spike=len(recent_reviews) > config.ACTIVITY_SPIKE_REVIEWS
        )
