"""Timing analysis - how soon after the stay a review arrives, and when the user usually writes"""
import logging
from datetime import datetime
from typing import Any, Callable, List, Sequence

import config
from fraud_detection.base import Analyzer, ReviewDataStore
from fraud_detection.results import TimingAnalysis, to_datetime, utc_now

logger = logging.getLogger(__name__)


def population_variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((value - mean) ** 2 for value in values) / len(values)


def check_timing_consistency(hours: List[int], days: List[int]) -> bool:
    """
    True when past submissions cluster around the same hour and weekday

    With fewer than TIMING_MIN_DATA_POINTS submissions there is nothing to
    compare against, so the history counts as consistent.
    """
    if len(hours) < config.TIMING_MIN_DATA_POINTS:
        return True

    return (
        population_variance(hours) < config.MAX_HOUR_VARIANCE
        and population_variance(days) < config.MAX_DAY_VARIANCE
    )


def day_of_week(timestamp: datetime) -> int:
    """Weekday with Sunday = 0"""
    return timestamp.isoweekday() % 7


class TimingAnalyzer(Analyzer):
    """
    Detects rushed reviews and irregular submission habits

    A review written within an hour of checkout, or in the middle of the
    night, is a weak fraud signal. So is a reviewer whose submission times
    are all over the clock.
    """

    def __init__(self, store: ReviewDataStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def analyze(self, user_id: Any, booking_id: Any) -> TimingAnalysis:
        try:
            booking = await self.store.find_booking_by_id(booking_id)
            if not booking:
                return TimingAnalysis(analysis_error=True, message='Booking not found')

            completed_at = to_datetime(booking.get('end_date')) or to_datetime(booking.get('check_out'))
            if completed_at is None:
                return TimingAnalysis(analysis_error=True, message='No completion date found')

            now = self.clock()
            time_to_review = (now - completed_at).total_seconds() / 3600

            reviews = await self.store.find_reviews_by_user(user_id, limit=config.TIMING_HISTORY_LIMIT)
            timestamps = []
            for review in reviews[:config.TIMING_HISTORY_LIMIT]:
                created_at = to_datetime(review.get('created_at'))
                if created_at is not None:
                    timestamps.append(created_at)

            return TimingAnalysis(
                time_to_review_hours=time_to_review,
                is_rush_review=time_to_review < config.RUSH_REVIEW_HOURS,
                is_delayed_review=time_to_review > config.DELAYED_REVIEW_HOURS,
                submission_hour=now.hour,
                submission_day=day_of_week(now),
                is_off_hours=now.hour < config.OFF_HOURS_START or now.hour > config.OFF_HOURS_END,
                has_consistent_timing=check_timing_consistency(
                    [t.hour for t in timestamps],
                    [day_of_week(t) for t in timestamps]
                )
            )

        except Exception as e:
            logger.error(f"Error analyzing timing patterns: user_id={user_id} booking_id={booking_id} error={e}")
            return TimingAnalysis(analysis_error=True, message=str(e))

    def timeout_result(self) -> TimingAnalysis:
        return TimingAnalysis(timed_out=True)
