"""Behavioral pattern analysis - how the reviewer has rated in the past"""
import logging
from typing import Any

import config
from fraud_detection.analyzers.timing_analysis import population_variance
from fraud_detection.base import Analyzer, ReviewDataStore
from fraud_detection.results import BehavioralAnalysis

logger = logging.getLogger(__name__)


class BehavioralPatternAnalyzer(Analyzer):
    """Flags reviewers who only ever hand out 1 or 5 stars"""

    def __init__(self, store: ReviewDataStore):
        self.store = store

    async def analyze(self, user_id: Any, rating: int) -> BehavioralAnalysis:
        try:
            reviews = await self.store.find_reviews_by_user(user_id)
            if not reviews:
                return BehavioralAnalysis(is_first_review=True)

            ratings = [review['rating'] for review in reviews]
            variance = population_variance(ratings)
            extremes = [r for r in ratings if r in config.EXTREME_RATINGS]

            return BehavioralAnalysis(
                rating_variance=variance,
                has_extreme_ratings=bool(extremes),
                rating_consistency=variance < config.RATING_CONSISTENCY_VARIANCE,
                tendency_to_extremes=len(extremes) / len(ratings),
                average_rating=sum(ratings) / len(ratings),
                review_count=len(ratings)
            )

        except Exception as e:
            logger.error(f"Error analyzing behavioral patterns: user_id={user_id} error={e}")
            return BehavioralAnalysis(analysis_error=True)

    def timeout_result(self) -> BehavioralAnalysis:
        return BehavioralAnalysis(timed_out=True)
