"""Fraud detection orchestrator - runs all analyzers for a review and scores the result"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import config
from fraud_detection.analyzers import (
    BehavioralPatternAnalyzer, ContentAnalyzer, TimingAnalyzer, UserBehaviorAnalyzer,
)
from fraud_detection.base import Analyzer, ReviewDataStore
from fraud_detection.cache import LRUCache
from fraud_detection.results import FraudVerdict, RiskFactor, utc_now
from fraud_detection.scoring import RiskScorer

logger = logging.getLogger(__name__)


def failure_verdict() -> FraudVerdict:
    """Medium-risk verdict used when the analysis pipeline itself fails"""
    return FraudVerdict(
        risk_score=config.FAILURE_RISK_SCORE,
        risk_level='MEDIUM',
        risk_factors=[RiskFactor(
            factor='analysis_error',
            weight=config.FAILURE_RISK_SCORE,
            description='Could not complete fraud analysis'
        )],
        flags={'analysis_failed': True},
        recommendations=['Manual review required due to analysis error']
    )


class FraudDetector:
    """
    Orchestrates fraud detection for review submissions

    Runs the four analyzers concurrently, feeds their results to the
    RiskScorer and returns a FraudVerdict. Construct one per process and
    share it: the user profile and content fingerprint caches live here.
    """

    def __init__(self, store: ReviewDataStore,
                 clock: Callable[[], datetime] = utc_now,
                 scorer: Optional[RiskScorer] = None,
                 user_cache: Optional[LRUCache] = None,
                 content_cache: Optional[LRUCache] = None,
                 analyzer_timeout: float = config.ANALYZER_TIMEOUT_SECONDS):
        self.store = store
        self.clock = clock
        self.scorer = scorer or RiskScorer()
        self.analyzer_timeout = analyzer_timeout

        self.user_analyzer = UserBehaviorAnalyzer(store, user_cache=user_cache, clock=clock)
        self.content_analyzer = ContentAnalyzer(store, content_cache=content_cache)
        self.timing_analyzer = TimingAnalyzer(store, clock=clock)
        self.behavioral_analyzer = BehavioralPatternAnalyzer(store)

    async def analyze_review(self, review_data: Dict, user_id: Any, booking_id: Any) -> FraudVerdict:
        """
        Run every analyzer and score the review

        Args:
            review_data: {'content', 'title', 'rating'}
            user_id: Reviewer id
            booking_id: Booking the review is about

        Returns:
            FraudVerdict. Never raises: if the pipeline fails, the result is
            the medium-risk failure verdict flagged for manual review.
        """
        try:
            logger.info(
                f"Starting fraud detection analysis: user_id={user_id} booking_id={booking_id} "
                f"content_length={len(review_data.get('content') or '')} rating={review_data.get('rating')}"
            )

            results = await asyncio.gather(
                self._run(self.user_analyzer, user_id),
                self._run(self.content_analyzer, review_data['content'], review_data.get('title')),
                self._run(self.timing_analyzer, user_id, booking_id),
                self._run(self.behavioral_analyzer, user_id, review_data['rating']),
                return_exceptions=True
            )
            # All analyzers have settled; surface the first failure
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            user_analysis, content_analysis, timing_analysis, behavioral_analysis = results

            analyses = {
                'user_analysis': user_analysis,
                'content_analysis': content_analysis,
                'timing_analysis': timing_analysis,
                'behavioral_analysis': behavioral_analysis,
                'review_data': review_data,
            }

            risk_factors = self.scorer.collect_risk_factors(analyses)
            risk_score = self.scorer.calculate_overall_risk_score(analyses)

            verdict = FraudVerdict(
                risk_score=risk_score,
                risk_level=self.scorer.get_risk_level(risk_score),
                risk_factors=risk_factors,
                user_metrics=user_analysis,
                content_analysis=content_analysis,
                timing_analysis=timing_analysis,
                behavioral_analysis=behavioral_analysis
            )
            verdict.flags = self.scorer.determine_flags(verdict)
            verdict.recommendations = self.scorer.generate_recommendations(verdict)

            logger.info(
                f"Fraud detection analysis completed: user_id={user_id} booking_id={booking_id} "
                f"risk_score={verdict.risk_score} flag_count={verdict.flag_count}"
            )
            return verdict

        except Exception as e:
            content = review_data.get('content') if isinstance(review_data, dict) else None
            rating = review_data.get('rating') if isinstance(review_data, dict) else None
            logger.error(
                f"Error in fraud detection analysis: user_id={user_id} booking_id={booking_id} "
                f"content_length={len(content) if isinstance(content, str) else 0} rating={rating} error={e}",
                exc_info=True
            )
            return failure_verdict()

    async def _run(self, analyzer: Analyzer, *args):
        """Run one analyzer, replacing it with its neutral result on timeout"""
        try:
            return await asyncio.wait_for(analyzer.analyze(*args), timeout=self.analyzer_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{analyzer.get_name()} timed out after {self.analyzer_timeout}s, ignoring its result")
            return analyzer.timeout_result()

    async def batch_analyze_reviews(self, reviews: List[Dict]) -> List[Dict]:
        """
        Analyze stored reviews one after another

        Args:
            reviews: [{'id', 'content', 'title', 'rating', 'user_id', 'booking_id'}]

        Returns:
            [{'review_id', 'analysis'}] in input order. A review that cannot
            be analyzed gets {'error', 'risk_score': 50} and the batch goes on.
        """
        results = []

        for review in reviews:
            review_id = review.get('id') if isinstance(review, dict) else None
            try:
                verdict = await self.analyze_review(
                    {'content': review['content'], 'title': review.get('title'), 'rating': review['rating']},
                    review['user_id'],
                    review['booking_id']
                )
                results.append({'review_id': review_id, 'analysis': verdict})
            except Exception as e:
                logger.error(f"Error in batch analysis: review_id={review_id} error={e}")
                results.append({
                    'review_id': review_id,
                    'analysis': {'error': str(e), 'risk_score': config.FAILURE_RISK_SCORE}
                })

        return results

    async def get_fraud_statistics(self, time_range_hours: float = 24) -> Dict:
        """
        Summarize stored verdicts for monitoring

        Returns:
            {'total_reviews', 'flagged_reviews', 'high_risk_reviews', 'avg_risk_score'}
        """
        since = self.clock() - timedelta(hours=time_range_hours)
        try:
            stats = await self.store.get_fraud_statistics(since)
        except Exception as e:
            logger.error(f"Error getting fraud statistics: error={e}")
            stats = None

        empty = {'total_reviews': 0, 'flagged_reviews': 0, 'high_risk_reviews': 0, 'avg_risk_score': 0.0}
        if not stats:
            return empty
        return {key: stats.get(key) or default for key, default in empty.items()}
