"""Moderation workflow - turns fraud verdicts into review statuses"""
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import config
from fraud_detection.base import ReviewDataStore
from fraud_detection.detector import FraudDetector
from fraud_detection.results import FraudVerdict, ReviewSubmission

logger = logging.getLogger(__name__)


class ModerationStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    FLAGGED = 'flagged'
    BLOCKED = 'blocked'


class ReportReason(str, Enum):
    SPAM = 'spam'
    INAPPROPRIATE = 'inappropriate'
    FAKE = 'fake'
    IRRELEVANT = 'irrelevant'
    OFFENSIVE = 'offensive'
    PERSONAL_ATTACK = 'personal_attack'
    COMMERCIAL = 'commercial'
    OFF_TOPIC = 'off_topic'
    COPYRIGHT = 'copyright'


def decide_moderation_status(verdict: FraudVerdict) -> ModerationStatus:
    """
    Map a verdict to a moderation status

    Failed analyses always go to a human. Otherwise the risk score decides:
    above BLOCK_THRESHOLD the review is blocked, above FLAG_THRESHOLD it is
    flagged, anything else is approved.
    """
    if verdict.flags.get('analysis_failed'):
        return ModerationStatus.FLAGGED
    if verdict.risk_score > config.BLOCK_THRESHOLD:
        return ModerationStatus.BLOCKED
    if verdict.risk_score > config.FLAG_THRESHOLD:
        return ModerationStatus.FLAGGED
    return ModerationStatus.APPROVED


class ReviewModerationService:
    """Review submission and moderation queue on top of the fraud detector"""

    def __init__(self, detector: FraudDetector, store: Optional[ReviewDataStore] = None):
        self.detector = detector
        self.store = store or detector.store

    async def submit_review(self, submission: ReviewSubmission) -> Dict:
        """
        Analyze, moderate and store a new review

        Returns:
            {'review_id', 'status', 'verdict'}
        """
        verdict = await self.detector.analyze_review(
            submission.to_review_data(), submission.user_id, submission.booking_id
        )
        status = decide_moderation_status(verdict)

        review_id = await self.store.save_review({
            'user_id': submission.user_id,
            'booking_id': submission.booking_id,
            'title': submission.title,
            'content': submission.content,
            'rating': submission.rating,
            'created_at': self.detector.clock().isoformat(),
            'moderation_status': status.value,
            'risk_score': verdict.risk_score,
            'is_potential_fraud': bool(verdict.flags.get('is_potential_fraud')),
            'fraud_detection': json.dumps(verdict.to_dict()),
        })

        logger.info(
            f"Review stored: review_id={review_id} user_id={submission.user_id} "
            f"status={status.value} risk_score={verdict.risk_score}"
        )
        return {'review_id': review_id, 'status': status, 'verdict': verdict}

    async def get_moderation_queue(self, limit: Optional[int] = None) -> List[Dict]:
        """Pending and flagged reviews, highest risk first"""
        return await self.store.get_reviews_needing_moderation(limit)

    async def get_suspicious_reviews(self) -> List[Dict]:
        return await self.store.get_suspicious_reviews()

    async def set_status(self, review_id: Any, status: str) -> bool:
        """Record a moderator decision, False when the review does not exist"""
        status = ModerationStatus(status)
        updated = await self.store.update_review_status(review_id, status.value)
        if updated:
            logger.info(f"Moderation status changed: review_id={review_id} status={status.value}")
        else:
            logger.warning(f"Review not found for moderation: review_id={review_id}")
        return updated

    async def report_review(self, review_id: Any, reported_by: Any, reason: str,
                            description: Optional[str] = None) -> Optional[Dict]:
        """
        Record a community report against a stored review

        Once a review collects REPORT_FLAG_THRESHOLD reports it goes back to
        the moderation queue as flagged and its verdict is marked fake.

        Returns:
            {'report_count', 'flagged'}, or None when the review does not exist

        Raises:
            ValueError: unknown reason or over-long description
        """
        reason = ReportReason(reason)
        if description and len(description) > config.REPORT_DESCRIPTION_MAX_LENGTH:
            raise ValueError(
                f"Report description too long: {len(description)} > {config.REPORT_DESCRIPTION_MAX_LENGTH}"
            )

        report_count = await self.store.add_report(review_id, {
            'reported_by': reported_by,
            'reason': reason.value,
            'description': description,
            'status': 'pending',
            'reported_at': self.detector.clock().isoformat(),
        })
        if report_count is None:
            logger.warning(f"Review not found for report: review_id={review_id}")
            return None

        logger.info(
            f"Review reported: review_id={review_id} reported_by={reported_by} "
            f"reason={reason.value} report_count={report_count}"
        )

        flagged = report_count >= config.REPORT_FLAG_THRESHOLD
        if flagged:
            await self.store.flag_reported_review(review_id)
            logger.warning(f"Review flagged after community reports: review_id={review_id} report_count={report_count}")

        return {'report_count': report_count, 'flagged': flagged}

    async def get_reports(self, review_id: Any) -> List[Dict]:
        return await self.store.get_reports_for_review(review_id)
