"""Tests for the fraud detection orchestrator"""
import asyncio
import time
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from fraud_detection.detector import FraudDetector
from fraud_detection.results import (
    BehavioralAnalysis, ContentAnalysis, FraudVerdict, TimingAnalysis, UserProfileSnapshot,
)
from tests.conftest import NOW, WELL_FORMED_REVIEW, add_review_history

SPAM_REVIEW = {'content': 'great place buy now click here!!!', 'title': 'Great', 'rating': 5}
GOOD_REVIEW = {'content': WELL_FORMED_REVIEW, 'title': 'Quiet lodge near Bwindi', 'rating': 4}


def established_user(store, user_id='trusted', booking_hours_ago=48):
    store.add_user(user_id, account_age_days=400)
    for i in range(10):
        store.add_booking(f'{user_id}-past-{i}', user_id, hours_since_end=24 * (60 + i))
    add_review_history(store, user_id, [4, 4, 5, 3] * 5)
    store.add_booking(f'{user_id}-stay', user_id, hours_since_end=booking_hours_ago)
    return f'{user_id}-stay'


def brand_new_user(store, user_id='newbie'):
    store.add_user(user_id, account_age_days=3)
    store.add_booking(f'{user_id}-stay', user_id, hours_since_end=48, status='pending')
    return f'{user_id}-stay'


@pytest.fixture
def detector(store, clock):
    return FraudDetector(store, clock=clock)


def analyze(detector, review, user_id, booking_id) -> FraudVerdict:
    return asyncio.run(detector.analyze_review(review, user_id, booking_id))


def test_spam_from_brand_new_user_is_blocked(detector, store):
    booking_id = brand_new_user(store)

    verdict = analyze(detector, SPAM_REVIEW, 'newbie', booking_id)

    assert verdict.content_analysis.spam_score >= 0.7
    assert verdict.flags['is_spam'] is True
    assert verdict.flags['is_new_user_risk'] is True
    assert verdict.risk_score >= 90
    assert verdict.risk_level == 'HIGH'
    assert 'Block review - high fraud risk' in verdict.recommendations
    assert 'Content shows spam patterns' in verdict.recommendations
    factors = {f.factor for f in verdict.risk_factors}
    assert {'new_user', 'very_new_account', 'no_verified_bookings', 'spam_content'} <= factors


def test_well_formed_review_from_established_user_is_low_risk(detector, store):
    booking_id = established_user(store)

    verdict = analyze(detector, GOOD_REVIEW, 'trusted', booking_id)

    assert verdict.risk_score < 20
    assert verdict.risk_level == 'MINIMAL'
    assert not any(verdict.flags.values())
    assert verdict.recommendations == []
    assert verdict.user_metrics.review_count == 20
    assert verdict.user_metrics.average_rating == 4.0
    assert verdict.timing_analysis.time_to_review_hours == pytest.approx(48)


def test_rush_review_adds_fifteen_points(store, clock):
    established_user(store, 'slow', booking_hours_ago=48)
    established_user(store, 'quick', booking_hours_ago=0.5)

    slow = analyze(FraudDetector(store, clock=clock), GOOD_REVIEW, 'slow', 'slow-stay')
    quick = analyze(FraudDetector(store, clock=clock), GOOD_REVIEW, 'quick', 'quick-stay')

    assert quick.timing_analysis.is_rush_review is True
    assert quick.flags['is_rush_review'] is True
    assert quick.risk_score - slow.risk_score == 15


def test_missing_booking_only_drops_the_timing_contribution(store, clock):
    established_user(store, 'u1', booking_hours_ago=0.5)

    with_booking = analyze(FraudDetector(store, clock=clock), GOOD_REVIEW, 'u1', 'u1-stay')
    without_booking = analyze(FraudDetector(store, clock=clock), GOOD_REVIEW, 'u1', 'no-such-booking')

    assert without_booking.timing_analysis.analysis_error is True
    assert with_booking.risk_score - without_booking.risk_score == 15


def test_all_analyzers_failing_returns_failure_verdict(detector, store):
    boom = AsyncMock(side_effect=RuntimeError('boom'))
    with patch.object(detector.user_analyzer, 'analyze', boom), \
            patch.object(detector.content_analyzer, 'analyze', boom), \
            patch.object(detector.timing_analyzer, 'analyze', boom), \
            patch.object(detector.behavioral_analyzer, 'analyze', boom):
        verdict = analyze(detector, GOOD_REVIEW, 'u1', 'b1')

    assert verdict.risk_score == 50
    assert verdict.flags == {'analysis_failed': True}
    assert verdict.recommendations == ['Manual review required due to analysis error']
    assert [f.factor for f in verdict.risk_factors] == ['analysis_error']
    assert verdict.user_metrics is None


def test_malformed_review_data_returns_failure_verdict(detector):
    verdict = analyze(detector, {'title': 'no content or rating'}, 'u1', 'b1')

    assert verdict.risk_score == 50
    assert verdict.flags == {'analysis_failed': True}


def test_storage_outage_degrades_instead_of_failing(detector, store):
    store.error = ConnectionError('database down')

    verdict = analyze(detector, GOOD_REVIEW, 'u1', 'b1')

    assert 'analysis_failed' not in verdict.flags
    assert verdict.user_metrics.analysis_error is True
    assert verdict.timing_analysis.analysis_error is True
    assert verdict.behavioral_analysis.analysis_error is True
    # Unknown user is treated as new with no bookings: 15 + 20 + 25
    assert verdict.risk_score == 60


def test_first_time_reviewer(detector, store):
    booking_id = brand_new_user(store)

    verdict = analyze(detector, GOOD_REVIEW, 'newbie', booking_id)

    assert verdict.behavioral_analysis.is_first_review is True
    assert 'extreme_rating_tendency' not in {f.factor for f in verdict.risk_factors}


def test_repeated_content_is_a_duplicate(detector, store):
    booking_id = established_user(store)
    analyze(detector, GOOD_REVIEW, 'trusted', booking_id)

    store.search_results = []
    verdict = analyze(detector, GOOD_REVIEW, 'trusted', booking_id)

    assert verdict.content_analysis.duplicate_score == 0.9
    assert verdict.flags['is_fake'] is True


def test_same_inputs_give_same_verdict(store, clock):
    booking_id = established_user(store)

    first = analyze(FraudDetector(store, clock=clock), GOOD_REVIEW, 'trusted', booking_id)
    second = analyze(FraudDetector(store, clock=clock), GOOD_REVIEW, 'trusted', booking_id)

    assert first == second


@pytest.mark.parametrize('review', [SPAM_REVIEW, GOOD_REVIEW])
def test_score_bounds_and_flag_consistency(detector, store, review):
    booking_id = brand_new_user(store)

    verdict = analyze(detector, review, 'newbie', booking_id)

    assert 0 <= verdict.risk_score <= 100
    assert verdict.flags['is_potential_fraud'] == (verdict.risk_score > 70)


def test_slow_analyzer_times_out_without_adding_risk(store, clock):
    booking_id = established_user(store)
    detector = FraudDetector(store, clock=clock, analyzer_timeout=0.05)

    async def slow_profile(user_id):
        await asyncio.sleep(1)

    with patch.object(detector.user_analyzer, 'analyze', slow_profile):
        verdict = analyze(detector, GOOD_REVIEW, 'trusted', booking_id)

    assert verdict.user_metrics.timed_out is True
    assert verdict.risk_score == 0
    assert verdict.flags['is_new_user_risk'] is False


def test_batch_continues_past_bad_entries(detector, store):
    booking_id = established_user(store)
    reviews = [
        {'id': 1, 'user_id': 'trusted', 'booking_id': booking_id, **GOOD_REVIEW},
        {'id': 2, 'user_id': 'trusted', 'title': 'missing content'},
        {'id': 3, 'user_id': 'ghost', 'booking_id': 'none', **SPAM_REVIEW},
    ]

    results = asyncio.run(detector.batch_analyze_reviews(reviews))

    assert [r['review_id'] for r in results] == [1, 2, 3]
    assert isinstance(results[0]['analysis'], FraudVerdict)
    assert results[1]['analysis']['risk_score'] == 50
    assert 'error' in results[1]['analysis']
    assert isinstance(results[2]['analysis'], FraudVerdict)


def test_fraud_statistics(detector, store):
    store.add_review('a', 4, NOW - timedelta(hours=1), risk_score=10)
    store.add_review('b', 5, NOW - timedelta(hours=2), risk_score=75, moderation_status='flagged')
    store.add_review('c', 1, NOW - timedelta(hours=3), risk_score=90, moderation_status='blocked')
    store.add_review('d', 3, NOW - timedelta(hours=48), risk_score=95)

    stats = asyncio.run(detector.get_fraud_statistics(24))

    assert stats == {
        'total_reviews': 3,
        'flagged_reviews': 1,
        'high_risk_reviews': 2,
        'avg_risk_score': pytest.approx(58.333, abs=0.01),
    }


def test_fraud_statistics_on_storage_error(detector, store):
    store.error = ConnectionError('database down')

    stats = asyncio.run(detector.get_fraud_statistics())

    assert stats == {'total_reviews': 0, 'flagged_reviews': 0, 'high_risk_reviews': 0, 'avg_risk_score': 0.0}


def test_failing_analyzer_leaves_no_work_running(detector):
    finished = []

    async def fail_fast(*args):
        raise RuntimeError('boom')

    async def slow_then_fail(*args):
        await asyncio.sleep(0.2)
        finished.append('timing')
        raise RuntimeError('late failure')

    async def run():
        verdict = await detector.analyze_review(GOOD_REVIEW, 'u1', 'b1')
        pending = [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]
        return verdict, pending

    with patch.object(detector.user_analyzer, 'analyze', fail_fast), \
            patch.object(detector.timing_analyzer, 'analyze', slow_then_fail):
        verdict, pending = asyncio.run(run())

    assert verdict.flags == {'analysis_failed': True}
    assert pending == []
    assert finished == ['timing']


def test_analyzers_run_concurrently(detector):
    def sleeping(result):
        async def analyze(*args):
            await asyncio.sleep(0.1)
            return result
        return analyze

    with patch.object(detector.user_analyzer, 'analyze',
                      sleeping(UserProfileSnapshot(account_age_days=400, is_new_user=False,
                                                   verified_bookings_count=3))), \
            patch.object(detector.content_analyzer, 'analyze', sleeping(ContentAnalysis(quality_score=1.0))), \
            patch.object(detector.timing_analyzer, 'analyze', sleeping(TimingAnalysis(time_to_review_hours=48))), \
            patch.object(detector.behavioral_analyzer, 'analyze', sleeping(BehavioralAnalysis())):
        started = time.perf_counter()
        verdict = analyze(detector, GOOD_REVIEW, 'u1', 'b1')
        elapsed = time.perf_counter() - started

    assert verdict.risk_score == 0
    assert elapsed < 0.3
