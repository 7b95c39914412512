"""Fraud scoring system - combines analyzer results into a risk score, flags and recommendations"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import config
from fraud_detection.results import FraudVerdict, RiskFactor


@dataclass(frozen=True)
class RiskRule:
    """A boolean condition on one analyzer's output and the points it adds"""
    factor: str
    source: str
    description: str
    condition: Callable[[Dict], bool]


def build_risk_rules() -> List[RiskRule]:
    """
    Rule table, evaluated against a dict of analyses

    Keys of that dict: user_analysis, content_analysis, timing_analysis,
    behavioral_analysis (analysis dataclasses) and review_data (the
    submitted {content, title, rating}).
    """
    return [
        RiskRule('new_user', 'user_analysis', 'Account is less than 30 days old',
                 lambda a: a['user_analysis'].is_new_user),
        RiskRule('very_new_account', 'user_analysis', 'Review from newly created account',
                 lambda a: a['user_analysis'].account_age_days < config.VERY_NEW_ACCOUNT_DAYS),
        RiskRule('no_verified_bookings', 'user_analysis', 'User has no verified bookings',
                 lambda a: a['user_analysis'].verified_bookings_count == 0),
        RiskRule('activity_spike', 'user_analysis', 'User submitted many reviews in the last 7 days',
                 lambda a: a['user_analysis'].recent_activity_spike),
        RiskRule('extreme_average_rating', 'user_analysis', 'User average rating is extreme',
                 lambda a: a['user_analysis'].has_extreme_average_rating),

        RiskRule('spam_content', 'content_analysis', 'Content shows spam patterns',
                 lambda a: a['content_analysis'].spam_score >= config.SPAM_THRESHOLD),
        RiskRule('template_content', 'content_analysis', 'Content follows a canned template',
                 lambda a: a['content_analysis'].template_score > config.TEMPLATE_THRESHOLD),
        RiskRule('duplicate_content', 'content_analysis', 'Content appears to be duplicated from other reviews',
                 lambda a: a['content_analysis'].duplicate_score > config.DUPLICATE_THRESHOLD),
        RiskRule('low_quality', 'content_analysis', 'Content quality is low',
                 lambda a: a['content_analysis'].quality_score < config.LOW_QUALITY_THRESHOLD),
        RiskRule('personal_info', 'content_analysis', 'Content contains contact details',
                 lambda a: a['content_analysis'].has_personal_info),
        RiskRule('external_links', 'content_analysis', 'Content contains external links',
                 lambda a: a['content_analysis'].has_external_links),

        RiskRule('rush_review', 'timing_analysis', 'Review submitted very quickly after the booking ended',
                 lambda a: a['timing_analysis'].is_rush_review),
        RiskRule('off_hours', 'timing_analysis', 'Review submitted during off hours',
                 lambda a: a['timing_analysis'].is_off_hours),
        RiskRule('inconsistent_timing', 'timing_analysis', 'Submission times vary widely for an active reviewer',
                 lambda a: (not a['timing_analysis'].has_consistent_timing
                            and a['user_analysis'].review_count > config.INCONSISTENT_TIMING_MIN_REVIEWS)),

        RiskRule('extreme_rating', 'review_data', 'Extremely positive or negative rating',
                 lambda a: a['review_data'].get('rating') in config.EXTREME_RATINGS),
        RiskRule('extreme_rating_tendency', 'behavioral_analysis', 'User mostly gives 1 or 5 star ratings',
                 lambda a: a['behavioral_analysis'].tendency_to_extremes > config.EXTREME_TENDENCY_THRESHOLD),
    ]


class RiskScorer:
    """
    Calculates the additive 0-100 risk score from analyzer results

    Every rule that fires adds its points; the sum is clamped. Analyses that
    timed out are skipped entirely, so a slow collaborator never adds risk.
    """

    def __init__(self, points: Optional[Dict[str, int]] = None, rules: Optional[List[RiskRule]] = None):
        self.points = dict(config.RISK_POINTS)
        if points:
            self.points.update(points)
        self.rules = rules if rules is not None else build_risk_rules()

    def collect_risk_factors(self, analyses: Dict) -> List[RiskFactor]:
        """Risk factors for every rule that fires, in rule order"""
        factors = []
        for rule in self.rules:
            if self._is_skipped(analyses.get(rule.source)):
                continue
            if rule.condition(analyses):
                factors.append(RiskFactor(
                    factor=rule.factor,
                    weight=self.points.get(rule.factor, 0),
                    description=rule.description
                ))
        return factors

    def calculate_overall_risk_score(self, analyses: Dict) -> int:
        """
        Calculate clamped additive risk score (0-100)

        Args:
            analyses: {'user_analysis', 'content_analysis', 'timing_analysis',
                       'behavioral_analysis', 'review_data'}
        """
        score = sum(factor.weight for factor in self.collect_risk_factors(analyses))
        return int(min(100, max(0, score)))

    def determine_flags(self, verdict: FraudVerdict) -> Dict[str, bool]:
        """Full set of boolean flags for a scored verdict"""
        content = verdict.content_analysis
        user = verdict.user_metrics
        timing = verdict.timing_analysis

        return {
            'is_spam': content.spam_score >= config.SPAM_THRESHOLD,
            'is_low_quality': content.quality_score < config.LOW_QUALITY_THRESHOLD,
            'is_potential_fraud': verdict.risk_score > config.POTENTIAL_FRAUD_THRESHOLD,
            'is_fake': (content.duplicate_score > config.FAKE_DUPLICATE_THRESHOLD
                        or content.template_score > config.FAKE_TEMPLATE_THRESHOLD),
            'has_personal_info': content.has_personal_info,
            'has_external_links': content.has_external_links,
            'is_rush_review': timing.is_rush_review,
            'is_new_user_risk': user.is_new_user and user.verified_bookings_count == 0,
            'is_volume_spam': user.recent_activity_spike,
        }

    def generate_recommendations(self, verdict: FraudVerdict) -> List[str]:
        recommendations = []

        if verdict.risk_score > config.BLOCK_RECOMMENDATION_SCORE:
            recommendations.append('Block review - high fraud risk')
        elif verdict.risk_score > config.MANUAL_REVIEW_RECOMMENDATION_SCORE:
            recommendations.append('Flag for manual review')
        elif verdict.risk_score > config.MONITOR_RECOMMENDATION_SCORE:
            recommendations.append('Monitor user activity')

        flags = verdict.flags
        if flags.get('is_spam'):
            recommendations.append('Content shows spam patterns')
        if flags.get('is_fake'):
            recommendations.append('Content appears to be templated or duplicate')
        if flags.get('is_new_user_risk'):
            recommendations.append('New user with no booking history')
        if flags.get('is_volume_spam'):
            recommendations.append('User showing high review volume')

        return recommendations

    def get_risk_level(self, score: float) -> str:
        """
        Convert numeric score to risk level

        Args:
            score: Fraud score (0-100)

        Returns:
            Risk level string
        """
        if score >= 75:
            return 'HIGH'
        elif score >= 50:
            return 'MEDIUM'
        elif score >= 25:
            return 'LOW'
        else:
            return 'MINIMAL'

    @staticmethod
    def _is_skipped(analysis) -> bool:
        return getattr(analysis, 'timed_out', False)
