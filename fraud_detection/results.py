"""Data structures produced and consumed by the fraud detection analyzers"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a stored timestamp to an aware UTC datetime

    Accepts datetime objects and ISO-8601 strings. Naive values are assumed
    to be UTC. Returns None for anything else.
    """
    if isinstance(value, str):
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class ReviewSubmission:
    """Review as submitted by a user, before it is stored"""
    content: str
    rating: int
    user_id: Any
    booking_id: Any
    title: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.rating, bool) or not isinstance(self.rating, int) or not (1 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating}. Must be 1-5")
        if not isinstance(self.content, str):
            raise ValueError("Review content must be a string")

    def to_review_data(self) -> Dict:
        return {'content': self.content, 'title': self.title, 'rating': self.rating}


@dataclass
class UserProfileSnapshot:
    account_age_days: int = 0
    review_count: int = 0
    average_rating: float = 0.0
    review_frequency_last_7_days: int = 0
    verified_bookings_count: int = 0
    is_new_user: bool = True
    is_volume_reviewer: bool = False
    has_extreme_average_rating: bool = False
    recent_activity_spike: bool = False
    analysis_error: bool = False
    timed_out: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ContentAnalysis:
    length: int = 0
    word_count: int = 0
    spam_score: float = 0.0
    template_score: float = 0.0
    duplicate_score: float = 0.0
    quality_score: float = 0.5
    has_personal_info: bool = False
    has_external_links: bool = False
    sentiment: str = 'neutral'
    analysis_error: bool = False
    timed_out: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class TimingAnalysis:
    time_to_review_hours: Optional[float] = None
    is_rush_review: bool = False
    is_delayed_review: bool = False
    submission_hour: Optional[int] = None
    submission_day: Optional[int] = None  # 0 = Sunday
    is_off_hours: bool = False
    has_consistent_timing: bool = True
    analysis_error: bool = False
    message: Optional[str] = None
    timed_out: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class BehavioralAnalysis:
    rating_variance: float = 0.0
    has_extreme_ratings: bool = False
    rating_consistency: bool = True
    tendency_to_extremes: float = 0.0
    average_rating: float = 0.0
    review_count: int = 0
    is_first_review: bool = False
    analysis_error: bool = False
    timed_out: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class RiskFactor:
    factor: str
    weight: int
    description: str

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class FraudVerdict:
    """
    Result of analyzing one review

    The analysis sections are None only for the failure verdict returned
    when the pipeline itself could not run.
    """
    risk_score: int = 0
    risk_level: str = 'MINIMAL'
    risk_factors: List[RiskFactor] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)
    user_metrics: Optional[UserProfileSnapshot] = None
    content_analysis: Optional[ContentAnalysis] = None
    timing_analysis: Optional[TimingAnalysis] = None
    behavioral_analysis: Optional[BehavioralAnalysis] = None
    recommendations: List[str] = field(default_factory=list)

    @property
    def flag_count(self) -> int:
        return sum(1 for value in self.flags.values() if value)

    def to_dict(self) -> Dict:
        return asdict(self)
