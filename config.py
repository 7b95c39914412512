"""Configuration settings for the review fraud detection service"""
import logging
import os

# Base directory
BASE_DIR = os.path.abspath(os.path.dirname(__file__))

# Database
DATABASE_PATH = os.getenv('FRAUD_DB_PATH', os.path.join(BASE_DIR, 'data', 'reviews.db'))

# Logging
LOG_LEVEL = os.getenv('FRAUD_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Content quality thresholds
MIN_CONTENT_LENGTH = 50  # Characters
MAX_CONTENT_LENGTH = 1500  # Characters, longer content loses a little quality
MIN_WORD_COUNT = 10
MIN_SENTENCES = 2
MIN_UNIQUE_CHARS = 10
MAX_WORD_REPEATS = 5  # A word (>3 chars) repeated more often than this looks like spam

# Duplicate detection
DUPLICATE_CACHE_HIT_SCORE = 0.9
DUPLICATE_SEARCH_SNIPPET_LENGTH = 50
DUPLICATE_SEARCH_LIMIT = 5

# Text search (storage side)
TEXT_SEARCH_MIN_RATIO = 60  # fuzz.partial_ratio needed to count as a candidate
TEXT_SEARCH_POOL_SIZE = 500  # Most recent reviews scanned per search

# User behavior
NEW_USER_DAYS = 30
VERY_NEW_ACCOUNT_DAYS = 7
VOLUME_REVIEWER_COUNT = 50
ACTIVITY_SPIKE_REVIEWS = 5  # Reviews in the last 7 days
EXTREME_AVERAGE_LOW = 2.0
EXTREME_AVERAGE_HIGH = 4.5
VERIFIED_BOOKING_STATUSES = ('confirmed', 'completed')

# Timing
RUSH_REVIEW_HOURS = 1
DELAYED_REVIEW_HOURS = 30 * 24
OFF_HOURS_START = 6  # Submissions before this hour are off-hours
OFF_HOURS_END = 23  # ...and after this one
TIMING_HISTORY_LIMIT = 10
TIMING_MIN_DATA_POINTS = 3
MAX_HOUR_VARIANCE = 25
MAX_DAY_VARIANCE = 4

# Behavioral patterns
RATING_CONSISTENCY_VARIANCE = 0.5
EXTREME_RATINGS = (1, 5)

# Risk rule points (see fraud_detection.scoring.build_risk_rules)
RISK_POINTS = {
    'new_user': 15,
    'very_new_account': 20,
    'no_verified_bookings': 25,
    'activity_spike': 20,
    'extreme_average_rating': 10,
    'spam_content': 30,
    'template_content': 25,
    'duplicate_content': 35,
    'low_quality': 20,
    'personal_info': 15,
    'external_links': 20,
    'rush_review': 15,
    'off_hours': 5,
    'inconsistent_timing': 10,
    'extreme_rating': 5,
    'extreme_rating_tendency': 15,
}

# Score thresholds used by risk rules and flags
SPAM_THRESHOLD = 0.7  # Inclusive
TEMPLATE_THRESHOLD = 0.6
DUPLICATE_THRESHOLD = 0.7
LOW_QUALITY_THRESHOLD = 0.3
INCONSISTENT_TIMING_MIN_REVIEWS = 5
EXTREME_TENDENCY_THRESHOLD = 0.8
POTENTIAL_FRAUD_THRESHOLD = 70
FAKE_DUPLICATE_THRESHOLD = 0.8
FAKE_TEMPLATE_THRESHOLD = 0.7

# Recommendation thresholds
BLOCK_RECOMMENDATION_SCORE = 80
MANUAL_REVIEW_RECOMMENDATION_SCORE = 60
MONITOR_RECOMMENDATION_SCORE = 40

# Failure verdict
FAILURE_RISK_SCORE = 50

# Moderation policy
BLOCK_THRESHOLD = 80
FLAG_THRESHOLD = 60
HIGH_RISK_THRESHOLD = 70  # Used by fraud statistics and suspicious review queries

# Community reports
REPORT_FLAG_THRESHOLD = 3  # Reports that send a review back to moderation
REPORT_DESCRIPTION_MAX_LENGTH = 500

# Caches
USER_CACHE_TTL_SECONDS = 5 * 60
USER_CACHE_MAX_SIZE = 10000
CONTENT_CACHE_TTL_SECONDS = 7 * 24 * 60 * 60
CONTENT_CACHE_MAX_SIZE = 10000

# Orchestration
ANALYZER_TIMEOUT_SECONDS = 2.0

# Pattern lists
SPAM_PHRASES = [
    'click here', 'visit my website', 'buy now', 'special offer',
    'limited time', 'call now', 'free gift', 'guaranteed',
    'act now', "don't miss out", 'exclusive deal',
]
SPAM_PHRASE_WEIGHT = 0.2

CHARACTER_PATTERNS = {
    'repeated_characters': r'(.)\1{4,}',
    'all_caps_run': r'[A-Z]{5,}',
    'long_digit_run': r'\d{4,}',
    'excessive_punctuation': r'[!?]{3,}',
}
CHARACTER_PATTERN_WEIGHT = 0.3
REPEATED_WORD_WEIGHT = 0.4

TEMPLATE_PATTERNS = {
    'canned_opening': r'^(great|good|excellent|amazing|wonderful|terrible|awful|horrible)\s+(place|hotel|trip|experience|tour|lodge)',
    'canned_recommendation': r'^(highly|definitely|strongly)\s+(recommend|not recommend)',
    'canned_staff_verdict': r'^(the\s+)?(staff|service|room|food|guide)\s+(was|were)\s+(great|good|bad|terrible)',
}
TEMPLATE_PATTERN_WEIGHT = 0.3

GENERIC_PHRASES = [
    'it was great', 'highly recommend', 'good value', 'nice place',
    'enjoyed my stay', 'will come back', 'perfect location',
]
GENERIC_PHRASE_WEIGHT = 0.1

POSITIVE_WORDS = ['great', 'excellent', 'amazing', 'wonderful', 'fantastic', 'perfect']
NEGATIVE_WORDS = ['terrible', 'awful', 'horrible', 'worst', 'disgusting', 'hate']


def setup_logging(level: str = LOG_LEVEL):
    """Configure root logging for command-line entry points"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
