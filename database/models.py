"""Database models and CRUD operations"""
import json
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fuzzywuzzy import fuzz

import config
from fraud_detection.results import to_datetime, utc_now


def get_db_connection(db_path: str) -> sqlite3.Connection:
    """Create database connection with row factory"""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row  # Access columns by name
    return conn


def _timestamp(value: Any = None) -> Optional[str]:
    """Store every timestamp as a UTC ISO-8601 string so they sort as text"""
    if value is None:
        return None
    parsed = to_datetime(value)
    if parsed is None:
        raise ValueError(f"Invalid timestamp: {value!r}")
    return parsed.isoformat()


# ==================== USERS ====================

def save_user(conn: sqlite3.Connection, user_data: Dict) -> int:
    """
    Insert user, return user_id

    Args:
        user_data: {'email', 'created_at'}
    """
    cursor = conn.cursor()
    cursor.execute(
        'INSERT INTO users (email, created_at) VALUES (?, ?)',
        (user_data.get('email'), _timestamp(user_data.get('created_at') or utc_now()))
    )
    conn.commit()
    return cursor.lastrowid


def get_user_by_id(conn: sqlite3.Connection, user_id: Any) -> Optional[Dict]:
    """Get user by ID"""
    cursor = conn.cursor()
    cursor.execute('SELECT * FROM users WHERE id = ?', (user_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


# ==================== BOOKINGS ====================

def save_booking(conn: sqlite3.Connection, booking_data: Dict) -> int:
    """
    Insert booking, return booking_id

    Args:
        booking_data: {'user_id', 'status', 'start_date', 'end_date', 'check_out'}
    """
    cursor = conn.cursor()
    cursor.execute('''
        INSERT INTO bookings (user_id, status, start_date, end_date, check_out, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (
        booking_data['user_id'],
        booking_data.get('status', 'pending'),
        _timestamp(booking_data.get('start_date')),
        _timestamp(booking_data.get('end_date')),
        _timestamp(booking_data.get('check_out')),
        _timestamp(booking_data.get('created_at') or utc_now())
    ))
    conn.commit()
    return cursor.lastrowid


def get_booking_by_id(conn: sqlite3.Connection, booking_id: Any) -> Optional[Dict]:
    """Get booking by ID"""
    cursor = conn.cursor()
    cursor.execute('SELECT * FROM bookings WHERE id = ?', (booking_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def count_bookings_by_status(conn: sqlite3.Connection, user_id: Any, statuses: Sequence[str]) -> int:
    """Count a user's bookings whose status is one of statuses"""
    if not statuses:
        return 0
    placeholders = ', '.join('?' for _ in statuses)
    cursor = conn.cursor()
    cursor.execute(
        f'SELECT COUNT(*) FROM bookings WHERE user_id = ? AND status IN ({placeholders})',
        (user_id, *statuses)
    )
    return cursor.fetchone()[0]


# ==================== REVIEWS ====================

def _row_to_review(row: sqlite3.Row) -> Dict:
    review = dict(row)
    review['is_potential_fraud'] = bool(review.get('is_potential_fraud'))
    if review.get('fraud_detection'):
        review['fraud_detection'] = json.loads(review['fraud_detection'])
    return review


def save_review(conn: sqlite3.Connection, review_data: Dict) -> int:
    """
    Insert review, return review_id

    Args:
        review_data: {'user_id', 'booking_id', 'title', 'content', 'rating', 'created_at',
                      'moderation_status', 'risk_score', 'is_potential_fraud', 'fraud_detection'}
    """
    fraud_detection = review_data.get('fraud_detection')
    if fraud_detection is not None and not isinstance(fraud_detection, str):
        fraud_detection = json.dumps(fraud_detection)

    cursor = conn.cursor()
    cursor.execute('''
        INSERT INTO reviews (
            user_id, booking_id, title, content, rating, created_at,
            moderation_status, risk_score, is_potential_fraud, fraud_detection
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ''', (
        review_data['user_id'],
        review_data.get('booking_id'),
        review_data.get('title'),
        review_data['content'],
        review_data['rating'],
        _timestamp(review_data.get('created_at') or utc_now()),
        review_data.get('moderation_status', 'pending'),
        review_data.get('risk_score'),
        int(bool(review_data.get('is_potential_fraud'))),
        fraud_detection
    ))
    conn.commit()
    return cursor.lastrowid


def get_reviews_by_user(conn: sqlite3.Connection, user_id: Any, limit: Optional[int] = None) -> List[Dict]:
    """Get reviews by a user, newest first"""
    query = 'SELECT * FROM reviews WHERE user_id = ? ORDER BY created_at DESC'
    params: tuple = (user_id,)
    if limit is not None:
        query += ' LIMIT ?'
        params += (limit,)

    cursor = conn.cursor()
    cursor.execute(query, params)
    return [_row_to_review(row) for row in cursor.fetchall()]


def search_reviews_by_text(
    conn: sqlite3.Connection,
    snippet: str,
    limit: int = 5,
    min_ratio: int = config.TEXT_SEARCH_MIN_RATIO,
    pool_size: int = config.TEXT_SEARCH_POOL_SIZE
) -> List[Dict]:
    """
    Find recent reviews whose content resembles snippet

    Scans the newest pool_size reviews and ranks them by fuzzy partial
    match against the snippet.
    """
    snippet = (snippet or '').strip().lower()
    if not snippet:
        return []

    cursor = conn.cursor()
    cursor.execute(
        'SELECT id, user_id, content, rating, created_at FROM reviews ORDER BY created_at DESC LIMIT ?',
        (pool_size,)
    )

    matches = []
    for row in cursor.fetchall():
        text = row['content'].lower()
        ratio = 100 if snippet in text else fuzz.partial_ratio(snippet, text)
        if ratio >= min_ratio:
            review = dict(row)
            review['match_ratio'] = ratio
            matches.append(review)

    matches.sort(key=lambda r: r['match_ratio'], reverse=True)
    return matches[:limit]


def update_review_status(conn: sqlite3.Connection, review_id: Any, status: str) -> bool:
    """Set moderation status, return False when the review does not exist"""
    cursor = conn.cursor()
    cursor.execute('UPDATE reviews SET moderation_status = ? WHERE id = ?', (status, review_id))
    conn.commit()
    return cursor.rowcount > 0


def get_reviews_needing_moderation(conn: sqlite3.Connection, limit: Optional[int] = None) -> List[Dict]:
    """Pending and flagged reviews, riskiest and oldest first"""
    query = '''
        SELECT * FROM reviews
        WHERE moderation_status IN ('pending', 'flagged')
        ORDER BY COALESCE(risk_score, 0) DESC, created_at ASC
    '''
    params: tuple = ()
    if limit is not None:
        query += ' LIMIT ?'
        params = (limit,)

    cursor = conn.cursor()
    cursor.execute(query, params)
    return [_row_to_review(row) for row in cursor.fetchall()]


def get_suspicious_reviews(
    conn: sqlite3.Connection, high_risk_threshold: int = config.HIGH_RISK_THRESHOLD
) -> List[Dict]:
    """Reviews marked as potential fraud, flagged, or scored at or above the threshold"""
    cursor = conn.cursor()
    cursor.execute('''
        SELECT * FROM reviews
        WHERE is_potential_fraud = 1
           OR risk_score >= ?
           OR moderation_status = 'flagged'
        ORDER BY COALESCE(risk_score, 0) DESC, created_at ASC
    ''', (high_risk_threshold,))
    return [_row_to_review(row) for row in cursor.fetchall()]


# ==================== REPORTS ====================

def add_report(conn: sqlite3.Connection, review_id: Any, report_data: Dict) -> Optional[int]:
    """
    Insert a community report against a review

    Args:
        report_data: {'reported_by', 'reason', 'description', 'reported_at'}

    Returns:
        Number of reports the review now has, None when the review does not exist
    """
    cursor = conn.cursor()
    cursor.execute('SELECT 1 FROM reviews WHERE id = ?', (review_id,))
    if cursor.fetchone() is None:
        return None

    cursor.execute('''
        INSERT INTO review_reports (review_id, reported_by, reason, description, status, reported_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (
        review_id,
        report_data['reported_by'],
        report_data['reason'],
        report_data.get('description'),
        report_data.get('status', 'pending'),
        _timestamp(report_data.get('reported_at') or utc_now())
    ))
    conn.commit()

    cursor.execute('SELECT COUNT(*) FROM review_reports WHERE review_id = ?', (review_id,))
    return cursor.fetchone()[0]


def get_reports_for_review(conn: sqlite3.Connection, review_id: Any) -> List[Dict]:
    """Reports against a review, oldest first"""
    cursor = conn.cursor()
    cursor.execute(
        'SELECT * FROM review_reports WHERE review_id = ? ORDER BY reported_at ASC, id ASC',
        (review_id,)
    )
    return [dict(row) for row in cursor.fetchall()]


def flag_reported_review(conn: sqlite3.Connection, review_id: Any) -> bool:
    """
    Send a heavily reported review back to moderation

    Sets the status to flagged (blocked reviews stay blocked) and marks the
    stored verdict as fake. Returns False when the review does not exist.
    """
    cursor = conn.cursor()
    cursor.execute('SELECT moderation_status, fraud_detection FROM reviews WHERE id = ?', (review_id,))
    row = cursor.fetchone()
    if row is None:
        return False

    verdict = json.loads(row['fraud_detection']) if row['fraud_detection'] else {}
    flags = verdict.get('flags') or {}
    flags['is_fake'] = True
    verdict['flags'] = flags

    status = 'blocked' if row['moderation_status'] == 'blocked' else 'flagged'
    cursor.execute(
        'UPDATE reviews SET moderation_status = ?, fraud_detection = ? WHERE id = ?',
        (status, json.dumps(verdict), review_id)
    )
    conn.commit()
    return True


# ==================== FRAUD STATISTICS ====================

def get_fraud_statistics(
    conn: sqlite3.Connection,
    since: datetime,
    high_risk_threshold: int = config.HIGH_RISK_THRESHOLD
) -> Dict:
    """
    Aggregate verdicts of reviews created since the given time

    Returns:
        {'total_reviews', 'flagged_reviews', 'high_risk_reviews', 'avg_risk_score'}
    """
    cursor = conn.cursor()
    cursor.execute('''
        SELECT
            COUNT(*) AS total_reviews,
            COALESCE(SUM(CASE WHEN moderation_status = 'flagged' THEN 1 ELSE 0 END), 0) AS flagged_reviews,
            COALESCE(SUM(CASE WHEN risk_score >= ? THEN 1 ELSE 0 END), 0) AS high_risk_reviews,
            COALESCE(AVG(risk_score), 0) AS avg_risk_score
        FROM reviews
        WHERE created_at >= ?
    ''', (high_risk_threshold, _timestamp(since)))

    row = cursor.fetchone()
    stats = dict(row)
    stats['avg_risk_score'] = round(float(stats['avg_risk_score']), 2)
    return stats
