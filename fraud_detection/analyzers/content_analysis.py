"""Content analysis - spam, templates, duplicates, quality and leaked contact details"""
import hashlib
import logging
import re
from collections import Counter
from typing import Dict, List, Optional

import config
from fraud_detection.base import Analyzer, ReviewDataStore
from fraud_detection.cache import LRUCache
from fraud_detection.patterns import (
    CHARACTER_RULES, EMAIL_PATTERN, GENERIC_PHRASE_RULES, LINK_PATTERN,
    NEGATIVE_WORD_RULES, PHONE_PATTERN, POSITIVE_WORD_RULES, SPAM_PHRASE_RULES,
    TEMPLATE_RULES, URL_PATTERN, score_rules,
)
from fraud_detection.results import ContentAnalysis

logger = logging.getLogger(__name__)


def _clamp(score: float) -> float:
    return max(0.0, min(1.0, round(score, 4)))


def content_fingerprint(content: str) -> str:
    """64-bit BLAKE2b digest of the normalized content"""
    normalized = ' '.join(content.lower().split())
    return hashlib.blake2b(normalized.encode('utf-8'), digest_size=8).hexdigest()


def jaccard_similarity(text1: str, text2: str) -> float:
    """Word-set intersection over union"""
    words1 = set(text1.lower().split())
    words2 = set(text2.lower().split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class ContentAnalyzer(Analyzer):
    """
    Scores review text for spam, canned phrasing and duplicated content

    Everything except duplicate detection is a pure function of the text.
    Duplicate detection first checks a fingerprint cache of content seen
    before, then asks the store for reviews with similar leading text.
    """

    def __init__(self, store: ReviewDataStore, content_cache: Optional[LRUCache] = None,
                 spam_rules=None, template_rules=None):
        self.store = store
        self.content_cache = content_cache or LRUCache(
            max_size=config.CONTENT_CACHE_MAX_SIZE,
            ttl=config.CONTENT_CACHE_TTL_SECONDS
        )
        self.spam_rules = spam_rules if spam_rules is not None else SPAM_PHRASE_RULES
        self.template_rules = template_rules if template_rules is not None else TEMPLATE_RULES

    async def analyze(self, content: str, title: Optional[str] = None) -> ContentAnalysis:
        """
        Analyze review content

        Returns:
            ContentAnalysis with scores in [0, 1]. On unexpected input the
            result has analysis_error=True and a mid-range quality score.
        """
        try:
            return ContentAnalysis(
                length=len(content),
                word_count=len(content.split()),
                spam_score=self.detect_spam_patterns(content),
                template_score=self.detect_template_content(content),
                duplicate_score=await self.detect_duplicate_content(content),
                quality_score=self.calculate_content_quality(content, title),
                has_personal_info=self.detect_personal_info(content),
                has_external_links=self.detect_external_links(content),
                sentiment=self.analyze_sentiment(content)
            )
        except Exception as e:
            logger.error(f"Error analyzing content: {e}")
            return ContentAnalysis(
                length=len(content) if isinstance(content, str) else 0,
                quality_score=0.5,
                analysis_error=True
            )

    def timeout_result(self) -> ContentAnalysis:
        return ContentAnalysis(quality_score=0.5, timed_out=True)

    def calculate_content_quality(self, content: str, title: Optional[str] = None) -> float:
        score = 1.0

        if len(content) < config.MIN_CONTENT_LENGTH:
            score -= 0.3
        if len(content) > config.MAX_CONTENT_LENGTH:
            score -= 0.1

        if len(content.split()) < config.MIN_WORD_COUNT:
            score -= 0.3

        sentences = [s for s in re.split(r'[.!?]+', content) if s.strip()]
        if len(sentences) < config.MIN_SENTENCES:
            score -= 0.2

        if len(set(content.lower())) < config.MIN_UNIQUE_CHARS:
            score -= 0.2

        # Title/content relevance
        title_words = title.lower().split() if title else []
        if title_words and title_words[0] in content.lower():
            score += 0.1

        return _clamp(score)

    def detect_spam_patterns(self, content: str) -> float:
        score = score_rules(self.spam_rules, content)
        score += score_rules(CHARACTER_RULES, content)

        word_counts = Counter()
        for word in content.split():
            normalized = re.sub(r'[^\w]', '', word.lower())
            if len(normalized) > 3:
                word_counts[normalized] += 1

        if word_counts and max(word_counts.values()) > config.MAX_WORD_REPEATS:
            score += config.REPEATED_WORD_WEIGHT

        return _clamp(score)

    def detect_template_content(self, content: str) -> float:
        score = score_rules(self.template_rules, content)
        score += score_rules(GENERIC_PHRASE_RULES, content)
        return _clamp(score)

    async def detect_duplicate_content(self, content: str) -> float:
        """
        Score how closely content matches reviews seen before

        Fails open: a storage error yields 0 so that infrastructure trouble
        never blocks a legitimate review.
        """
        fingerprint = content_fingerprint(content)
        if self.content_cache.contains(fingerprint):
            return config.DUPLICATE_CACHE_HIT_SCORE

        try:
            candidates = await self.store.search_reviews_by_text(
                content[:config.DUPLICATE_SEARCH_SNIPPET_LENGTH],
                limit=config.DUPLICATE_SEARCH_LIMIT
            )
        except Exception as e:
            logger.error(f"Error detecting duplicate content: {e}")
            return 0.0

        self.content_cache.put(fingerprint, True)

        similarities = self._candidate_similarities(content, candidates)
        return _clamp(max(similarities)) if similarities else 0.0

    @staticmethod
    def _candidate_similarities(content: str, candidates: List[Dict]) -> List[float]:
        return [
            jaccard_similarity(content, candidate.get('content') or '')
            for candidate in candidates[:config.DUPLICATE_SEARCH_LIMIT]
        ]

    def detect_personal_info(self, content: str) -> bool:
        return bool(
            EMAIL_PATTERN.search(content)
            or PHONE_PATTERN.search(content)
            or URL_PATTERN.search(content)
        )

    def detect_external_links(self, content: str) -> bool:
        return LINK_PATTERN.search(content) is not None

    def analyze_sentiment(self, content: str) -> str:
        positive = score_rules(POSITIVE_WORD_RULES, content)
        negative = score_rules(NEGATIVE_WORD_RULES, content)

        if positive > negative:
            return 'positive'
        if negative > positive:
            return 'negative'
        return 'neutral'
