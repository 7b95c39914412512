"""Configuration-driven pattern rules used by the content analyzer"""
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Pattern

import config


@dataclass(frozen=True)
class PatternRule:
    """A compiled regex paired with the score it adds when it matches"""
    name: str
    pattern: Pattern
    weight: float

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def phrase_rules(phrases: Iterable[str], weight: float) -> List[PatternRule]:
    """Case-insensitive substring rules, one per phrase"""
    return [
        PatternRule(phrase, re.compile(re.escape(phrase), re.IGNORECASE), weight)
        for phrase in phrases
    ]


def regex_rules(patterns: Dict[str, str], weight: float, flags: int = 0) -> List[PatternRule]:
    return [
        PatternRule(name, re.compile(pattern, flags), weight)
        for name, pattern in patterns.items()
    ]


def score_rules(rules: Iterable[PatternRule], text: str) -> float:
    """Sum of the weights of every rule matching text"""
    return sum(rule.weight for rule in rules if rule.matches(text))


SPAM_PHRASE_RULES = phrase_rules(config.SPAM_PHRASES, config.SPAM_PHRASE_WEIGHT)

# Case-sensitive: the all-caps rule depends on it
CHARACTER_RULES = regex_rules(config.CHARACTER_PATTERNS, config.CHARACTER_PATTERN_WEIGHT)

TEMPLATE_RULES = regex_rules(
    config.TEMPLATE_PATTERNS, config.TEMPLATE_PATTERN_WEIGHT, re.IGNORECASE
)

GENERIC_PHRASE_RULES = phrase_rules(config.GENERIC_PHRASES, config.GENERIC_PHRASE_WEIGHT)

POSITIVE_WORD_RULES = phrase_rules(config.POSITIVE_WORDS, 1)
NEGATIVE_WORD_RULES = phrase_rules(config.NEGATIVE_WORDS, 1)

EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
# At least 8 digits, optional country code and separators: +256 772 123456, 0772-123-456
PHONE_PATTERN = re.compile(r'(?<!\d)(?:\+?\d{1,3}[\s.-]?)?\(?\d{2,4}\)?[\s.-]?\d{3}[\s.-]?\d{3,4}(?!\d)')
URL_PATTERN = re.compile(r'https?://\S+', re.IGNORECASE)
LINK_PATTERN = re.compile(r'(https?://\S+|www\.\S+)', re.IGNORECASE)
