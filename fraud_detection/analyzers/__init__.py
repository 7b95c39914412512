"""Fraud detection analyzers"""
from fraud_detection.analyzers.content_analysis import ContentAnalyzer
from fraud_detection.analyzers.user_behavior import UserBehaviorAnalyzer
from fraud_detection.analyzers.timing_analysis import TimingAnalyzer
from fraud_detection.analyzers.behavioral_patterns import BehavioralPatternAnalyzer

__all__ = ["ContentAnalyzer", "UserBehaviorAnalyzer", "TimingAnalyzer", "BehavioralPatternAnalyzer"]
