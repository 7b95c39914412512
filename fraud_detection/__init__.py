"""Fraud detection module"""
from fraud_detection.detector import FraudDetector
from fraud_detection.scoring import RiskScorer
from fraud_detection.base import Analyzer, ReviewDataStore
from fraud_detection.results import FraudVerdict, ReviewSubmission

__all__ = ["FraudDetector", "RiskScorer", "Analyzer", "ReviewDataStore", "FraudVerdict", "ReviewSubmission"]
