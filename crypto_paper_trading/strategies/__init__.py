"""Scoring and signal generation."""

from .rules import DEFAULT_RULES, RuleInput, RuleMatch, TradingRule
from .sentiment import CachedSentimentProvider, NeutralSentimentProvider, SentimentProvider, SentimentScore
from .signal import InvalidSignalError, PortfolioContext, Signal, SignalDecision, SignalType
from .signal_generator import SignalCache, SignalGenerator, composite_score
from .technical import TechnicalIndicatorCalculator, TechnicalScore

__all__ = [
    'CachedSentimentProvider',
    'DEFAULT_RULES',
    'InvalidSignalError',
    'NeutralSentimentProvider',
    'PortfolioContext',
    'RuleInput',
    'RuleMatch',
    'SentimentProvider',
    'SentimentScore',
    'Signal',
    'SignalCache',
    'SignalDecision',
    'SignalGenerator',
    'SignalType',
    'TechnicalIndicatorCalculator',
    'TechnicalScore',
    'TradingRule',
    'composite_score',
]
