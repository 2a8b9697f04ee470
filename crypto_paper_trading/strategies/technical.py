"""Technical scoring of a symbol's recent price history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..data import PriceHistoryStore
from ..utils import clamp, latest_moving_average, percent_change, relative_strength_index

logger = logging.getLogger(__name__)

RSI_PERIOD = 14
SHORT_MA_WINDOW = 20
LONG_MA_WINDOW = 60
TREND_LOOKBACK = 5

WEIGHTS = {'rsi': 0.35, 'ma': 0.25, 'volume': 0.20, 'trend': 0.20}

NEUTRAL_SCORE = 5.0

STRENGTH_LEVELS = ('very_weak', 'weak', 'moderate', 'strong', 'very_strong')


def strength_label(score: float) -> str:
    if score >= 8.5:
        return 'very_strong'
    if score >= 7.5:
        return 'strong'
    if score >= 6.5:
        return 'moderate'
    if score >= 5.5:
        return 'weak'
    return 'very_weak'


def strength_at_least(label: str, minimum: str) -> bool:
    return STRENGTH_LEVELS.index(label) >= STRENGTH_LEVELS.index(minimum)


@dataclass(frozen=True)
class TechnicalScore:
    rsi: float
    rsi_score: float
    ma_score: float
    volume_score: float
    trend_score: float
    total_score: float
    strength: str
    sufficient_data: bool = True

    @classmethod
    def neutral(cls) -> 'TechnicalScore':
        return cls(
            rsi=50.0,
            rsi_score=NEUTRAL_SCORE,
            ma_score=NEUTRAL_SCORE,
            volume_score=NEUTRAL_SCORE,
            trend_score=NEUTRAL_SCORE,
            total_score=NEUTRAL_SCORE,
            strength='weak',
            sufficient_data=False,
        )

    def as_dict(self) -> dict:
        return {
            'rsi': round(self.rsi, 2),
            'rsi_score': self.rsi_score,
            'ma_score': self.ma_score,
            'volume_score': self.volume_score,
            'trend_score': self.trend_score,
            'total_score': self.total_score,
            'strength': self.strength,
        }


def rsi_score(rsi: float) -> float:
    if rsi <= 25:
        return 10.0
    if rsi <= 30:
        return 9.0
    if rsi <= 40:
        return 7.0
    if rsi >= 75:
        return 0.0
    if rsi >= 70:
        return 1.0
    if rsi >= 60:
        return 3.0
    return 5.0


def moving_average_score(prices: Sequence[float]) -> float:
    long_ma = latest_moving_average(prices, LONG_MA_WINDOW)
    short_ma = latest_moving_average(prices, SHORT_MA_WINDOW)
    if long_ma is None or short_ma is None:
        return NEUTRAL_SCORE
    price = prices[-1]
    if price >= short_ma:
        return 8.0 if short_ma > long_ma else 6.0
    return 2.0 if short_ma < long_ma else 4.0


def volume_score(change_percent: float, volume: float) -> float:
    magnitude = abs(change_percent)
    if magnitude >= 5:
        score = 9.0
    elif magnitude >= 3:
        score = 8.0
    elif magnitude >= 1.5:
        score = 7.0
    elif magnitude >= 0.5:
        score = 5.0
    else:
        score = 3.0
    if volume <= 0:
        score = min(score, NEUTRAL_SCORE)
    return score


def trend_score(prices: Sequence[float]) -> float:
    delta = percent_change(prices, TREND_LOOKBACK)
    if delta is None or delta == 0:
        return NEUTRAL_SCORE
    if delta > 0:
        if delta >= 10:
            bump = 3.0
        elif delta >= 5:
            bump = 2.0
        elif delta >= 2:
            bump = 1.0
        else:
            bump = 0.5
    else:
        if delta <= -10:
            bump = -3.0
        elif delta <= -5:
            bump = -2.0
        elif delta <= -2:
            bump = -1.0
        else:
            bump = -0.5
    return clamp(NEUTRAL_SCORE + bump)


class TechnicalIndicatorCalculator:
    """Turns a symbol's price buffer into a 0-10 :class:`TechnicalScore`.

    Below ``min_length`` prices the neutral default is returned; that is an
    expected warm-up state, not an error. The calculator never raises.
    """

    def __init__(self, history: PriceHistoryStore, min_length: int = 20) -> None:
        if min_length <= RSI_PERIOD:
            raise ValueError(f'min_length must exceed the RSI period ({RSI_PERIOD})')
        self._history = history
        self._min_length = min_length

    @property
    def min_length(self) -> int:
        return self._min_length

    def compute_score(self, symbol: str, change_percent: float, volume: float) -> TechnicalScore:
        prices = self._history.prices(symbol)
        if len(prices) < self._min_length:
            return TechnicalScore.neutral()
        try:
            return self._score(prices, change_percent, volume)
        except (ArithmeticError, ValueError) as error:
            logger.warning('Technical score for %s fell back to neutral: %s', symbol, error)
            return TechnicalScore.neutral()

    def _score(self, prices: Sequence[float], change_percent: float, volume: float) -> TechnicalScore:
        rsi = relative_strength_index(prices, RSI_PERIOD)
        if rsi is None:
            rsi = 50.0
        components = {
            'rsi': rsi_score(rsi),
            'ma': moving_average_score(prices),
            'volume': volume_score(change_percent, volume),
            'trend': trend_score(prices),
        }
        total = clamp(sum(WEIGHTS[name] * value for name, value in components.items()))
        total = round(total, 2)
        return TechnicalScore(
            rsi=rsi,
            rsi_score=components['rsi'],
            ma_score=components['ma'],
            volume_score=components['volume'],
            trend_score=components['trend'],
            total_score=total,
            strength=strength_label(total),
        )


__all__ = [
    'STRENGTH_LEVELS',
    'TechnicalIndicatorCalculator',
    'TechnicalScore',
    'moving_average_score',
    'rsi_score',
    'strength_at_least',
    'strength_label',
    'trend_score',
    'volume_score',
]
