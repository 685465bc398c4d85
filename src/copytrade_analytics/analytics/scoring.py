"""Composite trader scoring.

Combine six sub-metrics (win rate, profit factor, Sharpe ratio,
consistency, risk management, activity) into a weighted 0-100 score,
then derive a risk tier, a follow recommendation, and a star rank from
it. Every function here is pure: identical inputs always produce an
identical ``Score``, so callers may cache results freely.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from copytrade_analytics.analytics.metrics import (
    closed_trades,
    daily_returns,
    max_drawdown,
    mean,
    population_std,
    profit_factor,
    streaks,
)
from copytrade_analytics.core.models import HUNDRED, ONE, ZERO, Trade, TraderStats

NEUTRAL_SCORE = Decimal(50)
NOT_AVAILABLE = "N/A"

_MIN_TRADES_FOR_SHARPE = 10
_MIN_DAYS_FOR_SHARPE = 5
_MIN_TRADES_FOR_CONSISTENCY = 10
_MIN_TRADES_FOR_RISK = 5
_ANNUALISATION = Decimal(365).sqrt()
_DRAWDOWN_PER_POINT = Decimal(50)

_RISK_WEIGHT_SHARPE = Decimal("0.4")
_RISK_WEIGHT_DRAWDOWN = Decimal("0.4")
_RISK_WEIGHT_CONSISTENCY = Decimal("0.2")
_LOW_RISK_FLOOR = Decimal(80)
_MEDIUM_RISK_FLOOR = Decimal(60)

_GRADE_FLOORS: tuple[tuple[Decimal, str], ...] = (
    (Decimal(90), "A"),
    (Decimal(80), "B"),
    (Decimal(70), "C"),
    (Decimal(60), "D"),
)

WIN_RATE = "win_rate"
PROFIT_FACTOR = "profit_factor"
SHARPE_RATIO = "sharpe_ratio"
CONSISTENCY = "consistency"
RISK_MANAGEMENT = "risk_management"
ACTIVITY = "activity"


@dataclass(frozen=True)
class ScoringWeights:
    """Relative weight of each sub-metric in the overall score.

    Raises:
        ValueError: If any weight is negative or the weights do not sum
            to exactly one.

    """

    win_rate: Decimal = Decimal("0.25")
    profit_factor: Decimal = Decimal("0.25")
    sharpe_ratio: Decimal = Decimal("0.20")
    consistency: Decimal = Decimal("0.15")
    risk_management: Decimal = Decimal("0.10")
    activity: Decimal = Decimal("0.05")

    def __post_init__(self) -> None:
        """Validate that weights are non-negative and sum to one."""
        weights = self.as_dict()
        negative = [name for name, weight in weights.items() if weight < ZERO]
        if negative:
            msg = f"scoring weights must be non-negative: {', '.join(negative)}"
            raise ValueError(msg)
        total = sum(weights.values(), ZERO)
        if total != ONE:
            msg = f"scoring weights must sum to 1, got {total}"
            raise ValueError(msg)

    def as_dict(self) -> dict[str, Decimal]:
        """Return the weights keyed by sub-metric name."""
        return {
            WIN_RATE: self.win_rate,
            PROFIT_FACTOR: self.profit_factor,
            SHARPE_RATIO: self.sharpe_ratio,
            CONSISTENCY: self.consistency,
            RISK_MANAGEMENT: self.risk_management,
            ACTIVITY: self.activity,
        }


@dataclass(frozen=True)
class MetricScore:
    """One sub-metric mapped onto the 0-100 scale.

    Args:
        score: Sub-score between 0 and 100.
        value: Raw statistic the sub-score was derived from.
        grade: Letter grade ``A``-``F``, or ``N/A`` for insufficient data.
        description: Human-readable summary of the raw statistic.

    """

    score: Decimal
    value: Decimal
    grade: str
    description: str

    @property
    def is_available(self) -> bool:
        """Return ``True`` when enough data existed to grade the metric."""
        return self.grade != NOT_AVAILABLE


@dataclass(frozen=True)
class RiskLevel:
    """Risk tier derived from the volatility and drawdown sub-scores."""

    level: str
    label: str


@dataclass(frozen=True)
class Recommendation:
    """Follow recommendation derived from the overall score."""

    action: str
    text: str
    reason: str


@dataclass(frozen=True)
class Rank:
    """Approximate percentile and star rating for an overall score."""

    percentile: int
    stars: int


@dataclass(frozen=True)
class Score:
    """Composite quality score for one trader."""

    overall: int
    metrics: dict[str, MetricScore]
    risk_level: RiskLevel
    recommendation: Recommendation
    rank: Rank


@dataclass(frozen=True)
class ScoredTrader:
    """A trader stats snapshot paired with its composite score."""

    stats: TraderStats
    score: Score


DEFAULT_WEIGHTS = ScoringWeights()


def clamp(value: Decimal, low: Decimal = ZERO, high: Decimal = HUNDRED) -> Decimal:
    """Return ``value`` limited to the closed range ``[low, high]``."""
    return max(low, min(high, value))


def grade(score: Decimal) -> str:
    """Return the letter grade for a 0-100 sub-score."""
    for floor, letter in _GRADE_FLOORS:
        if score >= floor:
            return letter
    return "F"


def _insufficient(description: str) -> MetricScore:
    return MetricScore(
        score=NEUTRAL_SCORE, value=ZERO, grade=NOT_AVAILABLE, description=description
    )


def _graded(score: Decimal, value: Decimal, description: str) -> MetricScore:
    return MetricScore(score=score, value=value, grade=grade(score), description=description)


def score_win_rate(win_rate_pct: Decimal) -> MetricScore:
    """Score the win rate percentage as-is, clamped to 0-100."""
    return _graded(clamp(win_rate_pct), win_rate_pct, f"Win rate {win_rate_pct:.1f}%")


def score_profit_factor(trades: list[Trade]) -> MetricScore:
    """Score gross profit over gross loss.

    A profit factor of 1.0 (break-even) maps to 50 and 2.0 or more maps
    to 100.
    """
    pf = profit_factor(trades)
    score = clamp(NEUTRAL_SCORE + (pf - ONE) * NEUTRAL_SCORE)
    return _graded(score, pf, f"Profit factor {pf:.2f}")


def sharpe_ratio(trades: list[Trade]) -> Decimal | None:
    """Return the annualised Sharpe ratio of daily P&L, or ``None`` if too sparse.

    Require at least 10 trades with a known P&L spread over at least 5
    trading days. A zero standard deviation yields a ratio of zero.
    """
    if len(closed_trades(trades)) < _MIN_TRADES_FOR_SHARPE:
        return None
    returns = daily_returns(trades)
    if len(returns) < _MIN_DAYS_FOR_SHARPE:
        return None
    std = population_std(returns)
    if std == ZERO:
        return ZERO
    return mean(returns) / std * _ANNUALISATION


def score_sharpe_ratio(trades: list[Trade]) -> MetricScore:
    """Score the annualised Sharpe ratio (0 maps to 25, 2 maps to 100)."""
    sharpe = sharpe_ratio(trades)
    if sharpe is None:
        return _insufficient("Not enough trading days for a Sharpe ratio")
    score = clamp(Decimal(25) + sharpe * Decimal("37.5"))
    return _graded(score, sharpe, f"Sharpe ratio {sharpe:.2f}")


def score_consistency(trades: list[Trade]) -> MetricScore:
    """Score the ratio of the longest win streak to the longest loss streak."""
    if len(closed_trades(trades)) < _MIN_TRADES_FOR_CONSISTENCY:
        return _insufficient("Not enough trades to measure streaks")
    runs = streaks(trades)
    if runs.max_loss_streak > 0:
        ratio = Decimal(runs.max_win_streak) / Decimal(runs.max_loss_streak)
    else:
        ratio = Decimal(runs.max_win_streak)
    score = clamp(NEUTRAL_SCORE + ratio * Decimal(25))
    return _graded(
        score,
        ratio,
        f"Longest win streak {runs.max_win_streak} / "
        f"loss streak {runs.max_loss_streak}",
    )


def score_risk_management(trades: list[Trade]) -> MetricScore:
    """Score drawdown control; every $50 of drawdown costs one point."""
    if len(closed_trades(trades)) < _MIN_TRADES_FOR_RISK:
        return _insufficient("Not enough trades to measure drawdown")
    drawdown = max_drawdown(trades)
    score = clamp(HUNDRED - drawdown / _DRAWDOWN_PER_POINT)
    return _graded(score, drawdown, f"Max drawdown ${drawdown:.2f}")


def activity_score(trade_count: int) -> Decimal:
    """Map a trade count onto the piecewise activity curve.

    Below 10 trades scores 30. The score rises linearly from 50 to 80
    between 10 and 30 trades, then from 80 towards 100 up to 100 trades.
    100-499 trades is the optimal band (100); 500 or more scores 90 as
    a sign of likely overtrading.
    """
    count = Decimal(trade_count)
    if trade_count < 10:  # noqa: PLR2004
        return Decimal(30)
    if trade_count < 30:  # noqa: PLR2004
        return Decimal(50) + (count - 10) * Decimal("1.5")
    if trade_count < 100:  # noqa: PLR2004
        return Decimal(80) + (count - 30) * Decimal("0.28")
    if trade_count < 500:  # noqa: PLR2004
        return HUNDRED
    return Decimal(90)


def score_activity(trade_count: int) -> MetricScore:
    """Score trading activity from the total trade count."""
    score = clamp(activity_score(trade_count))
    return _graded(score, Decimal(trade_count), f"{trade_count} trades")


def determine_risk_level(metrics: dict[str, MetricScore]) -> RiskLevel:
    """Blend the Sharpe, drawdown, and consistency sub-scores into a risk tier.

    The blend is independent of the overall score, so a trader can score
    well overall and still be tagged high risk.
    """
    risk_score = (
        metrics[SHARPE_RATIO].score * _RISK_WEIGHT_SHARPE
        + metrics[RISK_MANAGEMENT].score * _RISK_WEIGHT_DRAWDOWN
        + metrics[CONSISTENCY].score * _RISK_WEIGHT_CONSISTENCY
    )
    if risk_score >= _LOW_RISK_FLOOR:
        return RiskLevel("low", "Low risk")
    if risk_score >= _MEDIUM_RISK_FLOOR:
        return RiskLevel("medium", "Medium risk")
    return RiskLevel("high", "High risk")


def generate_recommendation(overall: Decimal) -> Recommendation:
    """Return the follow recommendation tier for an overall score."""
    if overall >= 85:  # noqa: PLR2004
        return Recommendation(
            "strong_buy",
            "Strongly recommended to copy",
            "Every metric is excellent with an outstanding risk/reward profile",
        )
    if overall >= 70:  # noqa: PLR2004
        return Recommendation(
            "buy", "Recommended to copy", "Solid overall performance worth following"
        )
    if overall >= 50:  # noqa: PLR2004
        return Recommendation(
            "watch", "Watch", "Average performance; keep observing before copying"
        )
    return Recommendation(
        "avoid", "Not recommended to copy", "Risk is high or performance is poor"
    )


def calculate_rank(overall: Decimal) -> Rank:
    """Return the percentile and star rating for an overall score."""
    if overall >= 90:  # noqa: PLR2004
        return Rank(percentile=95, stars=5)
    if overall >= 80:  # noqa: PLR2004
        return Rank(percentile=85, stars=4)
    if overall >= 70:  # noqa: PLR2004
        return Rank(percentile=70, stars=3)
    if overall >= 60:  # noqa: PLR2004
        return Rank(percentile=50, stars=2)
    return Rank(percentile=30, stars=1)


def calculate_score(
    stats: TraderStats,
    trades: list[Trade],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Score:
    """Compute the composite score for one trader.

    Args:
        stats: Aggregate snapshot supplying the win rate and trade count.
        trades: The trader's trade history, in any order.
        weights: Relative weight of each sub-metric.

    Returns:
        Overall 0-100 score with its per-metric breakdown, risk tier,
        recommendation, and rank.

    """
    metrics = {
        WIN_RATE: score_win_rate(stats.win_rate_pct),
        PROFIT_FACTOR: score_profit_factor(trades),
        SHARPE_RATIO: score_sharpe_ratio(trades),
        CONSISTENCY: score_consistency(trades),
        RISK_MANAGEMENT: score_risk_management(trades),
        ACTIVITY: score_activity(stats.trade_count),
    }
    weighted = sum(
        (metrics[name].score * weight for name, weight in weights.as_dict().items()),
        ZERO,
    )
    overall = int(clamp(weighted).quantize(ONE, rounding=ROUND_HALF_UP))
    return Score(
        overall=overall,
        metrics=metrics,
        risk_level=determine_risk_level(metrics),
        recommendation=generate_recommendation(weighted),
        rank=calculate_rank(weighted),
    )


def top_recommendations(
    scored: list[ScoredTrader], limit: int = 5, min_score: int = 60
) -> list[ScoredTrader]:
    """Return the best-scoring traders that are not high risk.

    Args:
        scored: Traders already paired with their scores.
        limit: Maximum number of traders to return.
        min_score: Minimum overall score to qualify.

    Returns:
        Qualifying traders ordered by overall score, best first.

    """
    eligible = [
        t
        for t in scored
        if t.score.overall >= min_score and t.score.risk_level.level != "high"
    ]
    eligible.sort(key=lambda t: t.score.overall, reverse=True)
    return eligible[:limit]
