"""Aggregate insights over feedback rows: averages, trend, themes, recommendations."""

from collections import Counter
from datetime import datetime, timedelta, timezone

DEFAULT_WINDOW = timedelta(days=90)
TREND_PERIOD = timedelta(days=30)
TREND_THRESHOLD_PERCENT = 5
TOP_THEMES = 5
FEEDBACK_TYPES = ("learner", "employer", "industry")


def _parse_date(value) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif value:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _average(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def _ratings(rows: list[dict]) -> list[float]:
    return [r["rating"] for r in rows if r.get("rating") is not None]


def _sentiments(rows: list[dict]) -> list[float]:
    return [r["sentiment"] for r in rows if r.get("sentiment") is not None]


def _rounded(value: float | None, digits: int) -> float | None:
    return round(value, digits) if value is not None else None


def rating_trend(recent: float | None, previous: float | None) -> tuple[str | None, float | None]:
    if recent is None or previous is None or previous <= 0:
        return None, None
    change = (recent - previous) / previous * 100
    if change > TREND_THRESHOLD_PERCENT:
        direction = "improving"
    elif change < -TREND_THRESHOLD_PERCENT:
        direction = "declining"
    else:
        direction = "stable"
    return direction, round(change, 1)


def generate_recommendations(
    average_rating: float | None,
    average_sentiment: float | None,
    trend: str | None,
    top_themes: list[dict],
) -> list[str]:
    recommendations = []

    if average_rating is not None:
        if average_rating < 3:
            recommendations.append(
                "Average rating is low. Consider immediate intervention and review of training delivery."
            )
        elif average_rating < 4:
            recommendations.append(
                "Average rating indicates room for improvement. Review feedback comments for specific issues."
            )
        elif average_rating >= 4.5:
            recommendations.append(
                "Excellent feedback! Document and share successful practices with the team."
            )

    if trend == "declining":
        recommendations.append(
            "Feedback trend is declining. Urgent review needed to identify and address issues."
        )
    elif trend == "improving":
        recommendations.append("Positive trend detected. Continue current improvement initiatives.")

    if average_sentiment is not None:
        if average_sentiment < -0.3:
            recommendations.append("Negative sentiment detected. Review comments for recurring concerns.")
        elif average_sentiment > 0.5:
            recommendations.append("Positive sentiment indicates strong learner/stakeholder satisfaction.")

    if top_themes:
        recommendations.append(
            f'Most mentioned topic: "{top_themes[0]["theme"]}". Focus improvement efforts here.'
        )

    if not recommendations:
        recommendations.append("Continue monitoring feedback and maintain quality standards.")

    return recommendations


def compute_insights(
    rows: list[dict],
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    now: datetime | None = None,
) -> dict:
    end = _parse_date(date_to) or now or datetime.now(timezone.utc)
    start = _parse_date(date_from) or end - DEFAULT_WINDOW

    dated = [(row, _parse_date(row.get("submittedAt"))) for row in rows]
    in_window = [(row, ts) for row, ts in dated if ts is not None and start <= ts <= end]
    feedback = [row for row, _ in in_window]

    average_rating = _average(_ratings(feedback))
    average_sentiment = _average(_sentiments(feedback))

    theme_counts = Counter(
        theme for row in feedback for theme in (row.get("themes") or [])
    )
    top_themes = [
        {"theme": theme, "count": count}
        for theme, count in theme_counts.most_common(TOP_THEMES)
    ]

    recent_start = end - TREND_PERIOD
    previous_start = end - 2 * TREND_PERIOD
    recent = [row for row, ts in in_window if ts >= recent_start]
    previous = [row for row, ts in in_window if previous_start <= ts < recent_start]
    recent_avg = _average(_ratings(recent))
    previous_avg = _average(_ratings(previous))
    direction, percentage = rating_trend(recent_avg, previous_avg)

    by_type = {}
    for feedback_type in FEEDBACK_TYPES:
        typed = [row for row in feedback if row.get("type") == feedback_type]
        by_type[feedback_type] = {
            "count": len(typed),
            "average_rating": _average(_ratings(typed)),
            "average_sentiment": _average(_sentiments(typed)),
        }

    return {
        "summary": {
            "total_count": len(feedback),
            "average_rating": _rounded(average_rating, 1),
            "average_sentiment": _rounded(average_sentiment, 2),
            "date_range": {"from": start.isoformat(), "to": end.isoformat()},
        },
        "trend": {
            "direction": direction,
            "percentage": percentage,
            "recent": {"count": len(recent), "average_rating": _rounded(recent_avg, 1)},
            "previous": {"count": len(previous), "average_rating": _rounded(previous_avg, 1)},
        },
        "top_themes": top_themes,
        "by_type": by_type,
        "recommendations": generate_recommendations(
            average_rating, average_sentiment, direction, top_themes
        ),
    }
