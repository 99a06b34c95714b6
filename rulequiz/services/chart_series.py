"""
Chart series for the admin statistics dashboard

Turns aggregator output into labeled numeric series; drawing them is the
job of the external chart renderer.
"""
from typing import List

from rulequiz.models.enums import difficulty_sort_key
from rulequiz.schemas.analytics import (
    AnswerDistribution,
    ChartData,
    ChartSeries,
    DailyAttemptsByDifficulty,
    DifficultyPerformance,
    QuestionStatistics,
)

DIFFICULTY_COLORS = {
    "beginner": "#28a745",
    "intermediate": "#ffc107",
    "advanced": "#dc3545",
}
FALLBACK_COLOR = "#6c757d"

QUESTION_LABEL_LENGTH = 40


def _truncate(text: str, length: int = QUESTION_LABEL_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3] + "..."


def success_trends(daily: List[DailyAttemptsByDifficulty]) -> ChartData:
    """Stacked area: one success and one fail series per difficulty, dates on x"""
    labels = [day.date.isoformat() for day in daily]
    difficulties = sorted(
        {label for day in daily for label in day.difficulty_attempts},
        key=difficulty_sort_key,
    )

    series = []
    for difficulty in difficulties:
        color = DIFFICULTY_COLORS.get(difficulty, FALLBACK_COLOR)
        successes, fails = [], []
        for day in daily:
            breakdown = day.difficulty_attempts.get(difficulty)
            successes.append(float(breakdown.success_count) if breakdown else 0.0)
            fails.append(float(breakdown.fail_count) if breakdown else 0.0)
        series.append(ChartSeries(name=f"{difficulty} success", values=successes, stack="success", color=color))
        series.append(ChartSeries(name=f"{difficulty} fail", values=fails, stack="fail", color=color))

    return ChartData(
        chart="success-trends",
        title="Daily Attempts by Difficulty",
        labels=labels,
        series=series,
    )


def difficulty_distribution(performance: List[DifficultyPerformance]) -> ChartData:
    return ChartData(
        chart="difficulty-distribution",
        title="Performance by Difficulty",
        labels=[p.difficulty for p in performance],
        series=[
            ChartSeries(name="Attempts", values=[float(p.total_attempts) for p in performance]),
            ChartSeries(name="Success rate (%)", values=[round(p.average_success_rate, 1) for p in performance]),
        ],
    )


def question_performance(stats: List[QuestionStatistics]) -> ChartData:
    """Bar chart of the given (already limited) lowest-success questions"""
    return ChartData(
        chart="question-performance",
        title="Most Challenging Questions",
        labels=[_truncate(s.question_text) for s in stats],
        series=[
            ChartSeries(name="Success rate (%)", values=[round(s.success_rate, 1) for s in stats]),
        ],
    )


def answer_distribution(question_text: str, distribution: List[AnswerDistribution]) -> ChartData:
    return ChartData(
        chart="answer-distribution",
        title=_truncate(question_text, 60),
        labels=[entry.answer_text for entry in distribution],
        series=[
            ChartSeries(name="Selections", values=[float(entry.selection_count) for entry in distribution]),
        ],
    )
