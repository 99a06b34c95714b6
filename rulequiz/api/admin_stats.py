"""
Quiz statistics API endpoints for the admin dashboard

Every endpoint accepts ?filter=7days|30days|custom|all plus start_date and
end_date for the custom range.
"""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional, Tuple
import logging

from rulequiz.config import settings
from rulequiz.database import get_db
from rulequiz.schemas.analytics import (
    AnswerDistribution,
    ChartData,
    DailyAttemptsByDifficulty,
    DifficultyPerformance,
    QuestionDetailStats,
    StatsDashboard,
)
from rulequiz.services import chart_series, export_service
from rulequiz.services.analytics_service import analytics_service
from rulequiz.utils.cache import cache_service
from rulequiz.utils.date_range import DateRange, resolve_date_range, utcnow

router = APIRouter(prefix="/admin/stats", tags=["admin-stats"])
logger = logging.getLogger(__name__)


def stats_filter(
    filter: Optional[str] = Query(None, description="7days, 30days, custom or all"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Tuple[DateRange, str, str]:
    """Resolve dashboard filter parameters to (date_range, label, value)"""
    return resolve_date_range(filter, start_date, end_date)


def stats_date_range(params: Tuple[DateRange, str, str] = Depends(stats_filter)) -> DateRange:
    return params[0]


@router.get("", response_model=StatsDashboard)
def admin_stats_dashboard(
    limit: Optional[int] = Query(None, ge=0),
    offset: Optional[int] = Query(None, ge=0),
    params: Tuple[DateRange, str, str] = Depends(stats_filter),
    db: Session = Depends(get_db),
):
    """
    Statistics dashboard

    - Aggregate totals (attempts, sessions, overall success rate)
    - Per-question success rates, struggling questions first
    """
    date_range, filter_label, filter_value = params
    logger.info(f"Fetching quiz statistics ({filter_label})")

    return StatsDashboard(
        aggregate_stats=analytics_service.aggregate_statistics(db, date_range),
        question_stats=analytics_service.question_statistics(db, date_range, limit=limit, offset=offset),
        current_filter=filter_label,
        current_filter_value=filter_value,
        current_start_date=date_range.start_date.isoformat() if date_range.start_date else "",
        current_end_date=date_range.end_date.isoformat() if date_range.end_date else "",
    )


@router.get("/difficulty", response_model=List[DifficultyPerformance])
def difficulty_performance(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    """Attempts and success rate per difficulty level"""
    return analytics_service.difficulty_performance(db, date_range)


@router.get("/daily", response_model=List[DailyAttemptsByDifficulty])
def daily_attempts(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    """Daily attempt counts by difficulty with success/fail split"""
    return analytics_service.daily_attempts_by_difficulty(db, date_range)


@router.get("/questions/{question_id}", response_model=QuestionDetailStats)
def question_detail_stats(
    question_id: str,
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    """Detailed statistics for one question (404 if it does not exist)"""
    return analytics_service.question_detail_statistics(db, question_id, date_range)


@router.get("/questions/{question_id}/answers", response_model=List[AnswerDistribution])
def question_answer_distribution(
    question_id: str,
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    """Selection counts per answer (404 if the question does not exist)"""
    return analytics_service.answer_distribution(db, question_id, date_range)


# Chart series (cached for CHART_CACHE_TTL seconds when Redis is available)

def _cached_chart(key: str, build) -> ChartData:
    cached = cache_service.get(key)
    if cached is not None:
        return ChartData(**cached)
    chart = build()
    cache_service.set(key, chart.model_dump())
    return chart


@router.get("/charts/success-trends", response_model=ChartData)
def success_trends_chart(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    return _cached_chart(
        cache_service.chart_key("success-trends", date_range),
        lambda: chart_series.success_trends(
            analytics_service.daily_attempts_by_difficulty(db, date_range)
        ),
    )


@router.get("/charts/difficulty-distribution", response_model=ChartData)
def difficulty_distribution_chart(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    return _cached_chart(
        cache_service.chart_key("difficulty-distribution", date_range),
        lambda: chart_series.difficulty_distribution(
            analytics_service.difficulty_performance(db, date_range)
        ),
    )


@router.get("/charts/question-performance", response_model=ChartData)
def question_performance_chart(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    limit = settings.QUESTION_PERFORMANCE_CHART_LIMIT
    return _cached_chart(
        cache_service.chart_key("question-performance", date_range, str(limit)),
        lambda: chart_series.question_performance(
            analytics_service.question_statistics(db, date_range, limit=limit)
        ),
    )


@router.get("/charts/answer-distribution/{question_id}", response_model=ChartData)
def answer_distribution_chart(
    question_id: str,
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    def build() -> ChartData:
        detail = analytics_service.question_detail_statistics(db, question_id, date_range)
        return chart_series.answer_distribution(
            detail.question.question_text, detail.answer_distribution
        )

    return _cached_chart(
        cache_service.chart_key("answer-distribution", date_range, question_id),
        build,
    )


# Exports

def _download(content: bytes, media_type: str, extension: str) -> Response:
    filename = export_service.export_filename(extension, utcnow())
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache",
        },
    )


@router.get("/export.csv")
def export_stats_csv(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    """Per-question statistics with flattened answer selection columns"""
    rows = analytics_service.export_rows(db, date_range)
    return _download(export_service.to_csv(rows), "text/csv; charset=utf-8", "csv")


@router.get("/export.parquet")
def export_stats_parquet(
    date_range: DateRange = Depends(stats_date_range),
    db: Session = Depends(get_db),
):
    """Per-question statistics with a nested answers column"""
    rows = analytics_service.export_rows(db, date_range)
    return _download(export_service.to_parquet(rows), "application/vnd.apache.parquet", "parquet")
