"""
Pydantic schemas for quiz statistics and exports
"""
from pydantic import BaseModel, field_validator
from typing import List, Dict, Optional
from datetime import date, datetime
import datetime as dt

from rulequiz.models.enums import QuestionStatus, difficulty_label


class QuestionStatistics(BaseModel):
    """Success rate of one question"""
    question_id: str
    question_text: str
    difficulty_level: str
    rule_references: str = ""
    total_attempts: int
    correct_attempts: int
    success_rate: float
    created_at: datetime


class AggregateStatistics(BaseModel):
    """Corpus-wide quiz activity"""
    total_questions: int
    total_attempts: int
    correct_attempts: int
    total_sessions: int
    overall_success_rate: float
    most_attempted_difficulty: Optional[str] = None
    date_range_start: Optional[date] = None
    date_range_end: Optional[date] = None


class DifficultyPerformance(BaseModel):
    """Attempts and success rate for one difficulty label"""
    difficulty: str
    question_count: int
    average_success_rate: float
    total_attempts: int


class DifficultyAttemptBreakdown(BaseModel):
    success_count: int = 0
    fail_count: int = 0


class DailyAttemptsByDifficulty(BaseModel):
    """Attempts of one calendar day split by difficulty and outcome"""
    date: dt.date
    difficulty_attempts: Dict[str, DifficultyAttemptBreakdown]


class AnswerDistribution(BaseModel):
    """How often one answer of a question was selected"""
    answer_id: str
    answer_text: str
    is_correct: bool
    sort_order: int
    selection_count: int
    selection_percentage: float


class RecentAttempt(BaseModel):
    session_id: str
    selected_answer_text: Optional[str] = None
    is_correct: Optional[bool] = None
    response_time_ms: Optional[int] = None
    created_at: datetime


class QuestionSummary(BaseModel):
    id: str
    question_text: str
    explanation: str
    difficulty_level: str
    status: str
    created_at: datetime
    updated_at: datetime

    @field_validator("difficulty_level", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return difficulty_label(value)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return QuestionStatus.from_value(value).value

    class Config:
        from_attributes = True


class AnswerSummary(BaseModel):
    id: str
    answer_text: str
    is_correct: bool
    sort_order: int

    class Config:
        from_attributes = True


class QuestionDetailStats(BaseModel):
    """Everything the per-question statistics page shows"""
    question: QuestionSummary
    answers: List[AnswerSummary]
    answer_distribution: List[AnswerDistribution]
    total_attempts: int
    correct_attempts: int
    success_rate: float
    most_common_wrong_answer: Optional[str] = None
    recent_attempts: List[RecentAttempt]


class StatsDashboard(BaseModel):
    """Admin statistics dashboard payload"""
    aggregate_stats: AggregateStatistics
    question_stats: List[QuestionStatistics]
    current_filter: str
    current_filter_value: str
    current_start_date: str
    current_end_date: str


class AnswerExportData(BaseModel):
    text: str
    is_correct: bool
    sort_order: int
    selection_count: int
    selection_percentage: float


class QuestionExportData(BaseModel):
    """One exported row: question statistics with nested answer selections"""
    question_id: str
    question_text: str
    explanation: str
    difficulty_level: str
    rule_references: str
    total_attempts: int
    correct_attempts: int
    success_rate_percent: float
    answers: List[AnswerExportData]
    created_at: datetime
    updated_at: datetime


class ChartSeries(BaseModel):
    name: str
    values: List[float]
    stack: Optional[str] = None
    color: Optional[str] = None


class ChartData(BaseModel):
    """Labeled series handed to the chart renderer"""
    chart: str
    title: str
    labels: List[str]
    series: List[ChartSeries]
