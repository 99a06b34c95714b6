"""
Pydantic schemas for quiz delivery requests and responses
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Literal


class SessionStatistics(BaseModel):
    """Running statistics for one quiz session"""
    total_questions: int = 0
    correct_answers: int = 0
    accuracy_percentage: int = 0
    current_streak: int = 0


class MissedQuestion(BaseModel):
    """A question answered incorrectly, shown on the review screen"""
    question_text: str
    difficulty_level: str
    explanation: str


class QuizAnswerView(BaseModel):
    """Answer choice as offered to the player (correctness hidden)"""
    id: str
    answer_text: str


class QuizQuestionView(BaseModel):
    """Question served to a session"""
    question_id: str
    question_text: str
    difficulty_level: str
    answers: List[QuizAnswerView]


class SessionCompleteView(BaseModel):
    """Summary shown once every question of the scope was attempted"""
    stats: SessionStatistics
    missed_questions: List[MissedQuestion]


class NextQuestionResponse(BaseModel):
    """Either the next question or the session summary"""
    status: Literal["question", "complete"]
    session_id: str
    language: str
    rule_set_slug: str
    question: Optional[QuizQuestionView] = None
    summary: Optional[SessionCompleteView] = None


class QuizLandingResponse(BaseModel):
    """Quiz landing page data"""
    language: str
    rule_set_slug: str
    has_progress: bool
    questions_attempted: int
    total_questions: int


class QuizSubmission(BaseModel):
    """Answer submission; the session comes from the cookie"""
    question_id: str
    answer_id: str
    response_time_ms: Optional[int] = Field(None, ge=0)


class QuizAnswerWithResult(BaseModel):
    """Answer choice revealed after submission"""
    id: str
    answer_text: str
    is_correct: bool
    was_selected: bool


class QuizResultResponse(BaseModel):
    """Graded submission with updated session progress"""
    question_id: str
    question_text: str
    difficulty_level: str
    answers: List[QuizAnswerWithResult]
    selected_answer_id: str
    is_correct: bool
    explanation: str
    session_id: str
    session_stats: SessionStatistics
    total_questions_available: int
    questions_attempted: int
    language: str
    rule_set_slug: str


class ClearSessionResponse(BaseModel):
    """Result of the privacy clear"""
    cleared_attempts: int
    redirect_to: str
