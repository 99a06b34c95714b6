"""
QuizAttempt model - append-only log of answer submissions
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Index

from rulequiz.database import Base
from rulequiz.utils.date_range import utcnow


class QuizAttempt(Base):
    """
    Quiz attempts table - one row per submitted (or skipped) answer.
    The session id is the quiz_session cookie value; there is no session table.
    """
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        Index("idx_quiz_attempts_session_time", "session_id", "created_at"),
        Index("idx_quiz_attempts_question", "question_id"),
    )

    id = Column(String(36), primary_key=True)
    session_id = Column(String(36), nullable=False)
    question_id = Column(String(36), ForeignKey("quiz_questions.id"), nullable=False)
    selected_answer_id = Column(String(36), ForeignKey("quiz_answers.id"))  # None on skip
    is_correct = Column(Boolean)  # None when no answer was selected
    response_time_ms = Column(Integer)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<QuizAttempt(session_id={self.session_id}, question_id={self.question_id}, correct={self.is_correct})>"
