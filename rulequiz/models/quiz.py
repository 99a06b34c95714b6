"""
Quiz content models - questions, answers and their rule links
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey
import uuid

from rulequiz.database import Base
from rulequiz.models.enums import Difficulty, QuestionStatus, difficulty_label
from rulequiz.utils.date_range import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class QuizQuestion(Base):
    """
    Quiz questions table - authored through the admin content flow,
    read-only for quiz delivery and statistics
    """
    __tablename__ = "quiz_questions"

    id = Column(String(36), primary_key=True, default=_new_id)
    rule_set_id = Column(String(36), ForeignKey("rule_sets.id"), nullable=False, index=True)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    explanation = Column(Text, nullable=False, default="")
    difficulty_level = Column(String(20), nullable=False, default=Difficulty.BEGINNER.value)
    status = Column(String(20), nullable=False, default=QuestionStatus.PUBLISHED.value)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def difficulty_label(self) -> str:
        return difficulty_label(self.difficulty_level)

    def __repr__(self):
        return f"<QuizQuestion(id={self.id}, difficulty={self.difficulty_level})>"


class QuizAnswer(Base):
    """
    Quiz answers table - choices of a question in display order
    """
    __tablename__ = "quiz_answers"

    id = Column(String(36), primary_key=True, default=_new_id)
    question_id = Column(String(36), ForeignKey("quiz_questions.id"), nullable=False, index=True)
    answer_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<QuizAnswer(id={self.id}, correct={self.is_correct})>"


class QuizQuestionRule(Base):
    """
    Link table between questions and the rules they reference
    """
    __tablename__ = "quiz_question_rules"

    id = Column(String(36), primary_key=True, default=_new_id)
    question_id = Column(String(36), ForeignKey("quiz_questions.id"), nullable=False, index=True)
    rule_id = Column(String(36), ForeignKey("rules.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
