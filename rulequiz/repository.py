"""
Data access for quiz content and the attempt log

Every function takes the request's SQLAlchemy session. Store failures are
logged and re-raised as DataAccessError; nothing here retries.
"""
import functools
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rulequiz.exceptions import DataAccessError
from rulequiz.models import (
    QuestionStatus,
    QuizAnswer,
    QuizAttempt,
    QuizQuestion,
    QuizQuestionRule,
    Rule,
    RuleSet,
    Version,
)
from rulequiz.utils.date_range import ALL_TIME, DateRange

logger = logging.getLogger(__name__)


def _data_access(message: str):
    """Translate SQLAlchemy failures into DataAccessError"""

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except SQLAlchemyError as e:
                logger.error(f"{message}: {str(e)}")
                db.rollback()
                raise DataAccessError(message) from e

        return wrapper

    return decorator


# Scope

@_data_access("Failed to load rule set")
def get_rule_set_by_slug(db: Session, slug: str) -> Optional[RuleSet]:
    return db.query(RuleSet).filter(RuleSet.slug == slug).first()


@_data_access("Failed to load current version")
def get_current_version(db: Session, rule_set_id: str) -> Optional[Version]:
    return (
        db.query(Version)
        .filter(Version.rule_set_id == rule_set_id, Version.is_current.is_(True))
        .first()
    )


# Questions and answers

def _normalized_status():
    """Stored status compared case- and padding-insensitively"""
    return func.lower(func.trim(QuizQuestion.status))


@_data_access("Failed to count quiz questions")
def count_quiz_questions(
    db: Session,
    rule_set_id: str,
    version_id: str,
    status: Optional[QuestionStatus] = None,
) -> int:
    query = db.query(func.count(QuizQuestion.id)).filter(
        QuizQuestion.rule_set_id == rule_set_id,
        QuizQuestion.version_id == version_id,
    )
    if status is not None:
        query = query.filter(_normalized_status() == status.value)
    return query.scalar() or 0


@_data_access("Failed to load unattempted quiz questions")
def get_unattempted_questions_for_session(
    db: Session,
    session_id: str,
    rule_set_id: str,
    version_id: str,
) -> List[QuizQuestion]:
    """Published questions of the scope this session has not attempted yet"""
    attempted = (
        select(QuizAttempt.question_id)
        .where(QuizAttempt.session_id == session_id)
        .distinct()
    )
    return (
        db.query(QuizQuestion)
        .filter(
            QuizQuestion.rule_set_id == rule_set_id,
            QuizQuestion.version_id == version_id,
            _normalized_status() == QuestionStatus.PUBLISHED.value,
            QuizQuestion.id.notin_(attempted),
        )
        .order_by(QuizQuestion.created_at, QuizQuestion.id)
        .all()
    )


@_data_access("Failed to load quiz question")
def get_quiz_question_by_id(db: Session, question_id: str) -> Optional[QuizQuestion]:
    return db.query(QuizQuestion).filter(QuizQuestion.id == question_id).first()


@_data_access("Failed to load quiz answers")
def get_quiz_answers(db: Session, question_id: str) -> List[QuizAnswer]:
    return (
        db.query(QuizAnswer)
        .filter(QuizAnswer.question_id == question_id)
        .order_by(QuizAnswer.sort_order, QuizAnswer.id)
        .all()
    )


@_data_access("Failed to load quiz answers")
def get_answers_by_question(db: Session) -> Dict[str, List[QuizAnswer]]:
    """All answers grouped by question id, each list in sort order"""
    grouped: Dict[str, List[QuizAnswer]] = defaultdict(list)
    answers = db.query(QuizAnswer).order_by(
        QuizAnswer.question_id, QuizAnswer.sort_order, QuizAnswer.id
    )
    for answer in answers:
        grouped[answer.question_id].append(answer)
    return grouped


@_data_access("Failed to load questions")
def get_all_questions(db: Session) -> List[QuizQuestion]:
    return db.query(QuizQuestion).order_by(QuizQuestion.created_at, QuizQuestion.id).all()


@_data_access("Failed to count questions")
def count_all_questions(db: Session) -> int:
    return db.query(func.count(QuizQuestion.id)).scalar() or 0


@_data_access("Failed to load rule references")
def get_rule_references(db: Session) -> Dict[str, str]:
    """Comma separated rule numbers per question id"""
    rows = (
        db.query(QuizQuestionRule.question_id, Rule.number)
        .join(Rule, Rule.id == QuizQuestionRule.rule_id)
        .order_by(QuizQuestionRule.question_id, Rule.number)
        .all()
    )
    numbers: Dict[str, List[str]] = defaultdict(list)
    for question_id, number in rows:
        numbers[question_id].append(number)
    return {question_id: ", ".join(values) for question_id, values in numbers.items()}


# Attempt log

def create_quiz_attempt(db: Session, attempt: QuizAttempt) -> QuizAttempt:
    """Insert one attempt row in its own commit"""
    try:
        db.add(attempt)
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to create quiz attempt: {str(e)}")
        db.rollback()
        raise DataAccessError("Failed to create quiz attempt") from e
    db.refresh(attempt)
    return attempt


@_data_access("Failed to load session attempts")
def get_session_attempts(db: Session, session_id: str) -> List[QuizAttempt]:
    """Attempts of a session, oldest first"""
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.session_id == session_id)
        .order_by(QuizAttempt.created_at, QuizAttempt.id)
        .all()
    )


@_data_access("Failed to load missed questions")
def get_session_missed_questions(
    db: Session, session_id: str
) -> List[Tuple[QuizQuestion, QuizAttempt]]:
    return (
        db.query(QuizQuestion, QuizAttempt)
        .join(QuizAttempt, QuizAttempt.question_id == QuizQuestion.id)
        .filter(
            QuizAttempt.session_id == session_id,
            QuizAttempt.is_correct.is_(False),
        )
        .order_by(QuizAttempt.created_at, QuizAttempt.id)
        .all()
    )


def clear_session_attempts(db: Session, session_id: str) -> int:
    """Delete every attempt of a session, returning the number removed"""
    try:
        deleted = (
            db.query(QuizAttempt)
            .filter(QuizAttempt.session_id == session_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to clear session attempts: {str(e)}")
        db.rollback()
        raise DataAccessError("Failed to clear session attempts") from e
    return deleted


@_data_access("Failed to load attempts")
def get_attempts(
    db: Session,
    date_range: DateRange = ALL_TIME,
    question_id: Optional[str] = None,
) -> List[QuizAttempt]:
    """Attempts in the date range, optionally for one question, oldest first"""
    query = db.query(QuizAttempt)
    if question_id is not None:
        query = query.filter(QuizAttempt.question_id == question_id)
    query = date_range.apply(query, QuizAttempt.created_at)
    return query.order_by(QuizAttempt.created_at, QuizAttempt.id).all()


@_data_access("Failed to load recent attempts")
def get_recent_attempts(
    db: Session,
    question_id: str,
    date_range: DateRange = ALL_TIME,
    limit: int = 20,
) -> List[Tuple[QuizAttempt, Optional[str]]]:
    """Newest attempts of a question with the selected answer's text"""
    query = (
        db.query(QuizAttempt, QuizAnswer.answer_text)
        .outerjoin(QuizAnswer, QuizAnswer.id == QuizAttempt.selected_answer_id)
        .filter(QuizAttempt.question_id == question_id)
    )
    query = date_range.apply(query, QuizAttempt.created_at)
    return (
        query.order_by(QuizAttempt.created_at.desc(), QuizAttempt.id.desc())
        .limit(limit)
        .all()
    )
