"""
Per-session scoring: accuracy, streak and missed questions
"""
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from rulequiz import repository
from rulequiz.schemas.quiz import MissedQuestion, SessionStatistics


def rounded_percentage(part: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when total is 0"""
    if total <= 0:
        return 0
    # (part / total * 100 + 0.5) floored, in integer arithmetic
    return (part * 200 + total) // (2 * total)


def current_streak(outcomes: Sequence[Optional[bool]]) -> int:
    """Consecutive correct outcomes counted back from the newest"""
    streak = 0
    for is_correct in reversed(outcomes):
        if is_correct is not True:
            break
        streak += 1
    return streak


def compute_statistics(outcomes: Iterable[Optional[bool]]) -> SessionStatistics:
    """Statistics from attempt outcomes ordered oldest first"""
    outcomes = list(outcomes)
    total = len(outcomes)
    correct = sum(1 for is_correct in outcomes if is_correct is True)

    return SessionStatistics(
        total_questions=total,
        correct_answers=correct,
        accuracy_percentage=rounded_percentage(correct, total),
        current_streak=current_streak(outcomes),
    )


class SessionScorer:

    def session_statistics(self, db: Session, session_id: str) -> SessionStatistics:
        attempts = repository.get_session_attempts(db, session_id)
        return compute_statistics(a.is_correct for a in attempts)

    def missed_questions(self, db: Session, session_id: str) -> List[MissedQuestion]:
        return [
            MissedQuestion(
                question_text=question.question_text,
                difficulty_level=question.difficulty_label,
                explanation=question.explanation,
            )
            for question, _attempt in repository.get_session_missed_questions(db, session_id)
        ]


# Global instance
session_scorer = SessionScorer()
