"""
Attempt recording - the single write path into the attempt log
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from rulequiz import repository
from rulequiz.exceptions import NotFoundError
from rulequiz.models import QuizAttempt
from rulequiz.services.session_identity import new_attempt_id
from rulequiz.utils.date_range import utcnow

logger = logging.getLogger(__name__)


class AttemptService:
    """Appends graded attempts and handles the per-session privacy clear"""

    def record_attempt(
        self,
        db: Session,
        session_id: str,
        question_id: str,
        answer_id: str,
        response_time_ms: Optional[int] = None,
    ) -> QuizAttempt:
        """
        Grade and store one answer submission

        Args:
            db: Database session
            session_id: Quiz session token
            question_id: Question being answered
            answer_id: Selected answer, must belong to the question
            response_time_ms: Optional client-measured response time

        Returns:
            The stored attempt

        Raises:
            NotFoundError: unknown question, or answer not belonging to it
        """
        question = repository.get_quiz_question_by_id(db, question_id)
        if question is None:
            raise NotFoundError(f"Question not found: {question_id}")

        answers = repository.get_quiz_answers(db, question_id)
        selected = next((a for a in answers if a.id == answer_id), None)
        if selected is None:
            raise NotFoundError(f"Answer {answer_id} not found for question {question_id}")

        attempt = QuizAttempt(
            id=new_attempt_id(),
            session_id=session_id,
            question_id=question_id,
            selected_answer_id=answer_id,
            is_correct=selected.is_correct,
            response_time_ms=response_time_ms,
            created_at=utcnow(),
        )
        attempt = repository.create_quiz_attempt(db, attempt)

        logger.info(
            f"Quiz attempt saved: {attempt.id}, session: {session_id}, "
            f"question: {question_id}, correct: {attempt.is_correct}"
        )
        return attempt

    def clear_session_attempts(self, db: Session, session_id: str) -> int:
        """Delete all attempts of a session"""
        deleted = repository.clear_session_attempts(db, session_id)
        logger.info(f"Cleared {deleted} attempts for session {session_id}")
        return deleted


# Global instance
attempt_service = AttemptService()
