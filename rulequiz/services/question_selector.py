"""
Question selection for quiz sessions
"""
import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from rulequiz import repository
from rulequiz.exceptions import InvalidInputError, NotFoundError
from rulequiz.models import QuestionStatus, QuizAnswer, QuizQuestion, RuleSet, Version

logger = logging.getLogger(__name__)


@dataclass
class SelectedQuestion:
    question: QuizQuestion
    answers: List[QuizAnswer]


@dataclass(frozen=True)
class SessionComplete:
    """Every published question of the scope was attempted (or the scope is empty)"""
    session_id: str


NextQuestion = Union[SelectedQuestion, SessionComplete]


def resolve_scope(db: Session, rule_set_slug: str) -> Tuple[RuleSet, Version]:
    """
    Resolve a rule set slug to the rule set and its current version

    Raises:
        InvalidInputError: unknown slug
        NotFoundError: the rule set has no current version
    """
    rule_set = repository.get_rule_set_by_slug(db, rule_set_slug)
    if rule_set is None:
        raise InvalidInputError(f"Rule set not found: {rule_set_slug}")

    version = repository.get_current_version(db, rule_set.id)
    if version is None:
        raise NotFoundError(f"No current version found for rule set: {rule_set_slug}")

    return rule_set, version


class QuestionSelector:
    """
    Picks the next question for a session uniformly at random among the
    published questions of a scope that the session has not attempted.

    The randomness source is injectable so tests can use a seeded generator.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def next_question(
        self,
        db: Session,
        session_id: str,
        rule_set_id: str,
        version_id: str,
    ) -> NextQuestion:
        remaining = repository.get_unattempted_questions_for_session(
            db, session_id, rule_set_id, version_id
        )

        if not remaining:
            logger.info(f"Session {session_id} has no unattempted questions left")
            return SessionComplete(session_id=session_id)

        question = self.rng.choice(remaining)
        answers = repository.get_quiz_answers(db, question.id)

        logger.debug(
            f"Selected question {question.id} for session {session_id} "
            f"({len(remaining)} remaining)"
        )
        return SelectedQuestion(question=question, answers=answers)

    def count_scope_questions(self, db: Session, rule_set_id: str, version_id: str) -> int:
        """Number of questions a complete session in this scope goes through"""
        return repository.count_quiz_questions(
            db, rule_set_id, version_id, status=QuestionStatus.PUBLISHED
        )


# Global instance
question_selector = QuestionSelector()
