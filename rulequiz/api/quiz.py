"""
Quiz delivery API endpoints

The quiz session comes from the quiz_session cookie; the middleware in
main.py issues the cookie when a request arrives without a valid one.
"""
from fastapi import APIRouter, Depends, Form, Request, Response
from sqlalchemy.orm import Session
from typing import Optional
import logging

from rulequiz import repository
from rulequiz.database import get_db
from rulequiz.exceptions import NotFoundError
from rulequiz.schemas.quiz import (
    ClearSessionResponse,
    NextQuestionResponse,
    QuizAnswerView,
    QuizAnswerWithResult,
    QuizLandingResponse,
    QuizQuestionView,
    QuizResultResponse,
    QuizSubmission,
    SessionCompleteView,
)
from rulequiz.services.attempt_service import attempt_service
from rulequiz.services.question_selector import (
    SessionComplete,
    question_selector,
    resolve_scope,
)
from rulequiz.services.session_identity import (
    QuizSession,
    clear_session_cookie,
    get_quiz_session,
)
from rulequiz.services.session_scorer import session_scorer

router = APIRouter(prefix="/{language}/quiz/{rule_set_slug}", tags=["quiz"])
logger = logging.getLogger(__name__)


def submission_form(
    question_id: str = Form(...),
    answer_id: str = Form(...),
    response_time_ms: Optional[int] = Form(None, ge=0),
) -> QuizSubmission:
    return QuizSubmission(
        question_id=question_id,
        answer_id=answer_id,
        response_time_ms=response_time_ms,
    )


@router.get("", response_model=QuizLandingResponse)
def quiz_landing(
    language: str,
    rule_set_slug: str,
    db: Session = Depends(get_db),
    quiz_session: QuizSession = Depends(get_quiz_session),
):
    """Quiz landing page: progress of the current session in this rule set"""
    rule_set, version = resolve_scope(db, rule_set_slug)
    stats = session_scorer.session_statistics(db, quiz_session.session_id)

    return QuizLandingResponse(
        language=language,
        rule_set_slug=rule_set_slug,
        has_progress=stats.total_questions > 0,
        questions_attempted=stats.total_questions,
        total_questions=question_selector.count_scope_questions(db, rule_set.id, version.id),
    )


def _next_question(
    db: Session, quiz_session: QuizSession, language: str, rule_set_slug: str
) -> NextQuestionResponse:
    rule_set, version = resolve_scope(db, rule_set_slug)
    session_id = quiz_session.session_id

    result = question_selector.next_question(db, session_id, rule_set.id, version.id)

    if isinstance(result, SessionComplete):
        return NextQuestionResponse(
            status="complete",
            session_id=session_id,
            language=language,
            rule_set_slug=rule_set_slug,
            summary=SessionCompleteView(
                stats=session_scorer.session_statistics(db, session_id),
                missed_questions=session_scorer.missed_questions(db, session_id),
            ),
        )

    question = result.question
    return NextQuestionResponse(
        status="question",
        session_id=session_id,
        language=language,
        rule_set_slug=rule_set_slug,
        question=QuizQuestionView(
            question_id=question.id,
            question_text=question.question_text,
            difficulty_level=question.difficulty_label,
            answers=[QuizAnswerView(id=a.id, answer_text=a.answer_text) for a in result.answers],
        ),
    )


@router.post("/start", response_model=NextQuestionResponse)
def start_quiz_session(
    language: str,
    rule_set_slug: str,
    db: Session = Depends(get_db),
    quiz_session: QuizSession = Depends(get_quiz_session),
):
    """Start (or resume) a quiz session with its first unseen question"""
    logger.info(f"Starting quiz for session {quiz_session.session_id} in {rule_set_slug}")
    return _next_question(db, quiz_session, language, rule_set_slug)


@router.get("/question", response_model=NextQuestionResponse)
def random_quiz_question(
    language: str,
    rule_set_slug: str,
    db: Session = Depends(get_db),
    quiz_session: QuizSession = Depends(get_quiz_session),
):
    """
    Next random question not yet attempted in this session

    Returns the session summary (stats and missed questions) once every
    question has been attempted.
    """
    return _next_question(db, quiz_session, language, rule_set_slug)


@router.post("/submit", response_model=QuizResultResponse)
def submit_quiz_answer(
    language: str,
    rule_set_slug: str,
    submission: QuizSubmission = Depends(submission_form),
    db: Session = Depends(get_db),
    quiz_session: QuizSession = Depends(get_quiz_session),
):
    """
    Submit an answer and reveal the result

    - Records the attempt (404 if the answer does not belong to the question)
    - Returns every answer with correctness and the player's selection
    - Includes updated session statistics and progress
    """
    rule_set, version = resolve_scope(db, rule_set_slug)
    session_id = quiz_session.session_id

    attempt = attempt_service.record_attempt(
        db,
        session_id=session_id,
        question_id=submission.question_id,
        answer_id=submission.answer_id,
        response_time_ms=submission.response_time_ms,
    )

    question = repository.get_quiz_question_by_id(db, submission.question_id)
    if question is None:
        raise NotFoundError(f"Question not found: {submission.question_id}")
    answers = repository.get_quiz_answers(db, submission.question_id)
    stats = session_scorer.session_statistics(db, session_id)

    return QuizResultResponse(
        question_id=question.id,
        question_text=question.question_text,
        difficulty_level=question.difficulty_label,
        answers=[
            QuizAnswerWithResult(
                id=a.id,
                answer_text=a.answer_text,
                is_correct=a.is_correct,
                was_selected=a.id == submission.answer_id,
            )
            for a in answers
        ],
        selected_answer_id=submission.answer_id,
        is_correct=bool(attempt.is_correct),
        explanation=question.explanation,
        session_id=session_id,
        session_stats=stats,
        total_questions_available=question_selector.count_scope_questions(db, rule_set.id, version.id),
        questions_attempted=stats.total_questions,
        language=language,
        rule_set_slug=rule_set_slug,
    )


@router.post("/clear", response_model=ClearSessionResponse)
def clear_session_data(
    language: str,
    rule_set_slug: str,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    quiz_session: QuizSession = Depends(get_quiz_session),
):
    """Delete this session's attempts and drop the session cookie"""
    cleared = attempt_service.clear_session_attempts(db, quiz_session.session_id)

    clear_session_cookie(response)
    request.state.quiz_session_cleared = True

    return ClearSessionResponse(
        cleared_attempts=cleared,
        redirect_to=f"/{language}/quiz/{rule_set_slug}",
    )
