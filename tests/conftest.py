import os

# Configure before rulequiz.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""

import itertools
from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rulequiz.database import Base, get_db
from rulequiz.main import app
from rulequiz.models import (
    QuizAnswer,
    QuizAttempt,
    QuizQuestion,
    QuizQuestionRule,
    Rule,
    RuleSet,
    Version,
)
from rulequiz.services.session_identity import new_attempt_id

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def scope(db):
    """WFDF rule set with a current version"""
    rule_set = RuleSet(name="WFDF Rules of Ultimate", slug="wfdf")
    db.add(rule_set)
    db.flush()
    version = Version(
        rule_set_id=rule_set.id,
        version_name="2025-2028",
        effective_from=date(2025, 1, 1),
        is_current=True,
    )
    db.add(version)
    db.commit()
    return rule_set, version


@pytest.fixture
def add_question(db, scope):
    """
    Factory: add_question(text, [(answer_text, is_correct), ...], difficulty=..., status=...)

    Questions get increasing created_at values so their order is deterministic.
    """
    rule_set, version = scope
    counter = itertools.count()

    def _add(
        text,
        answers=(("Yes", True), ("No", False)),
        difficulty="beginner",
        status="published",
        explanation="See the rules.",
        rule_numbers=(),
    ):
        created_at = BASE_TIME + timedelta(seconds=next(counter))
        question = QuizQuestion(
            rule_set_id=rule_set.id,
            version_id=version.id,
            question_text=text,
            explanation=explanation,
            difficulty_level=difficulty,
            status=status,
            created_at=created_at,
            updated_at=created_at,
        )
        db.add(question)
        db.flush()
        for sort_order, (answer_text, is_correct) in enumerate(answers, start=1):
            db.add(QuizAnswer(
                question_id=question.id,
                answer_text=answer_text,
                is_correct=is_correct,
                sort_order=sort_order,
            ))
        for number in rule_numbers:
            rule = Rule(
                slug=f"rule-{number}",
                rule_set_id=rule_set.id,
                version_id=version.id,
                number=number,
            )
            db.add(rule)
            db.flush()
            db.add(QuizQuestionRule(question_id=question.id, rule_id=rule.id))
        db.commit()
        return question

    return _add


def answers_of(db, question):
    return (
        db.query(QuizAnswer)
        .filter(QuizAnswer.question_id == question.id)
        .order_by(QuizAnswer.sort_order)
        .all()
    )


@pytest.fixture
def add_attempt(db):
    """Factory: add_attempt(session_id, question, answer_index, created_at) with answer_index None for a skip"""

    def _add(session_id, question, answer_index=0, created_at=BASE_TIME, response_time_ms=None):
        answer = None if answer_index is None else answers_of(db, question)[answer_index]
        attempt = QuizAttempt(
            id=new_attempt_id(),
            session_id=session_id,
            question_id=question.id,
            selected_answer_id=answer.id if answer else None,
            is_correct=answer.is_correct if answer else None,
            response_time_ms=response_time_ms,
            created_at=created_at,
        )
        db.add(attempt)
        db.commit()
        return attempt

    return _add
