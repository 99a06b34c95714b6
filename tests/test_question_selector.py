import random

import pytest

from rulequiz.exceptions import InvalidInputError, NotFoundError
from rulequiz.models import RuleSet
from rulequiz.services.attempt_service import attempt_service
from rulequiz.services.question_selector import (
    QuestionSelector,
    SelectedQuestion,
    SessionComplete,
    resolve_scope,
)
from rulequiz.services.session_identity import new_session_id


def test_session_visits_every_question_exactly_once(db, scope, add_question):
    rule_set, version = scope
    questions = [add_question(f"Question {n}") for n in range(5)]
    selector = QuestionSelector(rng=random.Random(42))
    session_id = new_session_id()

    served = []
    for _ in questions:
        result = selector.next_question(db, session_id, rule_set.id, version.id)
        assert isinstance(result, SelectedQuestion)
        served.append(result.question.id)
        attempt_service.record_attempt(db, session_id, result.question.id, result.answers[0].id)

    assert sorted(served) == sorted(q.id for q in questions)
    assert isinstance(
        selector.next_question(db, session_id, rule_set.id, version.id), SessionComplete
    )


def test_seeded_selection_is_reproducible(db, scope, add_question):
    rule_set, version = scope
    for n in range(10):
        add_question(f"Question {n}")
    session_id = new_session_id()

    first = QuestionSelector(rng=random.Random(7)).next_question(db, session_id, rule_set.id, version.id)
    second = QuestionSelector(rng=random.Random(7)).next_question(db, session_id, rule_set.id, version.id)
    assert first.question.id == second.question.id


def test_empty_scope_completes_immediately(db, scope):
    rule_set, version = scope
    result = QuestionSelector().next_question(db, new_session_id(), rule_set.id, version.id)
    assert isinstance(result, SessionComplete)


def test_only_published_questions_are_served(db, scope, add_question):
    rule_set, version = scope
    published = add_question("Published")
    add_question("Draft", status="draft")
    add_question("Archived", status="archived")
    selector = QuestionSelector(rng=random.Random(1))
    session_id = new_session_id()

    result = selector.next_question(db, session_id, rule_set.id, version.id)
    assert result.question.id == published.id
    assert selector.count_scope_questions(db, rule_set.id, version.id) == 1


def test_answers_come_in_display_order(db, scope, add_question):
    rule_set, version = scope
    add_question("Pick", answers=[("A", False), ("B", True), ("C", False)])

    result = QuestionSelector().next_question(db, new_session_id(), rule_set.id, version.id)
    assert [a.answer_text for a in result.answers] == ["A", "B", "C"]


def test_other_sessions_do_not_exclude_questions(db, scope, add_question, add_attempt):
    rule_set, version = scope
    question = add_question("Only one")
    add_attempt(new_session_id(), question, 0)

    result = QuestionSelector().next_question(db, new_session_id(), rule_set.id, version.id)
    assert result.question.id == question.id


def test_unknown_rule_set_is_invalid_input(db, scope):
    with pytest.raises(InvalidInputError) as excinfo:
        resolve_scope(db, "no-such-rules")
    assert excinfo.value.status_code == 404
    assert isinstance(excinfo.value, NotFoundError)


def test_rule_set_without_current_version(db):
    db.add(RuleSet(name="USA Ultimate", slug="usau"))
    db.commit()
    with pytest.raises(NotFoundError):
        resolve_scope(db, "usau")


def test_resolve_scope(db, scope):
    rule_set, version = resolve_scope(db, "wfdf")
    assert rule_set.id == scope[0].id
    assert version.id == scope[1].id


def test_status_is_matched_case_insensitively(db, scope, add_question):
    rule_set, version = scope
    question = add_question("Capitalized", status="Published")
    add_question("Draft", status="DRAFT")
    selector = QuestionSelector(rng=random.Random(5))

    result = selector.next_question(db, new_session_id(), rule_set.id, version.id)
    assert result.question.id == question.id
    assert selector.count_scope_questions(db, rule_set.id, version.id) == 1
