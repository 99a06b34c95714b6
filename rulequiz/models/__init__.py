"""
Database models package
"""
from rulequiz.models.enums import Difficulty, QuestionStatus
from rulequiz.models.rule_set import RuleSet, Version, Rule
from rulequiz.models.quiz import QuizQuestion, QuizAnswer, QuizQuestionRule
from rulequiz.models.quiz_attempt import QuizAttempt

__all__ = [
    "Difficulty",
    "QuestionStatus",
    "RuleSet",
    "Version",
    "Rule",
    "QuizQuestion",
    "QuizAnswer",
    "QuizQuestionRule",
    "QuizAttempt",
]
