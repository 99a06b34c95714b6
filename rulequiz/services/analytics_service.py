"""
Analytics service for cross-session quiz statistics

Every figure is derived from the attempt log at query time; no counters
are cached on questions or answers.
"""
import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from rulequiz import repository
from rulequiz.config import settings
from rulequiz.exceptions import NotFoundError
from rulequiz.models import QuizAnswer, QuizAttempt, QuizQuestion
from rulequiz.models.enums import difficulty_sort_key
from rulequiz.schemas.analytics import (
    AggregateStatistics,
    AnswerDistribution,
    AnswerExportData,
    AnswerSummary,
    DailyAttemptsByDifficulty,
    DifficultyAttemptBreakdown,
    DifficultyPerformance,
    QuestionDetailStats,
    QuestionExportData,
    QuestionStatistics,
    QuestionSummary,
    RecentAttempt,
)
from rulequiz.utils.date_range import ALL_TIME, DateRange

logger = logging.getLogger(__name__)


def success_rate(correct: int, total: int) -> float:
    """Percentage of correct attempts; 0.0 when there are none"""
    if total <= 0:
        return 0.0
    return correct / total * 100.0


def _count_correct(attempts: Sequence[QuizAttempt]) -> int:
    return sum(1 for a in attempts if a.is_correct is True)


def _distribution(
    answers: Sequence[QuizAnswer], attempts: Sequence[QuizAttempt]
) -> List[AnswerDistribution]:
    selections = Counter(a.selected_answer_id for a in attempts if a.selected_answer_id)
    total = len(attempts)

    return [
        AnswerDistribution(
            answer_id=answer.id,
            answer_text=answer.answer_text,
            is_correct=answer.is_correct,
            sort_order=answer.sort_order,
            selection_count=selections.get(answer.id, 0),
            selection_percentage=success_rate(selections.get(answer.id, 0), total),
        )
        for answer in answers
    ]


class AnalyticsService:
    """Service for quiz performance analytics"""

    def question_statistics(
        self,
        db: Session,
        date_range: DateRange = ALL_TIME,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[QuestionStatistics]:
        """
        Success rate for every question, struggling questions first

        Args:
            db: Database session
            date_range: Attempt creation window
            limit: Maximum rows after offset
            offset: Rows to skip after sorting

        Returns:
            Question statistics sorted by ascending success rate
        """
        questions = repository.get_all_questions(db)
        attempts = repository.get_attempts(db, date_range)
        rule_references = repository.get_rule_references(db)

        attempts_by_question: Dict[str, List[QuizAttempt]] = defaultdict(list)
        for attempt in attempts:
            attempts_by_question[attempt.question_id].append(attempt)

        stats = []
        for question in questions:
            question_attempts = attempts_by_question.get(question.id, [])
            total = len(question_attempts)
            correct = _count_correct(question_attempts)
            stats.append(QuestionStatistics(
                question_id=question.id,
                question_text=question.question_text,
                difficulty_level=question.difficulty_label,
                rule_references=rule_references.get(question.id, ""),
                total_attempts=total,
                correct_attempts=correct,
                success_rate=success_rate(correct, total),
                created_at=question.created_at,
            ))

        # Stable sort keeps question order among equal rates
        stats.sort(key=lambda s: s.success_rate)

        if offset:
            stats = stats[offset:]
        if limit is not None:
            stats = stats[:limit]

        return stats

    def aggregate_statistics(
        self, db: Session, date_range: DateRange = ALL_TIME
    ) -> AggregateStatistics:
        """Corpus-wide totals; the question count ignores the date range"""
        total_questions = repository.count_all_questions(db)
        attempts = repository.get_attempts(db, date_range)

        total_attempts = len(attempts)
        correct_attempts = _count_correct(attempts)
        total_sessions = len({a.session_id for a in attempts})

        return AggregateStatistics(
            total_questions=total_questions,
            total_attempts=total_attempts,
            correct_attempts=correct_attempts,
            total_sessions=total_sessions,
            overall_success_rate=success_rate(correct_attempts, total_attempts),
            most_attempted_difficulty=self._most_attempted_difficulty(db, attempts),
            date_range_start=date_range.start_date,
            date_range_end=date_range.end_date,
        )

    def _most_attempted_difficulty(
        self, db: Session, attempts: Sequence[QuizAttempt]
    ) -> Optional[str]:
        """Difficulty with the most attempts; ties go to the easier level"""
        if not attempts:
            return None

        difficulty_by_question = self._difficulty_by_question(db)
        counts = Counter(
            difficulty_by_question[a.question_id]
            for a in attempts
            if a.question_id in difficulty_by_question
        )
        if not counts:
            return None

        return min(counts, key=lambda label: (-counts[label], difficulty_sort_key(label)))

    def _difficulty_by_question(self, db: Session) -> Dict[str, str]:
        return {q.id: q.difficulty_label for q in repository.get_all_questions(db)}

    def difficulty_performance(
        self, db: Session, date_range: DateRange = ALL_TIME
    ) -> List[DifficultyPerformance]:
        """
        Attempts and success rate per difficulty label

        Only labels with attempts in range are reported; question_count
        counts every authored question with that label.
        """
        difficulty_by_question = self._difficulty_by_question(db)
        attempts = repository.get_attempts(db, date_range)

        question_counts = Counter(difficulty_by_question.values())
        totals: Dict[str, int] = defaultdict(int)
        corrects: Dict[str, int] = defaultdict(int)

        for attempt in attempts:
            difficulty = difficulty_by_question.get(attempt.question_id)
            if difficulty is None:
                continue
            totals[difficulty] += 1
            if attempt.is_correct is True:
                corrects[difficulty] += 1

        return [
            DifficultyPerformance(
                difficulty=difficulty,
                question_count=question_counts.get(difficulty, 0),
                average_success_rate=success_rate(corrects[difficulty], totals[difficulty]),
                total_attempts=totals[difficulty],
            )
            for difficulty in sorted(totals, key=difficulty_sort_key)
        ]

    def daily_attempts_by_difficulty(
        self, db: Session, date_range: DateRange = ALL_TIME
    ) -> List[DailyAttemptsByDifficulty]:
        """Attempts per calendar day and difficulty, split by outcome"""
        difficulty_by_question = self._difficulty_by_question(db)
        attempts = repository.get_attempts(db, date_range)

        daily: Dict = defaultdict(lambda: defaultdict(DifficultyAttemptBreakdown))

        for attempt in attempts:
            difficulty = difficulty_by_question.get(attempt.question_id)
            if difficulty is None:
                continue
            bucket = daily[attempt.created_at.date()][difficulty]
            # a missing outcome counts as a failure
            if attempt.is_correct is True:
                bucket.success_count += 1
            else:
                bucket.fail_count += 1

        return [
            DailyAttemptsByDifficulty(
                date=day,
                difficulty_attempts={
                    label: daily[day][label]
                    for label in sorted(daily[day], key=difficulty_sort_key)
                },
            )
            for day in sorted(daily)
        ]

    def answer_distribution(
        self, db: Session, question_id: str, date_range: DateRange = ALL_TIME
    ) -> List[AnswerDistribution]:
        """Selection count and share of every answer of a question"""
        self._require_question(db, question_id)
        answers = repository.get_quiz_answers(db, question_id)
        attempts = repository.get_attempts(db, date_range, question_id=question_id)
        return _distribution(answers, attempts)

    def _require_question(self, db: Session, question_id: str) -> QuizQuestion:
        question = repository.get_quiz_question_by_id(db, question_id)
        if question is None:
            raise NotFoundError(f"Question not found: {question_id}")
        return question

    def question_detail_statistics(
        self, db: Session, question_id: str, date_range: DateRange = ALL_TIME
    ) -> QuestionDetailStats:
        """
        Detailed statistics for a single question

        Raises:
            NotFoundError: unknown question id
        """
        question = self._require_question(db, question_id)
        answers = repository.get_quiz_answers(db, question_id)
        attempts = repository.get_attempts(db, date_range, question_id=question_id)

        total = len(attempts)
        correct = _count_correct(attempts)
        distribution = _distribution(answers, attempts)

        most_common_wrong_answer = None
        best_count = 0
        for entry in distribution:
            # >= lets the later answer in sort order win a tie
            if not entry.is_correct and entry.selection_count > 0 and entry.selection_count >= best_count:
                best_count = entry.selection_count
                most_common_wrong_answer = entry.answer_text

        recent_attempts = [
            RecentAttempt(
                session_id=attempt.session_id,
                selected_answer_text=answer_text,
                is_correct=attempt.is_correct,
                response_time_ms=attempt.response_time_ms,
                created_at=attempt.created_at,
            )
            for attempt, answer_text in repository.get_recent_attempts(
                db, question_id, date_range, limit=settings.RECENT_ATTEMPTS_LIMIT
            )
        ]

        return QuestionDetailStats(
            question=QuestionSummary.model_validate(question),
            answers=[AnswerSummary.model_validate(a) for a in answers],
            answer_distribution=distribution,
            total_attempts=total,
            correct_attempts=correct,
            success_rate=success_rate(correct, total),
            most_common_wrong_answer=most_common_wrong_answer,
            recent_attempts=recent_attempts,
        )

    def export_rows(
        self, db: Session, date_range: DateRange = ALL_TIME
    ) -> List[QuestionExportData]:
        """Question statistics with answer selections attached, for CSV/Parquet export"""
        questions = {q.id: q for q in repository.get_all_questions(db)}
        answers_by_question = repository.get_answers_by_question(db)
        attempts = repository.get_attempts(db, date_range)

        attempts_by_question: Dict[str, List[QuizAttempt]] = defaultdict(list)
        for attempt in attempts:
            attempts_by_question[attempt.question_id].append(attempt)

        rows = []
        for stats in self.question_statistics(db, date_range):
            question = questions[stats.question_id]
            distribution = _distribution(
                answers_by_question.get(question.id, []),
                attempts_by_question.get(question.id, []),
            )
            rows.append(QuestionExportData(
                question_id=question.id,
                question_text=question.question_text,
                explanation=question.explanation,
                difficulty_level=question.difficulty_label,
                rule_references=stats.rule_references,
                total_attempts=stats.total_attempts,
                correct_attempts=stats.correct_attempts,
                success_rate_percent=stats.success_rate,
                answers=[
                    AnswerExportData(
                        text=entry.answer_text,
                        is_correct=entry.is_correct,
                        sort_order=entry.sort_order,
                        selection_count=entry.selection_count,
                        selection_percentage=entry.selection_percentage,
                    )
                    for entry in distribution
                ],
                created_at=question.created_at,
                updated_at=question.updated_at,
            ))

        logger.info(f"Prepared {len(rows)} questions for export")
        return rows


# Global instance
analytics_service = AnalyticsService()
