"""
CSV and Parquet encoders for per-question statistics exports

Both formats carry the same logical rows. CSV flattens the answers into
answer_N_* column groups padded to the widest question; Parquet keeps
them as a nested list<struct> column.
"""
import io
import logging
from datetime import datetime
from typing import List, Sequence

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from rulequiz.schemas.analytics import QuestionExportData

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

LEADING_COLUMNS = [
    "question_id",
    "question_text",
    "explanation",
    "difficulty_level",
    "rule_references",
    "total_attempts",
    "correct_attempts",
    "success_rate_percent",
]
TRAILING_COLUMNS = ["created_at", "updated_at"]
ANSWER_COLUMN_SUFFIXES = ["text", "correct", "selections", "percentage"]

ANSWER_STRUCT = pa.struct([
    pa.field("text", pa.string(), nullable=False),
    pa.field("is_correct", pa.bool_(), nullable=False),
    pa.field("sort_order", pa.int32(), nullable=False),
    pa.field("selection_count", pa.uint64(), nullable=False),
    pa.field("selection_percentage", pa.float64(), nullable=False),
])

# The list item stays nullable: downstream readers were built against
# files whose list element field is declared nullable.
PARQUET_SCHEMA = pa.schema([
    pa.field("question_id", pa.string(), nullable=False),
    pa.field("question_text", pa.string(), nullable=False),
    pa.field("explanation", pa.string(), nullable=False),
    pa.field("difficulty_level", pa.string(), nullable=False),
    pa.field("rule_references", pa.string(), nullable=False),
    pa.field("total_attempts", pa.uint64(), nullable=False),
    pa.field("correct_attempts", pa.uint64(), nullable=False),
    pa.field("success_rate_percent", pa.float64(), nullable=False),
    pa.field("answers", pa.list_(pa.field("item", ANSWER_STRUCT, nullable=True)), nullable=False),
    pa.field("created_at", pa.string(), nullable=False),
    pa.field("updated_at", pa.string(), nullable=False),
])


def max_answers(rows: Sequence[QuestionExportData]) -> int:
    return max((len(row.answers) for row in rows), default=0)


def csv_headers(answer_width: int) -> List[str]:
    headers = list(LEADING_COLUMNS)
    for n in range(1, answer_width + 1):
        headers.extend(f"answer_{n}_{suffix}" for suffix in ANSWER_COLUMN_SUFFIXES)
    headers.extend(TRAILING_COLUMNS)
    return headers


def _format_rate(value: float) -> str:
    return f"{value:.1f}"


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _csv_record(row: QuestionExportData, answer_width: int) -> List[str]:
    record = [
        row.question_id,
        row.question_text,
        row.explanation,
        row.difficulty_level,
        row.rule_references,
        str(row.total_attempts),
        str(row.correct_attempts),
        _format_rate(row.success_rate_percent),
    ]
    for index in range(answer_width):
        if index < len(row.answers):
            answer = row.answers[index]
            record.extend([
                answer.text,
                _format_bool(answer.is_correct),
                str(answer.selection_count),
                _format_rate(answer.selection_percentage),
            ])
        else:
            record.extend([""] * len(ANSWER_COLUMN_SUFFIXES))
    record.append(row.created_at.strftime(TIMESTAMP_FORMAT))
    record.append(row.updated_at.strftime(TIMESTAMP_FORMAT))
    return record


def to_csv(rows: Sequence[QuestionExportData]) -> bytes:
    """Encode export rows as UTF-8 CSV with flattened answer columns"""
    answer_width = max_answers(rows)
    headers = csv_headers(answer_width)

    df = pd.DataFrame(
        [_csv_record(row, answer_width) for row in rows],
        columns=headers,
        dtype="string",
    )
    buffer = io.StringIO()
    df.to_csv(buffer, index=False, lineterminator="\n")

    logger.info(f"CSV export: {len(rows)} rows, {answer_width} answer column groups")
    return buffer.getvalue().encode("utf-8")


def to_record_batch(rows: Sequence[QuestionExportData]) -> pa.RecordBatch:
    records = [
        {
            "question_id": row.question_id,
            "question_text": row.question_text,
            "explanation": row.explanation,
            "difficulty_level": row.difficulty_level,
            "rule_references": row.rule_references,
            "total_attempts": row.total_attempts,
            "correct_attempts": row.correct_attempts,
            "success_rate_percent": row.success_rate_percent,
            "answers": [
                {
                    "text": answer.text,
                    "is_correct": answer.is_correct,
                    "sort_order": answer.sort_order,
                    "selection_count": answer.selection_count,
                    "selection_percentage": answer.selection_percentage,
                }
                for answer in row.answers
            ],
            "created_at": row.created_at.strftime(TIMESTAMP_FORMAT),
            "updated_at": row.updated_at.strftime(TIMESTAMP_FORMAT),
        }
        for row in rows
    ]
    return pa.RecordBatch.from_pylist(records, schema=PARQUET_SCHEMA)


def to_parquet(rows: Sequence[QuestionExportData]) -> bytes:
    """Encode export rows as a single-row-group Parquet file"""
    table = pa.Table.from_batches([to_record_batch(rows)], schema=PARQUET_SCHEMA)
    buffer = io.BytesIO()
    pq.write_table(table, buffer)

    logger.info(f"Parquet export: {len(rows)} rows")
    return buffer.getvalue()


def export_filename(extension: str, now: datetime) -> str:
    return f"quiz_statistics_{now.strftime('%Y-%m-%d_%H%M')}.{extension}"
