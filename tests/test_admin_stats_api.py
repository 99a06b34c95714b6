import io
from datetime import datetime

import pandas as pd
import pyarrow.parquet as pq

from rulequiz.services.session_identity import new_session_id

STATS = "/admin/stats"


def seed_attempts(add_question, add_attempt):
    beginner = add_question("Who calls a foul?", difficulty="beginner")
    advanced = add_question("When is a pick called?", [("Always", False), ("Never", False), ("Sometimes", True)], difficulty="advanced")
    session_id = new_session_id()
    add_attempt(session_id, beginner, 0, created_at=datetime(2024, 5, 2, 10, 0))
    add_attempt(session_id, advanced, 1, created_at=datetime(2024, 5, 3, 10, 0))
    add_attempt(new_session_id(), advanced, 2, created_at=datetime(2024, 6, 1, 10, 0))
    return beginner, advanced


def test_dashboard(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)

    body = client.get(STATS).json()
    assert body["current_filter"] == "All Time"
    assert body["current_filter_value"] == "all"
    assert body["aggregate_stats"]["total_attempts"] == 3
    assert body["aggregate_stats"]["total_sessions"] == 2
    assert body["aggregate_stats"]["most_attempted_difficulty"] == "advanced"
    assert [q["question_text"] for q in body["question_stats"]] == [
        "When is a pick called?", "Who calls a foul?",
    ]


def test_dashboard_custom_range(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)

    body = client.get(STATS, params={
        "filter": "custom", "start_date": "2024-05-01", "end_date": "2024-05-31",
    }).json()
    assert body["current_filter"] == "Custom Range"
    assert body["current_start_date"] == "2024-05-01"
    assert body["aggregate_stats"]["total_attempts"] == 2
    assert body["aggregate_stats"]["total_questions"] == 2


def test_dashboard_pagination(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)
    body = client.get(STATS, params={"limit": 1, "offset": 1}).json()
    assert [q["question_text"] for q in body["question_stats"]] == ["Who calls a foul?"]


def test_difficulty_and_daily(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)

    difficulty = client.get(f"{STATS}/difficulty").json()
    assert [d["difficulty"] for d in difficulty] == ["beginner", "advanced"]

    daily = client.get(f"{STATS}/daily").json()
    assert [d["date"] for d in daily] == ["2024-05-02", "2024-05-03", "2024-06-01"]
    assert daily[1]["difficulty_attempts"]["advanced"] == {"success_count": 0, "fail_count": 1}


def test_question_detail(client, add_question, add_attempt):
    _, advanced = seed_attempts(add_question, add_attempt)

    body = client.get(f"{STATS}/questions/{advanced.id}").json()
    assert body["total_attempts"] == 2
    assert body["most_common_wrong_answer"] == "Never"
    assert len(body["recent_attempts"]) == 2

    distribution = client.get(f"{STATS}/questions/{advanced.id}/answers").json()
    assert [d["selection_count"] for d in distribution] == [0, 1, 1]


def test_unknown_question_detail(client, scope):
    response = client.get(f"{STATS}/questions/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_charts(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)

    trends = client.get(f"{STATS}/charts/success-trends").json()
    assert trends["labels"] == ["2024-05-02", "2024-05-03", "2024-06-01"]
    assert [s["name"] for s in trends["series"]] == [
        "beginner success", "beginner fail", "advanced success", "advanced fail",
    ]
    assert trends["series"][0]["values"] == [1.0, 0.0, 0.0]

    performance = client.get(f"{STATS}/charts/question-performance").json()
    assert performance["series"][0]["values"] == [50.0, 100.0]

    distribution = client.get(f"{STATS}/charts/difficulty-distribution").json()
    assert distribution["labels"] == ["beginner", "advanced"]


def test_csv_export(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)

    response = client.get(f"{STATS}/export.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="quiz_statistics_')
    assert disposition.endswith('.csv"')

    df = pd.read_csv(io.BytesIO(response.content), dtype=str, keep_default_na=False)
    assert len(df) == 2
    assert "answer_3_text" in df.columns
    assert df.iloc[1]["answer_3_text"] == ""


def test_parquet_export(client, add_question, add_attempt):
    seed_attempts(add_question, add_attempt)

    response = client.get(f"{STATS}/export.parquet", params={"filter": "custom", "start_date": "2024-06-01"})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/vnd.apache.parquet"
    assert response.headers["content-disposition"].endswith('.parquet"')

    table = pq.read_table(io.BytesIO(response.content))
    rows = {row["question_text"]: row for row in table.to_pylist()}
    assert rows["When is a pick called?"]["total_attempts"] == 1
    assert rows["Who calls a foul?"]["total_attempts"] == 0


def test_unknown_question_answers(client, scope):
    response = client.get(f"{STATS}/questions/does-not-exist/answers")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_capitalized_difficulty_gets_its_color(client, add_question, add_attempt):
    question = add_question("Q", difficulty="Beginner")
    add_attempt(new_session_id(), question, 0)

    trends = client.get(f"{STATS}/charts/success-trends").json()
    assert [s["name"] for s in trends["series"]] == ["beginner success", "beginner fail"]
    assert trends["series"][0]["color"] == "#28a745"
