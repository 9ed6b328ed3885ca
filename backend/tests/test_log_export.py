"""CSV and sheet-row export of agent logs."""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from app.services.log_export import CSV_HEADER, agent_logs_to_csv, agent_logs_to_sheet_rows


def log(agent, price, notes="Value score 108.0, selected for Bali"):
    return SimpleNamespace(
        agent=agent,
        price=Decimal(price),
        hotel_rating=5,
        delivery_time="2 min",
        notes=notes,
        created_at=datetime(2026, 10, 1, 9, 30, 0),
    )


def test_empty_export_is_header_only():
    assert agent_logs_to_csv([]) == '"Agent","Price","Hotel Rating","Delivery Time","Timestamp","Notes"\n'
    assert agent_logs_to_sheet_rows([]) == [CSV_HEADER]


def test_every_field_quoted():
    lines = agent_logs_to_csv([log("TravelBot Pro", "205000")]).splitlines()
    assert lines[1] == (
        '"TravelBot Pro","205000.00","5","2 min","2026-10-01T09:30:00","Value score 108.0, selected for Bali"'
    )


def test_embedded_quotes_are_doubled():
    lines = agent_logs_to_csv([log("WanderBot", "1799", notes='Said "best value"')]).splitlines()
    assert lines[1].endswith('"Said ""best value"""')


def test_sheet_rows_follow_input_order():
    rows = agent_logs_to_sheet_rows([log("B", "2"), log("A", "1")])
    assert [r[0] for r in rows] == ["Agent", "B", "A"]
    assert rows[1][1] == "2.00"
