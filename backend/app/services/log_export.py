"""
Agent log export: CSV download and rows for the (mock) Google Sheets push.
"""

from typing import Any, List, Sequence
import csv
import io

CSV_HEADER = ["Agent", "Price", "Hotel Rating", "Delivery Time", "Timestamp", "Notes"]
CSV_FILENAME = "travel-agent-logs.csv"


def _row(log: Any) -> List[str]:
    timestamp = log.created_at.isoformat() if log.created_at else ""
    return [
        log.agent,
        f"{float(log.price):.2f}",
        str(log.hotel_rating),
        log.delivery_time,
        timestamp,
        log.notes or "",
    ]


def agent_logs_to_sheet_rows(logs: Sequence[Any]) -> List[List[str]]:
    """Header row followed by one row per log."""
    return [list(CSV_HEADER)] + [_row(log) for log in logs]


def agent_logs_to_csv(logs: Sequence[Any]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(agent_logs_to_sheet_rows(logs))
    return buffer.getvalue()
