"""
Structured logging formatter tests.
"""

import json
import logging

from src.shared.infrastructure.logging import REDACTED, CustomJsonFormatter, log_latency


def _format(**extra) -> dict:
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="staging")
    record = logging.makeLogRecord({
        "name": "src.grievances",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": "Grievance created",
        **extra,
    })
    return json.loads(formatter.format(record))


def test_adds_timestamp_and_environment():
    payload = _format()
    assert payload["message"] == "Grievance created"
    assert payload["environment"] == "staging"
    assert "timestamp" in payload


def test_includes_correlation_id():
    assert _format(correlation_id="abc-123")["correlation_id"] == "abc-123"


def test_redacts_sensitive_keys():
    payload = _format(api_token="secret", db_password="hunter2", ticket_number="JS25010001")
    assert payload["api_token"] == REDACTED
    assert payload["db_password"] == REDACTED
    assert payload["ticket_number"] == "JS25010001"


def test_log_latency_reports_operation(caplog):
    logger = logging.getLogger("tests.latency")
    with caplog.at_level(logging.INFO, logger="tests.latency"):
        with log_latency(logger, "grievance_table_scan", backend="table"):
            pass

    record = caplog.records[-1]
    assert record.getMessage() == "grievance_table_scan completed"
    assert record.operation == "grievance_table_scan"
    assert record.backend == "table"
    assert record.latency_ms >= 0
