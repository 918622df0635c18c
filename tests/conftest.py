"""Shared fixtures for Note Ledger tests."""

import pytest

from noteledger.audit import AuditLogger
from noteledger.config import ParserSettings, get_settings
from noteledger.models import TransactionCategory, default_classifier_config
from noteledger.parsing import LineClassifier, assemble_record


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Every test starts from default settings, whatever the environment says."""
    for var in (
        "NOTELEDGER_PARSER_CURRENCY_MARKER",
        "NOTELEDGER_PARSER_SEPARATOR_MIN_DASHES",
        "NOTELEDGER_PARSER_STRICT_AMOUNTS",
        "NOTELEDGER_PARSER_DOMINANCE_LIMIT",
        "NOTELEDGER_LOG_LEVEL",
        "NOTELEDGER_LOG_JSON_OUTPUT",
    ):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def classifier():
    return LineClassifier(default_classifier_config(ParserSettings()))


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def make_record():
    """Build a record without going through the classifier."""
    def _make(amount, category, name=None, date=None, detail=None, line=None):
        return assemble_record(
            amount=amount,
            category=category,
            source_line=line or f"{category.value} {name or ''} ₹{amount}",
            date=date,
            counterparty_name=name,
            detail=detail if detail is not None else name,
        )
    return _make


@pytest.fixture
def lending_records(make_record):
    return [
        make_record(1000, TransactionCategory.LENT, "Rahul"),
        make_record(500, TransactionCategory.LENT, "Sow"),
        make_record(200, TransactionCategory.FOOD),
        make_record(300, TransactionCategory.MONEY_IN, "rahul "),
        make_record(800, TransactionCategory.MONEY_IN, "Priya"),
        make_record(700, TransactionCategory.MONEY_IN, "RAHUL"),
    ]
