"""
Tests for Note Ledger models

Test strategy:
1. Unit tests for individual components (models, rules)
2. Flow tests for the session orchestrator
3. No storage, no network
"""

import hashlib

import pytest
from uuid import uuid4

from noteledger.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    CategoryDominance,
    ClassifierConfig,
    DebtReconciliation,
    ExtractionTarget,
    KeywordRule,
    LedgerTotals,
    PersonLedgerEntry,
    TransactionCategory,
    TransactionDirection,
    TransactionRecord,
    default_rules,
    normalize_name,
)


class TestTransactionRecord:
    """Tests for the TransactionRecord model."""
    
    def test_record_creation(self):
        """Test TransactionRecord model creation."""
        record = TransactionRecord(
            amount=200,
            category=TransactionCategory.TRAVEL,
            date="17 Jan",
            source_line="17 Jan Travel ₹200",
        )
        assert record.amount == 200
        assert record.direction == TransactionDirection.EXPENSE
        assert record.counterparty_name is None
        assert record.detail is None
    
    def test_record_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            TransactionRecord(
                amount=-1,
                category=TransactionCategory.FOOD,
                source_line="Food ₹-1",
            )
    
    def test_record_rejects_unknown_category(self):
        """Test that category is a closed vocabulary."""
        with pytest.raises(ValueError):
            TransactionRecord(
                amount=10,
                category="Snacks",
                source_line="Snacks ₹10",
            )
    
    def test_record_rejects_blank_counterparty(self):
        """Test that a present counterparty name cannot be blank."""
        with pytest.raises(ValueError, match="Counterparty name cannot be empty"):
            TransactionRecord(
                amount=10,
                category=TransactionCategory.LENT,
                counterparty_name="   ",
                source_line="lent to ₹10",
            )
    
    def test_record_is_frozen(self):
        """Test that records cannot change after creation."""
        record = TransactionRecord(
            amount=10,
            category=TransactionCategory.FOOD,
            source_line="Food ₹10",
        )
        with pytest.raises(ValueError):
            record.amount = 20
    
    def test_money_in_is_income(self):
        """Test direction follows category."""
        record = TransactionRecord(
            amount=2000,
            category=TransactionCategory.MONEY_IN,
            counterparty_name="Sow",
            source_line="Money In : Sow ₹2000",
        )
        assert record.direction == TransactionDirection.INCOME
        assert record.is_money_in is True
        assert record.is_lending is False
    
    def test_lending_stays_expense(self):
        """Test that lending is an expense tagged as lending."""
        record = TransactionRecord(
            amount=1000,
            category=TransactionCategory.LENT,
            counterparty_name=" Rahul ",
            source_line="lent to Rahul ₹1000",
        )
        assert record.direction == TransactionDirection.EXPENSE
        assert record.is_lending is True
        assert record.counterparty_name == "Rahul"
        assert record.counterparty_key == "rahul"
    
    def test_fingerprint_is_sha256_of_line(self):
        """Test the fingerprint is derived from the original line only."""
        line = "lent to Rahul ₹1000"
        record = TransactionRecord(
            amount=1000,
            category=TransactionCategory.LENT,
            counterparty_name="Rahul",
            source_line=line,
        )
        assert record.fingerprint == hashlib.sha256(line.encode("utf-8")).hexdigest()
    
    def test_storage_row_tags_lending(self):
        """Test lending records become 'lending' only in storage rows."""
        record = TransactionRecord(
            amount=1000,
            category=TransactionCategory.LENT,
            counterparty_name="Rahul",
            detail="Rahul",
            source_line="lent to Rahul ₹1000",
        )
        row = record.to_storage_row()
        assert row["transaction_type"] == "lending"
        assert row["category"] == "LENT"
        assert row["recipient_name"] == "Rahul"
        assert row["fingerprint"] == record.fingerprint
    
    def test_storage_row_for_expense(self):
        """Test plain expenses keep their direction in storage rows."""
        record = TransactionRecord(
            amount=300,
            category=TransactionCategory.SOCIAL,
            date="17 Jan",
            source_line="17 Jan Social ₹300",
        )
        row = record.to_storage_row()
        assert row["transaction_type"] == "expense"
        assert row["transaction_date"] == "17 Jan"
        assert row["sub_category"] is None


class TestNameNormalization:
    """Tests for the counterparty identity key."""
    
    @pytest.mark.parametrize("raw", ["Sow", " sow ", "SOW", "sOw\t"])
    def test_case_and_whitespace_fold(self, raw):
        assert normalize_name(raw) == "sow"
    
    def test_inner_whitespace_collapses(self):
        assert normalize_name("Anna   Maria") == "anna maria"
    
    def test_blank_is_none(self):
        assert normalize_name("   ") is None
        assert normalize_name(None) is None


class TestLedgerModels:
    """Tests for reconciliation output models."""
    
    def test_person_entry_derived_fields(self):
        """Test settled and balance are derived."""
        entry = PersonLedgerEntry(
            normalized_name="sow",
            display_name="Sow",
            lent=500,
            received=2000,
        )
        assert entry.settled == 500
        assert entry.balance == -1500
        assert entry.is_fully_settled is True
    
    def test_fully_settled_differs_from_never_repaid(self):
        """Test lent == received is told apart from received == 0."""
        settled = PersonLedgerEntry(normalized_name="a", display_name="A", lent=400, received=400)
        unpaid = PersonLedgerEntry(normalized_name="b", display_name="B", lent=400, received=0)
        
        assert settled.balance == 0
        assert settled.is_fully_settled is True
        assert settled.has_repayment is True
        
        assert unpaid.balance == 400
        assert unpaid.is_fully_settled is False
        assert unpaid.has_repayment is False
    
    def test_recovery_percentage_fallback(self):
        """Test nothing lent counts as fully recovered instead of NaN."""
        entry = PersonLedgerEntry(normalized_name="a", display_name="A", lent=0, received=0)
        assert entry.recovery_percentage == 100.0
        assert DebtReconciliation().recovery_percentage == 100.0
    
    def test_recovery_percentage_partial(self):
        entry = PersonLedgerEntry(normalized_name="a", display_name="A", lent=400, received=100)
        assert entry.recovery_percentage == 25.0
    
    def test_reconciliation_lookup_by_any_spelling(self):
        entry = PersonLedgerEntry(normalized_name="sow", display_name="Sow", lent=500)
        reconciliation = DebtReconciliation(per_person={"sow": entry})
        assert reconciliation.get("  SOW ") is entry
        assert reconciliation.get("nobody") is None
        assert reconciliation.get("") is None
    
    def test_totals_adjustment(self):
        """Test settled money is removed from both income and expense."""
        totals = LedgerTotals(raw_income=2000, raw_expense=500, total_settled=500)
        assert totals.adjusted_income == 1500
        assert totals.adjusted_expense == 0
        assert totals.net == 1500
    
    def test_dominance_total(self):
        row = CategoryDominance(category="Food", saved=100, unsaved=50)
        assert row.total == 150


class TestRules:
    """Tests for the classification rule table."""
    
    def test_default_rule_order(self):
        """Test structural rules come before single-word rules."""
        keywords = [rule.keyword for rule in default_rules()]
        assert keywords[:3] == ["lent", "others", "money in"]
        assert keywords.index("health") > keywords.index("others")
    
    def test_rule_direction_must_match_category(self):
        """Test a rule cannot give a category another direction."""
        with pytest.raises(ValueError, match="declares income"):
            KeywordRule(
                keyword="rent",
                category=TransactionCategory.GENERAL,
                direction=TransactionDirection.INCOME,
            )
    
    def test_extracting_rule_needs_pattern(self):
        with pytest.raises(ValueError, match="without a pattern"):
            KeywordRule(
                keyword="paid",
                category=TransactionCategory.GENERAL,
                extract=ExtractionTarget.DETAIL,
            )
    
    def test_keyword_is_lowercased(self):
        rule = KeywordRule(keyword=" Food ", category=TransactionCategory.FOOD)
        assert rule.keyword == "food"
        assert rule.resolved_direction == TransactionDirection.EXPENSE
    
    def test_duplicate_keywords_rejected(self):
        with pytest.raises(ValueError, match="Duplicate rule keyword"):
            ClassifierConfig(rules=[
                KeywordRule(keyword="food", category=TransactionCategory.FOOD),
                KeywordRule(keyword="FOOD", category=TransactionCategory.SOCIAL),
            ])


class TestAuditModels:
    """Tests for audit-related models."""
    
    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.NOTE_RECEIVED,
            description="Note received",
        )
        assert event.event_type == AuditEventType.NOTE_RECEIVED
        assert event.severity == AuditSeverity.INFO
    
    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.note_classified(
            recognized=4,
            unrecognized=1,
            correlation_id=uuid4(),
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "note_classified"
        assert log_dict["details"]["recognized"] == 4
    
    def test_audit_event_to_row(self):
        """Test conversion to a flat row."""
        event = AuditEventBuilder.line_unrecognized(
            line="Travel ₹abc",
            correlation_id=uuid4(),
        )
        row = event.to_row()
        assert len(row) == 8
        assert row[2] == "line_unrecognized"
        assert row[3] == "warning"
        assert "Travel ₹abc" in row[6]
    
    def test_system_error_event(self):
        event = AuditEventBuilder.system_error(
            error_type="storage_row",
            error_message="Unknown category",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "Unknown category"
        assert event.correlation_id is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
