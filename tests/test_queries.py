"""Tests for the deterministic query executor."""

import pytest

from noteledger.models import LedgerQuery, TransactionCategory, TransactionDirection
from noteledger.queries import QueryExecutor


@pytest.fixture
def executor(make_record):
    return QueryExecutor([
        make_record(1000, TransactionCategory.LENT, "Rahul", date="17 Jan"),
        make_record(200, TransactionCategory.FOOD, date="17 Jan"),
        make_record(300, TransactionCategory.MONEY_IN, "rahul", date="18 Jan"),
        make_record(150, TransactionCategory.FOOD, date="18  jan"),
    ])


class TestListQueries:
    
    def test_list_by_category(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="list",
            category_filter=TransactionCategory.FOOD,
        ))
        assert result.success is True
        assert result.result_count == 2
        assert [r["amount"] for r in result.results] == [200, 150]
        assert "category: Food" in result.query_description
    
    def test_list_by_direction(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="list",
            direction_filter=TransactionDirection.INCOME,
        ))
        assert [r["category"] for r in result.results] == ["Money In"]
    
    def test_date_filter_ignores_case_and_spacing(self, executor):
        result = executor.execute(LedgerQuery(query_type="list", date_filter="18 Jan"))
        assert [r["amount"] for r in result.results] == [300, 150]
    
    def test_limit(self, executor):
        result = executor.execute(LedgerQuery(query_type="list", limit=1))
        assert result.result_count == 1
    
    def test_no_match(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="list",
            category_filter=TransactionCategory.HEALTH,
        ))
        assert result.success is True
        assert result.data_found is False


class TestAggregateQueries:
    
    def test_total(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="aggregate",
            direction_filter=TransactionDirection.EXPENSE,
        ))
        assert result.aggregation_result["total_amount"] == 1350
        assert result.aggregation_result["transaction_count"] == 3
    
    def test_grouped_by_category(self, executor):
        result = executor.execute(LedgerQuery(query_type="aggregate", group_by="category"))
        assert result.aggregation_result["breakdown"] == {
            "LENT": 1000,
            "Food": 350,
            "Money In": 300,
        }
        assert "grouped by category" in result.query_description
    
    def test_grouped_by_person(self, executor):
        result = executor.execute(LedgerQuery(query_type="aggregate", group_by="person"))
        assert result.aggregation_result["breakdown"] == {"rahul": 1300, "unknown": 350}
    
    def test_empty_aggregate(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="aggregate",
            category_filter=TransactionCategory.SOCIAL,
        ))
        assert result.data_found is False
        assert result.aggregation_result is None


class TestPersonQueries:
    
    def test_person_ledger(self, executor):
        result = executor.execute(LedgerQuery(query_type="person", person_filter=" RAHUL "))
        assert result.result_count == 2
        assert result.aggregation_result["lent"] == 1000
        assert result.aggregation_result["received"] == 300
        assert result.aggregation_result["balance"] == 700
        assert result.aggregation_result["display_name"] == "Rahul"
    
    def test_person_query_needs_name(self, executor):
        result = executor.execute(LedgerQuery(query_type="person"))
        assert result.success is False
        assert "person_filter" in result.error_message


class TestExistsQueries:
    
    def test_exists(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="exists",
            category_filter=TransactionCategory.LENT,
        ))
        assert result.results[0] == {"exists": True, "answer": "yes"}
        assert result.results[1]["counterparty_name"] == "Rahul"
    
    def test_does_not_exist(self, executor):
        result = executor.execute(LedgerQuery(
            query_type="exists",
            person_filter="Priya",
        ))
        assert result.data_found is False
        assert result.results == [{"exists": False, "answer": "no"}]


class TestQueryValidation:
    
    def test_unknown_query_type_is_rejected(self):
        with pytest.raises(ValueError):
            LedgerQuery(query_type="delete")
