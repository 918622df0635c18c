"""
Query Execution Engine

DESIGN DECISION: Query execution is DETERMINISTIC.
A presentation or storage layer describes what it wants as a LedgerQuery;
this engine answers from the record collection it was built with.
Nothing is estimated or invented.
"""

from collections.abc import Iterable
from typing import Optional

from noteledger.ledger.reconciliation import reconcile_debts
from noteledger.models.query import LedgerQuery, QueryResult
from noteledger.models.transaction import TransactionRecord, normalize_name


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


class QueryExecutor:
    """
    Executes structured queries against a record collection.
    
    GUARANTEES:
    - Only returns data present in the collection
    - Clear "no data found" if nothing matches
    - Never mutates the collection
    """
    
    def __init__(self, records: Iterable[TransactionRecord]):
        self._records = tuple(records)
    
    def execute(self, query: LedgerQuery) -> QueryResult:
        """
        Execute a structured query and return results.
        
        Failures come back as an unsuccessful QueryResult, not an exception.
        """
        handlers = {
            "list": self._execute_list,
            "aggregate": self._execute_aggregate,
            "person": self._execute_person,
            "exists": self._execute_exists,
        }
        try:
            handler = handlers.get(query.query_type)
            if handler is None:
                raise QueryExecutionError(f"Unsupported query type: {query.query_type}")
            return handler(query)
        except Exception as e:
            return QueryResult(
                query_id=query.query_id,
                success=False,
                error_message=str(e),
                data_found=False,
                result_count=0,
                query_description=f"Query failed: {str(e)}",
            )
    
    def _filter(self, query: LedgerQuery) -> list[TransactionRecord]:
        person_key = normalize_name(query.person_filter)
        date_key = " ".join(query.date_filter.split()).lower() if query.date_filter else None
        
        matches = []
        for record in self._records:
            if query.category_filter and record.category != query.category_filter:
                continue
            if query.direction_filter and record.direction != query.direction_filter:
                continue
            if person_key and record.counterparty_key != person_key:
                continue
            if date_key and (record.date is None or " ".join(record.date.split()).lower() != date_key):
                continue
            matches.append(record)
        return matches
    
    def _describe(self, prefix: str, query: LedgerQuery) -> str:
        desc_parts = [prefix]
        if query.category_filter:
            desc_parts.append(f"category: {query.category_filter.value}")
        if query.direction_filter:
            desc_parts.append(f"direction: {query.direction_filter.value}")
        if query.person_filter:
            desc_parts.append(f"person: {query.person_filter}")
        if query.date_filter:
            desc_parts.append(f"on {query.date_filter}")
        return " | ".join(desc_parts)
    
    def _execute_list(self, query: LedgerQuery) -> QueryResult:
        """List matching records, in note order."""
        records = self._filter(query)[:query.limit]
        results = [self._record_to_dict(r) for r in records]
        
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(results) > 0,
            result_count=len(results),
            results=results,
            query_description=self._describe("Listing transactions", query),
        )
    
    def _execute_aggregate(self, query: LedgerQuery) -> QueryResult:
        """Sum and count matching records, optionally grouped."""
        records = self._filter(query)
        
        if not records:
            return QueryResult(
                query_id=query.query_id,
                success=True,
                data_found=False,
                result_count=0,
                query_description="No transactions found for aggregation",
            )
        
        aggregation_result = {
            "total_amount": sum(r.amount for r in records),
            "transaction_count": len(records),
        }
        if query.group_by:
            aggregation_result["breakdown"] = self._grouped_totals(records, query.group_by)
        
        description = self._describe("Calculating total", query)
        if query.group_by:
            description += f" | grouped by {query.group_by}"
        
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=True,
            result_count=len(records),
            aggregation_result=aggregation_result,
            query_description=description,
        )
    
    def _grouped_totals(self, records: list[TransactionRecord], group_by: str) -> dict:
        """Sum amounts per group key, in first-appearance order."""
        groups: dict[str, int] = {}
        for record in records:
            if group_by == "category":
                key = record.category.value
            elif group_by == "person":
                key = record.counterparty_key or "unknown"
            elif group_by == "date":
                key = record.date or "undated"
            else:
                raise QueryExecutionError(f"Unsupported grouping: {group_by}")
            groups[key] = groups.get(key, 0) + record.amount
        return groups
    
    def _execute_person(self, query: LedgerQuery) -> QueryResult:
        """Ledger entry and transactions for one counterparty."""
        if not query.person_filter:
            raise QueryExecutionError("Person query needs a person_filter")
        
        records = self._filter(query)
        entry = reconcile_debts(self._records).get(query.person_filter)
        
        aggregation_result: Optional[dict] = None
        if entry is not None:
            aggregation_result = {
                "display_name": entry.display_name,
                "lent": entry.lent,
                "received": entry.received,
                "settled": entry.settled,
                "balance": entry.balance,
                "recovery_percentage": entry.recovery_percentage,
            }
        
        results = [self._record_to_dict(r) for r in records[:query.limit]]
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=len(results) > 0,
            result_count=len(results),
            results=results,
            aggregation_result=aggregation_result,
            query_description=self._describe("Looking up person", query),
        )
    
    def _execute_exists(self, query: LedgerQuery) -> QueryResult:
        """Yes/no check, with the first match for context."""
        records = self._filter(query)
        exists = len(records) > 0
        
        result_data = [{"exists": exists, "answer": "yes" if exists else "no"}]
        if exists:
            result_data.append(self._record_to_dict(records[0]))
        
        return QueryResult(
            query_id=query.query_id,
            success=True,
            data_found=exists,
            result_count=1 if exists else 0,
            results=result_data,
            query_description=self._describe("Checking for transactions", query),
        )
    
    def _record_to_dict(self, record: TransactionRecord) -> dict:
        """Convert a record to a dictionary for results."""
        return {
            "amount": record.amount,
            "category": record.category.value,
            "direction": record.direction.value,
            "date": record.date,
            "counterparty_name": record.counterparty_name,
            "detail": record.detail,
            "source_line": record.source_line,
        }
