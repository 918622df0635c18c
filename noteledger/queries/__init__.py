"""Query execution package."""

from noteledger.queries.executor import QueryExecutionError, QueryExecutor

__all__ = ["QueryExecutionError", "QueryExecutor"]
