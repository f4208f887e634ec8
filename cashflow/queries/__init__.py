"""Query execution package."""

from cashflow.queries.executor import CashflowQueries, QueryExecutionError

__all__ = ["CashflowQueries", "QueryExecutionError"]
