"""
Cashflow - Source Package

The recurrence expansion and balance-aggregation engine behind a
personal budgeting app: transactions repeat on a schedule, goals are
funded by contributions, and every figure the app shows is derived by
expanding occurrences and summing signed amounts over a window.

DESIGN PRINCIPLES:
1. Dates are calendar dates, normalized at every boundary
2. Recurrence is always bounded by an explicit end date
3. The engine is pure: snapshots in, new values out
4. The store owns persistence and change notification
5. Lenient recoveries are logged, never hidden
"""

__version__ = "1.0.0"
__author__ = "Cashflow Team"
