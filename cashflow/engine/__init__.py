"""
Engine Package

Pure functions over record snapshots:
- dates: calendar-date normalization
- recurrence: occurrence expansion
- ledger: balances over windows, goal feasibility
- ordering: sorting and filtering of records

Import from the submodules directly; the record models depend on
``dates`` and the other submodules depend on the record models.
"""
