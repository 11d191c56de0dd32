"""
Run T-SQL statements against SQL Server and normalise the results.

Each input work item resolves its own connection settings (stored
credentials merged with per-item overrides), opens a single connection,
executes either a user statement or a database listing and emits one
output item per row (or one aggregated item).  Failures are isolated per
item: they either become error items or abort the batch.  See
``mssql_exec.services.runner`` for the entry point.
"""
