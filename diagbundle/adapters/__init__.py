"""External adapters for the diagbundle orchestration system.

This package contains all external dependencies (shell processes, REST
services, SQLite, HTTP servers, etc.) and provides implementations of the
core port interfaces.

Adapter Organization:

- access/: Project permission checks (static allow-list, REST service)
- jobs/: Job-metadata lookup (REST service)
- executor/: Running the diagnostic script (shell subprocess)
- badquery/: Bad-query history persistence (SQLite)
- scheduler/: Periodic workspace sweeps
- cli/: Command-line interface
- server/: HTTP transport for downloads and bad-query lookups
"""
