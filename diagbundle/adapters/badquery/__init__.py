"""Bad-query history store adapters.

Implementations:
- SQLite (zero-config, single-file)
"""
