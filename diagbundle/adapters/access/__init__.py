"""Access-control adapters for project permission checks.

Implementations support:
- Static allow-list from configuration
- Remote permission service over HTTP
"""
