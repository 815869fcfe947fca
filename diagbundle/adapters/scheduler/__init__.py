"""Scheduler adapters for periodic maintenance.

Implementations:
- WorkspaceJanitor: sweeps expired diagnosis workspaces
"""
