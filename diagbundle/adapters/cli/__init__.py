"""Command-line interface adapters.

Provides CLI commands for operating diagbundle:
- project: Generate a diagnosis package for a project
- job: Generate a diagnosis package for a job
- bad-queries: Show a project's bad-query history
- sweep: Remove expired workspaces
"""
