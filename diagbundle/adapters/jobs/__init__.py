"""Job-metadata adapters.

Resolve job IDs to their owning project via the job service REST API.
"""
