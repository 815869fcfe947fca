"""HTTP transport for diagnosis operations.

Exposes bundle downloads and bad-query lookups to remote clients.
"""
