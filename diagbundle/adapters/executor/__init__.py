"""Command executor adapters.

Implementations run the diagnostic script:
- Shell (asyncio subprocess with process-group termination)
"""
