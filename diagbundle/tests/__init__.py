"""Test suite for diagbundle.

Organized into four categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Tests against real processes or mocked external systems
   - Validates adapter behavior and error handling

3. integration/: End-to-end pipeline runs with real diagnostic scripts

4. fakes/: Port implementations for testing
   - In-memory implementations of AccessControlPort, CommandExecutorPort, etc.
   - Used by core unit tests
"""
