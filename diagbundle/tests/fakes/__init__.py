"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeAccessControlPort: Configurable permission denials
- FakeJobLookupPort: In-memory job registry
- FakeCommandExecutor: Simulated diagnostic script runs
- FakeBadQueryStore: In-memory bad-query history
- FakeDiagnosisPort: Canned diagnosis operations for adapters
"""

from .access import FakeAccessControlPort, FakeJobLookupPort
from .badquery import FakeBadQueryStore
from .diagnosis import FakeDiagnosisPort
from .executor import FakeCommandExecutor

__all__ = [
    "FakeAccessControlPort",
    "FakeBadQueryStore",
    "FakeCommandExecutor",
    "FakeDiagnosisPort",
    "FakeJobLookupPort",
]
