"""Static access-control adapter.

Implements AccessControlPort from a fixed allow-list taken from
configuration. Suitable for single-node deployments without a
permission service.
"""

from collections.abc import Iterable

from diagbundle.core.errors import PermissionDeniedError
from diagbundle.core.ports import AccessControlPort

WILDCARD = "*"


class StaticAccessControlAdapter(AccessControlPort):
    """Grants operation permission per user from an allow-list.

    The allow-list maps a user to the projects they may operate on.
    The user "*" applies to everyone and the project "*" matches any project.
    """

    def __init__(self, allowed: dict[str, Iterable[str]]):
        self.allowed = {user: frozenset(projects) for user, projects in allowed.items()}

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> "StaticAccessControlAdapter":
        """Build from "user:project" entries, as found in configuration.

        Raises:
            ValueError: If an entry is not of the form "user:project".
        """
        allowed: dict[str, set[str]] = {}
        for entry in entries:
            user, sep, project = entry.partition(":")
            if not sep or not user.strip() or not project.strip():
                raise ValueError(f"Invalid access entry '{entry}', expected 'user:project'")
            allowed.setdefault(user.strip(), set()).add(project.strip())
        return cls(allowed)

    async def check_project_operation_permission(
        self, project: str, user: str
    ) -> None:
        """Raise PermissionDeniedError unless the allow-list grants access."""
        for grantee in (user, WILDCARD):
            projects = self.allowed.get(grantee, frozenset())
            if project in projects or WILDCARD in projects:
                return
        raise PermissionDeniedError(project, user)
