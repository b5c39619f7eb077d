"""
Script: release_tools/permission_check.py
What: Verifies that the user triggering a workflow may run it.
Doing: Looks up the user's collaborator permission and requires admin, write, or maintain.
Why: Release workflows publish artifacts and must not run for read-only users.
Goal: Stop unauthorized runs early with a clear message.
"""

from __future__ import annotations

from typing import Callable

from release_tools.common import PermissionDeniedError, require_env
from release_tools.github_api import get_collaborator_permission


BYPASS_USER = "dependabot[bot]"
ALLOWED_PERMISSIONS = frozenset({"admin", "write", "maintain"})


def check_permission(
    *,
    user: str,
    repository: str,
    permission_lookup: Callable[[str, str], str],
) -> str:
    """
    Raise `PermissionDeniedError` unless `user` has an allowed permission.

    Returns the permission level that was checked, or an empty string for
    the bypass user (no lookup is done for it).
    """
    if user == BYPASS_USER:
        print(f"{user} is running this workflow now, manually approved - Bypassing permission check")
        return ""

    permission = permission_lookup(repository, user)
    print(f"Returned permission is {permission}")
    if permission not in ALLOWED_PERMISSIONS:
        raise PermissionDeniedError(
            f"Permission check failure, user {user} is not authorized to run workflow "
            f"on {repository}, permission is {permission}"
        )
    return permission


def main() -> None:
    user = require_env("PERMISSION_USER")
    repository = require_env("GITHUB_REPO")
    token = require_env("GITHUB_TOKEN")

    check_permission(
        user=user,
        repository=repository,
        permission_lookup=lambda repo, login: get_collaborator_permission(repo, login, token),
    )


if __name__ == "__main__":
    main()
