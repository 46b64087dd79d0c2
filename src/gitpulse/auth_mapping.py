"""Group repositories by the credential that can read them.

Repositories whose owner has a selected app installation are fetched with
that installation's token; everything else falls back to the user's OAuth
token.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

OAUTH_GROUP = "oauth"


@dataclass(frozen=True)
class Installation:
    id: int
    account_login: str
    app_slug: str | None = None
    app_id: int | None = None
    target_type: str | None = None


def _owner(full_name: str) -> str:
    return full_name.split("/", 1)[0]


def map_organizations_to_installations(
    repositories: Sequence[str],
    installations: Sequence[Installation],
    selected_ids: Iterable[int],
) -> dict[str, int]:
    """Map each repository owner to the first selected installation for it."""
    selected = set(selected_ids)
    mapping: dict[str, int] = {}
    if not selected:
        return mapping

    checked: set[str] = set()
    for full_name in repositories:
        owner = _owner(full_name)
        if owner in checked:
            continue
        checked.add(owner)
        for installation in installations:
            if installation.account_login == owner and installation.id in selected:
                mapping[owner] = installation.id
                break
    return mapping


def map_repositories_to_installations(
    repositories: Sequence[str],
    installations: Sequence[Installation],
    selected_ids: Iterable[int],
) -> dict[str, list[str]]:
    """Bucket repositories by installation id.

    The ``"oauth"`` bucket is always present and always first; the other keys
    are installation ids as strings, in first-seen order. Repositories keep
    their input order within a bucket.
    """
    by_owner = map_organizations_to_installations(repositories, installations, selected_ids)
    groups: dict[str, list[str]] = {OAUTH_GROUP: []}
    for full_name in repositories:
        installation_id = by_owner.get(_owner(full_name))
        key = str(installation_id) if installation_id is not None else OAUTH_GROUP
        groups.setdefault(key, []).append(full_name)
    return groups
