"""Profile reconciliation for federated logins.

Pure functions: they compare a stored account with incoming data and return
only the fields that should change. Persisting the result is the caller's job.
"""

from typing import Any

from src.lessonhub.core.models.identity import FederatedProfile
from src.lessonhub.core.security import normalize_email
from src.lessonhub.entities.core.account import PLACEHOLDER_DISPLAY_NAME, Account


def reconcile(stored: Account, incoming: FederatedProfile) -> dict[str, Any]:
    """Return the field updates a federated login should apply to `stored`.

    - `federated_id` is linked, overwriting any previous value, when it differs.
    - `avatar_url` follows the provider whenever one is supplied.
    - `display_name` is only filled in while the stored name is empty or the
      placeholder; a name the user chose is kept.
    """
    updates: dict[str, Any] = {}

    if incoming.federated_id and incoming.federated_id != stored.federated_id:
        updates["federated_id"] = incoming.federated_id

    if incoming.avatar_url and incoming.avatar_url != stored.avatar_url:
        updates["avatar_url"] = incoming.avatar_url

    if (
        incoming.display_name
        and incoming.display_name != stored.display_name
        and (not stored.display_name or stored.display_name == PLACEHOLDER_DISPLAY_NAME)
    ):
        updates["display_name"] = incoming.display_name

    return updates


def admin_promotion(stored: Account, bootstrap_admin_email: str | None) -> dict[str, Any]:
    """Return the role update for the bootstrap administrator, if one is due."""
    if not bootstrap_admin_email or stored.role == "admin":
        return {}
    if normalize_email(stored.email) != normalize_email(bootstrap_admin_email):
        return {}
    return {"role": "admin"}


def default_display_name(email: str) -> str:
    """Local part of `email`, or the placeholder when there is none."""
    local_part = email.split("@", 1)[0].strip()
    return local_part or PLACEHOLDER_DISPLAY_NAME
