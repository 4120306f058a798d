"""Role gates applied by the services"""

from agency_ledger.domain.exceptions import PermissionDeniedError
from agency_ledger.domain.models import Actor


def require_admin(actor: Actor, action: str) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError(f"Only admins can {action}")
