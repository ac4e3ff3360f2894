"""
FILE: nexuschain/core/permissions.py
Role → action authorization table

Flat role checks plus two ownership rules. There is no status
transition graph: any role allowed to add a checkpoint may set any status.
"""

import enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from nexuschain.shared.models import User, UserRole


class Action(str, enum.Enum):
    REGISTER_PRODUCT = "REGISTER_PRODUCT"
    MANAGE_PRODUCT = "MANAGE_PRODUCT"          # update / soft-delete / blockchain hash
    ADD_CHECKPOINT = "ADD_CHECKPOINT"
    MANAGE_CHECKPOINT = "MANAGE_CHECKPOINT"    # update / delete
    VIEW = "VIEW"                              # list/get products & checkpoints
    MANAGE_USERS = "MANAGE_USERS"


ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)

# Roles that may attempt the action at all. Ownership (below) narrows it further.
ROLE_PERMISSIONS: Dict[Action, FrozenSet[UserRole]] = {
    Action.REGISTER_PRODUCT: frozenset({UserRole.MANUFACTURER, UserRole.ADMIN}),
    Action.MANAGE_PRODUCT: frozenset({UserRole.MANUFACTURER, UserRole.ADMIN}),
    Action.ADD_CHECKPOINT: frozenset({UserRole.LOGISTICS, UserRole.MANUFACTURER, UserRole.ADMIN}),
    Action.MANAGE_CHECKPOINT: ALL_ROLES,
    Action.VIEW: ALL_ROLES,
    Action.MANAGE_USERS: frozenset({UserRole.ADMIN}),
}

# Actions scoped to the owning record: the actor must own it unless ADMIN
OWNERSHIP_SCOPED: FrozenSet[Action] = frozenset({Action.MANAGE_PRODUCT, Action.MANAGE_CHECKPOINT})

_missing = set(Action) - set(ROLE_PERMISSIONS)
if _missing:
    raise RuntimeError(f"Actions without a permission entry: {sorted(a.value for a in _missing)}")


def allowed_roles(action: Action) -> FrozenSet[UserRole]:
    return ROLE_PERMISSIONS[action]


def is_allowed(action: Action, actor: User, owner_id: Optional[UUID] = None) -> bool:
    """
    Check whether actor may perform action, optionally on a record owned by owner_id.
    Inactive users are never allowed anything.
    """
    if not actor.is_active:
        return False
    if actor.role not in ROLE_PERMISSIONS[action]:
        return False
    if action in OWNERSHIP_SCOPED and actor.role != UserRole.ADMIN:
        return owner_id is not None and owner_id == actor.id
    return True
