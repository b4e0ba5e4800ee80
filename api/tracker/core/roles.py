"""Role codes and canonical role groupings."""
from __future__ import annotations

import enum
from typing import Optional, Dict, FrozenSet, TYPE_CHECKING

if TYPE_CHECKING:
    from tracker.models.user import User


class RoleCode(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN_DEPARTMENT = "ADMIN_DEPARTMENT"
    MINISTER = "MINISTER"
    PRIMATURE = "PRIMATURE"
    PRESIDENCY = "PRESIDENCY"
    AGENT = "AGENT"


ROLE_CODE_TO_DISPLAY: Dict[str, str] = {
    RoleCode.SUPER_ADMIN.value: "Super Administrator",
    RoleCode.ADMIN_DEPARTMENT.value: "Department Administrator",
    RoleCode.MINISTER.value: "Minister",
    RoleCode.PRIMATURE.value: "Prime Minister's Office",
    RoleCode.PRESIDENCY.value: "Presidency",
    RoleCode.AGENT.value: "Field Agent",
}

# Roles allowed to see the pending queue and to decide requests.
APPROVER_ROLES: FrozenSet[RoleCode] = frozenset({
    RoleCode.MINISTER,
    RoleCode.PRIMATURE,
    RoleCode.PRESIDENCY,
    RoleCode.SUPER_ADMIN,
})


def normalize_role_code(value: str | None) -> Optional[RoleCode]:
    if not value:
        return None
    upper = value.strip().upper().replace(" ", "_")
    if upper in RoleCode.__members__:
        return RoleCode[upper]
    return None


def get_role_display(role_code: str | None, fallback: str | None = None) -> Optional[str]:
    if not role_code:
        return fallback
    return ROLE_CODE_TO_DISPLAY.get(role_code, fallback)


def get_user_role_code(user: "User") -> Optional[RoleCode]:
    return normalize_role_code(user.role)


def is_super_admin(user: "User") -> bool:
    return get_user_role_code(user) == RoleCode.SUPER_ADMIN


def is_department_admin(user: "User") -> bool:
    return get_user_role_code(user) == RoleCode.ADMIN_DEPARTMENT
