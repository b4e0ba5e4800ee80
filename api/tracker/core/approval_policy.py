"""Approval policy: which roles may decide which request types.

Every current request type is decided by the same set of senior roles. The
per-type mapping exists so a new request type can narrow its approver set
without touching the workflow engine.
"""
from typing import Dict, FrozenSet, Iterable, Optional

from tracker.core.roles import APPROVER_ROLES, RoleCode, normalize_role_code
from tracker.models.validation import RequestType


DEFAULT_APPROVERS_BY_TYPE: Dict[RequestType, FrozenSet[RoleCode]] = {
    RequestType.PROJECT_APPROVAL: APPROVER_ROLES,
    RequestType.BUDGET_INCREASE: APPROVER_ROLES,
    RequestType.STATUS_CHANGE: APPROVER_ROLES,
    RequestType.UNBLOCK_REQUEST: APPROVER_ROLES,
}


class ApprovalPolicy:
    def __init__(
        self,
        approvers_by_type: Optional[Dict[RequestType, Iterable[RoleCode]]] = None,
        approver_roles: Optional[Iterable[RoleCode]] = None,
    ):
        mapping = approvers_by_type if approvers_by_type is not None else DEFAULT_APPROVERS_BY_TYPE
        self._approvers_by_type = {
            RequestType(key): frozenset(roles) for key, roles in mapping.items()
        }
        self.approver_roles: FrozenSet[RoleCode] = frozenset(
            approver_roles if approver_roles is not None else APPROVER_ROLES
        ) | {RoleCode.SUPER_ADMIN}

    def approver_roles_for(self, request_type: RequestType | str) -> FrozenSet[RoleCode]:
        """Roles allowed to decide requests of ``request_type``.

        Unknown types fall back to the general approver set. SUPER_ADMIN is
        always included.
        """
        try:
            roles = self._approvers_by_type.get(RequestType(request_type))
        except ValueError:
            roles = None
        if roles is None:
            roles = self.approver_roles
        return roles | {RoleCode.SUPER_ADMIN}

    def is_approver(self, role: RoleCode | str | None) -> bool:
        """Whether ``role`` may see the pending queue at all."""
        code = normalize_role_code(role.value if isinstance(role, RoleCode) else role)
        return code in self.approver_roles

    def can_decide(self, role: RoleCode | str | None, request_type: RequestType | str) -> bool:
        code = normalize_role_code(role.value if isinstance(role, RoleCode) else role)
        return code is not None and code in self.approver_roles_for(request_type)


default_policy = ApprovalPolicy()


def get_approval_policy() -> ApprovalPolicy:
    """FastAPI dependency; override in tests to substitute another hierarchy."""
    return default_policy
