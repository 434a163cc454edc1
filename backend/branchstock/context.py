"""
Per-request access context passed explicitly into every document processor.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Mapping, Optional
from uuid import UUID

from branchstock.exceptions import BranchAccessDenied
from branchstock.models.user import Role


@dataclass(frozen=True)
class UserContext:
    """
    Who is acting and on which branches.

    Admins may act on every branch. Everyone else only on branches where they
    hold at least one role.
    """
    user_id: Optional[UUID]
    is_admin: bool = False
    branch_roles: Mapping[UUID, FrozenSet[str]] = field(default_factory=dict)

    @classmethod
    def system(cls) -> "UserContext":
        """Context for scripts and maintenance jobs."""
        return cls(user_id=None, is_admin=True)

    @classmethod
    def from_roles(cls, user_id: UUID, roles: Iterable) -> "UserContext":
        """Build from UserBranchRole rows (or any objects with branch_id and role)."""
        is_admin = False
        by_branch = {}
        for r in roles:
            if r.role == Role.ADMIN.value and r.branch_id is None:
                is_admin = True
                continue
            if r.branch_id is None:
                continue
            by_branch.setdefault(r.branch_id, set()).add(r.role)
        return cls(
            user_id=user_id,
            is_admin=is_admin,
            branch_roles={b: frozenset(rs) for b, rs in by_branch.items()},
        )

    def can_access(self, branch_id: UUID) -> bool:
        return self.is_admin or branch_id in self.branch_roles

    def ensure_branch(self, branch_id: UUID) -> None:
        if not self.can_access(branch_id):
            raise BranchAccessDenied(self.user_id, branch_id)

    def ensure_any_branch(self, *branch_ids: UUID) -> None:
        """Pass if the user may act on at least one of the given branches."""
        if not any(self.can_access(b) for b in branch_ids):
            raise BranchAccessDenied(self.user_id, branch_ids[0])

    def visible_branches(self) -> Optional[FrozenSet[UUID]]:
        """None means unrestricted."""
        if self.is_admin:
            return None
        return frozenset(self.branch_roles)
