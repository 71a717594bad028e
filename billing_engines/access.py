"""
Access Scope Predicates.

Pure functions with deterministic behavior. No I/O.

Two-tier model.  A section grant is either *own-scope* (the actor may act on
records it owns: as account manager, as the client's seller, or as creator
where the record has one) or *view-all* (every record).  The view-all grant is
consulted first; when present, access is unconditional.

System roles:
- OWNER holds every grant.
- CEO holds every grant except on the ``roles`` and ``legal-entities``
  sections.
- Any other role depends on its stored grants, where ``manage`` implies
  ``view_all``.

Sections outside SCOPED_SECTIONS have no own-scope restriction at all.
"""

from __future__ import annotations

from uuid import UUID

from billing_kernel.domain.actor import SystemRole

SCOPED_SECTIONS: frozenset[str] = frozenset({
    "sites",
    "services",
    "clients",
    "incomes",
    "expenses",
    "employees",
    "contracts",
    "closeout",
    "storage",
})

CEO_EXCLUDED_SECTIONS: frozenset[str] = frozenset({"roles", "legal-entities"})


class Permission:
    VIEW_ALL = "view_all"
    MANAGE = "manage"


def system_role_grant(role_code: str | None, section: str) -> bool | None:
    """Built-in grant of a system role, or None to defer to stored grants."""
    if role_code == SystemRole.OWNER:
        return True
    if role_code == SystemRole.CEO:
        return section not in CEO_EXCLUDED_SECTIONS
    return None


def view_all_from_grants(
    role_code: str | None,
    section: str,
    granted_permissions: frozenset[str] | set[str],
    scoped_sections: frozenset[str] = SCOPED_SECTIONS,
) -> bool:
    """Resolve the view-all grant from the role and its stored permissions."""
    if section not in scoped_sections:
        return True
    builtin = system_role_grant(role_code, section)
    if builtin is not None:
        return builtin
    return Permission.MANAGE in granted_permissions or Permission.VIEW_ALL in granted_permissions


def can_access(
    actor_id: UUID,
    account_manager_id: UUID | None,
    seller_employee_id: UUID | None,
    creator_id: UUID | None = None,
    view_all: bool = False,
) -> bool:
    """Own-scope check, short-circuited by a view-all grant."""
    if view_all:
        return True
    owners = (account_manager_id, seller_employee_id, creator_id)
    return any(owner is not None and owner == actor_id for owner in owners)
