"""
AccessScopeResolver -- own-scope / view-all authorization for billing records.

Responsibility:
    Gate every period, invoice, payment and expense operation.  Callers
    extract the ownership ids of the record (via OwnershipSelector) and ask
    the resolver; the resolver never walks entities itself.

Architecture position:
    Services -- wraps the pure predicates of ``billing_engines.access`` with
    a permission-grant collaborator.  Role and permission storage live
    outside the engine and are reached through ``PermissionGrantSource``.

Invariants enforced:
    - The view-all grant is consulted first; when present, access is
      unconditional.
    - Otherwise the actor must be the record's account manager, the client's
      seller, or (where the record has one) its creator.
    - Denials are raised as AccessDeniedError before any mutation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol
from uuid import UUID

from billing_engines.access import SCOPED_SECTIONS, can_access, view_all_from_grants
from billing_kernel.domain.actor import ActorContext, SystemRole
from billing_kernel.domain.dtos import OwnershipChain
from billing_kernel.exceptions import AccessDeniedError
from billing_kernel.logging_config import get_logger

logger = get_logger("services.access_scope")

DEFAULT_BULK_TAX_ROLES = frozenset({SystemRole.OWNER, SystemRole.CEO})


class PermissionGrantSource(Protocol):
    """Permission collaborator: the permissions a role holds on a section."""

    def permissions_for(self, actor: ActorContext, section: str) -> frozenset[str]:
        ...


class StaticGrantSource:
    """In-memory grants keyed by role code, e.g.
    ``{"MANAGER": {"services": ["view", "view_all"]}}``.
    """

    def __init__(self, grants: Mapping[str, Mapping[str, Iterable[str]]] | None = None):
        self._grants: dict[str, dict[str, frozenset[str]]] = {
            role: {section: frozenset(perms) for section, perms in sections.items()}
            for role, sections in (grants or {}).items()
        }

    def permissions_for(self, actor: ActorContext, section: str) -> frozenset[str]:
        if actor.role_code is None:
            return frozenset()
        return self._grants.get(actor.role_code, {}).get(section, frozenset())


class AccessScopeResolver:
    """Two-tier access decisions for one request's actor."""

    def __init__(
        self,
        grants: PermissionGrantSource | None = None,
        scoped_sections: frozenset[str] = SCOPED_SECTIONS,
        bulk_tax_roles: frozenset[str] = DEFAULT_BULK_TAX_ROLES,
    ):
        self._grants = grants or StaticGrantSource()
        self._scoped_sections = scoped_sections
        self._bulk_tax_roles = bulk_tax_roles

    @classmethod
    def from_settings(cls, settings, grants: PermissionGrantSource | None = None) -> AccessScopeResolver:
        """Build from ``billing_config.BillingSettings``."""
        return cls(
            grants=grants,
            scoped_sections=settings.access.scoped_sections or SCOPED_SECTIONS,
            bulk_tax_roles=settings.access.bulk_tax_roles,
        )

    def has_view_all_grant(self, actor: ActorContext, section: str) -> bool:
        return view_all_from_grants(
            actor.role_code,
            section,
            self._grants.permissions_for(actor, section),
            self._scoped_sections,
        )

    def can_access(
        self,
        actor: ActorContext,
        account_manager_id: UUID | None,
        seller_employee_id: UUID | None,
        creator_id: UUID | None = None,
        section: str = "services",
    ) -> bool:
        return can_access(
            actor.actor_id,
            account_manager_id,
            seller_employee_id,
            creator_id,
            view_all=self.has_view_all_grant(actor, section),
        )

    def can_access_chain(
        self,
        actor: ActorContext,
        chain: OwnershipChain,
        section: str = "services",
    ) -> bool:
        return self.can_access(
            actor,
            chain.account_manager_id,
            chain.seller_employee_id,
            chain.creator_id,
            section=section,
        )

    def require_access(
        self,
        actor: ActorContext,
        chains: OwnershipChain | Iterable[OwnershipChain],
        section: str = "services",
        record_id: UUID | None = None,
    ) -> None:
        """Raise AccessDeniedError unless one of ``chains`` admits the actor.

        A view-all grant admits the actor even when ``chains`` is empty.
        """
        if self.has_view_all_grant(actor, section):
            return
        if isinstance(chains, OwnershipChain):
            chains = (chains,)
        if any(self.can_access_chain(actor, chain, section) for chain in chains):
            return
        logger.warning(
            "access_denied",
            extra={
                "actor_id": str(actor.actor_id),
                "section": section,
                "record_id": str(record_id) if record_id else None,
            },
        )
        raise AccessDeniedError(
            str(actor.actor_id), section, str(record_id) if record_id else None
        )

    def require_view_all(self, actor: ActorContext, section: str) -> None:
        if not self.has_view_all_grant(actor, section):
            logger.warning(
                "access_denied",
                extra={"actor_id": str(actor.actor_id), "section": section},
            )
            raise AccessDeniedError(str(actor.actor_id), section)

    def can_bulk_generate_tax(self, actor: ActorContext) -> bool:
        return actor.role_code in self._bulk_tax_roles

    def require_bulk_tax_access(self, actor: ActorContext) -> None:
        if not self.can_bulk_generate_tax(actor):
            logger.warning(
                "access_denied",
                extra={"actor_id": str(actor.actor_id), "section": "bulk-tax-expenses"},
            )
            raise AccessDeniedError(str(actor.actor_id), "bulk-tax-expenses")
