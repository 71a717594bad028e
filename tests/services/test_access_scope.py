"""Tests for AccessScopeResolver against ownership chains."""

from uuid import uuid4

import pytest

from billing_config import load_settings
from billing_kernel.domain.actor import ActorContext, SystemRole
from billing_kernel.domain.dtos import OwnershipChain
from billing_kernel.exceptions import AccessDeniedError
from billing_kernel.selectors.ownership_selector import OwnershipSelector
from billing_services.access_scope import AccessScopeResolver, StaticGrantSource


@pytest.fixture
def chain(account_manager, seller):
    return OwnershipChain(
        client_id=uuid4(),
        account_manager_id=account_manager.actor_id,
        seller_employee_id=seller.actor_id,
    )


class TestRequireAccess:

    def test_owner_of_record_allowed(self, access_resolver, account_manager, seller, chain):
        access_resolver.require_access(account_manager, chain)
        access_resolver.require_access(seller, chain)

    def test_stranger_denied_with_details(self, access_resolver, outsider, chain, captured_logs):
        record_id = uuid4()
        with pytest.raises(AccessDeniedError) as exc_info:
            access_resolver.require_access(outsider, chain, "services", record_id=record_id)

        assert exc_info.value.section == "services"
        assert exc_info.value.record_id == str(record_id)
        assert any(r["message"] == "access_denied" for r in captured_logs())

    def test_any_chain_suffices(self, access_resolver, seller, chain):
        foreign = OwnershipChain(client_id=uuid4(), account_manager_id=uuid4(), seller_employee_id=uuid4())
        access_resolver.require_access(seller, [foreign, chain])

    def test_view_all_needs_no_chain(self, access_resolver, owner):
        # Owner holds view_all on every section
        access_resolver.require_access(owner, [])

    def test_view_all_grant(self, access_resolver, accountant, chain):
        assert access_resolver.has_view_all_grant(accountant, "services")
        access_resolver.require_access(accountant, chain)

    def test_view_all_grant_with_empty_chains(self, access_resolver, accountant):
        access_resolver.require_access(accountant, [], section="services")

    def test_scoped_actor_with_empty_chains_denied(self, access_resolver, account_manager):
        with pytest.raises(AccessDeniedError):
            access_resolver.require_access(account_manager, [])

    def test_creator_admitted(self, access_resolver, outsider):
        created = OwnershipChain(uuid4(), uuid4(), uuid4(), creator_id=outsider.actor_id)
        assert access_resolver.can_access_chain(outsider, created)

    def test_actor_without_role(self, chain):
        resolver = AccessScopeResolver(StaticGrantSource({}))
        anonymous = ActorContext(actor_id=uuid4())
        assert not resolver.can_access_chain(anonymous, chain)


class TestBulkTaxAccess:

    @pytest.mark.parametrize("role", [SystemRole.OWNER, SystemRole.CEO])
    def test_system_roles(self, access_resolver, role):
        access_resolver.require_bulk_tax_access(ActorContext(actor_id=uuid4(), role_code=role))

    def test_other_roles_denied(self, access_resolver, accountant):
        with pytest.raises(AccessDeniedError):
            access_resolver.require_bulk_tax_access(accountant)


class TestFromSettings:

    def test_uses_configured_sections_and_roles(self):
        resolver = AccessScopeResolver.from_settings(load_settings())
        assert resolver.can_bulk_generate_tax(ActorContext(uuid4(), role_code=SystemRole.CEO))
        assert resolver.has_view_all_grant(ActorContext(uuid4(), role_code="MANAGER"), "reports")
        assert not resolver.has_view_all_grant(ActorContext(uuid4(), role_code="MANAGER"), "services")


class TestOwnershipSelector:

    def test_account_manager_falls_back_to_client(self, session, billing_graph, account_manager):
        chain = OwnershipSelector(session).for_service(billing_graph.service.id)
        assert chain.account_manager_id == account_manager.actor_id
        assert chain.client_id == billing_graph.client.id

    def test_site_account_manager_preferred(self, session, billing_graph):
        site_manager = uuid4()
        billing_graph.site.account_manager_id = site_manager
        session.flush()
        chain = OwnershipSelector(session).for_service(billing_graph.service.id)
        assert chain.account_manager_id == site_manager

    def test_unknown_service(self, session, billing_graph):
        assert OwnershipSelector(session).for_service(uuid4()) is None
