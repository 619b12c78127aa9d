"""
Tests for cascading soft deletes, restores and predecessor linking
"""
import pytest
from datetime import datetime

from app.core.audit_log import AuditAction
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.models import Customer, Equipment, Site
from app.services.cascade_service import CascadeCoordinator

NOW = datetime(2025, 6, 15, 9, 30)


@pytest.fixture
def coordinator(db_session, audit):
    return CascadeCoordinator(db_session, audit)


@pytest.mark.asyncio
class TestCustomerDelete:

    async def test_delete_customer_orphans_all_equipment(self, coordinator, seed, organization, fetch, audit):
        """
        Test: customer with 2 sites and 5 equipment

        Expected:
        - customer and both sites soft-deleted
        - all 5 equipment keep existing, without a site
        """
        customer = await seed.customer()
        north = await seed.site(customer, "North")
        south = await seed.site(customer, "South")
        equipment_ids = []
        for index in range(3):
            equipment_ids.append((await seed.equipment(f"N-{index}", site=north)).id)
        for index in range(2):
            equipment_ids.append((await seed.equipment(f"S-{index}", site=south)).id)

        affected = await coordinator.delete_customer(customer.id, organization.id, now=NOW)

        assert affected == 2
        assert (await fetch(Customer, customer.id)).deleted_at == NOW
        assert (await fetch(Site, north.id)).is_deleted
        assert (await fetch(Site, south.id)).is_deleted
        for equipment_id in equipment_ids:
            equipment = await fetch(Equipment, equipment_id)
            assert equipment.site_id is None
            assert not equipment.is_deleted
            assert equipment.organization_id == organization.id
        assert audit.actions == [AuditAction.CUSTOMER_DELETED]

    async def test_already_deleted_sites_are_not_counted(self, coordinator, seed, organization):
        customer = await seed.customer()
        await seed.site(customer, "Live")
        await seed.site(customer, "Gone", deleted_at=datetime(2025, 1, 1))

        assert await coordinator.delete_customer(customer.id, organization.id) == 1

    async def test_delete_customer_of_other_tenant_is_not_found(self, coordinator, other_seed, organization, fetch):
        foreign = await other_seed.customer("Foreign")
        foreign_id = foreign.id

        with pytest.raises(NotFoundError) as exc:
            await coordinator.delete_customer(foreign_id, organization.id)

        assert exc.value.message == "Customer not found"
        assert not (await fetch(Customer, foreign_id)).is_deleted

    async def test_delete_is_all_or_nothing(self, coordinator, seed, organization, fetch, monkeypatch):
        """Test: a failure half way through leaves every row untouched"""
        customer = await seed.customer()
        first = await seed.site(customer, "A")
        second = await seed.site(customer, "B")
        equipment = await seed.equipment("SN-A", site=first)
        ids = (customer.id, first.id, second.id, equipment.id)

        original = coordinator._delete_site
        calls = []

        async def failing_delete_site(site, organization_id, now):
            calls.append(site.id)
            if len(calls) == 2:
                raise RuntimeError("storage failure")
            return await original(site, organization_id, now)

        monkeypatch.setattr(coordinator, "_delete_site", failing_delete_site)

        with pytest.raises(RuntimeError):
            await coordinator.delete_customer(ids[0], organization.id)

        assert not (await fetch(Customer, ids[0])).is_deleted
        assert not (await fetch(Site, ids[1])).is_deleted
        assert not (await fetch(Site, ids[2])).is_deleted
        assert (await fetch(Equipment, ids[3])).site_id == ids[1]


@pytest.mark.asyncio
class TestSiteDelete:

    async def test_delete_site_returns_orphan_count(self, coordinator, seed, organization, fetch, audit):
        customer = await seed.customer()
        site = await seed.site(customer)
        other_site = await seed.site(customer, "Warehouse")
        for serial in ("A", "B", "C"):
            await seed.equipment(serial, site=site)
        untouched = await seed.equipment("D", site=other_site)

        orphaned = await coordinator.delete_site(site.id, organization.id)

        assert orphaned == 3
        assert (await fetch(Site, site.id)).is_deleted
        assert (await fetch(Equipment, untouched.id)).site_id == other_site.id
        assert audit.actions == [AuditAction.SITE_DELETED]

    async def test_deleted_site_is_not_found(self, coordinator, seed, organization):
        customer = await seed.customer()
        site = await seed.site(customer, deleted_at=datetime(2025, 1, 1))

        with pytest.raises(NotFoundError):
            await coordinator.delete_site(site.id, organization.id)


@pytest.mark.asyncio
class TestEquipmentDelete:

    async def test_delete_equipment_is_soft(self, coordinator, seed, organization, fetch):
        customer = await seed.customer()
        site = await seed.site(customer)
        equipment = await seed.equipment(site=site)

        await coordinator.delete_equipment(equipment.id, organization.id, now=NOW)

        stored = await fetch(Equipment, equipment.id)
        assert stored.deleted_at == NOW
        assert stored.site_id == site.id
        assert not (await fetch(Site, site.id)).is_deleted


@pytest.mark.asyncio
class TestRestore:

    async def test_restore_customer(self, coordinator, seed, organization, fetch, audit):
        customer = await seed.customer(deleted_at=NOW)

        await coordinator.restore_customer(customer.id, organization.id)

        assert not (await fetch(Customer, customer.id)).is_deleted
        assert audit.actions == [AuditAction.CUSTOMER_RESTORED]

    async def test_restore_customer_rejects_taken_name(self, coordinator, seed, organization):
        deleted = await seed.customer("Initech", deleted_at=NOW)
        await seed.customer("Initech")

        with pytest.raises(BusinessRuleError):
            await coordinator.restore_customer(deleted.id, organization.id)

    async def test_restore_live_customer_is_not_found(self, coordinator, seed, organization):
        customer = await seed.customer()

        with pytest.raises(NotFoundError):
            await coordinator.restore_customer(customer.id, organization.id)

    async def test_restore_site_requires_live_customer(self, coordinator, seed, organization):
        customer = await seed.customer(deleted_at=NOW)
        site = await seed.site(customer, deleted_at=NOW)

        with pytest.raises(BusinessRuleError):
            await coordinator.restore_site(site.id, organization.id)

    async def test_restore_site_does_not_reattach_equipment(self, coordinator, seed, organization, fetch):
        customer = await seed.customer()
        site = await seed.site(customer)
        equipment = await seed.equipment(site=site)
        await coordinator.delete_site(site.id, organization.id)

        await coordinator.restore_site(site.id, organization.id)

        assert not (await fetch(Site, site.id)).is_deleted
        assert (await fetch(Equipment, equipment.id)).site_id is None

    async def test_restore_equipment_rejects_taken_serial(self, coordinator, seed, organization):
        deleted = await seed.equipment("SN-9", deleted_at=NOW)
        await seed.equipment("SN-9")

        with pytest.raises(BusinessRuleError):
            await coordinator.restore_equipment(deleted.id, organization.id)


@pytest.mark.asyncio
class TestPredecessorLinking:

    async def test_asset_id_collision_replaces_holder(self, coordinator, seed, organization, fetch, audit):
        """
        Test: A takes over the asset id held by B

        Expected:
        - B soft-deleted
        - A.predecessor_id == B.id and A holds the asset id
        """
        a = await seed.equipment("SN-A")
        b = await seed.equipment("SN-B", cust_asset_id="ASSET-7")

        await coordinator.update_equipment_asset_id(a.id, organization.id, "ASSET-7", now=NOW)

        stored_a = await fetch(Equipment, a.id)
        stored_b = await fetch(Equipment, b.id)
        assert stored_b.deleted_at == NOW
        assert stored_a.predecessor_id == b.id
        assert stored_a.cust_asset_id == "ASSET-7"
        assert AuditAction.EQUIPMENT_REPLACED in audit.actions

    async def test_repeating_the_update_is_a_noop(self, coordinator, seed, organization, fetch):
        a = await seed.equipment("SN-A")
        b = await seed.equipment("SN-B", cust_asset_id="ASSET-7")
        await coordinator.update_equipment_asset_id(a.id, organization.id, "ASSET-7", now=NOW)
        version_after_first = (await fetch(Equipment, b.id)).version_id

        await coordinator.update_equipment_asset_id(
            a.id, organization.id, "ASSET-7", now=datetime(2025, 7, 1)
        )

        stored_b = await fetch(Equipment, b.id)
        assert stored_b.deleted_at == NOW
        assert stored_b.version_id == version_after_first
        assert (await fetch(Equipment, a.id)).predecessor_id == b.id

    async def test_free_asset_id_sets_no_predecessor(self, coordinator, seed, organization, fetch):
        a = await seed.equipment("SN-A")

        await coordinator.update_equipment_asset_id(a.id, organization.id, "ASSET-1")

        stored = await fetch(Equipment, a.id)
        assert stored.cust_asset_id == "ASSET-1"
        assert stored.predecessor_id is None

    async def test_other_tenant_holder_is_not_replaced(self, coordinator, seed, other_seed, organization, fetch):
        a = await seed.equipment("SN-A")
        foreign = await other_seed.equipment("SN-X", cust_asset_id="ASSET-7")

        await coordinator.update_equipment_asset_id(a.id, organization.id, "ASSET-7")

        assert not (await fetch(Equipment, foreign.id)).is_deleted
        assert (await fetch(Equipment, a.id)).predecessor_id is None
