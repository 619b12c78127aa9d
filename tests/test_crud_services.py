"""
Tests for customer, site, equipment and equipment type management
"""
import pytest
from datetime import date, datetime, timedelta
from uuid import uuid4

from app.core.audit_log import AuditAction
from app.core.constants import AgreementStatus, ServiceCycle
from app.core.exceptions import BusinessRuleError, NotFoundError
from app.db.models import Customer, Equipment, EquipmentType, Site
from app.services.customer_service import CustomerService
from app.services.equipment_service import EquipmentService
from app.services.equipment_type_service import EquipmentTypeService
from app.services.site_service import SiteService

NOW = datetime(2025, 6, 15, 9, 30)


@pytest.fixture
def customers(db_session, audit):
    return CustomerService(db_session, audit)


@pytest.fixture
def sites(db_session, audit):
    return SiteService(db_session, audit)


@pytest.fixture
def equipment_service(db_session, audit):
    return EquipmentService(db_session, audit)


@pytest.fixture
def equipment_types(db_session, audit):
    return EquipmentTypeService(db_session, audit)


@pytest.mark.asyncio
class TestCustomerService:

    async def test_create_customer(self, customers, organization, audit):
        customer = await customers.create(organization.id, "Globex", contract_end_date=date(2026, 1, 31))

        assert customer.agreement_status is AgreementStatus.COVERED
        assert customer.contract_end_date == date(2026, 1, 31)
        assert audit.actions == [AuditAction.CUSTOMER_CREATED]

    async def test_duplicate_name_is_rejected(self, customers, seed, organization):
        await seed.customer("Globex")
        org_id = organization.id

        with pytest.raises(BusinessRuleError) as exc:
            await customers.create(org_id, "Globex")

        assert "already exists" in exc.value.message

    async def test_same_name_in_other_tenant_is_allowed(self, customers, other_seed, organization):
        await other_seed.customer("Globex")

        customer = await customers.create(organization.id, "Globex")

        assert customer.organization_id == organization.id

    async def test_name_of_deleted_customer_can_be_reused(self, customers, seed, organization):
        await seed.customer("Globex", deleted_at=NOW)

        customer = await customers.create(organization.id, "Globex")

        assert not customer.is_deleted

    async def test_update_can_clear_contract_end_date(self, customers, seed, organization, fetch):
        customer = await seed.customer(contract_end_date=date(2025, 12, 31))

        await customers.update(customer.id, organization.id, contract_end_date=None)

        stored = await fetch(Customer, customer.id)
        assert stored.contract_end_date is None
        assert stored.name == "Globex"

    async def test_update_leaves_unset_fields_alone(self, customers, seed, organization, fetch):
        customer = await seed.customer(contract_end_date=date(2025, 12, 31))

        await customers.update(customer.id, organization.id, agreement_status=AgreementStatus.PENDING)

        stored = await fetch(Customer, customer.id)
        assert stored.agreement_status is AgreementStatus.PENDING
        assert stored.contract_end_date == date(2025, 12, 31)

    async def test_other_tenant_customer_is_not_found(self, customers, other_seed, organization):
        foreign = await other_seed.customer()

        with pytest.raises(NotFoundError):
            await customers.get(foreign.id, organization.id)

    async def test_list_excludes_deleted(self, customers, seed, organization):
        await seed.customer("Live")
        await seed.customer("Gone", deleted_at=NOW)

        names = [customer.name for customer in await customers.list(organization.id)]

        assert names == ["Live"]


@pytest.mark.asyncio
class TestSiteService:

    async def test_create_site(self, sites, seed, organization):
        customer = await seed.customer()

        site = await sites.create(organization.id, customer.id, "Main plant", meta={"floor": 2})

        assert site.customer_id == customer.id
        assert site.meta == {"floor": 2}

    async def test_create_site_for_foreign_customer_is_not_found(self, sites, other_seed, organization):
        foreign = await other_seed.customer()

        with pytest.raises(NotFoundError):
            await sites.create(organization.id, foreign.id, "Main plant")

    async def test_site_name_is_unique_per_customer(self, sites, seed, organization):
        first = await seed.customer("First")
        second = await seed.customer("Second")
        await seed.site(first, "Main plant")
        org_id, first_id, second_id = organization.id, first.id, second.id

        with pytest.raises(BusinessRuleError):
            await sites.create(org_id, first_id, "Main plant")

        site = await sites.create(org_id, second_id, "Main plant")
        assert site.customer_id == second_id

    async def test_move_to_customer_with_same_site_name_is_rejected(self, sites, seed, organization, fetch):
        first = await seed.customer("First")
        second = await seed.customer("Second")
        site = await seed.site(first, "Main plant")
        await seed.site(second, "Main plant")
        site_id, first_id = site.id, first.id

        with pytest.raises(BusinessRuleError):
            await sites.update(site_id, organization.id, {"customer_id": second.id})

        assert (await fetch(Site, site_id)).customer_id == first_id

    async def test_update_only_touches_given_fields(self, sites, seed, organization, fetch):
        customer = await seed.customer()
        site = await seed.site(customer, address="1 Main St", contact_name="Ana")

        await sites.update(site.id, organization.id, {"contact_phone": "555-0100"})

        stored = await fetch(Site, site.id)
        assert stored.address == "1 Main St"
        assert stored.contact_name == "Ana"
        assert stored.contact_phone == "555-0100"

    async def test_list_by_customer(self, sites, seed, organization):
        first = await seed.customer("First")
        second = await seed.customer("Second")
        await seed.site(first, "A")
        await seed.site(second, "B")

        listed = await sites.list(organization.id, customer_id=first.id)

        assert [site.name for site in listed] == ["A"]


@pytest.mark.asyncio
class TestEquipmentCreate:

    async def test_defaults(self, equipment_service, organization):
        equipment = await equipment_service.create(organization.id, "SN-1", ServiceCycle.MONTHLY)

        assert equipment.qr_code_value == "SN-1"
        assert equipment.next_service is None
        assert equipment.next_service_override is False
        assert equipment.provisional is False
        assert equipment.is_orphaned

    async def test_explicit_next_service_is_pinned(self, equipment_service, organization):
        equipment = await equipment_service.create(
            organization.id, "SN-1", ServiceCycle.MONTHLY, next_service=date(2025, 8, 1)
        )

        assert equipment.next_service_override is True

    async def test_provisional_equipment_gets_expiry(self, equipment_service, organization):
        equipment = await equipment_service.create(
            organization.id, "SN-1", ServiceCycle.MONTHLY, provisional=True, now=NOW
        )

        assert equipment.provisional_expires_at == NOW + timedelta(days=30)

    async def test_create_at_site(self, equipment_service, seed, organization):
        customer = await seed.customer()
        site = await seed.site(customer)

        equipment = await equipment_service.create(
            organization.id, "SN-1", ServiceCycle.MONTHLY, site_id=site.id
        )

        assert equipment.site_id == site.id
        assert not equipment.is_orphaned

    async def test_duplicate_serial_is_rejected(self, equipment_service, seed, organization):
        await seed.equipment("SN-1")
        org_id = organization.id

        with pytest.raises(BusinessRuleError):
            await equipment_service.create(org_id, "SN-1", ServiceCycle.MONTHLY)

    async def test_serial_of_deleted_equipment_can_be_reused(self, equipment_service, seed, organization):
        await seed.equipment("SN-1", deleted_at=NOW)

        equipment = await equipment_service.create(organization.id, "SN-1", ServiceCycle.MONTHLY)

        assert equipment.serial_number == "SN-1"

    async def test_taken_asset_id_is_rejected(self, equipment_service, seed, organization):
        await seed.equipment("SN-1", cust_asset_id="ASSET-1")
        org_id = organization.id

        with pytest.raises(BusinessRuleError):
            await equipment_service.create(org_id, "SN-2", ServiceCycle.MONTHLY, cust_asset_id="ASSET-1")

    async def test_unknown_site_is_not_found(self, equipment_service, organization):
        with pytest.raises(NotFoundError):
            await equipment_service.create(organization.id, "SN-1", ServiceCycle.MONTHLY, site_id=uuid4())


@pytest.mark.asyncio
class TestEquipmentUpdate:

    async def test_next_service_is_pinned_by_default(self, equipment_service, seed, organization, fetch):
        equipment = await seed.equipment()

        await equipment_service.update(equipment.id, organization.id, {"next_service": date(2025, 9, 1)})

        stored = await fetch(Equipment, equipment.id)
        assert stored.next_service == date(2025, 9, 1)
        assert stored.next_service_override is True

    async def test_override_can_be_released(self, equipment_service, seed, organization, fetch):
        equipment = await seed.equipment(next_service=date(2025, 9, 1), next_service_override=True)

        await equipment_service.update(equipment.id, organization.id, {"next_service_override": False})

        stored = await fetch(Equipment, equipment.id)
        assert stored.next_service_override is False
        assert stored.next_service == date(2025, 9, 1)

    async def test_clearing_site_orphans_equipment(self, equipment_service, seed, organization):
        customer = await seed.customer()
        site = await seed.site(customer)
        equipment = await seed.equipment(site=site)

        await equipment_service.update(equipment.id, organization.id, {"site_id": None})

        assert await equipment_service.count_orphaned(organization.id) == 1
        orphaned = await equipment_service.list_orphaned(organization.id)
        assert [item.id for item in orphaned] == [equipment.id]

    async def test_formalizing_provisional_clears_expiry(self, equipment_service, seed, organization, fetch):
        equipment = await seed.equipment(provisional=True, provisional_expires_at=NOW + timedelta(days=5))

        await equipment_service.update(equipment.id, organization.id, {"provisional": False})

        stored = await fetch(Equipment, equipment.id)
        assert stored.provisional is False
        assert stored.provisional_expires_at is None

    async def test_serial_change_to_taken_value_is_rejected(self, equipment_service, seed, organization, fetch):
        equipment = await seed.equipment("SN-1")
        await seed.equipment("SN-2")
        equipment_id = equipment.id

        with pytest.raises(BusinessRuleError):
            await equipment_service.update(equipment_id, organization.id, {"serial_number": "SN-2"})

        assert (await fetch(Equipment, equipment_id)).serial_number == "SN-1"

    async def test_asset_id_takeover_links_predecessor(self, equipment_service, seed, organization, fetch, audit):
        holder = await seed.equipment("SN-OLD", cust_asset_id="ASSET-1")
        replacement = await seed.equipment("SN-NEW")

        await equipment_service.update(
            replacement.id, organization.id, {"cust_asset_id": "ASSET-1"}, now=NOW
        )

        assert (await fetch(Equipment, holder.id)).deleted_at == NOW
        assert (await fetch(Equipment, replacement.id)).predecessor_id == holder.id
        assert audit.actions == [AuditAction.EQUIPMENT_REPLACED, AuditAction.EQUIPMENT_UPDATED]


@pytest.mark.asyncio
class TestEquipmentQueries:

    async def test_lookup_by_serial_asset_and_qr(self, equipment_service, seed, organization):
        equipment = await seed.equipment("SN-1", cust_asset_id="ASSET-1", qr_code_value="QR-XYZ")

        for value in ("SN-1", "ASSET-1", "QR-XYZ"):
            assert (await equipment_service.lookup(value, organization.id)).id == equipment.id

    async def test_lookup_miss(self, equipment_service, organization):
        with pytest.raises(NotFoundError) as exc:
            await equipment_service.lookup("NOPE", organization.id)

        assert exc.value.message == "Equipment not found: NOPE"

    async def test_lookup_does_not_cross_tenants(self, equipment_service, other_seed, organization):
        await other_seed.equipment("SN-FOREIGN")

        with pytest.raises(NotFoundError):
            await equipment_service.lookup("SN-FOREIGN", organization.id)

    async def test_list_filters(self, equipment_service, seed, organization):
        await seed.equipment("PUMP-1", agreement_status=AgreementStatus.OUT_OF_SCOPE)
        await seed.equipment("PUMP-2")
        await seed.equipment("VALVE-1", service_cycle=ServiceCycle.ANNUALLY)
        await seed.equipment("PUMP-3", deleted_at=NOW)

        pumps = await equipment_service.list(organization.id, search="pump")
        covered = await equipment_service.list(organization.id, agreement_status=AgreementStatus.COVERED)
        annual = await equipment_service.list(organization.id, service_cycle=ServiceCycle.ANNUALLY)

        assert [e.serial_number for e in pumps] == ["PUMP-1", "PUMP-2"]
        assert [e.serial_number for e in covered] == ["PUMP-2", "VALVE-1"]
        assert [e.serial_number for e in annual] == ["VALVE-1"]

    async def test_list_by_customer(self, equipment_service, seed, organization):
        customer = await seed.customer()
        site = await seed.site(customer)
        await seed.equipment("SN-1", site=site)
        await seed.equipment("SN-2")

        listed = await equipment_service.list(organization.id, customer_id=customer.id)

        assert [e.serial_number for e in listed] == ["SN-1"]


@pytest.mark.asyncio
class TestBulkOperations:

    async def test_bulk_status_counts_foreign_ids_as_failures(
        self, equipment_service, seed, other_seed, organization, fetch
    ):
        own = await seed.equipment("SN-1")
        foreign = await other_seed.equipment("SN-2")

        result = await equipment_service.bulk_update_status(
            [own.id, foreign.id], organization.id, "out_of_scope"
        )

        assert result.success_count == 1
        assert result.failure_count == 1
        assert (await fetch(Equipment, own.id)).agreement_status is AgreementStatus.OUT_OF_SCOPE
        assert (await fetch(Equipment, foreign.id)).agreement_status is AgreementStatus.COVERED

    async def test_bulk_cycle_rejects_unknown_value(self, equipment_service, seed, organization):
        equipment = await seed.equipment()

        with pytest.raises(BusinessRuleError) as exc:
            await equipment_service.bulk_update_cycle([equipment.id], organization.id, "weekly")

        assert "Allowed values" in exc.value.message

    async def test_bulk_cycle(self, equipment_service, seed, organization, fetch):
        first = await seed.equipment("SN-1")
        second = await seed.equipment("SN-2")

        result = await equipment_service.bulk_update_cycle([first.id, second.id], organization.id, "annually")

        assert result.success_count == 2
        assert (await fetch(Equipment, second.id)).service_cycle is ServiceCycle.ANNUALLY

    async def test_bulk_delete_is_soft(self, equipment_service, seed, organization, fetch, audit):
        first = await seed.equipment("SN-1")
        second = await seed.equipment("SN-2")

        result = await equipment_service.bulk_delete(
            [first.id, second.id, uuid4()], organization.id, now=NOW
        )

        assert result.success_count == 2
        assert result.failure_count == 1
        assert (await fetch(Equipment, first.id)).deleted_at == NOW
        assert audit.actions == [AuditAction.EQUIPMENT_BULK_DELETE]

    async def test_bulk_repeated_ids_count_once(self, equipment_service, seed, organization):
        equipment = await seed.equipment()

        result = await equipment_service.bulk_delete([equipment.id, equipment.id], organization.id, now=NOW)

        assert result.success_count == 1
        assert result.failure_count == 0


@pytest.mark.asyncio
class TestEquipmentTypeService:

    async def test_new_types_are_appended(self, equipment_types, organization):
        first = await equipment_types.create(organization.id, "Boiler")
        second = await equipment_types.create(organization.id, "Chiller")

        assert (first.display_order, second.display_order) == (0, 1)

    async def test_duplicate_name_is_rejected(self, equipment_types, organization):
        org_id = organization.id
        await equipment_types.create(org_id, "Boiler")

        with pytest.raises(BusinessRuleError):
            await equipment_types.create(org_id, "Boiler")

    async def test_reorder(self, equipment_types, organization):
        boiler = await equipment_types.create(organization.id, "Boiler")
        chiller = await equipment_types.create(organization.id, "Chiller")
        pump = await equipment_types.create(organization.id, "Pump")

        await equipment_types.reorder([pump.id, boiler.id, chiller.id], organization.id)

        names = [t.name for t in await equipment_types.list(organization.id)]
        assert names == ["Pump", "Boiler", "Chiller"]

    async def test_list_active_only(self, equipment_types, organization):
        boiler = await equipment_types.create(organization.id, "Boiler")
        await equipment_types.create(organization.id, "Chiller")

        await equipment_types.update(boiler.id, organization.id, {"active": False})

        names = [t.name for t in await equipment_types.list(organization.id, active_only=True)]
        assert names == ["Chiller"]

    async def test_delete_detaches_equipment(self, equipment_types, seed, organization, fetch):
        boiler = await equipment_types.create(organization.id, "Boiler")
        equipment = await seed.equipment(equipment_type_id=boiler.id)

        detached = await equipment_types.delete(boiler.id, organization.id)

        assert detached == 1
        assert await fetch(EquipmentType, boiler.id) is None
        stored = await fetch(Equipment, equipment.id)
        assert stored is not None
        assert stored.equipment_type_id is None

    async def test_other_tenant_type_is_not_found(self, equipment_types, other_organization, organization):
        foreign = await equipment_types.create(other_organization.id, "Boiler")

        with pytest.raises(NotFoundError):
            await equipment_types.get(foreign.id, organization.id)
