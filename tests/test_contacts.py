"""Tests for the contact and directory services."""

from __future__ import annotations

import httpx
import pytest
from pydantic import TypeAdapter

from sunbelt_pm.modules.contacts.models import (
    Contact,
    DirectoryContact,
    Factory,
    FactoryContact,
    FactoryContactEntry,
    User,
    UserContact,
)
from sunbelt_pm.modules.contacts.service import (
    ContactService,
    Directory,
    DirectoryService,
    filter_contacts,
    group_by_factory,
)


def _person(first: str, last: str, **values) -> DirectoryContact:
    return DirectoryContact(first_name=first, last_name=last, full_name=f"{first} {last}", **values)


@pytest.fixture
def people() -> list[DirectoryContact]:
    return [
        _person("Ana", "Zamora", email="ana@pmi.com", position="Plant Manager", factory_code="PMI", department_code="OPERATIONS"),
        _person("Ben", "Adams", email="ben@nwbs.com", position="Estimator", factory_code="NWBS", department_code="SALES"),
        _person("Cara", "Lopez", email="cara@pmi.com", position="Drafter", factory_code="PMI", department_code="DRAFTING"),
        _person("Dev", "Khan", email="dev@corp.com", position="Controller", department_code="ACCOUNTING"),
    ]


class TestContactModels:
    """Tests for the merged contact entries."""

    def test_user_contact(self) -> None:
        entry = UserContact.from_user(User(id=3, name="Pat PM", role="PM", factory="PMI"))
        assert entry.contact_type == "user"
        assert entry.display_role == "PM"
        assert entry.id == "3"

    def test_factory_contact_entry(self) -> None:
        contact = FactoryContact(name="Quinn", department="Quality", role_code="QA", factory_code="PMI")
        entry = FactoryContactEntry.from_factory_contact(contact)
        assert entry.contact_type == "factory"
        assert entry.role == "Quality"
        assert entry.display_role == "QA-PMI"

    def test_discriminated_union(self) -> None:
        adapter = TypeAdapter(Contact)
        assert isinstance(adapter.validate_python({"contact_type": "user", "name": "A"}), UserContact)
        assert isinstance(adapter.validate_python({"contact_type": "factory", "name": "B"}), FactoryContactEntry)

    def test_display_name_fallback(self) -> None:
        assert DirectoryContact(first_name="Ana", last_name="Zamora").display_name == "Ana Zamora"
        assert DirectoryContact(full_name="Dr. Ana Z", first_name="Ana").display_name == "Dr. Ana Z"


class TestContactService:
    """Tests for ContactService queries."""

    @pytest.mark.asyncio
    async def test_fetch_all_users_first(self, backend_client, fake_backend) -> None:
        fake_backend.tables["users"] = [{"id": 1, "name": "Pat", "role": "PM"}]
        fake_backend.tables["factory_contacts"] = [
            {"id": 9, "name": "Quinn", "department": "Quality", "role_code": "QA", "factory_code": "PMI"},
        ]
        result = await ContactService(backend_client).fetch_all()

        assert [c.contact_type for c in result.contacts] == ["user", "factory"]
        assert result.factory_contacts[0].display_role == "QA-PMI"
        for table in ("users", "factory_contacts"):
            params = fake_backend.params_for(table)
            assert ("is_active", "eq.true") in params
            assert ("order", "name.asc") in params

    @pytest.mark.asyncio
    async def test_fetch_all_survives_failure(self, backend_client, fake_backend) -> None:
        fake_backend.responses[("GET", "users")] = httpx.Response(500, json={"message": "boom"})
        fake_backend.tables["factory_contacts"] = [{"id": 9, "name": "Quinn"}]
        result = await ContactService(backend_client).fetch_all()
        assert result.users == []
        assert len(result.factory_contacts) == 1

    @pytest.mark.asyncio
    async def test_null_columns_do_not_break_listing(self, backend_client, fake_backend) -> None:
        fake_backend.tables["users"] = [{"id": 1, "name": None, "is_active": None}]
        fake_backend.tables["factory_contacts"] = [{"id": 9, "name": None, "factory_code": "PMI"}]
        result = await ContactService(backend_client).fetch_all()

        assert result.users[0].name == ""
        assert result.users[0].is_active is True
        assert result.factory_contacts[0].name == ""

    @pytest.mark.asyncio
    async def test_by_factory(self, backend_client, fake_backend) -> None:
        await ContactService(backend_client).by_factory("PMI")
        assert ("factory_code", "eq.PMI") in fake_backend.params_for("factory_contacts")

    @pytest.mark.asyncio
    async def test_by_role_order(self, backend_client, fake_backend) -> None:
        await ContactService(backend_client).by_role("PC")
        params = fake_backend.params_for("factory_contacts")
        assert ("role_code", "eq.PC") in params
        assert ("order", "factory_code.asc,name.asc") in params

    @pytest.mark.asyncio
    async def test_empty_code_skips_query(self, backend_client, fake_backend) -> None:
        service = ContactService(backend_client)
        assert await service.by_factory("") == []
        assert await service.by_role("") == []
        assert fake_backend.requests == []


class TestDirectoryFilters:
    """Tests for search, filters and grouping."""

    def test_no_filters(self, people) -> None:
        assert filter_contacts(people) == people

    def test_search_is_case_insensitive(self, people) -> None:
        assert [c.last_name for c in filter_contacts(people, search="DRAFT")] == ["Lopez"]
        assert [c.last_name for c in filter_contacts(people, search="nwbs.com")] == ["Adams"]

    def test_factory_and_department(self, people) -> None:
        assert [c.last_name for c in filter_contacts(people, factory="PMI")] == ["Zamora", "Lopez"]
        assert [c.last_name for c in filter_contacts(people, factory="PMI", department="DRAFTING")] == ["Lopez"]

    def test_group_by_factory(self, people) -> None:
        groups = group_by_factory(people)
        assert set(groups) == {"PMI", "NWBS", "UNASSIGNED"}
        assert [c.last_name for c in groups["PMI"]] == ["Lopez", "Zamora"]

    def test_groups_partition_contacts(self, people) -> None:
        groups = group_by_factory(people)

        assert sum(len(members) for members in groups.values()) == len(people)
        assert sorted(c.last_name for members in groups.values() for c in members) == sorted(c.last_name for c in people)
        for code, members in groups.items():
            assert all((c.factory_code or "UNASSIGNED") == code for c in members)

    def test_sorted_groups_by_short_name(self, people) -> None:
        directory = Directory(
            contacts=people,
            factories=[
                Factory(code="PMI", short_name="Phoenix"),
                Factory(code="NWBS", short_name="Boise"),
            ],
        )
        ordered = directory.sorted_groups(group_by_factory(people))
        assert [info.short_name for info, _ in ordered] == ["Boise", "Phoenix", "UNASSIGNED"]

    def test_factory_info_fallback(self) -> None:
        info = Directory().factory_info("XYZ")
        assert info.code == "XYZ"
        assert info.short_name == "XYZ"


class TestDirectoryService:
    """Tests for DirectoryService.load."""

    @pytest.mark.asyncio
    async def test_load(self, backend_client, fake_backend) -> None:
        fake_backend.tables["directory_contacts"] = [
            {"id": 1, "first_name": "Ana", "last_name": "Zamora", "full_name": None, "factory_code": "PMI"},
        ]
        fake_backend.tables["factories"] = [{"code": "PMI", "short_name": "Phoenix", "full_name": "Phoenix Modular"}]
        fake_backend.tables["departments"] = [{"code": "QUALITY", "name": "Quality"}]

        directory = await DirectoryService(backend_client).load()

        assert directory.contacts[0].display_name == "Ana Zamora"
        assert directory.factory_info("PMI").full_name == "Phoenix Modular"
        assert directory.departments[0].code == "QUALITY"
        assert ("order", "last_name.asc") in fake_backend.params_for("directory_contacts")
        assert ("order", "short_name.asc") in fake_backend.params_for("factories")
        assert ("order", "sort_order.asc") in fake_backend.params_for("departments")

    @pytest.mark.asyncio
    async def test_load_with_null_columns(self, backend_client, fake_backend) -> None:
        fake_backend.tables["directory_contacts"] = [
            {"id": 2, "first_name": None, "last_name": "Adams", "full_name": None, "factory_code": None},
        ]
        fake_backend.tables["factories"] = [{"code": "NWBS", "short_name": None, "full_name": None}]
        fake_backend.tables["departments"] = [{"code": "SALES", "name": None}]

        directory = await DirectoryService(backend_client).load()

        assert directory.contacts[0].display_name == "Adams"
        assert directory.factories[0].short_name == ""
        assert directory.departments[0].name == ""
