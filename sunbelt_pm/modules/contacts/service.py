"""Contact and company-directory services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sunbelt_pm.backend import BackendClient, get_backend, safe_query
from sunbelt_pm.logging_config import get_logger
from sunbelt_pm.modules.contacts.models import (
    UNASSIGNED_FACTORY,
    Contact,
    Department,
    DirectoryContact,
    Factory,
    FactoryContact,
    FactoryContactEntry,
    User,
    UserContact,
)

logger = get_logger(__name__)

ALL = "all"


@dataclass
class ContactList:
    """Merged contacts: users first, then factory contacts."""

    users: list[UserContact] = field(default_factory=list)
    factory_contacts: list[FactoryContactEntry] = field(default_factory=list)

    @property
    def contacts(self) -> list[Contact]:
        return [*self.users, *self.factory_contacts]


class ContactService:
    """Users and factory contacts for assignee and recipient pickers."""

    def __init__(self, backend: Optional[BackendClient] = None) -> None:
        self._backend = backend

    @property
    def backend(self) -> BackendClient:
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    async def fetch_all(self) -> ContactList:
        """Active users and active factory contacts, each ordered by name."""
        users_query = self.backend.table("users").select("*").eq("is_active", True).order("name")
        contacts_query = self.backend.table("factory_contacts").select("*").eq("is_active", True).order("name")

        user_rows = await safe_query(users_query.execute, fallback=[], context="fetch users")
        contact_rows = await safe_query(contacts_query.execute, fallback=[], context="fetch factory contacts")

        result = ContactList(
            users=[UserContact.from_user(User.model_validate(row)) for row in user_rows],
            factory_contacts=[
                FactoryContactEntry.from_factory_contact(FactoryContact.model_validate(row))
                for row in contact_rows
            ],
        )
        logger.info("contacts_loaded", users=len(result.users), factory_contacts=len(result.factory_contacts))
        return result

    async def by_factory(self, factory_code: str) -> list[FactoryContact]:
        """Active contacts of one factory."""
        if not factory_code:
            return []
        query = (
            self.backend.table("factory_contacts")
            .select("*")
            .eq("factory_code", factory_code)
            .eq("is_active", True)
            .order("name")
        )
        rows = await safe_query(query.execute, fallback=[], context="fetch factory contacts")
        return [FactoryContact.model_validate(row) for row in rows]

    async def by_role(self, role_code: str) -> list[FactoryContact]:
        """Active contacts with one role code, ordered by factory then name."""
        if not role_code:
            return []
        query = (
            self.backend.table("factory_contacts")
            .select("*")
            .eq("role_code", role_code)
            .eq("is_active", True)
            .order("factory_code")
            .order("name")
        )
        rows = await safe_query(query.execute, fallback=[], context="fetch contacts by role")
        return [FactoryContact.model_validate(row) for row in rows]


@dataclass
class Directory:
    """Loaded directory data."""

    contacts: list[DirectoryContact] = field(default_factory=list)
    factories: list[Factory] = field(default_factory=list)
    departments: list[Department] = field(default_factory=list)

    def factory_info(self, code: str) -> Factory:
        """Factory with *code*, or a stand-in named after the code."""
        for factory in self.factories:
            if factory.code == code:
                return factory
        return Factory(code=code, short_name=code, full_name=code)

    def sorted_groups(
        self, groups: dict[str, list[DirectoryContact]]
    ) -> list[tuple[Factory, list[DirectoryContact]]]:
        """Groups ordered by factory short name."""
        keyed = [(self.factory_info(code), members) for code, members in groups.items()]
        return sorted(keyed, key=lambda pair: (pair[0].short_name or pair[0].code).lower())


def filter_contacts(
    contacts: list[DirectoryContact],
    search: str = "",
    factory: str = ALL,
    department: str = ALL,
) -> list[DirectoryContact]:
    """Contacts matching the search text, factory and department filters.

    Search is case-insensitive over full, first and last name, email and
    position. A factory or department of ``"all"`` disables that filter.
    """
    needle = search.lower()
    matched: list[DirectoryContact] = []
    for contact in contacts:
        if needle:
            haystack = (
                contact.full_name,
                contact.first_name,
                contact.last_name,
                contact.email or "",
                contact.position or "",
            )
            if not any(needle in value.lower() for value in haystack):
                continue
        if factory != ALL and contact.factory_code != factory:
            continue
        if department != ALL and contact.department_code != department:
            continue
        matched.append(contact)
    return matched


def group_by_factory(contacts: list[DirectoryContact]) -> dict[str, list[DirectoryContact]]:
    """Partition contacts by factory code, each group sorted by last name."""
    groups: dict[str, list[DirectoryContact]] = {}
    for contact in contacts:
        groups.setdefault(contact.factory_code or UNASSIGNED_FACTORY, []).append(contact)
    for members in groups.values():
        members.sort(key=lambda c: c.last_name.lower())
    return groups


class DirectoryService:
    """Loads the company directory."""

    def __init__(self, backend: Optional[BackendClient] = None) -> None:
        self._backend = backend

    @property
    def backend(self) -> BackendClient:
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    async def load(self) -> Directory:
        contacts_query = (
            self.backend.table("directory_contacts").select("*").eq("is_active", True).order("last_name")
        )
        factories_query = (
            self.backend.table("factories")
            .select("code, short_name, full_name, city, state, phone, email_domain")
            .eq("is_active", True)
            .order("short_name")
        )
        departments_query = (
            self.backend.table("departments")
            .select("code, name, description")
            .eq("is_active", True)
            .order("sort_order")
        )

        contact_rows = await safe_query(contacts_query.execute, fallback=[], context="fetch directory")
        factory_rows = await safe_query(factories_query.execute, fallback=[], context="fetch factories")
        department_rows = await safe_query(departments_query.execute, fallback=[], context="fetch departments")

        directory = Directory(
            contacts=[DirectoryContact.model_validate(row) for row in contact_rows],
            factories=[Factory.model_validate(row) for row in factory_rows],
            departments=[Department.model_validate(row) for row in department_rows],
        )
        logger.info(
            "directory_loaded",
            contacts=len(directory.contacts),
            factories=len(directory.factories),
            departments=len(directory.departments),
        )
        return directory
