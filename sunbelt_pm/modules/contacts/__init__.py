"""Contacts, company directory and smart assignment suggestions."""

from sunbelt_pm.modules.contacts.models import (
    Contact,
    Department,
    DirectoryContact,
    Factory,
    FactoryContact,
    FactoryContactEntry,
    User,
    UserContact,
)
from sunbelt_pm.modules.contacts.service import (
    ContactList,
    ContactService,
    Directory,
    DirectoryService,
    filter_contacts,
    group_by_factory,
)
from sunbelt_pm.modules.contacts.suggestions import (
    rank_contacts,
    suggested_departments,
    suggested_internal_owners,
    suggested_priority,
)

__all__ = [
    "Contact",
    "ContactList",
    "ContactService",
    "Department",
    "Directory",
    "DirectoryContact",
    "DirectoryService",
    "Factory",
    "FactoryContact",
    "FactoryContactEntry",
    "User",
    "UserContact",
    "filter_contacts",
    "group_by_factory",
    "rank_contacts",
    "suggested_departments",
    "suggested_internal_owners",
    "suggested_priority",
]
