"""Contact and directory models."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, field_validator

from sunbelt_pm.modules.records.models import BackendModel

UNASSIGNED_FACTORY = "UNASSIGNED"


class _Row(BackendModel):
    """Backend row with a string id."""

    @field_validator("id", mode="before", check_fields=False)
    @classmethod
    def _id_to_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class User(_Row):
    """Login account (PM, director, plant controller, ...)."""

    id: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    role: Optional[str] = None
    factory: Optional[str] = None
    is_active: bool = True


class FactoryContact(_Row):
    """Factory staff member without a login account."""

    id: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    role_code: Optional[str] = None
    factory_code: Optional[str] = None
    is_active: bool = True


class UserContact(User):
    """A user entry in the merged contact list."""

    contact_type: Literal["user"] = "user"
    display_role: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> UserContact:
        data = user.model_dump()
        data.update(contact_type="user", display_role=user.role)
        return cls.model_validate(data)


class FactoryContactEntry(FactoryContact):
    """A factory contact in the merged contact list; ``role`` mirrors the department."""

    contact_type: Literal["factory"] = "factory"
    role: Optional[str] = None
    display_role: str = ""

    @classmethod
    def from_factory_contact(cls, contact: FactoryContact) -> FactoryContactEntry:
        data = contact.model_dump()
        data.update(
            contact_type="factory",
            role=contact.department,
            display_role=f"{contact.role_code}-{contact.factory_code}",
        )
        return cls.model_validate(data)


Contact = Annotated[Union[UserContact, FactoryContactEntry], Field(discriminator="contact_type")]


class DirectoryContact(_Row):
    """Company directory entry."""

    id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department_code: Optional[str] = None
    factory_code: Optional[str] = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return self.full_name or f"{self.first_name} {self.last_name}".strip()


class Factory(BackendModel):
    code: str = ""
    short_name: str = ""
    full_name: str = ""
    city: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None
    email_domain: Optional[str] = None


class Department(BackendModel):
    code: str = ""
    name: str = ""
    description: Optional[str] = None
