"""Department-based contact suggestions and keyword priority defaults.

Department codes: EXECUTIVE, ACCOUNTING, HR, MARKETING, SALES, OPERATIONS,
PRODUCTION, PURCHASING, ENGINEERING, DRAFTING, QUALITY, SAFETY, IT, SERVICE.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, TypeVar

# Keyword tables are ordered: the first keyword found in the text wins.
RFI_DEPARTMENT_SUGGESTIONS: dict[str, list[str]] = {
    "technical": ["ENGINEERING", "DRAFTING"],
    "structural": ["ENGINEERING"],
    "electrical": ["ENGINEERING"],
    "mechanical": ["ENGINEERING"],
    "plumbing": ["ENGINEERING"],
    "drawing": ["DRAFTING", "ENGINEERING"],
    "blueprint": ["DRAFTING"],
    "layout": ["DRAFTING", "ENGINEERING"],
    "design": ["DRAFTING", "ENGINEERING"],
    "material": ["PURCHASING", "PRODUCTION"],
    "procurement": ["PURCHASING"],
    "vendor": ["PURCHASING"],
    "supplier": ["PURCHASING"],
    "cost": ["PURCHASING", "ACCOUNTING"],
    "pricing": ["PURCHASING", "SALES"],
    "quality": ["QUALITY", "ENGINEERING"],
    "inspection": ["QUALITY"],
    "spec": ["QUALITY", "ENGINEERING"],
    "specification": ["QUALITY", "ENGINEERING"],
    "production": ["PRODUCTION", "OPERATIONS"],
    "manufacturing": ["PRODUCTION"],
    "assembly": ["PRODUCTION"],
    "fabrication": ["PRODUCTION"],
    "safety": ["SAFETY", "QUALITY"],
    "compliance": ["SAFETY", "QUALITY"],
    "default": ["ENGINEERING", "DRAFTING"],
}

SUBMITTAL_DEPARTMENT_SUGGESTIONS: dict[str, list[str]] = {
    "engineering": ["ENGINEERING"],
    "structural": ["ENGINEERING"],
    "calculations": ["ENGINEERING"],
    "drawing": ["DRAFTING", "ENGINEERING"],
    "shop drawing": ["DRAFTING"],
    "as-built": ["DRAFTING"],
    "material": ["PURCHASING", "QUALITY"],
    "product data": ["PURCHASING", "ENGINEERING"],
    "sample": ["QUALITY", "PURCHASING"],
    "quality": ["QUALITY"],
    "test report": ["QUALITY"],
    "certification": ["QUALITY"],
    "warranty": ["QUALITY", "SERVICE"],
    "o&m": ["SERVICE", "ENGINEERING"],
    "manual": ["SERVICE", "ENGINEERING"],
    "default": ["ENGINEERING", "QUALITY"],
}

TASK_DEPARTMENT_SUGGESTIONS: dict[str, list[str]] = {
    "production": ["PRODUCTION", "OPERATIONS"],
    "manufacturing": ["PRODUCTION"],
    "assembly": ["PRODUCTION"],
    "fabrication": ["PRODUCTION"],
    "qc": ["QUALITY"],
    "quality": ["QUALITY"],
    "inspection": ["QUALITY"],
    "testing": ["QUALITY"],
    "engineering": ["ENGINEERING"],
    "design": ["ENGINEERING", "DRAFTING"],
    "technical": ["ENGINEERING"],
    "drafting": ["DRAFTING"],
    "drawing": ["DRAFTING"],
    "cad": ["DRAFTING"],
    "purchasing": ["PURCHASING"],
    "procurement": ["PURCHASING"],
    "order": ["PURCHASING"],
    "safety": ["SAFETY"],
    "compliance": ["SAFETY", "QUALITY"],
    "service": ["SERVICE"],
    "warranty": ["SERVICE"],
    "repair": ["SERVICE"],
    "default": ["PRODUCTION", "OPERATIONS"],
}

_TABLES: dict[str, dict[str, list[str]]] = {
    "rfi": RFI_DEPARTMENT_SUGGESTIONS,
    "submittal": SUBMITTAL_DEPARTMENT_SUGGESTIONS,
    "task": TASK_DEPARTMENT_SUGGESTIONS,
}

# Departments mapped to the user roles that usually own that kind of work
ROLE_MAPPING: dict[str, list[str]] = {
    "ENGINEERING": ["PM", "Project_Manager", "Director"],
    "DRAFTING": ["PM", "Project_Manager", "Director"],
    "PURCHASING": ["PM", "Project_Manager", "Director"],
    "QUALITY": ["PM", "Project_Manager", "Director", "PC"],
    "PRODUCTION": ["PC", "PM", "Project_Manager"],
    "OPERATIONS": ["PC", "Director"],
    "SAFETY": ["PC", "Director"],
    "SERVICE": ["PM", "Project_Manager"],
    "IT": ["IT", "IT_Manager"],
}
_FALLBACK_ROLES = ["PM", "Project_Manager"]

CRITICAL_KEYWORDS = ("urgent", "asap", "emergency", "critical", "immediately", "blocking")
HIGH_KEYWORDS = ("important", "priority", "deadline", "time-sensitive", "expedite")
LOW_KEYWORDS = ("fyi", "when possible", "not urgent", "low priority", "informational")

C = TypeVar("C")


def _get(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def suggested_departments(item_type: str, text: str = "") -> list[str]:
    """Department codes suggested for an ``rfi``, ``submittal`` or ``task``.

    Unknown item types get no suggestion.
    """
    table = _TABLES.get(item_type)
    if table is None:
        return []
    lowered = (text or "").lower()
    for keyword, departments in table.items():
        if keyword != "default" and keyword in lowered:
            return list(departments)
    return list(table["default"])


def is_department_suggested(text: str, department_code: str, item_type: str) -> bool:
    return department_code in suggested_departments(item_type, text)


def rank_contacts(
    contacts: Sequence[C],
    department_codes: Sequence[str],
    factory_code: Optional[str] = None,
) -> list[C]:
    """Order contacts by how well their department matches the suggestion.

    Earlier departments in *department_codes* score higher, a contact in
    *factory_code* gets a bonus of 5, and ties are broken by name. With no
    departments the contacts come back in their original order.
    """
    if not contacts or not department_codes:
        return list(contacts or [])

    codes = list(department_codes)

    def score(contact: C) -> int:
        total = 0
        dept = _get(contact, "department_code") or _get(contact, "department")
        if dept and dept in codes:
            total += (len(codes) - codes.index(dept)) * 10
        if factory_code and factory_code in (_get(contact, "factory_code"), _get(contact, "factory")):
            total += 5
        return total

    def name(contact: C) -> str:
        return (_get(contact, "full_name") or _get(contact, "name") or "").lower()

    return sorted(contacts, key=lambda c: (-score(c), name(c)))


def suggested_internal_owners(
    users: Sequence[C],
    item_type: str,
    text: str = "",
    factory_code: Optional[str] = None,
) -> list[C]:
    """Users ordered by whether their role fits the suggested departments."""
    roles: set[str] = set()
    for dept in suggested_departments(item_type, text):
        roles.update(ROLE_MAPPING.get(dept, _FALLBACK_ROLES))

    def score(user: C) -> int:
        total = 10 if _get(user, "role") in roles else 0
        if factory_code and _get(user, "factory") == factory_code:
            total += 5
        return total

    return sorted(users, key=lambda u: (-score(u), (_get(u, "name") or "").lower()))


def suggested_priority(text: str = "") -> str:
    """``Critical``, ``High``, ``Low`` or ``Medium`` from keywords in *text*."""
    lowered = (text or "").lower()
    if any(kw in lowered for kw in CRITICAL_KEYWORDS):
        return "Critical"
    if any(kw in lowered for kw in HIGH_KEYWORDS):
        return "High"
    if any(kw in lowered for kw in LOW_KEYWORDS):
        return "Low"
    return "Medium"
