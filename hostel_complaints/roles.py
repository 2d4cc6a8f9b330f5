"""
hostel_complaints/roles.py
──────────────────────────
The two account roles and the capabilities each one carries.

Every route is written once; what differs between a student deployment and a
technician deployment is the Role object handed to create_app().
"""

import enum
from dataclasses import dataclass


class Capability(str, enum.Enum):
    SUBMIT    = "submit"       # create complaints
    VIEW_OWN  = "view_own"     # see own complaint history
    DELETE    = "delete"       # delete own complaints
    SOLVE_OWN = "solve_own"    # mark own complaints solved
    SOLVE_ANY = "solve_any"    # mark any complaint solved
    LIST_ALL  = "list_all"     # see every student's complaints


@dataclass(frozen=True)
class Role:
    name:          str
    title:         str
    account_table: str
    landing:       str          # endpoint name inside the blueprint
    capabilities:  frozenset
    empty_message: str

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities


StudentRole = Role(
    name          = "student",
    title         = "Student Login",
    account_table = "students",
    landing       = "complaints.mainpage",
    capabilities  = frozenset({
        Capability.SUBMIT, Capability.VIEW_OWN,
        Capability.DELETE, Capability.SOLVE_OWN,
    }),
    empty_message = "Looks like you haven't submitted any complaints yet.",
)

TechnicianRole = Role(
    name          = "technician",
    title         = "Technician Login",
    account_table = "technician",
    landing       = "complaints.all_complaints",
    capabilities  = frozenset({Capability.LIST_ALL, Capability.SOLVE_ANY}),
    empty_message = "No complaints have been submitted yet.",
)

ROLES = {r.name: r for r in (StudentRole, TechnicianRole)}


def get_role(name) -> Role:
    if isinstance(name, Role):
        return name
    try:
        return ROLES[str(name).strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown role {name!r}; expected one of: {', '.join(sorted(ROLES))}"
        )
