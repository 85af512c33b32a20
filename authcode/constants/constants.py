"""Constants for profile roles, roles policies and external lookup outcomes."""

from enum import Enum


class ProfileRole(str, Enum):
    """Enumeration of the role flags stored on a user profile."""

    cliente = "cliente"
    transportador = "transportador"
    afiliado = "afiliado"
    admin = "admin"


# admin is never granted through code verification
SELF_ASSIGNABLE_ROLES = [
    ProfileRole.cliente,
    ProfileRole.transportador,
    ProfileRole.afiliado,
]

DEFAULT_ROLE = ProfileRole.cliente.value


class RolesPolicy(str, Enum):
    """How a verification writes the roles object of an existing profile."""

    overwrite = "overwrite"
    merge = "merge"


class LookupStatus(str, Enum):
    """Outcome of a lookup against the external store."""

    found = "found"
    not_found = "not_found"
    failed = "failed"
