"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles with increasing privilege levels.

    - CLIENT: Portal user bound to one client company
    - TECHNICIAN: Works tickets, manages service tags
    - ADMIN: Manages users and clients, approves public tickets
    - SUPERADMIN: Admin that may also manage other superadmins
    """

    CLIENT = "client"
    TECHNICIAN = "technician"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
