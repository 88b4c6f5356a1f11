"""Role permission helper sets."""

from helpdesk.db.enums.auth import Role

# Back-office roles: see every ticket, client, service tag and user
ROLES_STAFF = frozenset({Role.SUPERADMIN, Role.ADMIN, Role.TECHNICIAN})

# Roles that manage users and clients, approve and delete tickets
ROLES_ADMIN = frozenset({Role.SUPERADMIN, Role.ADMIN})

# Roles a ticket can be assigned to
ROLES_ASSIGNABLE = frozenset({Role.SUPERADMIN, Role.ADMIN, Role.TECHNICIAN})

# Every role
ROLES_ANY = frozenset(Role)
