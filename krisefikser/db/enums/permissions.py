"""Role permission helper sets."""

from krisefikser.db.enums.auth import Role

# Roles that can create/update/delete incidents (triggers geo fan-out)
ROLES_CAN_MANAGE_INCIDENTS = {Role.ADMIN, Role.SUPERADMIN}

# Roles that can manage scenarios
ROLES_CAN_MANAGE_SCENARIOS = {Role.ADMIN, Role.SUPERADMIN}

# Roles that can manage map icons
ROLES_CAN_MANAGE_MAP_ICONS = {Role.ADMIN, Role.SUPERADMIN}

# Roles that can place a user directly in a household (no request flow)
ROLES_CAN_ASSIGN_HOUSEHOLDS = {Role.ADMIN, Role.SUPERADMIN}
