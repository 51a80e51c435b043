# services/school_management/api/deps.py
from services.school_management.models.users import UserRole
from shared.auth import require_role

superadmin_only = require_role(UserRole.SUPERADMIN)
school_admins = require_role(UserRole.SUPERADMIN, UserRole.SCHOOL_ADMIN)
# Read access for the school's teachers as well
school_members = require_role(UserRole.SUPERADMIN, UserRole.SCHOOL_ADMIN, UserRole.TEACHER)
