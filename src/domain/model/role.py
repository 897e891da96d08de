# domain/model/role.py

"""User types, staff roles and the capabilities they grant.

Permission checks are set-membership tests against ``capabilities_for(user)``.
"""

from dataclasses import dataclass
from enum import Enum

from domain.model.user import User


class UserType(str, Enum):
    """Account type stored on every user."""
    SELLER = 'seller'
    BUYER = 'buyer'
    AGENT = 'agent'
    ADMIN = 'admin'
    STAFF = 'staff'


DEFAULT_USER_TYPE = UserType.SELLER

# Types a member of the public may pick when registering with a password
SELF_REGISTRABLE_TYPES = frozenset({UserType.SELLER, UserType.BUYER, UserType.AGENT})


class StaffRole(str, Enum):
    SUPER_ADMIN = 'super_admin'
    CONTENT_MANAGER = 'content_manager'
    SALES_MANAGER = 'sales_manager'
    SUPPORT_EXECUTIVE = 'support_executive'
    ADMIN = 'admin'


class Capability(str, Enum):
    """Fine-grained admin permission."""
    DASHBOARD_VIEW = 'dashboard.view'
    CONTENT_MANAGE = 'content.manage'
    CONTENT_VIEW = 'content.view'
    ADS_MANAGE = 'ads.manage'
    ADS_VIEW = 'ads.view'
    ADS_APPROVE = 'ads.approve'
    CATEGORIES_MANAGE = 'categories.manage'
    USERS_MANAGE = 'users.manage'
    USERS_VIEW = 'users.view'
    SELLERS_MANAGE = 'sellers.manage'
    NOTIFICATIONS_SEND = 'notifications.send'
    STAFF_MANAGE = 'staff.manage'
    SYSTEM_MANAGE = 'system.manage'
    SYSTEM_VIEW = 'system.view'
    ANALYTICS_VIEW = 'analytics.view'
    SUPPORT_VIEW = 'support.view'


ROLE_CAPABILITIES: dict[StaffRole, frozenset[Capability]] = {
    StaffRole.SUPER_ADMIN: frozenset(Capability),
    StaffRole.CONTENT_MANAGER: frozenset({
        Capability.DASHBOARD_VIEW, Capability.CONTENT_MANAGE, Capability.CONTENT_VIEW,
        Capability.ADS_VIEW, Capability.SUPPORT_VIEW,
    }),
    StaffRole.SALES_MANAGER: frozenset({
        Capability.DASHBOARD_VIEW, Capability.USERS_VIEW, Capability.SELLERS_MANAGE,
        Capability.ADS_VIEW, Capability.ANALYTICS_VIEW,
    }),
    StaffRole.SUPPORT_EXECUTIVE: frozenset({
        Capability.DASHBOARD_VIEW, Capability.USERS_VIEW, Capability.SUPPORT_VIEW,
        Capability.CONTENT_VIEW,
    }),
    StaffRole.ADMIN: frozenset({
        Capability.DASHBOARD_VIEW, Capability.CONTENT_VIEW, Capability.USERS_VIEW,
        Capability.ADS_VIEW, Capability.ANALYTICS_VIEW,
    }),
}


@dataclass(frozen=True)
class RoleInfo:
    """Human-readable role metadata shown in the admin panel."""
    display_name: str
    color: str


ROLE_INFO: dict[StaffRole, RoleInfo] = {
    StaffRole.SUPER_ADMIN: RoleInfo('Super Admin', 'purple'),
    StaffRole.CONTENT_MANAGER: RoleInfo('Content Manager', 'blue'),
    StaffRole.SALES_MANAGER: RoleInfo('Sales Manager', 'green'),
    StaffRole.SUPPORT_EXECUTIVE: RoleInfo('Support Executive', 'orange'),
    StaffRole.ADMIN: RoleInfo('Admin', 'gray'),
}


def resolve_user_type(hint: str | None) -> UserType:
    """Map an externally supplied type hint onto UserType, defaulting to seller."""
    try:
        return UserType((hint or '').strip().lower())
    except ValueError:
        return DEFAULT_USER_TYPE


def parse_staff_role(role: str | None) -> StaffRole | None:
    if not role:
        return None
    try:
        return StaffRole(role)
    except ValueError:
        return None


def is_backoffice(user: User) -> bool:
    """True for accounts that may sign in to the admin panel."""
    return user.user_type in (UserType.ADMIN.value, UserType.STAFF.value) or bool(user.role)


def effective_role(user: User) -> str | None:
    """Role shown for back-office accounts; None for marketplace users."""
    if user.role:
        return user.role
    if user.user_type == UserType.ADMIN.value:
        return StaffRole.SUPER_ADMIN.value
    if user.user_type == UserType.STAFF.value:
        return StaffRole.ADMIN.value
    return None


def capabilities_for(user: User) -> frozenset[Capability]:
    if user.user_type == UserType.ADMIN.value:
        return ROLE_CAPABILITIES[StaffRole.SUPER_ADMIN]
    if user.user_type == UserType.STAFF.value:
        role = parse_staff_role(user.role) or StaffRole.ADMIN
        return ROLE_CAPABILITIES[role]
    return frozenset()


def role_info_for(role: str | None) -> RoleInfo:
    staff_role = parse_staff_role(role)
    if staff_role is None:
        return RoleInfo(role or 'Staff', 'gray')
    return ROLE_INFO[staff_role]
