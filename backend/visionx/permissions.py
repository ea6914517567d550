"""
Role and permission definitions for the clinic.

Roles are a single column on User (no role tables). Each route declares the
permission it needs; the mapping below decides which roles hold it.

DESIGN PRINCIPLES:
- Fail closed: a role not listed for a permission is denied
- Admin holds every staff-side permission
- Patients only hold the self-service permissions
"""

# =============================================================================
# ROLES
# =============================================================================

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_DOCTOR = "doctor"
ROLE_PATIENT = "patient"

VALID_ROLES = (ROLE_ADMIN, ROLE_STAFF, ROLE_DOCTOR, ROLE_PATIENT)
CLINIC_ROLES = (ROLE_ADMIN, ROLE_STAFF, ROLE_DOCTOR)


class PermissionCategory:
    """Permission categories for organization."""
    CUSTOMERS = "CUSTOMERS"
    INVENTORY = "INVENTORY"
    CLINICAL = "CLINICAL"
    SALES = "SALES"
    USERS = "USERS"
    SYSTEM = "SYSTEM"
    SELF_SERVICE = "SELF_SERVICE"


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    ("VIEW_CUSTOMERS", "View Customers", "List and view all customer records", PermissionCategory.CUSTOMERS),
    ("MANAGE_CUSTOMERS", "Manage Customers", "Create and edit customer records", PermissionCategory.CUSTOMERS),
    ("DELETE_CUSTOMERS", "Delete Customers", "Delete customers and their clinical history", PermissionCategory.CUSTOMERS),

    ("VIEW_INVENTORY", "View Inventory", "Browse frames, lenses and accessories", PermissionCategory.INVENTORY),
    ("MANAGE_INVENTORY", "Manage Inventory", "Create, edit and delete inventory items", PermissionCategory.INVENTORY),
    ("VIEW_LOW_STOCK", "View Low Stock", "See items below the low-stock threshold", PermissionCategory.INVENTORY),

    ("VIEW_APPOINTMENTS", "View Appointments", "List every appointment", PermissionCategory.CLINICAL),
    ("BOOK_APPOINTMENT", "Book Appointment", "Create an appointment", PermissionCategory.CLINICAL),
    ("UPDATE_APPOINTMENT_STATUS", "Update Appointment Status", "Approve, complete or cancel appointments", PermissionCategory.CLINICAL),
    ("VIEW_EYE_TESTS", "View Eye Tests", "List every eye test", PermissionCategory.CLINICAL),
    ("RECORD_EYE_TEST", "Record Eye Test", "Store manual or AI eye test results", PermissionCategory.CLINICAL),
    ("VIEW_PRESCRIPTIONS", "View Prescriptions", "List every prescription", PermissionCategory.CLINICAL),
    ("WRITE_PRESCRIPTION", "Write Prescription", "Issue prescriptions", PermissionCategory.CLINICAL),

    ("CREATE_SALE", "Create Sale", "Ring up a counter sale for a customer", PermissionCategory.SALES),
    ("VIEW_SALES", "View Sales", "List recorded sales", PermissionCategory.SALES),
    ("USE_CART", "Use Cart", "Manage the caller's own cart and check out", PermissionCategory.SELF_SERVICE),

    ("VIEW_PATIENT_PORTAL", "View Patient Portal", "See the caller's own appointments, tests and prescriptions", PermissionCategory.SELF_SERVICE),
    ("USE_ASSISTANT", "Use Assistant", "Chat with the AI assistant", PermissionCategory.SELF_SERVICE),

    ("VIEW_ANALYTICS", "View Analytics", "Dashboard stats and aggregate reports", PermissionCategory.SYSTEM),
    ("VIEW_ACTIVITY_LOG", "View Activity Log", "Read the audit trail", PermissionCategory.SYSTEM),
    ("SEND_NOTIFICATIONS", "Send Notifications", "Send notifications to any user", PermissionCategory.SYSTEM),
    ("MANAGE_USERS", "Manage Users", "Create users and change roles or passwords", PermissionCategory.USERS),
]


# =============================================================================
# DEFAULT ROLE PERMISSIONS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    # Everything except the patient-only portal
    ROLE_ADMIN: [perm[0] for perm in PERMISSION_DEFINITIONS if perm[0] != "VIEW_PATIENT_PORTAL"],

    ROLE_STAFF: [
        # Front desk: customers, bookings, counter sales
        "VIEW_CUSTOMERS",
        "MANAGE_CUSTOMERS",
        "VIEW_INVENTORY",
        "VIEW_LOW_STOCK",
        "VIEW_APPOINTMENTS",
        "BOOK_APPOINTMENT",
        "UPDATE_APPOINTMENT_STATUS",
        "VIEW_EYE_TESTS",
        "RECORD_EYE_TEST",
        "VIEW_PRESCRIPTIONS",
        "CREATE_SALE",
        "VIEW_SALES",
        "USE_CART",
        "USE_ASSISTANT",
    ],

    ROLE_DOCTOR: [
        # Clinical work
        "VIEW_CUSTOMERS",
        "MANAGE_CUSTOMERS",
        "VIEW_INVENTORY",
        "VIEW_APPOINTMENTS",
        "BOOK_APPOINTMENT",
        "UPDATE_APPOINTMENT_STATUS",
        "VIEW_EYE_TESTS",
        "RECORD_EYE_TEST",
        "VIEW_PRESCRIPTIONS",
        "WRITE_PRESCRIPTION",
        "USE_CART",
        "USE_ASSISTANT",
    ],

    ROLE_PATIENT: [
        "VIEW_INVENTORY",
        "BOOK_APPOINTMENT",
        "USE_CART",
        "VIEW_PATIENT_PORTAL",
        "USE_ASSISTANT",
    ],
}


# =============================================================================
# PERMISSION HELPERS
# =============================================================================

def get_role_permissions(role: str) -> set[str]:
    """Permission codes held by a role; unknown roles hold nothing."""
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, []))


def role_has_permission(role: str, permission_code: str) -> bool:
    return permission_code in get_role_permissions(role)


def validate_role(role: str) -> bool:
    return role in VALID_ROLES
