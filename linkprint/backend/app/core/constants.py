# backend/app/core/constants.py
from enum import Enum
from typing import Dict, List, Tuple


class PlanType(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    EXPIRED = "expired"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    VIEWER = "viewer"


class OrderStatus(str, Enum):
    PENDING = "pending"
    IN_PRODUCTION = "in_production"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    VOID = "void"


# Feature flags shared verbatim with the dashboard UI
FEATURE_NAMES: List[str] = [
    "products",
    "orders",
    "quotes",
    "invoices",
    "departments",
    "staff",
    "workflow",
    "profile",
    "customers",
    "agents",
    "transactions",
    "paymentGateway",
    "promotions",
    "packages",
    "analytics",
    "shipments",
    "pricingEngine",
    "liveTracking",
    "storefront",
    "publicLogin",
    "customerLogin",
    "agentManualTopup",
    "agentAutoTopup",
    "whiteLabel",
    "customDomain",
    "apiAccess",
]

LIMIT_NAMES: List[str] = ["maxUsers", "maxOrders", "maxProducts", "maxStorageMb"]

UNLIMITED = -1

# Basic: internal operations, staff only
BASIC_FEATURES: Dict[str, bool] = {
    "products": True,
    "orders": True,
    "quotes": True,
    "invoices": True,
    "departments": True,
    "staff": True,
    "workflow": True,
    "profile": True,
    "customers": True,
    "agents": False,
    "transactions": False,
    "paymentGateway": False,
    "promotions": False,
    "packages": False,
    "analytics": False,
    "shipments": False,
    "pricingEngine": False,
    "liveTracking": False,
    "storefront": False,
    "publicLogin": False,
    "customerLogin": False,
    "agentManualTopup": True,
    "agentAutoTopup": False,
    "whiteLabel": False,
    "customDomain": False,
    "apiAccess": False,
}

# Pro: full automation + storefront (also granted during trials)
PRO_FEATURES: Dict[str, bool] = {
    **{name: True for name in FEATURE_NAMES},
    "whiteLabel": False,
    "customDomain": False,
    "apiAccess": False,
}

# Enterprise: Pro + white label
ENTERPRISE_FEATURES: Dict[str, bool] = {name: True for name in FEATURE_NAMES}

# Free: plan assigned at signup, underneath the Pro trial
FREE_FEATURES: Dict[str, bool] = {
    **BASIC_FEATURES,
    "staff": False,
    "workflow": False,
    "agentManualTopup": False,
}

BASIC_LIMITS: Dict[str, int] = {
    "maxUsers": 5,
    "maxOrders": 100,
    "maxProducts": 50,
    "maxStorageMb": 1000,
}

PRO_TRIAL_LIMITS: Dict[str, int] = {
    "maxUsers": 10,
    "maxOrders": 500,
    "maxProducts": 200,
    "maxStorageMb": 5000,
}

# Reference plans written by scripts/seed_plans.py
PLAN_CATALOG: Dict[str, Dict] = {
    PlanType.FREE: {
        "name": "Free",
        "description": "Free forever plan with basic features",
        "monthly_price": 0,
        "yearly_price": 0,
        "features": FREE_FEATURES,
        "limits": {"maxUsers": 2, "maxOrders": 50, "maxProducts": 20, "maxStorageMb": 500},
        "display_order": 0,
    },
    PlanType.BASIC: {
        "name": "Basic",
        "description": "Internal Operations - Staff Only",
        "monthly_price": 299,
        "yearly_price": 2990,
        "features": BASIC_FEATURES,
        "limits": BASIC_LIMITS,
        "display_order": 1,
    },
    PlanType.PRO: {
        "name": "Pro",
        "description": "Full Automation + Storefront",
        "monthly_price": 599,
        "yearly_price": 5990,
        "features": PRO_FEATURES,
        "limits": {"maxUsers": 20, "maxOrders": 500, "maxProducts": 200, "maxStorageMb": 5000},
        "display_order": 2,
    },
    PlanType.ENTERPRISE: {
        "name": "Enterprise",
        "description": "White Label + Custom Domain",
        "monthly_price": 1200,
        "yearly_price": 12000,
        "features": ENTERPRISE_FEATURES,
        "limits": {"maxUsers": 100, "maxOrders": 10000, "maxProducts": 1000, "maxStorageMb": 50000},
        "display_order": 3,
    },
}

# Quota-checked resources: resource -> (limit key, scoped client attribute)
USAGE_RESOURCES: Dict[str, Tuple[str, str]] = {
    "users": ("maxUsers", "user"),
    "orders": ("maxOrders", "order"),
    "products": ("maxProducts", "product"),
}

DEFAULT_DEPARTMENTS: List[Tuple[str, str]] = [
    ("Design", "#8B5CF6"),
    ("Production", "#3B82F6"),
    ("Quality Control", "#10B981"),
]
