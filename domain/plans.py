"""
Subscription plans and the invoice quota check run before a batch is processed.

Billing itself lives elsewhere; this module only knows the limits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .errors import QuotaExceeded


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    price: float
    currency: str
    invoice_limit: int
    description: str = ""


PLANS: Dict[str, Plan] = {
    "free": Plan("free", "Starter", 0, "EUR", 50, "Great for testing the service."),
    "pro": Plan("pro", "Pro", 19.99, "EUR", 1000, "Ideal for small to medium businesses."),
    "premium": Plan("premium", "Premium", 79.99, "EUR", 10000, "For large companies and high volumes."),
}


def get_plan(plan_id: str) -> Plan:
    try:
        return PLANS[plan_id]
    except KeyError:
        raise ValueError(f"Unknown plan: {plan_id}") from None


def check_quota(plan: Plan, used: int, to_process: int) -> None:
    """Raise QuotaExceeded if processing `to_process` invoices would pass the plan limit."""
    if used + to_process > plan.invoice_limit:
        raise QuotaExceeded(
            f"Processing {to_process} invoices would exceed your {plan.name} plan limit "
            f"of {plan.invoice_limit} (current usage: {used})."
        )


def remaining(plan: Plan, used: int) -> int:
    return max(0, plan.invoice_limit - used)
