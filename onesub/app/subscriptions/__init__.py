"""Bundle subscription lifecycle."""

from .service import SubscriptionLifecycleManager, advance_billing_date, monthly_equivalent

__all__ = ["SubscriptionLifecycleManager", "advance_billing_date", "monthly_equivalent"]
