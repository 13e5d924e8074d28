from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from lingala_api.db.models import Subscription

ACTIVE_STATUS = "active"


def is_active(subscription: Subscription, *, now: datetime) -> bool:
    end = subscription.current_period_end
    return subscription.status == ACTIVE_STATUS and end is not None and end >= now


def has_active_subscription(subscriptions: Iterable[Subscription], *, now: datetime) -> bool:
    # Any row counts, not only the newest one.
    return any(is_active(s, now=now) for s in subscriptions)


def current_active(subscriptions: Iterable[Subscription], *, now: datetime) -> Subscription | None:
    for subscription in subscriptions:
        if is_active(subscription, now=now):
            return subscription
    return None
