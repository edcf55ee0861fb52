"""
store_orders.orders.status

Order status lifecycle and the role-gated transition table.

Responsibilities:
- Define the monotonic status path Pending -> Shipped -> Delivered.
- Decide, for a caller role, whether a transition is allowed (one table, used by the
  portal client before any request and by the Order Service authoritatively).
- Apply an accepted transition to an order without touching its items or total.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from store_orders.auth.models import Role
from store_orders.errors import Forbidden, InvalidTransition

if TYPE_CHECKING:
    from store_orders.orders.models import Order


class OrderStatus(enum.StrEnum):
    pending = "PENDING"
    shipped = "SHIPPED"
    delivered = "DELIVERED"

    @classmethod
    def _missing_(cls, value: object) -> OrderStatus | None:
        # Accept "Shipped"/"shipped" from older clients and UI filters.
        if isinstance(value, str):
            upper = value.upper()
            for member in cls:
                if member.value == upper:
                    return member
        return None

    @property
    def rank(self) -> int:
        return _PATH.index(self)


_PATH = (OrderStatus.pending, OrderStatus.shipped, OrderStatus.delivered)

# (from, to) -> roles allowed to perform it.
_TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], frozenset[Role]] = {
    (OrderStatus.pending, OrderStatus.shipped): frozenset({Role.admin}),
    (OrderStatus.pending, OrderStatus.delivered): frozenset({Role.admin, Role.store}),
    (OrderStatus.shipped, OrderStatus.delivered): frozenset({Role.store}),
}


class OrderStatusMachine:
    """
    Stateless; one instance can be shared freely.
    """

    def check(self, *, current: OrderStatus, target: OrderStatus, role: Role) -> None:
        if current is OrderStatus.delivered:
            raise InvalidTransition(f"order is already {current.value}")
        if target.rank <= current.rank:
            # Re-applying the current status is rejected too, to surface double submits.
            raise InvalidTransition(f"cannot move from {current.value} to {target.value}")
        if role not in _TRANSITIONS.get((current, target), frozenset()):
            raise Forbidden(f"role {role.value} may not move {current.value} to {target.value}")

    def can_transition(self, *, current: OrderStatus, target: OrderStatus, role: Role) -> bool:
        try:
            self.check(current=current, target=target, role=role)
        except (Forbidden, InvalidTransition):
            return False
        return True

    def allowed_targets(self, *, current: OrderStatus, role: Role) -> frozenset[OrderStatus]:
        return frozenset(
            target for target in OrderStatus if self.can_transition(current=current, target=target, role=role)
        )

    def apply(
        self,
        order: Order,
        *,
        target: OrderStatus,
        role: Role,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        self.check(current=order.status, target=target, role=role)
        ts = now or datetime.now(tz=UTC)
        update: dict[str, object] = {"status": target, "updated_at": ts}
        if target is OrderStatus.delivered:
            update["status_changed_to_completed"] = ts
        if notes is not None:
            update["notes"] = notes
        return order.model_copy(update=update)


# --- Module Notes -----------------------------------------------------------
# There is deliberately no Cancelled status: the observed workflow never defines it.
