"""
store_orders.orders

Order domain package.

Responsibilities:
- Order/OrderItem records and the status state machine.
- Client-side order submission and status updates.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# `status` is imported by both the client core and the Order Service; keep it free of I/O.
