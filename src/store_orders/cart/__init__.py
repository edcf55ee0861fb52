"""
store_orders.cart

Cart package.

Responsibilities:
- Session-scoped product -> quantity aggregate with derived totals.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The cart has no persistence of its own; `store_orders.portal` ties its lifetime to the session.
