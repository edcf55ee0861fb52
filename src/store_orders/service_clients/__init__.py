"""
store_orders.service_clients

Service client package.

Responsibilities:
- Provide client interfaces for the Identity Service and the Order Service.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The session manager and order components depend on this boundary, not on httpx directly.
