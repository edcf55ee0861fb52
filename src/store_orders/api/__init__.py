"""
store_orders.api

HTTP API package for the Identity and Order services.

Responsibilities:
- App factory, routers, and request-scoped dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# These services exist so the portal core can be exercised end-to-end in-process.
