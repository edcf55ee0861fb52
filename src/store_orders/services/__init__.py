"""
store_orders.services

Service layer package.

Responsibilities:
- Own transactions and business rules for the Order Service endpoints.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers stay thin: validation of HTTP shapes there, business rules here.
