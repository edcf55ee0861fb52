"""
store_orders.api.routers

Routers for health, auth, products and orders.
"""
