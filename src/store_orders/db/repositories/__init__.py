"""
store_orders.db.repositories

Repository package.

Responsibilities:
- Encapsulate SQLAlchemy queries behind small repository classes.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Repositories flush but never commit; the service/router layer owns the transaction.
