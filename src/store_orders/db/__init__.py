"""
store_orders.db

Persistence package (SQLAlchemy async) for the Identity and Order services.

Responsibilities:
- Provide ORM models, engine/session setup, and repositories.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The portal client never imports this package.
