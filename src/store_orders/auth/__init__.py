"""
store_orders.auth

Authentication/authorization package.

Responsibilities:
- Client side: token expiry checks, session persistence and the session lifecycle.
- Server side: JWT issuing/validation, password hashing, FastAPI auth dependencies.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Client modules (token_clock, store, manager) must not import FastAPI or SQLAlchemy.
