"""
store_orders.observability

Observability package.

Responsibilities:
- Structured logging configuration shared by the portal client and the services.
- Request context propagation for the services' log lines.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The client core only calls `get_logger`; configuring output is the embedding app's job.
