"""QR attendance session engine.

Feature modules (sessions, attendance, reports, users) each carry a
repository interface, a MySQL adapter and a service; a thin Flask controller
maps the service operations onto JSON endpoints.
"""
from __future__ import annotations

__version__ = "1.0.0"
