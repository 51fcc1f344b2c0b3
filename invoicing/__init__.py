"""Invoicing API package.

Payments, documents and invitation tracking served over FastAPI; the ASGI
application lives in ``invoicing.main``.
"""

__all__: list[str] = []
