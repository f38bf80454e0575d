"""
auth: User authentication module.

Provides:
  • Signed token creation & verification (``TokenService``)
  • Password hashing (bcrypt)
  • Signup / Login / Profile API routes
  • ``AuthGate`` and the ``get_current_user`` FastAPI dependency
"""
