"""authgate — GraphQL account backend.

Registration, login, cookie-carried access/refresh tokens, and profile
updates with avatar upload, on top of FastAPI + ariadne + SQLAlchemy.
"""

__version__ = "0.1.0"
