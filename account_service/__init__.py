"""User account backend: registration, login, email verification and password reset."""

__version__ = "0.1.0"
