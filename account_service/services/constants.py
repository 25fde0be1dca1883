# account_service/services/constants.py
"""
Rate limits for the HTTP surface.

Format: "<count>/<period>" as understood by slowapi/limits.
"""

# Default limit for all endpoints without an explicit one
RATE_LIMIT_DEFAULT: str = "100/minute"

# Health checks are polled by load balancers
RATE_LIMIT_HEALTH: str = "300/minute"

# Login - slow down credential stuffing
RATE_LIMIT_AUTH_LOGIN: str = "10/minute"

# Registration - prevent mass account creation
RATE_LIMIT_AUTH_REGISTER: str = "5/minute"

# Forgot/reset password - prevent email bombing
RATE_LIMIT_AUTH_PASSWORD_RESET: str = "3/minute"

# Verification resend - prevent email spam
RATE_LIMIT_AUTH_EMAIL: str = "3/minute"
