"""
Credential and token services.

This module provides:
- Password hashing and verification (argon2)
- A bounded worker pool for hashing
- Session JWT issuance and validation
- Single-use email verification and password reset tokens
- Account emails
- The account credential workflow (AccountCredentialWorkflow)

Usage:
    from account_service.services.auth import PasswordHasher, TokenService

    hasher = PasswordHasher()
    credential = hasher.hash("correct horse battery")
    hasher.verify("correct horse battery", credential)  # True

    tokens = TokenService()
    token = tokens.issue(user_id, secret, ttl_minutes=60)
    tokens.validate(token, secret)  # user_id
"""

from account_service.services.auth.password import PasswordHasher, MAX_PASSWORD_LENGTH
from account_service.services.auth.hashing_pool import HashingExecutor
from account_service.services.auth.jwt_handler import TokenService
from account_service.services.auth.verification import VerificationTokenManager
from account_service.services.auth.email_service import EmailService
from account_service.services.auth.service import AccountCredentialWorkflow

__all__ = [
    "PasswordHasher",
    "MAX_PASSWORD_LENGTH",
    "HashingExecutor",
    "TokenService",
    "VerificationTokenManager",
    "EmailService",
    "AccountCredentialWorkflow",
]
