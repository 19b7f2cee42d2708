"""
Configuration setup for the session gateway.

This module handles all configuration parsing including:
- CORS settings
- Tenants and their login mechanisms
- Admin gate credentials
- Session lifetimes and storage
"""
import os
import logging
from datetime import timedelta
from typing import Optional, Tuple

from session.manager import DEFAULT_SESSION_TTL

logger = logging.getLogger('gateway.service.config')


def _split_env_list(name: str, default: str = "") -> list[str]:
    values = os.getenv(name, default).split(",")
    return [value.strip() for value in values if value.strip()]


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def get_cors_config() -> Tuple[list[str], list[str], list[str]]:
    """
    Parse and return CORS configuration from environment variables.

    Returns:
        Tuple containing (origins, methods, headers) lists
    """
    cors_allowed_origins = _split_env_list("CORS_ALLOWED_ORIGINS")

    # Development fallback
    if not cors_allowed_origins:
        logger.warning("CORS_ALLOWED_ORIGINS not set, using development defaults")
        cors_allowed_origins = [
            "http://localhost:5174",
            "http://localhost:3000",
            "http://127.0.0.1:5174",
            "http://127.0.0.1:3000"
        ]

    cors_allowed_methods = _split_env_list("CORS_ALLOWED_METHODS", "GET,POST,PUT,DELETE,OPTIONS")
    cors_allowed_headers = _split_env_list("CORS_ALLOWED_HEADERS", "Content-Type,Authorization")

    return cors_allowed_origins, cors_allowed_methods, cors_allowed_headers


def get_tenant_names() -> list[str]:
    tenants = _split_env_list("TENANTS", "default")
    logger.info(f"Configured tenants: {tenants}")
    return tenants


def get_persona_tenants() -> set[str]:
    """Tenants that accept logins from upstream-verified identities."""
    return set(_split_env_list("PERSONA_TENANTS"))


def auto_register_users() -> bool:
    return _env_flag("AUTO_REGISTER_USERS")


def get_identity_verifier_url() -> Optional[str]:
    return os.getenv("IDENTITY_VERIFIER_URL")


def get_admin_api_key() -> Optional[str]:
    admin_api_key = os.getenv("ADMIN_API_KEY")
    if not admin_api_key:
        logger.warning("ADMIN_API_KEY not set, admin endpoints will reject every request")
    return admin_api_key


def get_default_session_ttl() -> timedelta:
    raw_ttl = os.getenv("DEFAULT_SESSION_TTL_SECONDS")
    if not raw_ttl:
        return DEFAULT_SESSION_TTL
    try:
        seconds = int(raw_ttl)
    except ValueError:
        logger.warning(f"Invalid DEFAULT_SESSION_TTL_SECONDS '{raw_ttl}', using {DEFAULT_SESSION_TTL}")
        return DEFAULT_SESSION_TTL
    if seconds < 1:
        logger.warning(f"Non-positive DEFAULT_SESSION_TTL_SECONDS '{raw_ttl}', using {DEFAULT_SESSION_TTL}")
        return DEFAULT_SESSION_TTL
    return timedelta(seconds=seconds)


def use_redis() -> bool:
    return _env_flag("USE_REDIS", "true")


__all__ = [
    'get_cors_config',
    'get_tenant_names',
    'get_persona_tenants',
    'auto_register_users',
    'get_identity_verifier_url',
    'get_admin_api_key',
    'get_default_session_ttl',
    'use_redis',
]
