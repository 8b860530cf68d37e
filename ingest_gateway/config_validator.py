"""
Configuration validation for the ingestion gateway.

Malformed values are already rejected by the pydantic validators in
ingest_gateway/settings.py when the settings object is built. This module
checks the values that are well-formed but unsafe, and logs the effective
configuration at startup.

Called automatically during application startup in ingest_gateway/main.py.
"""

import os
import logging
from typing import List

from ingest_gateway.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# ==============================================================================
# Insecure defaults
# ==============================================================================

INSECURE_AUTH_VALUES = {"admin:admin", "admin:", ":"}

# ==============================================================================
# Documentation of All Environment Variables
# ==============================================================================

ENV_VAR_DOCUMENTATION = """
# ==============================================================================
# ENVIRONMENT VARIABLES REFERENCE
# ==============================================================================

## Document store
- STORE_BACKEND: opensearch (default) or memory
- OPENSEARCH_HOST: Store host (default: localhost)
- OPENSEARCH_PORT: Store port (default: 9200)
- OPENSEARCH_PROTOCOL: http or https (default: https)
- OPENSEARCH_AUTH: Credential pair 'user:password' (default: admin:admin)
- OPENSEARCH_VERIFY_CERTS: Verify the store's TLS certificate (default: false)
- OPENSEARCH_TIMEOUT: Per-request timeout in seconds (default: 30)
- STORE_WRITE_WORKERS: Threads for concurrent document writes (default: 8)

## Admission control
- RATE_LIMIT_ENABLED: Enable rate limiting of mutating routes (default: true)
- RATE_LIMIT_MAX_REQUESTS: Requests per window (default: 100)
- RATE_LIMIT_WINDOW_SECONDS: Window length (default: 60)
- RATE_LIMIT_SCOPE: client (per source address) or global (default: client)
- RATE_LIMIT_TRUST_FORWARDED: Key clients by X-Forwarded-For; enable only behind a trusted proxy (default: false)

## Uploads
- UPLOAD_MAX_BYTES: Maximum upload size (default: 50000000)
- UPLOAD_TMP_DIR: Directory for temporary upload files (default: system temp)

## Logging
- ENV: Environment type (production, development)
- LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- ACCESS_LOG_PATH: Also append the access log to this file
"""


def find_insecure_settings(config: Settings) -> List[str]:
    """Return a human-readable warning for each unsafe store setting."""
    warnings: List[str] = []
    store = config.store

    if store.backend != "opensearch":
        return warnings

    if store.auth in INSECURE_AUTH_VALUES:
        warnings.append("OPENSEARCH_AUTH uses the default credential pair")
    if store.protocol == "https" and not store.verify_certs:
        warnings.append("OPENSEARCH_VERIFY_CERTS=false: store certificate is not verified")
    if store.protocol == "http":
        warnings.append("OPENSEARCH_PROTOCOL=http: credentials are sent in clear text")

    return warnings


def validate_config(config: Settings = default_settings) -> None:
    """
    Log the effective configuration and warn about unsafe values.

    In production (ENV=production) the same findings are logged at ERROR.
    """
    env = os.getenv("ENV", "development")
    insecure = find_insecure_settings(config)

    if insecure:
        log = logger.error if env == "production" else logger.warning
        log("=" * 80)
        log("SECURITY WARNING: document store connection uses insecure settings")
        log("=" * 80)
        for message in insecure:
            log(f"  ⚠ {message}")
        if env == "production":
            log("Override these values before serving production traffic.")
        log("=" * 80)

    if not config.rate_limit.enabled:
        logger.warning("Rate limiting is disabled (RATE_LIMIT_ENABLED=false)")

    logger.info(f"Environment: {env}")
    logger.info(f"Store backend: {config.store.backend} ({config.store.url})")
    limit = config.rate_limit
    if limit.enabled:
        logger.info(
            f"Rate limit: {limit.max_requests} requests / {limit.window_seconds:g}s per {limit.scope}"
        )
    logger.info(f"Upload limit: {config.upload.max_bytes} bytes")


def print_env_documentation() -> None:
    """Print complete environment variable documentation."""
    print(ENV_VAR_DOCUMENTATION)


if __name__ == "__main__":
    # Allow running this module directly to print documentation
    print_env_documentation()
