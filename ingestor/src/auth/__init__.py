"""
Authentication package.

Exports the BearerAuth dependency class and the token check used by the
uplink webhook route.

CHANGELOG:
- 2026-10-16: Export BearerAuth, verify_bearer_token
"""

from ingestor.src.auth.bearer import BearerAuth, verify_bearer_token

__all__ = ["BearerAuth", "verify_bearer_token"]
