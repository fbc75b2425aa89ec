"""
Shared-token guard for write endpoints. Disabled when api.admin_token is empty.
"""
import hmac
from typing import Any, Callable, Optional

from fastapi import Header, HTTPException


def admin_guard(sign_app: Any) -> Callable[..., None]:
    """Dependency that checks X-Admin-Token against the configured api.admin_token."""

    def check(x_admin_token: Optional[str] = Header(default=None)) -> None:
        expected = str((sign_app.config.data.get("api") or {}).get("admin_token") or "")
        if not expected:
            return
        if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
            raise HTTPException(status_code=401, detail="Admin token required")

    return check
