import pytest
from typing import Callable, Dict

from app.core.security import create_owner_session_token
from app.schemas.enums import OwnerRole

# ─────────────────────────────────────────────────────────────
# 🔐 Owner session fixtures
# ─────────────────────────────────────────────────────────────

ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"


@pytest.fixture
def owner_headers_for() -> Callable[..., Dict[str, str]]:
    """Factory: Bearer headers for an owner of `org_id`."""
    def _make(org_id: str = ORG_ID, *, user_id: str = "user-1", role: OwnerRole = OwnerRole.ADMIN):
        token = create_owner_session_token(org_id=org_id, user_id=user_id, role=role)
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def owner_headers(owner_headers_for) -> Dict[str, str]:
    return owner_headers_for(ORG_ID)


__all__ = ["ORG_ID", "OTHER_ORG_ID", "owner_headers_for", "owner_headers"]
