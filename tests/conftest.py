# Test configuration
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent

# Add repo root to path so tests can import modules
sys.path.insert(0, str(REPO_ROOT))

from mcphub.auth.tokens import create_access_token  # noqa: E402
from mcphub.config import Settings  # noqa: E402


TEST_SECRET = "test-signing-secret"


def make_settings(**overrides) -> Settings:
    values = {
        "TOKEN_SIGNING_SECRET": TEST_SECRET,
        "INTEGRATIONS_CONFIG_PATH": str(REPO_ROOT / "tests" / "no-such-integrations.yaml"),
        "DISCONNECT_POLL_SECONDS": 0.05,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_token(
    integration_name: str = "search",
    upstream_credential: str = "key-123",
    tenant_id: str = "u1",
    **kwargs,
) -> str:
    return create_access_token(
        secret=TEST_SECRET,
        integration_name=integration_name,
        upstream_credential=upstream_credential,
        tenant_id=tenant_id,
        **kwargs,
    )


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def auth_header():
    def _header(**kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(**kwargs)}"}

    return _header
