from typing import Any

import pytest

from newsproxy.config import Settings

from .fakes import ARTICLES_PAYLOAD


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def articles_payload() -> dict[str, Any]:
    return ARTICLES_PAYLOAD
