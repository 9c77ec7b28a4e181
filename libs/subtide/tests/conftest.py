from __future__ import annotations

import pytest

from subtide.config import ProviderKeys, Settings


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        log_dir=str(tmp_path / "logs"),
        keys=ProviderKeys(_env_file=None, gemini_api_key="test-gemini-key", openai_api_key=""),
    )
