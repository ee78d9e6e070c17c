"""AppConfig のテスト"""

from unittest.mock import patch

import pytest
from familyfin.config import AppConfig


@pytest.fixture(autouse=True)
def _no_dotenv():
    with patch("familyfin.config.load_dotenv"):
        yield


def test_from_env_defaults():
    with patch.dict("os.environ", {"PROJECT_ID": "familyfin-dev"}, clear=True):
        config = AppConfig.from_env()

    assert config.project_id == "familyfin-dev"
    assert config.app_base_url == ""


def test_base_url_trailing_slash_removed():
    env = {"PROJECT_ID": "p", "APP_BASE_URL": "https://familyfin.web.app/"}
    with patch.dict("os.environ", env, clear=True):
        config = AppConfig.from_env()

    assert config.app_base_url == "https://familyfin.web.app"


def test_missing_project_id_raises():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ValueError, match="PROJECT_ID"):
            AppConfig.from_env()
