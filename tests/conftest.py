import pytest

from telehtml.config import get_config


@pytest.fixture
def fresh_config():
    """Rebuild the cached config so environment overrides take effect."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()
