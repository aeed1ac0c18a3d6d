import pytest

from cattery.core.logging.builder import setup_logging, stop_queue_logging

from ..test_fixtures.settings import make_test_settings


@pytest.fixture(autouse=True)
def restore_logging():
    """Tests here reconfigure logging; put the session's console setup back afterwards."""
    yield
    stop_queue_logging()
    setup_logging(make_test_settings())
