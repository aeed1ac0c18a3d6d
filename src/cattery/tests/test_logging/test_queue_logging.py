import logging
from pathlib import Path

from cattery.core.logging.builder import get_queue_stats, setup_logging, stop_queue_logging
from cattery.core.logging.filters import reset_request_id, set_request_id

from ..test_fixtures.settings import make_test_settings


def make_queue_settings(tmp_path: Path, **overrides):
    values = {
        "LOG_FORMAT": "json",
        "LOG_TO_STDOUT": False,
        "LOG_DIR": tmp_path,
        "LOG_USE_QUEUE": True,
    }
    values.update(overrides)
    return make_test_settings(**values)


def test_queue_listener_writes_file(tmp_path):
    """
    Behavior:
      - With LOG_USE_QUEUE, records pass through the listener thread to app.log.
      - The producer's request id is captured before the record is enqueued.
    """
    settings = make_queue_settings(tmp_path)
    setup_logging(settings)

    logger = logging.getLogger("cattery.test.queue")
    token = set_request_id("test-req-1")
    try:
        for i in range(10):
            logger.info("queued cat %d", i, extra={"iteration": i})
    finally:
        reset_request_id(token)

    assert get_queue_stats()["queue_present"] is True

    # stop() drains the queue before returning
    stop_queue_logging()

    app_log = Path(settings.LOG_DIR) / "app.log"
    assert app_log.exists()
    text = app_log.read_text()
    assert "queued cat 0" in text
    assert "queued cat 9" in text
    assert "iteration" in text
    assert "test-req-1" in text


def test_stop_without_listener_is_noop():
    stop_queue_logging()
    stop_queue_logging()
    assert get_queue_stats()["queue_present"] is False


def test_bounded_non_blocking_queue(tmp_path):
    from cattery.core.logging.builder import NonBlockingQueueHandler

    setup_logging(make_queue_settings(tmp_path, LOG_QUEUE_MAX_SIZE=1000, LOG_QUEUE_BLOCKING=False))
    try:
        assert any(isinstance(h, NonBlockingQueueHandler) for h in logging.getLogger().handlers)
    finally:
        stop_queue_logging()
