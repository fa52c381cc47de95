import logging

from clipbin.utils.best_effort import best_effort

logger = logging.getLogger("tests.best_effort")


def test_returns_result_on_success():
    assert best_effort(lambda: 5, logger=logger, description="answer") == 5


def test_failure_is_logged_and_swallowed(caplog):
    calls = []

    def boom():
        raise RuntimeError("accounting down")

    with caplog.at_level(logging.ERROR, logger="tests.best_effort"):
        result = best_effort(boom, logger=logger, description="login accounting", cleanup=lambda: calls.append("rollback"))

    assert result is None
    assert calls == ["rollback"]
    assert "best-effort login accounting failed" in caplog.text
    assert "accounting down" in caplog.text


def test_failing_cleanup_is_also_swallowed(caplog):
    def boom():
        raise RuntimeError("first")

    def bad_cleanup():
        raise RuntimeError("second")

    with caplog.at_level(logging.ERROR, logger="tests.best_effort"):
        assert best_effort(boom, logger=logger, description="view count", cleanup=bad_cleanup) is None
    assert "cleanup after failed view count also failed" in caplog.text
