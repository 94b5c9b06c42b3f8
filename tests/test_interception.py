"""Tests for query log interception."""

import contextvars
import logging
import threading

import pytest

from qt_jcr.config import OAK_QUERY_LOGGER
from qt_jcr.interception import QueryLogInterception, format_message, interception_key

query_logger = logging.getLogger(OAK_QUERY_LOGGER)


@pytest.fixture
def active_key():
    """Set an interception key without opening a window."""
    token = interception_key.set("test-key")
    yield "test-key"
    interception_key.reset(token)


class TestFormatMessage:
    def test_none_template(self):
        assert format_message(None, ("a",)) is None

    def test_no_args(self):
        assert format_message("cost for nodeType is 14.0") == "cost for nodeType is 14.0"

    def test_placeholders(self):
        assert format_message("cost for {} is {}", ("nodeType", 14.0)) == "cost for nodeType is 14.0"

    def test_single_placeholder_argument(self):
        assert format_message("plan: {}", "traverse") == "plan: traverse"

    def test_escaped_placeholder(self):
        assert format_message("literal \\{} then {}", ("x",)) == "literal {} then x"

    def test_missing_placeholder_arguments(self):
        assert format_message("{} and {}", ("a",)) == "a and {}"

    def test_percent_style(self):
        assert format_message("cost for %s is %s", ("traverse", "1.0E7")) == "cost for traverse is 1.0E7"

    def test_percent_mapping(self):
        assert format_message("cost %(cost)s", {"cost": 2.0}) == "cost 2.0"

    def test_unformattable(self):
        assert format_message("%d items", ("many",)) is None


class TestDecide:
    def test_captures_under_active_key(self, active_key):
        interception = QueryLogInterception()
        assert interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, "cost for {} is {}", ("nodeType", "14.0"))
        assert interception.saved_logs(active_key) == ["cost for nodeType is 14.0\n"]

    def test_no_active_key(self):
        interception = QueryLogInterception()
        assert interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, "cost for nodeType is 14.0")
        assert interception._saved == {}

    def test_other_logger_ignored(self, active_key):
        interception = QueryLogInterception()
        assert interception.decide("org.apache.jackrabbit.oak.query.Other", logging.DEBUG, "cost for x is 1")
        assert interception.saved_logs(active_key) == []

    def test_none_template_ignored(self, active_key):
        interception = QueryLogInterception()
        assert interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, None)
        assert interception.saved_logs(active_key) == []

    def test_first_lines_retained_at_limit(self, active_key):
        interception = QueryLogInterception()
        for i in range(510):
            interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, "Message {}", (i,))
        lines = interception.saved_logs(active_key)
        assert len(lines) == 500
        assert lines[0] == "Message 0\n"
        assert lines[499] == "Message 499\n"

    def test_custom_limit(self, active_key):
        interception = QueryLogInterception(message_count_limit=2)
        for i in range(5):
            interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, "Message {}", (i,))
        assert interception.saved_logs(active_key) == ["Message 0\n", "Message 1\n"]

    def test_saved_logs_returns_copy(self, active_key):
        interception = QueryLogInterception()
        interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, "one")
        interception.saved_logs(active_key).append("two")
        assert interception.saved_logs(active_key) == ["one\n"]

    def test_unknown_key(self):
        assert QueryLogInterception().saved_logs("missing") == []

    def test_stop_interception(self, active_key):
        interception = QueryLogInterception()
        interception.decide(OAK_QUERY_LOGGER, logging.DEBUG, "one")
        interception.stop_interception(active_key)
        assert interception.saved_logs(active_key) == []
        interception.stop_interception("missing")


class TestWindow:
    def test_captures_logger_records(self, interception):
        with interception.window() as key:
            query_logger.debug("cost for %s is %s", "nodeType", "14.0")
            logging.getLogger("qt_jcr.other").warning("not captured")
            assert interception.saved_logs(key) == ["cost for nodeType is 14.0\n"]

    def test_key_is_active_only_inside(self, interception):
        assert interception_key.get() is None
        with interception.window() as key:
            assert interception_key.get() == key
        assert interception_key.get() is None

    def test_lines_discarded_on_close(self, interception):
        with interception.window() as key:
            query_logger.debug("cost for traverse is 1.0E7")
        assert interception.saved_logs(key) == []
        assert interception._saved == {}

    def test_lines_discarded_on_failure(self, interception):
        with pytest.raises(RuntimeError):
            with interception.window() as key:
                query_logger.debug("cost for traverse is 1.0E7")
                raise RuntimeError("engine down")
        assert interception.saved_logs(key) == []
        assert interception_key.get() is None

    def test_logger_level_restored(self, interception):
        original = query_logger.level
        with interception.window():
            assert query_logger.isEnabledFor(logging.DEBUG)
            with interception.window():
                assert query_logger.isEnabledFor(logging.DEBUG)
            assert query_logger.isEnabledFor(logging.DEBUG)
        assert query_logger.level == original

    def test_overlapping_windows_of_two_instances(self):
        original = query_logger.level
        first = QueryLogInterception()
        second = QueryLogInterception()
        first.install()
        second.install()
        query_logger.setLevel(logging.WARNING)
        opened, release = threading.Event(), threading.Event()

        def hold_first_window():
            with first.window():
                opened.set()
                release.wait()

        worker = threading.Thread(target=hold_first_window)
        try:
            worker.start()
            opened.wait()
            with second.window() as key:
                release.set()
                worker.join()
                query_logger.debug("cost for nodeType is 1.0")
                lines = second.saved_logs(key)
            assert lines == ["cost for nodeType is 1.0\n"]
            assert query_logger.level == logging.WARNING
        finally:
            release.set()
            worker.join()
            first.uninstall()
            second.uninstall()
            query_logger.setLevel(original)

    def test_records_pass_through(self, interception, caplog):
        with caplog.at_level(logging.DEBUG, logger=OAK_QUERY_LOGGER):
            with interception.window():
                query_logger.debug("cost for nodeType is 14.0")
        assert "cost for nodeType is 14.0" in caplog.messages

    def test_worker_thread_with_copied_context(self, interception):
        with interception.window() as key:
            context = contextvars.copy_context()
            worker = threading.Thread(
                target=context.run,
                args=(query_logger.debug, "cost for %s is %s", "reference", "Infinity"),
            )
            worker.start()
            worker.join()
            assert interception.saved_logs(key) == ["cost for reference is Infinity\n"]

    def test_concurrent_windows_are_isolated(self, interception):
        results = {}
        barrier = threading.Barrier(4)

        def investigate(name):
            with interception.window() as key:
                barrier.wait()
                for i in range(3):
                    query_logger.debug("cost for %s is %d", name, i)
                barrier.wait()
                results[name] = interception.saved_logs(key)

        workers = [threading.Thread(target=investigate, args=(f"index{n}",)) for n in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        for name, lines in results.items():
            assert lines == [f"cost for {name} is {i}\n" for i in range(3)]
        assert len(results) == 4
        assert interception._saved == {}
