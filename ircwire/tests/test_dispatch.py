import threading
from unittest import mock

import pytest

from ircwire import message
from ircwire.dispatch import Registry, ThreadExecutor
from ircwire.events import Numeric


def test_handlers_called_in_order():
    registry = Registry()
    calls = []
    registry.add('PRIVMSG', lambda conn, event: calls.append('first'))
    registry.add('PRIVMSG', lambda conn, event: calls.append('second'))
    registry.dispatch(None, message.parse(':Nick!u@h PRIVMSG #chan :hello'))
    assert calls == ['first', 'second']


def test_only_matching_code():
    registry = Registry()
    privmsg, notice = mock.Mock(), mock.Mock()
    registry.add('PRIVMSG', privmsg)
    registry.add('NOTICE', notice)
    event = message.parse(':Nick!u@h PRIVMSG #chan :hello')
    registry.dispatch('conn', event)
    privmsg.assert_called_once_with('conn', event)
    notice.assert_not_called()


def test_codes_are_case_sensitive():
    registry = Registry()
    handler = mock.Mock()
    registry.add('privmsg', handler)
    registry.dispatch(None, message.parse(':Nick!u@h PRIVMSG #chan :hello'))
    handler.assert_not_called()


def test_numeric_registered_as_string():
    registry = Registry()
    handler = mock.Mock()
    registry.add(Numeric('001'), handler)
    assert registry.handlers_for('001') == (handler,)


def test_failing_handler_is_isolated():
    registry = Registry()
    after = mock.Mock()
    registry.add('KICK', mock.Mock(side_effect=ValueError("boom")))
    registry.add('KICK', after)
    registry.dispatch(None, message.parse(':op!u@h KICK #chan victim :bye'))
    after.assert_called_once()


def test_no_handlers():
    Registry().dispatch(None, message.parse(':Nick!u@h JOIN #chan'))


def test_handler_added_during_dispatch_waits_for_next_event():
    registry = Registry()
    late = mock.Mock()
    registry.add('JOIN', lambda conn, event: registry.add('JOIN', late))
    event = message.parse(':Nick!u@h JOIN #chan')
    registry.dispatch(None, event)
    late.assert_not_called()
    registry.dispatch(None, event)
    late.assert_called_once()


def test_thread_executor_does_not_queue_behind_blocked_calls():
    executor = ThreadExecutor()
    release = threading.Event()
    blocked = [executor.submit(release.wait, 10) for _ in range(64)]
    try:
        assert executor.submit(lambda: 'ran').result(timeout=5) == 'ran'
        assert not any(future.done() for future in blocked)
    finally:
        release.set()
    assert all(future.result(timeout=5) for future in blocked)


def test_thread_executor_reports_failures():
    future = ThreadExecutor().submit(int, 'not a number')
    with pytest.raises(ValueError):
        future.result(timeout=5)
