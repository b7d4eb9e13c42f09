"""
Test doubles and pytest fixtures for exercising a ServerConnection
without a network.
"""

import concurrent.futures
import threading

import pytest

from ircwire import client
from ircwire.config import ServerConfig


class FakeSocket:
    """
    Stands in for a connected socket: replays ``chunks`` from recv,
    then raises ``error`` if given, else blocks until shut down.
    """

    def __init__(self, chunks=(), error=None):
        self.chunks = list(chunks)
        self.error = error
        self.sent = []
        self.closed = threading.Event()

    def recv(self, size):
        if self.chunks:
            chunk = self.chunks.pop(0)
            return chunk() if callable(chunk) else chunk
        if self.error:
            raise self.error
        self.closed.wait(5)
        return b''

    def sendall(self, data):
        if self.closed.is_set():
            raise BrokenPipeError("socket closed")
        self.sent.append(data)

    def shutdown(self, how):
        self.closed.set()

    def close(self):
        self.closed.set()

    @property
    def lines(self):
        return [data.decode('utf-8') for data in self.sent]


class FakeFactory:
    """
    A connect factory handing out prepared sockets, or raising the
    prepared exceptions, in order.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.addresses = []

    def __call__(self, server_address):
        self.addresses.append(server_address)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def calls(self):
        return len(self.addresses)


class ImmediateExecutor(concurrent.futures.Executor):
    "Runs submitted work on the calling thread"

    def __init__(self, **kwargs):
        pass

    def submit(self, fn, *args, **kwargs):
        future = concurrent.futures.Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


@pytest.fixture
def server_config():
    return ServerConfig.from_dict(
        'test',
        dict(
            address='irc.example.net',
            port=6667,
            nickname='bestnick',
            username='bestuser',
            realname='Best Bot',
            nickserv_password='s3cret',
            channels=['#one', '#two'],
            admins=['Boss'],
            ignore=['Spammer'],
        ),
    )


@pytest.fixture
def fake_socket():
    return FakeSocket()


@pytest.fixture
def connection(server_config, fake_socket):
    """
    A connected ServerConnection whose traffic lands in
    ``connection.socket.sent``.
    """
    conn = client.ServerConnection(server_config, connect_factory=FakeFactory(fake_socket))
    conn.executor_class = ImmediateExecutor
    return conn.connect()
