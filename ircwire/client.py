"""
Internet Relay Chat (IRC) protocol client engine.

This module maintains a single server connection, turns the stream of
lines from the server into events, and routes those events to
registered handlers.

The main features are:

  * Abstraction of the IRC protocol.
  * Handles server PONGing transparently.
  * Messages to the IRC server are done by calling methods on the
    connection object.
  * Messages from an IRC server trigger events, which can be caught
    by event handlers.
  * CTCP payloads are dispatched under their own keyword, so a handler
    for "VERSION" receives CTCP VERSION queries.
  * Registers, identifies to NickServ and joins the configured channels
    on its own.
  * Reconnects once when the server drops the connection.

Here is an example:

    server = ServerConfig.from_dict('local', dict(
        address='irc.some.where', port=6667, nickname='my_nickname',
        channels=['#my-channel']))
    conn = ServerConnection(server).connect()
    conn.add_handler('PRIVMSG', lambda conn, event: print(event.message))
    conn.process_forever()

Notes:
  * connection.quit() only sends QUIT to the server; to stop the read
    loop, use request_quit() or disconnect().
  * Lines are read on the thread calling process_forever, which also
    answers PINGs. Every other line is handled on a thread of its own,
    so handlers must be thread-safe and may not observe events in order.
"""

import contextlib
import logging
import socket
import threading

from jaraco.functools import Throttler
from jaraco.stream import buffer
from more_itertools import always_iterable

from . import connection
from . import ctcp
from . import dispatch
from . import events
from . import message
from .state import ConnectionState, State
from .user import IRCFoldedCase, fold_all, same_nick

log = logging.getLogger(__name__)

MAX_LINE_BYTES = 512
"outgoing limit, CR/LF included, per RFC 2812"

READ_SIZE = 2 ** 14


class IRCError(Exception):
    "An IRC exception"


class InvalidCharacters(ValueError):
    "Invalid characters were encountered in the message"


class MessageTooLong(ValueError):
    "Message is too long"


class ServerConnectionError(IRCError):
    pass


class ServerNotConnectedError(ServerConnectionError):
    pass


class WriteError(ServerConnectionError):
    "Writing to the server failed"


class ServerConnection:
    """
    An IRC server connection.

    Arguments:

    * config - The ServerConfig to connect with
    * connect_factory - A callable that takes the server address and
      returns a connected socket

    The connection registers, identifies and joins channels by itself
    through handlers added at construction time; more handlers can be
    added with add_handler.
    """

    transmit_encoding = 'utf-8'
    "encoding used for transmission"

    buffer_class = buffer.LenientDecodingLineBuffer
    executor_class = dispatch.ThreadExecutor
    socket = None

    def __init__(self, config, connect_factory=connection.Factory()):
        log.info(
            "Generating new server connection for %s:%s",
            config.address,
            config.port,
        )
        self.config = config
        self.connect_factory = connect_factory
        self.real_nickname = config.nickname
        self.buffer = self.buffer_class()
        self.registry = dispatch.Registry()
        self.state = ConnectionState()
        self._admins = fold_all(config.admins)
        self._ignored = fold_all(config.ignore)
        self._send_lock = threading.Lock()
        self._quit = threading.Condition(threading.RLock())
        self._quit_message = None
        self._quit_reason = None
        self._stopping = threading.Event()
        self._add_builtin_handlers()

    def connect(self):
        """Connect/reconnect to the configured server.

        Dialing gives up after the connect factory's timeout and raises
        ServerConnectionError, leaving the state as it was.

        Returns the ServerConnection object.
        """
        log.info("Connecting to %s:%s", self.config.address, self.config.port)

        if self.is_connected():
            self.disconnect("Changing servers")

        previous = self.state.current
        self.state.connecting()
        try:
            sock = self.connect_factory(self.config.server_address)
        except OSError as ex:
            self.state.restore(previous)
            raise ServerConnectionError("Couldn't connect to socket: %s" % ex) from ex
        self.buffer = self.buffer_class()
        self.real_nickname = self.config.nickname
        self.socket = sock
        self.state.connected()
        return self

    def disconnect(self, message=""):
        """Hang up the connection.

        Arguments:

            message -- Quit message.
        """
        sock = self.socket
        if sock is None:
            return

        try:
            self.quit(message)
        except ServerConnectionError as ex:
            log.debug("Couldn't send QUIT: %s", ex)

        # mark the disconnect as requested before the read loop sees EOF
        self.state.disconnect(requested=True)
        self.socket = None
        self._close(sock)
        log.info("Disconnected from %s:%s", self.config.address, self.config.port)

    @staticmethod
    def _close(sock):
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)
        sock.close()

    def register(self):
        """Send USER and NICK.

        The server answers with the 'welcome' numeric (001) once the
        registration is accepted.
        """
        self._send_registration()
        self.state.advance(State.REGISTERED)

    def _send_registration(self):
        log.info("Registering as %s", self.config.nickname)
        self.user(self.config.username, self.config.realname)
        self.nick(self.config.nickname)

    def identify(self):
        """Identify to NickServ, if a password is configured."""
        password = self.config.nickserv_password
        if not password:
            return
        log.info("Identifying to NickServ")
        self.nickserv_identify(password)

    def autojoin(self):
        """Join every configured channel, in order."""
        for channel in self.config.channels:
            log.info("Joining channel %r", channel)
            self.join(channel)

    def get_nickname(self):
        """Get the (real) nick name.

        This method returns the (real) nickname.  The library keeps
        track of nick changes, so it might not be the nick name that
        was configured.
        """
        return self.real_nickname

    def is_connected(self):
        """Return connection status."""
        return self.socket is not None and self.state.reached(State.CONNECTED)

    def is_admin(self, sender):
        """Is the User one of the configured admins?"""
        return sender is not None and IRCFoldedCase(sender.nick).lower() in self._admins

    def is_ignored(self, sender):
        """Is the User one of the configured ignored users?"""
        return (
            sender is not None and IRCFoldedCase(sender.nick).lower() in self._ignored
        )

    def add_handler(self, code, handler):
        """Add a handler function for a specific event code.

        Arguments:

            code -- Event code (a string): a numeric such as "001", a
                    command such as "PRIVMSG", or a CTCP keyword such
                    as "VERSION".

            handler -- Callback function taking 'connection' and 'event'
                       parameters.

        Handlers for the same code are called in the order they were
        added. Returns the ServerConnection object.
        """
        self.registry.add(code, handler)
        return self

    def request_quit(self, message="Quit requested"):
        """
        Ask the read loop to disconnect with ``message`` and stop.

        The request is one-shot and may come from any thread, including
        signal handlers. Handlers already running are not interrupted.
        """
        with self._quit:
            self._quit_message = message
            self._quit.notify_all()

    def process_forever(self):
        """Read from the server until the connection is closed.

        PINGs are answered on the reading thread; every other line is
        parsed and dispatched on a thread of its own. If the connection
        drops without being asked to, one reconnect is attempted; if
        that fails, the failure is logged and this method returns.

        A quit requested while no loop is running is carried out as
        soon as the next loop starts.
        """
        if self.socket is None:
            raise ServerNotConnectedError("Not connected.")
        log.debug("process_forever()")
        self._stopping = stopping = threading.Event()
        self._executor = self.executor_class(thread_name_prefix='ircwire-dispatch')
        watcher = threading.Thread(
            target=self._watch_quit,
            args=(stopping,),
            name='ircwire-quit',
            daemon=True,
        )
        watcher.start()
        try:
            self._read_forever()
        finally:
            self._executor.shutdown(wait=False)
            with self._quit:
                stopping.set()
                self._quit.notify_all()
            watcher.join()

    def _watch_quit(self, stopping):
        with self._quit:
            self._quit.wait_for(
                lambda: self._quit_message is not None or stopping.is_set()
            )
            quit_message, self._quit_message = self._quit_message, None
            if quit_message is None:
                return
            self._quit_reason = quit_message
            stopping.set()
        log.info("Quitting: %s", quit_message)
        self.disconnect(quit_message)

    def _read_forever(self):
        while True:
            sock = self.socket
            if sock is None:
                return
            error = self._scan(sock)
            if self.state.disconnected.requested:
                return
            self._drop()
            log.error("Error while looping: %s", error)
            if self._stopping.is_set():
                return
            try:
                self.connect()
            except ServerConnectionError as ex:
                log.error("Can't (re)connect to server: %s", ex)
                return
            if self._stopping.is_set():
                self.disconnect(self._quit_reason)
                return

    def _scan(self, sock):
        """
        Read and submit lines until the socket stops yielding data.

        Returns the reason the scan ended.
        """
        while True:
            try:
                new_data = sock.recv(READ_SIZE)
            except OSError as ex:
                return ex
            if not new_data:
                # Read nothing: connection must be down.
                return ServerConnectionError("Connection reset by peer")

            self.buffer.feed(new_data)

            # process each non-empty line after logging all lines
            for line in self.buffer:
                log.debug("FROM SERVER: %s", line)
                if not line or self._answer_ping(line):
                    continue
                future = self._executor.submit(self._process_line, line)
                future.add_done_callback(self._report_failure)

            if len(self.buffer) > READ_SIZE:
                return ServerConnectionError(
                    "Received >16k from the server without a newline"
                )

    def _drop(self):
        sock, self.socket = self.socket, None
        self.state.disconnect(requested=False)
        if sock is not None:
            self._close(sock)

    @staticmethod
    def _report_failure(future):
        exc = future.exception()
        if exc is not None:
            log.error("Failed processing line", exc_info=exc)

    def _answer_ping(self, line):
        """
        Reply to a bare PING. Return True if the line was one.
        """
        command, _, token = line.partition(' ')
        if command != 'PING':
            return False
        try:
            self.pong(token)
        except (ServerConnectionError, ValueError) as ex:
            log.error("Couldn't answer PING: %s", ex)
        return True

    def _process_line(self, line):
        line = line.rstrip('\r\n')
        try:
            event = message.parse(line, self.real_nickname)
        except message.MalformedLine as ex:
            log.warning("Dropping malformed line: %s", ex)
            return

        if not event.code:
            log.debug("Not dispatching unprefixed line: %s", line)
            return
        if self.is_ignored(event.user):
            log.debug("Ignoring %s from %s", event.code, event.user)
            return

        log.debug(
            "code: %s, source: %s, arguments: %s",
            event.code,
            event.source,
            event.arguments,
        )
        self.registry.dispatch(self, event)

    def _add_builtin_handlers(self):
        for command in 'NOTICE', 'INVITE', 'NICK', 'KICK':
            self.add_handler(command, getattr(self, '_on_' + command.lower()))
        for name in 'welcome', 'loggedin', 'cannotsendtochan', 'bannedfromchan':
            self.add_handler(events.numerics[name], getattr(self, '_on_' + name))

    def _on_notice(self, connection, event):
        if event.user is None:
            # the server greets unregistered clients with notices
            if self.state.advance(State.REGISTERED):
                self._send_registration()
            return

        if same_nick(event.user.nick, 'NickServ') and event.message.startswith(
            'Password accepted'
        ):
            self._on_identified()

    def _on_loggedin(self, connection, event):
        self._on_identified()

    def _on_identified(self):
        if not self.state.advance(State.IDENTIFIED):
            return
        log.info("Successfully identified to NickServ")
        self.autojoin()

    def _on_welcome(self, connection, event):
        # Record the nickname in case the server changed it.
        if event.arguments:
            self.real_nickname = event.arguments[0]
        log.info("Successfully connected to server")
        self.identify()

    def _on_invite(self, connection, event):
        if event.user is None or len(event.arguments) < 2:
            log.warning("Ignoring malformed invite: %s", event.raw)
            return
        channel = _trailing(event.arguments[1])
        log.info("Invited to %s by %s", channel, event.user.nick)
        self.join(channel)
        self.privmsg(
            channel,
            "Hi {channel}, {nick} invited me here.".format(
                channel=channel, nick=event.user.nick
            ),
        )

    def _on_nick(self, connection, event):
        if not event.user or not event.arguments:
            return
        if same_nick(event.user.nick, self.real_nickname):
            self.real_nickname = _trailing(event.arguments[0])

    def _on_kick(self, connection, event):
        if len(event.arguments) < 2:
            return
        channel, nick = event.arguments[:2]
        if same_nick(nick, self.real_nickname):
            kicker = event.user.nick if event.user else event.source
            log.warning("We got kicked from %s by %s", channel, kicker)

    def _on_cannotsendtochan(self, connection, event):
        log.warning("Can't send to channel %s", _channel_of(event))

    def _on_bannedfromchan(self, connection, event):
        log.warning("Can't join channel %s", _channel_of(event))

    def action(self, target, action):
        """Send a CTCP ACTION command."""
        self.ctcp("ACTION", target, action)

    def ctcp(self, ctcptype, target, parameter=""):
        """Send a CTCP command."""
        self.privmsg(target, ctcp.wrap(ctcptype, parameter))

    def ctcp_reply(self, target, parameter):
        """Send a CTCP REPLY command."""
        self.notice(target, ctcp.DELIMITER + parameter + ctcp.DELIMITER)

    def invite(self, nick, channel):
        """Send an INVITE command."""
        self.send_items('INVITE', nick, channel)

    def join(self, channel, key=""):
        """Send a JOIN command."""
        self.send_items('JOIN', channel, key)

    def kick(self, channel, nick, comment="Requested"):
        """Send a KICK command."""
        self.send_items('KICK', channel, nick, comment and ':' + comment)

    def mode(self, target, command, nick=""):
        """Send a MODE command."""
        self.send_items('MODE', target, command, nick)

    def ban(self, channel, nick):
        """Set a ban on a nick."""
        self.mode(channel, '+b', nick)

    def unban(self, channel, nick):
        """Lift a ban on a nick."""
        self.mode(channel, '-b', nick)

    def kickban(self, channel, nick, comment="Requested"):
        """Ban a nick, then kick it."""
        self.ban(channel, nick)
        self.kick(channel, nick, comment)

    def nick(self, newnick):
        """Send a NICK command."""
        self.send_items('NICK', newnick)

    def nickserv_identify(self, password):
        """Send the NickServ IDENTIFY command."""
        self.send_items('NS', 'IDENTIFY', password)

    def notice(self, target, text):
        """Send a NOTICE command."""
        self.send_items('NOTICE', target, ':' + text)

    def part(self, channels, message=""):
        """Send a PART command."""
        self.send_items(
            'PART', ','.join(always_iterable(channels)), message and ':' + message
        )

    def pong(self, target):
        """Send a PONG command."""
        self.send_items('PONG', target)

    def privmsg(self, target, text):
        """Send a PRIVMSG command."""
        self.send_items('PRIVMSG', target, ':' + text)

    def quit(self, message=""):
        """Send a QUIT command."""
        # Note that many IRC servers don't use your QUIT message
        # unless you've been connected for at least 5 minutes!
        self.send_items('QUIT', message and ':' + message)

    def user(self, username, realname):
        """Send a USER command."""
        cmd = 'USER {username} 8 * :{realname}'.format(**locals())
        self.send_raw(cmd)

    def encode(self, msg):
        """Encode a message for transmission."""
        return msg.encode(self.transmit_encoding)

    def _prep_message(self, string):
        # The string may not contain any line break other than the one
        # added here.
        string = string.replace('\r', '').replace('\n', '')
        if '\0' in string:
            raise InvalidCharacters("NUL bytes are not allowed in messages")
        data = self.encode(string) + b'\r\n'
        # According to the RFC http://tools.ietf.org/html/rfc2812#page-6,
        # clients should not transmit more than 512 bytes.
        if len(data) > MAX_LINE_BYTES:
            msg = "Messages limited to 512 bytes including CR/LF"
            raise MessageTooLong(msg)
        return data

    def send_items(self, *items):
        """
        Send all non-empty items, separated by spaces.
        """
        self.send_raw(' '.join(filter(None, items)))

    def send_raw(self, string):
        """Send raw string to the server.

        Line breaks are removed and the string is padded with CR LF.
        Safe to call from several threads at once.
        """
        sock = self.socket
        if sock is None:
            raise ServerNotConnectedError("Not connected.")
        data = self._prep_message(string)
        with self._send_lock:
            try:
                sock.sendall(data)
            except OSError as ex:
                raise WriteError("Couldn't write to socket: %s" % ex) from ex
        log.debug("TO SERVER: %s", string)

    def set_rate_limit(self, frequency):
        """
        Set a `frequency` limit (messages per second) for this connection.
        Any attempts to send faster than this rate will block.
        """
        self.send_raw = Throttler(self.send_raw, frequency)


def _trailing(token):
    return token[1:] if token.startswith(':') else token


def _channel_of(event):
    # numeric replies address us first: "<nick> <channel> :<text>"
    return event.arguments[1] if len(event.arguments) > 1 else '?'
