"""
Turn one line from the server into an :class:`Event`.
"""

import collections

from . import ctcp
from . import user
from .events import Code, Command, CtcpAction


class MalformedLine(ValueError):
    "A line from the server could not be parsed"


class Event(
    collections.namedtuple(
        'EventBase', 'raw source code arguments user message target reply_to'
    )
):
    """
    An IRC event, parsed from a single line.

    Events are immutable; the same instance is handed to every
    handler registered for its code.

    >>> print(parse(':Nick!u@h PRIVMSG #chan :hello'))
    code: PRIVMSG, source: Nick!u@h, arguments: ('#chan', ':hello'), message: hello, reply_to: #chan
    """

    def __str__(self):
        tmpl = (
            "code: {code}, "
            "source: {source}, "
            "arguments: {arguments}, "
            "message: {message}, "
            "reply_to: {reply_to}"
        )
        return tmpl.format(**self._asdict())


def is_channel(string):
    """Check if a string is a channel name.

    >>> is_channel('#chan')
    True
    >>> is_channel('chan')
    False
    >>> is_channel('')
    False
    """
    return bool(string) and string[0] in "#&+!"


def parse(line, nickname=None):
    """
    Parse a line received from the server.

    ``nickname`` is our own nickname, used to recognize private
    messages so that ``reply_to`` can point back at the sender.

    >>> event = parse(':Nick!u@h PRIVMSG #chan :hello')
    >>> event.source, event.code, event.arguments
    ('Nick!u@h', Command('PRIVMSG'), ('#chan', ':hello'))
    >>> event.user.nick
    'Nick'

    CTCP payloads replace the code and the arguments.

    >>> event = parse(':Nick!u@h PRIVMSG bot :\\x01VERSION\\x01', 'bot')
    >>> event.code
    CtcpAction('VERSION')

    Lines without a prefix keep only the raw text.

    >>> parse('PING :server.example\\r\\n')
    Event(raw='PING :server.example', source='', code=Command(''), arguments=(), user=None, message=None, target=None, reply_to=None)

    >>> parse(':server.example')
    Traceback (most recent call last):
    ...
    ircwire.message.MalformedLine: no code in ':server.example'
    """
    raw = line.rstrip('\r\n')
    if not raw:
        raise MalformedLine("empty line")
    if not raw.startswith(':'):
        return Event(raw, '', Command(''), (), None, None, None, None)

    source, *tokens = raw[1:].split(' ')
    if not source:
        raise MalformedLine("no source in {raw!r}".format(raw=raw))
    if not tokens or not tokens[0]:
        raise MalformedLine("no code in {raw!r}".format(raw=raw))
    code = Code.resolve(tokens[0])
    arguments = tuple(tokens[1:])
    sender = user.parse_mask(source)

    message = target = reply_to = None
    if code in ('PRIVMSG', 'NOTICE'):
        target = arguments[0] if arguments else None
        message = ' '.join(arguments[1:])
        if message.startswith(':'):
            message = message[1:]
        if code == 'PRIVMSG':
            code, arguments, message = _unwrap_ctcp(code, arguments, message)
            reply_to = _reply_to(arguments, sender, nickname)
        message = message.strip()

    return Event(raw, source, code, arguments, sender, message, target, reply_to)


def _unwrap_ctcp(code, arguments, message):
    if not ctcp.is_ctcp(message):
        return code, arguments, message
    keyword, params = ctcp.unwrap(message)
    if not keyword:
        return code, arguments, message
    return CtcpAction(keyword), tuple(params), message.strip(ctcp.DELIMITER)


def _reply_to(arguments, sender, nickname):
    if not arguments:
        return None
    if is_channel(arguments[0]):
        return arguments[0]
    if sender and user.same_nick(arguments[0], nickname):
        return sender.nick
    return None
