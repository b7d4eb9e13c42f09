"""
Dispatch keys.

Every Event carries exactly one code, resolved once while parsing into
one of three variants: a :class:`Numeric` server reply, a
:class:`Command` verb, or the :class:`CtcpAction` keyword of a CTCP
payload. Each variant is a ``str`` equal to the token on the wire, so
handler registration stays keyed by plain, case-sensitive strings.
"""

import re
from importlib.resources import files

from jaraco.text import clean, drop_comment, lines_from


_numeric_pattern = re.compile(r'\d{3}')


class Code(str):
    """
    A dispatch key.

    >>> Code.resolve('001')
    Numeric('001')
    >>> Code.resolve('PRIVMSG')
    Command('PRIVMSG')
    >>> Code.resolve('PRIVMSG') == 'PRIVMSG'
    True
    """

    def __repr__(self):
        return '{}({})'.format(type(self).__name__, super().__repr__())

    @staticmethod
    def resolve(token) -> 'Code':
        """
        Classify a code token from the wire as a numeric reply or a
        command.
        """
        if _numeric_pattern.fullmatch(token):
            return Numeric(token)
        return Command(token)


class Numeric(Code):
    """
    A three-digit server reply.

    >>> Numeric('001').name
    'welcome'
    >>> int(Numeric('474'))
    474

    Numerics missing from the table are named after themselves.

    >>> Numeric('999').name
    '999'
    """

    @property
    def name(self):
        return names.get(self, str(self))

    def __int__(self):
        return int(str(self))


class Command(Code):
    "A command verb, such as PRIVMSG, NOTICE, KICK or INVITE"


class CtcpAction(Code):
    "The keyword of a CTCP payload, such as ACTION or VERSION"


_codes = map(
    str.split,
    map(drop_comment, clean(lines_from(files(__package__).joinpath('codes.txt')))),
)

names = dict(_codes)
"numeric code to readable name"

numerics = {name: Numeric(code) for code, name in names.items()}
"readable name to numeric code"
