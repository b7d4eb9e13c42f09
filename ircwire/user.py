"""
Parsing and comparison of the ``nick!user@host`` masks that identify
the sender of most server-relayed messages.
"""

import collections
import re

from jaraco.text import FoldedCase


_special = r"_\-\[\]\\^{}|`"
_mask_pattern = re.compile(
    r"(?P<nick>[A-Za-z{s}][A-Za-z0-9{s}.]*)"
    r"!(?P<user>[A-Za-z0-9{s}.~]+)"
    r"@(?P<host>[A-Za-z0-9{s}.:~/]+)".format(s=_special)
)


class User(collections.namedtuple('UserBase', 'nick user host')):
    """
    The sender of an event, split out of its mask.

    >>> User('pinky', 'username', 'example.com')
    User(nick='pinky', user='username', host='example.com')
    >>> print(User('pinky', 'username', 'example.com'))
    pinky!username@example.com
    """

    def __repr__(self):
        return 'User(nick={nick!r}, user={user!r}, host={host!r})'.format(
            **self._asdict()
        )

    def __str__(self):
        return '{nick}!{user}@{host}'.format(**self._asdict())


def parse_mask(mask):
    """
    Parse a ``nick!user@host`` mask, optionally prefixed with a colon.

    Return a User, or None if the mask doesn't fit the IRC grammar.

    >>> parse_mask('nick!user@host')
    User(nick='nick', user='user', host='host')
    >>> parse_mask(':}o{!I`mAButterfly@this.is.my.vhost').nick
    '}o{'
    >>> parse_mask('gophirc!~bot@2a02:2f0d:1a1:c19::2615').host
    '2a02:2f0d:1a1:c19::2615'

    Server names, bare nicks, and masks with the delimiters in the
    wrong order are rejected.

    >>> parse_mask('irc.server.net')
    >>> parse_mask('a@b!c')
    >>> parse_mask('')
    """
    if mask.startswith(':'):
        mask = mask[1:]
    match = _mask_pattern.fullmatch(mask)
    if not match:
        return None
    return User(**match.groupdict())


class IRCFoldedCase(FoldedCase):
    """
    A nick that compares the way servers compare nicks: RFC 1459 treats
    ``[]\\^`` as the uppercase forms of ``{}|~``.

    >>> IRCFoldedCase('Guido^').lower()
    'guido~'
    >>> IRCFoldedCase('Op[1]') == IRCFoldedCase('op{1}')
    True
    >>> IRCFoldedCase('Op[1]') in [IRCFoldedCase('OP{1}')]
    True

    FoldedCase caches ``casefold`` on the instance after the first call;
    the folded value has to survive that.

    >>> nick = IRCFoldedCase('[Away]')
    >>> nick.casefold()
    '{away}'
    >>> nick.casefold()
    '{away}'
    """

    translation = dict(
        zip(
            map(ord, r"[]\^"),
            map(ord, r"{}|~"),
        )
    )

    def lower(self):
        return super().lower().translate(self.translation)

    def casefold(self):
        return super().casefold().translate(self.translation)

    def __setattr__(self, key, val):
        if key == 'casefold':
            return
        return super().__setattr__(key, val)


def same_nick(first, second):
    """
    Compare two nicks the way an IRC server would.

    >>> same_nick('Guido[away]', 'guido{AWAY}')
    True
    >>> same_nick('guido', 'guido_')
    False
    >>> same_nick('guido', None)
    False
    """
    if not first or not second:
        return False
    return IRCFoldedCase(first) == IRCFoldedCase(second)


def fold_all(nicks):
    """
    Fold a collection of nicks for membership tests.

    >>> sorted(fold_all(['Admin', 'Op[1]']))
    ['admin', 'op{1}']
    """
    return frozenset(IRCFoldedCase(nick).lower() for nick in nicks)
