"""
Handle Client-to-Client protocol framing per the `best available
spec <http://www.irchelp.org/irchelp/rfc/ctcpspec.html>`_.

A CTCP payload travels inside a PRIVMSG or NOTICE, wrapped in
``\\x01`` delimiters.
"""

DELIMITER = '\x01'


def is_ctcp(message):
    """
    Is the message a CTCP payload?

    >>> is_ctcp('\\x01ACTION something\\x01')
    True
    >>> is_ctcp('\\x01VERSION\\x01')
    True
    >>> is_ctcp('sample message')
    False
    >>> is_ctcp('\\x01')
    False
    >>> is_ctcp('')
    False
    """
    return (
        len(message) >= 2
        and message.startswith(DELIMITER)
        and message.endswith(DELIMITER)
    )


def unwrap(message):
    """
    Strip the delimiters from a CTCP payload and split it into its
    keyword and parameters.

    >>> unwrap('\\x01ACTION waves at you\\x01')
    ('ACTION', ['waves', 'at', 'you'])
    >>> unwrap('\\x01VERSION\\x01')
    ('VERSION', [])
    """
    keyword, *params = message.strip(DELIMITER).split(' ')
    return keyword, params


def wrap(keyword, parameter=""):
    """
    Frame a CTCP payload for transmission.

    >>> wrap('VERSION')
    '\\x01VERSION\\x01'
    >>> wrap('action', 'waves')
    '\\x01ACTION waves\\x01'
    """
    keyword = keyword.upper()
    tmpl = "\001{keyword} {parameter}\001" if parameter else "\001{keyword}\001"
    return tmpl.format(**vars())
