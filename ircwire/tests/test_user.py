import pytest

from ircwire.user import IRCFoldedCase, User, parse_mask, same_nick


@pytest.mark.parametrize(
    'mask, valid',
    [
        ('NiCkNaM3!uSeRnAmE@server-0o1.073.39ec7k.IP', True),
        (':}o{!I`mAButterfly@this.is.my.vhost', True),
        ('psycho!~madness@0x00.0x70737963686f', True),
        ('gophirc_test!~gophirc@2a02:2f0d:1a1:c19:581e:ca94:3650:2615', True),
        ('someone!~someone@user/someone', True),
        ('x@y!z', False),
        ('a@b!c', False),
        ('malformed', False),
        ('irc.server.net', False),
        ('nick!@host', False),
        ('nick!user@', False),
        ('!user@host', False),
        ('1nick!user@host', False),
        ('nick!us er@host', False),
        ('', False),
    ],
)
def test_parse_mask(mask, valid):
    assert (parse_mask(mask) is not None) == valid


def test_parse_mask_fields():
    assert parse_mask('nick!user@host') == User('nick', 'user', 'host')


def test_parse_mask_splits_on_first_delimiters():
    parsed = parse_mask('nick!~user@host.example')
    assert parsed.nick == 'nick'
    assert parsed.user == '~user'
    assert parsed.host == 'host.example'


@pytest.mark.parametrize(
    'user, expected',
    [
        (User('a', 'b', 'c'), 'a!b@c'),
        (User('foo', 'bar', 'baz'), 'foo!bar@baz'),
        (
            User('}o{', 'I`mAButterfly', 'this.is.my.vhost'),
            '}o{!I`mAButterfly@this.is.my.vhost',
        ),
    ],
)
def test_user_str(user, expected):
    assert str(user) == expected


def test_same_nick_folds_rfc1459_case():
    assert same_nick('NickServ', 'nickserv')
    assert same_nick('[away]^', '{AWAY}~')
    assert not same_nick('nick', '')


def test_folded_nick_survives_casefold_cache():
    nick = IRCFoldedCase('Guido[away]')
    assert nick.casefold() == 'guido{away}'
    assert nick.casefold() == 'guido{away}'
    assert nick == IRCFoldedCase('GUIDO{AWAY}')
