"""
Server configuration.

A configuration file is JSON, holding any number of named servers:

.. code-block:: json

   {
       "servers": {
           "libera": {
               "address": "irc.libera.chat",
               "port": 6667,
               "nickname": "my_bot",
               "nickserv_password": "hunter2",
               "channels": ["#my-channel"],
               "admins": ["me"],
               "ignore": ["spammer"]
           }
       },
       "debug": false
   }
"""

import collections
import json
import logging

log = logging.getLogger(__name__)

DEFAULT_NAME = 'ircwire'
"nickname, username and realname used when none is configured"

MIN_NICK_LENGTH = 3


class ConfigError(ValueError):
    "The configuration is missing or invalid"


class ServerConfig(
    collections.namedtuple(
        'ServerConfigBase',
        'address port nickname username realname nickserv_password '
        'channels admins ignore',
    )
):
    """
    The identity used on one server.

    >>> spec = ServerConfig.from_dict('local', dict(address='localhost', port=6667))
    >>> spec.nickname, spec.username, spec.realname
    ('ircwire', 'ircwire', 'ircwire')
    >>> spec.channels
    ()
    >>> spec
    <ircwire.config.ServerConfig for server localhost:6667 as ircwire>
    """

    def __repr__(self):
        return "<ircwire.config.ServerConfig for server %s:%s as %s>" % (
            self.address,
            self.port,
            self.nickname,
        )

    @property
    def server_address(self):
        return self.address, self.port

    @classmethod
    def from_dict(cls, name, data):
        """
        Build and validate a server entry, filling in defaults.

        >>> ServerConfig.from_dict('short', dict(address='x', port=1, nickname='ab'))
        Traceback (most recent call last):
        ...
        ircwire.config.ConfigError: short: Nickname is too short
        """
        if not data.get('address'):
            raise ConfigError("%s: Server address not specified" % name)
        port = data.get('port')
        if not port:
            raise ConfigError("%s: Server port not specified" % name)
        if not isinstance(port, int) or not 0 < port < 2 ** 16:
            raise ConfigError("%s: Invalid server port %r" % (name, port))
        nickname = data.get('nickname') or DEFAULT_NAME
        if len(nickname) < MIN_NICK_LENGTH:
            raise ConfigError("%s: Nickname is too short" % name)
        return cls(
            address=data['address'],
            port=port,
            nickname=nickname,
            username=data.get('username') or DEFAULT_NAME,
            realname=data.get('realname') or DEFAULT_NAME,
            nickserv_password=data.get('nickserv_password') or None,
            channels=tuple(data.get('channels') or ()),
            admins=tuple(data.get('admins') or ()),
            ignore=tuple(data.get('ignore') or ()),
        )


class Config:
    """
    A parsed configuration file.

    >>> config = Config.from_dict({'servers': {'local': {'address': 'localhost', 'port': 6667}}})
    >>> config.server().address
    'localhost'
    >>> config.debug
    False
    """

    def __init__(self, servers, debug=False):
        self.servers = servers
        self.debug = debug

    @classmethod
    def from_dict(cls, data):
        servers = data.get('servers') or {}
        if not isinstance(servers, dict):
            raise ConfigError("servers must be a mapping of names to servers")
        return cls(
            servers={
                name: ServerConfig.from_dict(name, server)
                for name, server in servers.items()
            },
            debug=bool(data.get('debug', False)),
        )

    @classmethod
    def load(cls, path):
        log.info("Reading %r", path)
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except OSError as exc:
            raise ConfigError("Error opening the config file: %s" % exc) from exc
        except ValueError as exc:
            raise ConfigError("Error decoding the config file: %s" % exc) from exc
        if not isinstance(data, dict):
            raise ConfigError("Error decoding the config file: not an object")
        return cls.from_dict(data)

    def server(self, name=None):
        """
        Return the named server, or the first one configured.
        """
        if name is None:
            if not self.servers:
                raise ConfigError("No servers configured")
            return next(iter(self.servers.values()))
        try:
            return self.servers[name]
        except KeyError:
            raise ConfigError("Unknown server %r" % name) from None
