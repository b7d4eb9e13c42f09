"""
Run a connection from a configuration file.

    python -m ircwire config.json --server libera

The bot registers, identifies, joins its channels and answers CTCP
VERSION queries. Admins may send it "!quit" to make it leave.
"""

import argparse
import logging
import signal
import sys

import jaraco.logging

from . import _get_version
from . import client
from . import config


def on_version(connection, event):
    if event.user:
        connection.ctcp_reply(
            event.user.nick, "VERSION ircwire {}".format(_get_version())
        )


def on_privmsg(connection, event):
    if event.message == '!quit' and connection.is_admin(event.user):
        connection.request_quit("Requested by {}".format(event.user.nick))


def get_args():
    parser = argparse.ArgumentParser(prog='ircwire')
    parser.add_argument('config', help="path to a JSON configuration file")
    parser.add_argument('-s', '--server', help="name of the server to use")
    jaraco.logging.add_arguments(parser)
    return parser.parse_args()


def main():
    args = get_args()
    jaraco.logging.setup(args)

    try:
        conf = config.Config.load(args.config)
        server = conf.server(args.server)
    except config.ConfigError:
        print(sys.exc_info()[1])
        raise SystemExit(1)
    if conf.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    conn = client.ServerConnection(server)
    conn.add_handler('VERSION', on_version)
    conn.add_handler('PRIVMSG', on_privmsg)

    try:
        conn.connect()
    except client.ServerConnectionError:
        print(sys.exc_info()[1])
        raise SystemExit(1)

    signal.signal(signal.SIGINT, lambda signum, frame: conn.request_quit("SIGINT"))
    conn.process_forever()


if __name__ == '__main__':
    main()
