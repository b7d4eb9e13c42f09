import socket


DIAL_TIMEOUT = 5
"seconds allowed for establishing a connection"


def identity(x):
    return x


class Factory:
    """
    A class for creating the socket of a server connection.

    To create a simple connection:

    .. code-block:: python

       server_address = ('irc.libera.chat', 6667)
       Factory()(server_address)

    To wrap the socket before it connects, pass a ``wrapper`` taking
    and returning a socket:

    .. code-block:: python

       Factory(wrapper=my_wrapper)(server_address)

    To create an IPv6 connection:

    .. code-block:: python

       Factory(ipv6=True)(server_address)

    Dialing gives up after ``timeout`` seconds; the connected socket is
    returned in blocking mode.

    Note that Factory doesn't save the state of the socket itself. The
    caller must do that, as necessary. As a result, the Factory may be
    re-used to reconnect with the same settings.
    """

    family = socket.AF_INET

    def __init__(
        self, bind_address=None, wrapper=identity, ipv6=False, timeout=DIAL_TIMEOUT
    ):
        self.bind_address = bind_address
        self.wrapper = wrapper
        self.timeout = timeout
        if ipv6:
            self.family = socket.AF_INET6

    def connect(self, server_address):
        sock = socket.socket(self.family, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)
        try:
            sock = self.wrapper(sock)
            self.bind_address and sock.bind(self.bind_address)
            sock.connect(server_address)
        except OSError:
            sock.close()
            raise
        sock.settimeout(None)
        return sock

    __call__ = connect
