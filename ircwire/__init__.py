import contextlib
from importlib import metadata


def _get_version():
    with contextlib.suppress(Exception):
        return metadata.version('ircwire')
    return 'unknown'
