"""Various utilities that can be used by users of this library.
"""
import contextlib
import logging
import typing

from kazoo.client import KazooClient
from kazoo.handlers.threading import KazooTimeoutError

from .errors import FatalConnectionFailure

logger = logging.getLogger(__name__)

DEFAULT_HOSTS = "127.0.0.1:2181"


@contextlib.contextmanager
def connect(hosts: str = DEFAULT_HOSTS, timeout: float = 10.0) -> typing.Generator[KazooClient, None, None]:
    """Start the coordination client and stop it on exit.

    hosts: Comma separated list of ZooKeeper host:port
    timeout: The number of seconds to wait for the session to be established

    FatalConnectionFailure is raised if session can't be established. No barrier state exists at that point so there
    is nothing to clean up.
    """
    client = KazooClient(hosts=hosts, timeout=timeout)
    try:
        client.start(timeout=timeout)
    except KazooTimeoutError as exc:
        client.close()
        raise FatalConnectionFailure("Unable to connect to '{}': {}".format(hosts, exc)) from exc
    logger.debug("Connected to '%s'", hosts)
    try:
        yield client
    finally:
        client.stop()
        client.close()
        logger.debug("Disconnected from '%s'", hosts)
