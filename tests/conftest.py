"""Shared fixtures for barrier tests."""
import concurrent.futures
import time

import pytest

from zkbarrier import BarrierSession, Variant

from . import fakezk

TIMEOUT = 10  # Upper limit for every blocking barrier call so broken test fails instead of hanging


@pytest.fixture(name="zk")
def fixture_zk():
    server = fakezk.FakeZooKeeper()
    yield server
    server.close()


@pytest.fixture(name="slow_zk")
def fixture_slow_zk():
    """Namespace that delays watch delivery to make races more likely."""
    server = fakezk.FakeZooKeeper(delay=0.02)
    yield server
    server.close()


@pytest.fixture(name="pool")
def fixture_pool():
    with concurrent.futures.ThreadPoolExecutor(max_workers=16) as executor:
        yield executor


def make_session(zk, quorum, identity, variant=Variant.DOUBLE, root="/b1", **kwargs):
    kwargs.setdefault("timeout", TIMEOUT)
    return BarrierSession(zk.client(), root, quorum, variant, identity=identity, **kwargs)


def wait_for(predicate, timeout=TIMEOUT):
    """Poll until predicate is true."""
    deadline = time.monotonic() + timeout
    while not predicate():
        assert time.monotonic() < deadline, "Condition was not met in time."
        time.sleep(0.005)
