"""In-memory namespace standing in for ZooKeeper in tests.

It implements the subset of the kazoo client interface barriers use and raises kazoo's own exceptions. Watches are
delivered on a separate thread, optionally with random delay, the same way kazoo delivers them.
"""
import collections
import logging
import queue
import random
import threading
import time

from kazoo.exceptions import NoNodeError, NodeExistsError, NotEmptyError, SessionExpiredError
from kazoo.protocol.states import EventType, KazooState, KeeperState, WatchedEvent

logger = logging.getLogger(__name__)


def _join(parent, name):
    return parent.rstrip("/") + "/" + name


def _parent(path):
    return path.rsplit("/", 1)[0] or "/"


class _Node:
    def __init__(self, owner=None):
        self.owner = owner
        self.children = set()
        self.cversion = 0


class FakeZooKeeper:
    """The shared namespace. Every participant uses its own client created by client()."""

    def __init__(self, delay: float = 0.0, marker: str = "ready"):
        """delay: the maximum number of seconds every watch delivery is delayed by"""
        self.delay = delay
        self.marker = marker
        self.lock = threading.RLock()
        self.nodes = {"/": _Node()}
        self.data_watches = collections.defaultdict(list)
        self.child_watches = collections.defaultdict(list)
        self.peak_watched = collections.defaultdict(int)
        self.on_create = None  # Called with the realized path in the caller's thread after create
        self.on_delete = None  # Called with the path in the caller's thread after delete
        self._queue = queue.Queue()
        self._thread = threading.Thread(target=self._deliver, daemon=True)
        self._thread.start()

    def client(self):
        """Create new client with its own session."""
        return FakeClient(self)

    def close(self):
        """Stop delivering watches."""
        self._queue.put(None)
        self._thread.join(5)

    def _deliver(self):
        while True:
            item = self._queue.get()
            if item is None:
                return
            callback, argument = item
            if self.delay:
                time.sleep(random.uniform(0, self.delay))
            try:
                callback(argument)
            except Exception:
                logger.exception("Watch callback failed")

    def _fire(self, registry, path, event_type):
        for callback in registry.pop(path, []):
            self._queue.put((callback, WatchedEvent(event_type, KeeperState.CONNECTED, path)))

    def _count_watched(self, parent):
        node = self.nodes.get(parent)
        if node is None:
            return
        watched = sum(
            1 for child in node.children if child != self.marker and self.data_watches.get(_join(parent, child))
        )
        self.peak_watched[parent] = max(self.peak_watched[parent], watched)

    def _create(self, path, owner=None, sequence=False, makepath=False):
        parent = _parent(path)
        if parent not in self.nodes:
            if not makepath:
                raise NoNodeError(parent)
            self._create(parent, makepath=True)
        pnode = self.nodes[parent]
        if sequence:
            path = "%s%010d" % (path, pnode.cversion)
        if path in self.nodes:
            raise NodeExistsError(path)
        pnode.cversion += 1
        pnode.children.add(path.rsplit("/", 1)[1])
        self.nodes[path] = _Node(owner)
        self._fire(self.data_watches, path, EventType.CREATED)
        self._fire(self.child_watches, parent, EventType.CHILD)
        return path

    def _delete(self, path):
        node = self.nodes.get(path)
        if node is None:
            raise NoNodeError(path)
        if node.children:
            raise NotEmptyError(path)
        del self.nodes[path]
        pnode = self.nodes[_parent(path)]
        pnode.children.discard(path.rsplit("/", 1)[1])
        pnode.cversion += 1
        self._fire(self.data_watches, path, EventType.DELETED)
        self._fire(self.child_watches, path, EventType.DELETED)
        self._fire(self.child_watches, _parent(path), EventType.CHILD)

    def create(self, path, owner=None, sequence=False, makepath=False):
        with self.lock:
            path = self._create(path, owner, sequence, makepath)
        if self.on_create is not None:
            self.on_create(path)
        return path

    def delete(self, path):
        with self.lock:
            self._delete(path)
        if self.on_delete is not None:
            self.on_delete(path)

    def exists(self, path, watch=None):
        with self.lock:
            if watch is not None:
                if watch not in self.data_watches[path]:
                    self.data_watches[path].append(watch)
                self._count_watched(_parent(path))
            return self.nodes.get(path)

    def get_children(self, path, watch=None):
        with self.lock:
            node = self.nodes.get(path)
            if node is None:
                raise NoNodeError(path)
            if watch is not None and watch not in self.child_watches[path]:
                self.child_watches[path].append(watch)
            return list(node.children)

    def release(self, owner):
        """Remove all ephemeral nodes of the given session."""
        with self.lock:
            owned = [path for path, node in self.nodes.items() if node.owner is owner]
            for path in owned:
                self._delete(path)

    def notify_state(self, listener, state):
        self._queue.put((listener, state))

    def children(self, path):
        """Get sorted children of path or empty list if there is no such node."""
        with self.lock:
            node = self.nodes.get(path)
            return sorted(node.children) if node is not None else []

    def entries(self, path):
        """Get sorted participant entries of path."""
        return [child for child in self.children(path) if child != self.marker]

    def has(self, path):
        with self.lock:
            return path in self.nodes


class FakeClient:
    """The participant's session to FakeZooKeeper with the interface of kazoo.client.KazooClient."""

    def __init__(self, server: FakeZooKeeper):
        self.server = server
        self.expired = False
        self._listeners = []

    def _check(self):
        if self.expired:
            raise SessionExpiredError()

    def add_listener(self, listener):
        self._listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def create(self, path, value=b"", ephemeral=False, sequence=False, makepath=False):
        self._check()
        return self.server.create(path, self if ephemeral else None, sequence, makepath)

    def delete(self, path, version=-1):
        self._check()
        self.server.delete(path)

    def exists(self, path, watch=None):
        self._check()
        return self.server.exists(path, watch)

    def get_children(self, path, watch=None):
        self._check()
        return self.server.get_children(path, watch)

    def expire(self):
        """Simulate session expiration."""
        self.expired = True
        self.server.release(self)
        for listener in list(self._listeners):
            self.server.notify_state(listener, KazooState.LOST)

    def close(self):
        """Close the session. Ephemeral nodes are removed."""
        if not self.expired:
            self.server.release(self)
        self.expired = True
