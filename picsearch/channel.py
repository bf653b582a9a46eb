"""
Channels carry messages between the participants of a run.

Participant 0 is the coordinator. The others are workers. Delivery is FIFO for
each (sender, receiver) pair. Every operation blocks until it is done; there
are no timeouts. abort() brings down the whole run.

LocalChannel/LocalCluster run all of the participants on one machine, either
as threads or as processes. MPIChannel (in channel_mpi) uses mpi4py.
"""

import collections
import logging
import multiprocessing as mp
import pickle
import queue
import threading
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

ANY_SOURCE = -1
_ABORT_SOURCE = -2


class RunAborted(RuntimeError):
    """Another participant aborted the run."""


class Channel(ABC):
    """Abstract message channel, as seen by one participant."""

    @property
    @abstractmethod
    def rank(self):
        """This participant's number."""

    @property
    @abstractmethod
    def size(self):
        """Number of participants."""

    @abstractmethod
    def send(self, msg, dest):
        """Send msg to participant dest."""

    @abstractmethod
    def recv(self, source=ANY_SOURCE):
        """Wait for a message. Returns (source, msg)."""

    @abstractmethod
    def bcast(self, obj, root=0):
        """Collective: every participant gets root's obj."""

    @abstractmethod
    def abort(self, code=1):
        """Bring down every participant of the run."""

    @property
    def is_coordinator(self):
        return self.rank == 0


class LocalChannel(Channel):
    """Channel over one inbox queue per participant.
    Messages are pickled on send, so the receiver gets its own copy."""

    def __init__(self, rank, inboxes, abort_event):
        self._rank = rank
        self.inboxes = inboxes
        self.abort_event = abort_event
        self.pending = collections.deque()   # received from other sources while waiting for one

    @property
    def rank(self):
        return self._rank

    @property
    def size(self):
        return len(self.inboxes)

    def _check_abort(self):
        if self.abort_event.is_set():
            raise RunAborted(f"rank {self._rank}: run aborted")

    def send(self, msg, dest):
        self._check_abort()
        if not 0 <= dest < self.size:
            raise ValueError(f"no participant {dest} in a run of {self.size}")
        self.inboxes[dest].put((self._rank, pickle.dumps(msg)))

    def recv(self, source=ANY_SOURCE):
        for (i, (src, data)) in enumerate(self.pending):
            if source in (ANY_SOURCE, src):
                del self.pending[i]
                return (src, pickle.loads(data))
        while True:
            (src, data) = self.inboxes[self._rank].get()
            if src == _ABORT_SOURCE:
                raise RunAborted(f"rank {self._rank}: run aborted with code {data}")
            if source in (ANY_SOURCE, src):
                return (src, pickle.loads(data))
            self.pending.append((src, data))

    def bcast(self, obj, root=0):
        if self._rank == root:
            for dest in range(self.size):
                if dest != root:
                    self.send(obj, dest)
            return obj
        (_, obj) = self.recv(source=root)
        return obj

    def abort(self, code=1):
        logger.debug("rank %s aborting with code %s", self._rank, code)
        self.abort_event.set()
        for inbox in self.inboxes:
            inbox.put((_ABORT_SOURCE, code))


def _run_rank(rank, inboxes, abort_event, results, target, args):
    """Body of one participant. Runs in a thread or in a child process."""
    channel = LocalChannel(rank, inboxes, abort_event)
    try:
        results.put((rank, True, target(channel, *args)))
    except RunAborted as e:
        results.put((rank, False, e))
    except BaseException as e: # pylint: disable=broad-except
        logger.debug("rank %s failed: %r", rank, e)
        channel.abort(1)
        results.put((rank, False, e))


class LocalCluster:
    """Runs a target at every rank of a local run.
    :param size: number of participants, including the coordinator.
    :param kind: 'threads' or 'processes'.
    """
    KINDS = ('threads', 'processes')

    def __init__(self, size, kind='threads'):
        if kind not in self.KINDS:
            raise ValueError(f"kind must be one of {' '.join(self.KINDS)}, not {kind!r}")
        self.size = size
        self.kind = kind

    def run(self, target, *args):
        """Call target(channel, *args) at every rank.
        Returns the list of return values, indexed by rank.
        If any rank failed, raises its error."""
        if self.kind == 'threads':
            inboxes = [queue.Queue() for _ in range(self.size)]
            (abort_event, results) = (threading.Event(), queue.Queue())
            workers = [threading.Thread(target=_run_rank, name=f"rank{rank}",
                                        args=(rank, inboxes, abort_event, results, target, args))
                       for rank in range(self.size)]
        else:
            ctx = mp.get_context()
            inboxes = [ctx.Queue() for _ in range(self.size)]
            (abort_event, results) = (ctx.Event(), ctx.Queue())
            workers = [ctx.Process(target=_run_rank, name=f"rank{rank}",
                                   args=(rank, inboxes, abort_event, results, target, args))
                       for rank in range(self.size)]
        for w in workers:
            w.start()
        # drain results before joining; a child cannot exit while its queue is full
        outcomes = [results.get() for _ in range(self.size)]
        for w in workers:
            w.join()

        values = [None] * self.size
        errors = []
        for (rank, ok, value) in sorted(outcomes, key=lambda o: o[0]):
            if ok:
                values[rank] = value
            else:
                errors.append(value)
        if errors:
            primary = [e for e in errors if not isinstance(e, RunAborted)]
            raise (primary or errors)[0]
        return values
