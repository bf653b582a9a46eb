"""
The dispatch protocol between the coordinator (rank 0) and the workers.

Setup. The coordinator broadcasts the threshold and the picture and object
counts, then sends every template object to every worker. A worker keeps its
own copy of the objects for the whole run.

Dispatch. The coordinator gives each worker one picture. Then it waits for a
result from any worker, records it, and answers that same worker with the
next picture or, when there are none left, a terminate notice. Workers that
finish quickly therefore get more pictures. When every result is in, any
worker that has not been told to stop is sent a terminate notice.

Each worker gets exactly one terminate notice and stops receiving after it.
"""

import logging

from .constants import C
from .messages import (Tag, SetupMessage, ObjectMessage, PictureMessage,
                       ResultMessage, TerminateMessage)
from .search import WorkerSearchCoordinator

logger = logging.getLogger(__name__)


class ProtocolError(RuntimeError):
    """A participant received a message it did not expect."""


class Coordinator:
    """Runs the dispatch loop at rank 0.
    After run(), results holds one ResultLog per picture, in arrival order."""

    def __init__(self, channel, threshold, pictures, objects):
        self.channel   = channel
        self.threshold = threshold
        self.pictures  = list(pictures)
        self.objects   = list(objects)
        self.results   = [None] * len(self.pictures)
        self.received  = 0
        self.next_index = 0
        self.in_flight = {}             # worker rank -> picture index
        self.max_in_flight = 0
        self.dispatch_log = []          # (worker rank, picture index) in send order
        self.terminated = []            # worker ranks, in the order they were told to stop
        self.seen_picture_ids = set()

    @property
    def workers(self):
        return range(1, self.channel.size)

    def setup(self):
        self.channel.bcast(SetupMessage(self.threshold, len(self.pictures), len(self.objects)),
                           root=C.COORDINATOR)
        for rank in self.workers:
            for obj in self.objects:
                self.channel.send(ObjectMessage(obj), rank)
        logger.info("sent %d objects to %d workers", len(self.objects), len(self.workers))

    def send_next_picture(self, rank):
        index = self.next_index
        self.channel.send(PictureMessage(index, self.pictures[index]), rank)
        self.next_index += 1
        self.in_flight[rank] = index
        self.max_in_flight = max(self.max_in_flight, len(self.in_flight))
        self.dispatch_log.append((rank, index))
        logger.debug("picture %d (id %d) -> rank %d", index, self.pictures[index].id, rank)

    def terminate(self, rank):
        self.channel.send(TerminateMessage(), rank)
        self.terminated.append(rank)
        logger.debug("terminate -> rank %d", rank)

    @property
    def remaining(self):
        return self.next_index < len(self.pictures)

    def receive_result(self):
        (source, msg) = self.channel.recv()
        if msg.tag != Tag.RESULT:
            raise ProtocolError(f"coordinator: unexpected {msg!r} from rank {source}")
        if source not in self.in_flight:
            raise ProtocolError(f"coordinator: result from rank {source}, which has no picture")
        index = self.in_flight.pop(source)
        if msg.index != index:
            raise ProtocolError(f"coordinator: rank {source} returned picture {msg.index}, "
                                f"but was given picture {index}")
        entry = msg.entry
        if entry.picture_id in self.seen_picture_ids:
            raise ProtocolError(f"coordinator: second result for picture id {entry.picture_id}")
        self.seen_picture_ids.add(entry.picture_id)
        self.results[self.received] = entry
        self.received += 1
        logger.info("picture %d done by rank %d: %d found (%d/%d)",
                    entry.picture_id, source, entry.found_count, self.received, len(self.pictures))
        return source

    def dispatch(self):
        for rank in self.workers:
            if not self.remaining:
                break
            self.send_next_picture(rank)

        while self.received < len(self.pictures):
            rank = self.receive_result()
            if self.remaining:
                self.send_next_picture(rank)
            else:
                self.terminate(rank)

        for rank in self.workers:
            if rank not in self.terminated:
                self.terminate(rank)
        return self.results

    def run(self):
        self.setup()
        return self.dispatch()


class Worker:
    """Runs at every rank other than 0: searches pictures until told to stop.
    :param engine: the MatchEngine to use.
    :param max_tasks: the most objects to score at once.
    """

    def __init__(self, channel, engine, max_tasks=None):
        self.channel   = channel
        self.engine    = engine
        self.max_tasks = max_tasks
        self.threshold = None
        self.objects   = None
        self.picture_count = None
        self.processed = []             # picture indexes, in the order they were searched
        self.search    = None

    def setup(self):
        msg = self.channel.bcast(None, root=C.COORDINATOR)
        if msg.tag != Tag.SETUP:
            raise ProtocolError(f"rank {self.channel.rank}: expected setup, got {msg!r}")
        self.threshold = msg.threshold
        self.picture_count = msg.picture_count
        objects = []
        for _ in range(msg.object_count):
            (_, om) = self.channel.recv(source=C.COORDINATOR)
            if om.tag != Tag.OBJECT:
                raise ProtocolError(f"rank {self.channel.rank}: expected an object, got {om!r}")
            objects.append(om.obj)
        self.objects = tuple(objects)
        logger.debug("rank %d has %d objects, threshold %s",
                     self.channel.rank, len(self.objects), self.threshold)

    def loop(self):
        with WorkerSearchCoordinator(self.engine, self.objects, self.threshold,
                                     max_tasks=self.max_tasks) as search:
            self.search = search
            while True:
                (_, msg) = self.channel.recv(source=C.COORDINATOR)
                if msg.tag == Tag.TERMINATE:
                    break
                if msg.tag != Tag.PICTURE:
                    raise ProtocolError(f"rank {self.channel.rank}: unexpected {msg!r}")
                entry = search.run(msg.picture)
                self.channel.send(ResultMessage(msg.index, entry), C.COORDINATOR)
                self.processed.append(msg.index)
        logger.info("rank %d: %s", self.channel.rank, search.stats())
        return self.processed

    def run(self):
        self.setup()
        return self.loop()
