"""
RunSupervisor - the top of a run at every participant.

Rank 0 is the coordinator: it reads the input, runs the dispatch loop,
and writes the report. Every other rank is a worker.

A fatal error anywhere is logged with the operation that failed, and then
the whole run is aborted.
"""

import logging
import time

from .channel import RunAborted, LocalCluster
from .constants import C
from .dispatch import Coordinator, Worker
from .engine import engine_from_name
from .inputfile import read_input
from .report import write_report, write_json_report

logger = logging.getLogger(__name__)


class RunReport:
    """What the coordinator returns from a run."""
    def __init__(self, entries, elapsed):
        self.entries = entries
        self.elapsed = elapsed

    def triples(self):
        """Set of (picture id, object id, (row, column)) for every found object."""
        return {(e.picture_id, r.object_id, (r.row, r.column))
                for e in self.entries for r in e.found}

    def __repr__(self):
        return f"<RunReport entries={len(self.entries)} elapsed={self.elapsed:.3f}>"


class RunSupervisor:
    """:param channel: this participant's Channel.
    :param config: the RunConfig.
    :param engine: a MatchEngine. Defaults to the one named in the config.
    """
    def __init__(self, channel, config, engine=None):
        self.channel = channel
        self.config = config
        self.engine = engine
        self.operation = "startup"

    @property
    def role(self):
        return 'coordinator' if self.channel.rank == C.COORDINATOR else 'worker'

    def run(self):
        if self.channel.size < C.MIN_PARTICIPANTS:
            logger.error("Number of processes must be greater than 1 for this program to run properly "
                         "(have %d)", self.channel.size)
            return None
        try:
            if self.role == 'coordinator':
                return self.run_coordinator()
            return self.run_worker()
        except RunAborted:
            logger.info("rank %d: stopped because the run was aborted", self.channel.rank)
            raise
        except BaseException as e: # pylint: disable=broad-except
            logger.critical("rank %d (%s): fatal error while %s: %r",
                            self.channel.rank, self.role, self.operation, e)
            self.channel.abort(1)
            raise

    def run_coordinator(self):
        t0 = time.time()
        self.operation = f"reading input {self.config.input}"
        si = read_input(self.config.input)

        self.operation = "dispatching pictures"
        coordinator = Coordinator(self.channel, si.threshold, si.pictures, si.objects)
        entries = coordinator.run()

        self.operation = f"writing report {self.config.output}"
        write_report(self.config.output, entries)
        if self.config.json_output:
            self.operation = f"writing json report {self.config.json_output}"
            write_json_report(self.config.json_output, entries)

        elapsed = time.time() - t0
        print(f"Time taken: {elapsed:f}")
        logger.info("%d pictures on %d workers in %.3fs",
                    len(entries), self.channel.size - 1, elapsed)
        return RunReport(entries, elapsed)

    def run_worker(self):
        self.operation = "creating match engine"
        engine = self.engine if self.engine is not None else engine_from_name(self.config.engine)
        self.operation = "searching pictures"
        return Worker(self.channel, engine, max_tasks=self.config.max_tasks).run()


def supervise(channel, config, engine=None):
    """Entry point for one participant."""
    return RunSupervisor(channel, config, engine=engine).run()


def run_local(config, engine=None):
    """Run the coordinator and config.workers workers on this machine.
    Returns the coordinator's RunReport, or None if there are no workers."""
    cluster = LocalCluster(config.workers + 1, kind=config.kind)
    return cluster.run(supervise, config, engine)[C.COORDINATOR]


def run_mpi(config, engine=None):
    """Run this process's part of an mpiexec run."""
    from .channel_mpi import MPIChannel # pylint: disable=import-outside-toplevel
    return supervise(MPIChannel(), config, engine)
