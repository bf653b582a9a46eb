"""
Channel over MPI, for runs started with mpiexec:

    mpiexec -n 5 picsearch run --transport mpi

Messages are pickled by mpi4py. Each message is sent with its Tag as the MPI tag.
"""

import logging

from mpi4py import MPI

from .channel import Channel, ANY_SOURCE

logger = logging.getLogger(__name__)


class MPIChannel(Channel):
    def __init__(self, comm=None):
        self.comm = comm if comm is not None else MPI.COMM_WORLD

    @property
    def rank(self):
        return self.comm.Get_rank()

    @property
    def size(self):
        return self.comm.Get_size()

    def send(self, msg, dest):
        self.comm.send(msg, dest=dest, tag=int(msg.tag))

    def recv(self, source=ANY_SOURCE):
        status = MPI.Status()
        msg = self.comm.recv(source=MPI.ANY_SOURCE if source == ANY_SOURCE else source,
                             tag=MPI.ANY_TAG, status=status)
        return (status.Get_source(), msg)

    def bcast(self, obj, root=0):
        return self.comm.bcast(obj, root=root)

    def abort(self, code=1):
        logger.critical("rank %s aborting the run with code %s", self.rank, code)
        self.comm.Abort(code)
