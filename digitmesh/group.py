"""Worker groups: who am I, how many of us, and the channel to rank 0.

Only one exchange pattern exists. Every rank other than 0 sends one payload
to rank 0, and rank 0 receives one payload per rank in increasing rank order.
"""
import logging
import multiprocessing
from typing import Any, Callable, Dict, Optional, Sequence

from .transport import TERMINATOR, TransportError


logger = logging.getLogger(__name__)

COORDINATOR = 0
_TAG = 0


class LocalGroup:
    def __init__(self, rank: int, size: int, channels: Dict[int, Any]):
        self.rank = int(rank)
        self.size = int(size)
        self._channels = channels

    @property
    def is_coordinator(self) -> bool:
        return self.rank == COORDINATOR

    def send_bytes(self, payload: bytes):
        if self.is_coordinator:
            raise ValueError("coordinator does not send")
        self._channels[COORDINATOR].send_bytes(payload)

    def recv_bytes(self, source: int, maxlength: int) -> bytes:
        if not self.is_coordinator:
            raise ValueError("only the coordinator receives")
        conn = self._channels[source]
        try:
            return conn.recv_bytes(maxlength)
        except EOFError as e:
            raise TransportError(f"rank {source} closed its channel without sending") from e
        except OSError as e:
            raise TransportError(f"payload from rank {source} exceeds {maxlength} bytes") from e

    def close(self):
        for conn in self._channels.values():
            conn.close()
        self._channels = {}


class MpiGroup:
    """Rank and size come from the MPI launcher (``mpiexec -n N``)."""

    def __init__(self, comm=None):
        if comm is None:
            from mpi4py import MPI

            comm = MPI.COMM_WORLD
        self.comm = comm
        self.rank = self.comm.Get_rank()
        self.size = self.comm.Get_size()

    @property
    def is_coordinator(self) -> bool:
        return self.rank == COORDINATOR

    def send_bytes(self, payload: bytes):
        if self.is_coordinator:
            raise ValueError("coordinator does not send")
        self.comm.Send(payload, dest=COORDINATOR, tag=_TAG)

    def recv_bytes(self, source: int, maxlength: int) -> bytes:
        if not self.is_coordinator:
            raise ValueError("only the coordinator receives")
        buf = bytearray(maxlength)
        try:
            self.comm.Recv(buf, source=source, tag=_TAG)
        except RuntimeError as e:
            # mpi4py's MPI.Exception, raised on MPI_ERR_TRUNCATE
            raise TransportError(f"payload from rank {source} exceeds {maxlength} bytes") from e
        end = buf.find(TERMINATOR)
        if end < 0:
            raise TransportError(f"payload from rank {source} has no terminator")
        return bytes(buf[: end + len(TERMINATOR)])

    def close(self):
        pass


def _run_member(rank: int, size: int, conn, target: Callable, args: Sequence):
    group = LocalGroup(rank, size, {COORDINATOR: conn})
    try:
        target(group, *args)
    finally:
        group.close()


def run_local_group(size: int, target: Callable, args: Sequence = (), start_method: Optional[str] = None):
    size = int(size)
    if size < 1:
        raise ValueError("size must be >= 1")
    mpctx = multiprocessing.get_context(start_method)
    channels = {}
    procs = []
    try:
        for rank in range(1, size):
            recv_end, send_end = mpctx.Pipe(duplex=False)
            proc = mpctx.Process(
                target=_run_member,
                args=(rank, size, send_end, target, tuple(args)),
                name=f"digitmesh-rank-{rank}",
            )
            proc.start()
            send_end.close()
            channels[rank] = recv_end
            procs.append(proc)
        logger.debug("started %d worker processes", len(procs))
        coordinator = LocalGroup(COORDINATOR, size, channels)
        try:
            result = target(coordinator, *args)
        finally:
            coordinator.close()
    finally:
        for proc in procs:
            proc.join()
    failed = [p.name for p in procs if p.exitcode != 0]
    if failed:
        raise RuntimeError("worker processes failed: " + ", ".join(failed))
    return result
