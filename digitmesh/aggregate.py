import logging
from typing import Iterable, List

from mpmath.ctx_mp import MPContext

from .planner import PrecisionPlan
from .transport import deserialize


logger = logging.getLogger(__name__)


def collect_partial_sums(group, p: PrecisionPlan, ctx: MPContext) -> List:
    """Block on each non-coordinator rank in turn, 1 .. size-1."""
    received = []
    for source in range(1, group.size):
        payload = group.recv_bytes(source, p.buffer_size)
        logger.debug("received %d bytes from rank %d", len(payload), source)
        received.append(deserialize(payload, ctx))
    return received


def aggregate(local, received: Iterable, ctx: MPContext):
    total = ctx.mpf(local)
    for x in received:
        total += x
    return total
