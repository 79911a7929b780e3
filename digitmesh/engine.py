import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from .aggregate import aggregate, collect_partial_sums
from .bbp import local_sum
from .group import LocalGroup, run_local_group
from .partition import owned_terms
from .planner import PrecisionPlan, make_context, plan, validate_digits
from .transport import deserialize, serialize


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PiResult:
    value: Any
    plan: PrecisionPlan
    group_size: int
    elapsed: float


def run_rank(group, p: PrecisionPlan) -> Optional[PiResult]:
    start = time.perf_counter()
    ctx = make_context(p)
    terms = owned_terms(group.rank, group.size, p.term_count)
    logger.debug("rank %d/%d owns %d terms", group.rank, group.size, len(terms))
    partial = local_sum(terms, ctx)
    if not group.is_coordinator:
        group.send_bytes(serialize(partial, p.digits, p.transport_margin))
        logger.debug("rank %d sent partial sum", group.rank)
        return None
    received = collect_partial_sums(group, p, ctx)
    value = aggregate(partial, received, ctx)
    return PiResult(value=value, plan=p, group_size=group.size, elapsed=time.perf_counter() - start)


def compute_pi(digits: int = 100, workers: int = 1, start_method: Optional[str] = None, **margins) -> PiResult:
    digits = validate_digits(digits)
    workers = int(workers)
    if workers < 1:
        raise ValueError("workers must be >= 1")
    p = plan(digits, **margins)
    if workers == 1:
        return run_rank(LocalGroup(0, 1, {}), p)
    return run_local_group(workers, run_rank, (p,), start_method=start_method)


def compute_serial(p: PrecisionPlan, group_size: int):
    ctx = make_context(p)
    partials = [local_sum(owned_terms(rank, group_size, p.term_count), ctx) for rank in range(group_size)]
    received = [deserialize(serialize(x, p.digits, p.transport_margin), ctx) for x in partials[1:]]
    return aggregate(partials[0], received, ctx)
