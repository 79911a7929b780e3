__all__ = [
    "PrecisionPlan",
    "PiResult",
    "plan",
    "bbp_term",
    "local_sum",
    "owned_terms",
    "serialize",
    "deserialize",
    "aggregate",
    "compute_pi",
    "render_grouped",
]

from .aggregate import aggregate
from .bbp import bbp_term, local_sum
from .engine import PiResult, compute_pi
from .partition import owned_terms
from .planner import PrecisionPlan, plan
from .render import render_grouped
from .transport import deserialize, serialize
