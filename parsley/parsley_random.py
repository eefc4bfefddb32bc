"""
Randomized array methods: pick, take and shuffle.

All three draw from the evaluation context's random.Random and return new
lists; the receiver is never modified. Distinctness for take is by source
position, so duplicate values in the receiver may appear together in the
result.
"""
import random
from typing import Any, List

from parsley.parsley_dispatch import method
from parsley.parsley_errors import new_error
from parsley.parsley_methods import require_int


def fisher_yates(items: List[Any], rng: random.Random) -> List[Any]:
    """Shuffles items in place (modern Fisher-Yates) and returns it."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def sample_positions(length: int, count: int, rng: random.Random) -> List[int]:
    """Uniformly random ordered selection of `count` distinct positions.

    Partial Fisher-Yates: only the first `count` slots are settled, so the
    cost is O(length) to build the index list plus O(count) swaps.
    """
    indices = list(range(length))
    for i in range(count):
        j = rng.randint(i, length - 1)
        indices[i], indices[j] = indices[j], indices[i]
    return indices[:count]


@method("array", "shuffle")
def _shuffle(ctx, arr):
    return fisher_yates(list(arr), ctx.rng)


@method("array", "pick", arity="0-1")
def _pick(ctx, arr, *args):
    if not args:
        if not arr:
            return None
        return arr[ctx.rng.randrange(len(arr))]
    n = require_int(args[0], "pick")
    if n < 0:
        raise new_error("VAL-0004", Method="pick", Got=n)
    if n > 0 and not arr:
        raise new_error("VAL-0005", Method="pick")
    return [arr[ctx.rng.randrange(len(arr))] for _ in range(n)]


@method("array", "take", arity="1")
def _take(ctx, arr, n):
    n = require_int(n, "take")
    if n < 0:
        raise new_error("VAL-0004", Method="take", Got=n)
    if n > len(arr):
        raise new_error("VAL-0006", Requested=n, Length=len(arr))
    return [arr[i] for i in sample_positions(len(arr), n, ctx.rng)]
