import math
from functools import lru_cache
from typing import Hashable, Iterable, Mapping, Tuple


def optimal_cost(weights: Iterable[int]) -> int:
    """
    Minimum weighted path length over every binary prefix code for weights.

    Exhaustive: tries every pair to merge at every step, which reaches
    every full binary tree shape. Exponential, so keep alphabets small
    (around 8 symbols or fewer). A single weight costs itself because its
    code still needs one bit.
    """
    ordered = tuple(sorted(weights))
    if not ordered:
        raise ValueError("optimal_cost needs at least one weight")
    if len(ordered) == 1:
        return ordered[0]
    return _min_merge_cost(ordered)


@lru_cache(maxsize=None)
def _min_merge_cost(weights: Tuple[int, ...]) -> int: # weights: sorted tuple, at least one entry
    if len(weights) == 1:
        return 0

    best = None
    tried = set()
    n = len(weights)
    for i in range(n):
        for j in range(i + 1, n):
            pair = (weights[i], weights[j])
            if pair in tried: # equal weights give identical subproblems
                continue
            tried.add(pair)
            merged = weights[i] + weights[j]
            rest = weights[:i] + weights[i+1:j] + weights[j+1:]
            cost = merged + _min_merge_cost(tuple(sorted(rest + (merged,))))
            if best is None or cost < best:
                best = cost
    return best


def entropy_bits(frequencies: Mapping[Hashable, int]) -> float:
    """Shannon bound, in bits, for the whole sequence the frequencies describe."""
    total = sum(frequencies.values())
    if total == 0:
        return 0.0
    return -sum(f * math.log2(f / total) for f in frequencies.values() if f > 0)


def is_prefix_free(code_map: Mapping[Hashable, str]) -> bool:
    # Sorted, a code that prefixes any other code also prefixes its successor
    codes = sorted(code_map.values())
    return all(not codes[i+1].startswith(codes[i]) for i in range(len(codes) - 1))
