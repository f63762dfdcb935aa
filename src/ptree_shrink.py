"""
Ψ (ptree) Shrink Search
Copyright (c) 2026 Alex P. Slaby — MIT License

minimize() walks candidate trees depth-first: the first candidate whose
replay still fails becomes the new current tree and its own candidates
are explored next. The walk is a loop over one candidate iterator at a
time, so arbitrarily long shrink chains need no recursion.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from ptree import ChoiceTree, MismatchedChoice
from ptree_gen import Gen, GenResult


@dataclass
class ShrinkStats:
    """Counters for one minimize() call."""
    tried: int = 0
    mismatched: int = 0
    skipped: int = 0
    steps: int = 0

    def to_dict(self):
        return {
            "tried": self.tried,
            "mismatched": self.mismatched,
            "skipped": self.skipped,
            "steps": self.steps,
        }


def minimize(tree: ChoiceTree, run: Callable[[ChoiceTree], GenResult],
             stats: Optional[ShrinkStats] = None):
    """
    Search for a smaller failure reachable from the failing `tree`.

    `run(tree)` replays the property at a tree and returns
    GenResult(outcome, candidate shrinks). It must turn exceptions raised
    by the property body into Failure outcomes, so anything escaping it
    comes from generation: MismatchedChoice or a generator fault on a
    candidate means "not applicable" and the candidate is skipped.

    Returns the smallest Failure found, or None if no candidate fails.
    """
    from ptree_check import Failure

    stats = stats if stats is not None else ShrinkStats()
    _, shrinks = run(tree)
    candidates = iter(shrinks)
    smallest = None

    while True:
        candidate = next(candidates, None)
        if candidate is None:
            break
        stats.tried += 1
        try:
            outcome, shrinks = run(candidate)
        except MismatchedChoice:
            stats.mismatched += 1
            continue
        except Exception:
            # generator fault on replay: not applicable
            stats.skipped += 1
            continue
        if isinstance(outcome, Failure):
            smallest = outcome
            stats.steps += 1
            candidates = iter(shrinks)
    return smallest


def depth_first_shrinks(gen: Gen, tree: ChoiceTree, limit: int = 100_000) -> List:
    """
    Values of `tree` and of every candidate reachable from it, depth-first,
    de-duplicated in first-seen order and capped at `limit` generations.
    An explicit stack of candidate iterators keeps this stack-safe.
    """
    values = []
    stack = [iter([tree])]
    generated = 0
    while stack and generated < limit:
        try:
            current = next(stack[-1])
        except StopIteration:
            stack.pop()
            continue
        try:
            value, shrinks = gen.generate(current)
        except MismatchedChoice:
            continue
        generated += 1
        if value not in values:
            values.append(value)
        stack.append(iter(shrinks))
    return values
