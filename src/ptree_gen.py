"""
Ψ (ptree) Generators
Copyright (c) 2026 Alex P. Slaby — MIT License

A generator is a pure function from a tree position to
(value, lazy candidate shrink trees). Candidates are trees, not values:
each one has to be replayed through the generator that produced it.

  - Primitives: integers, booleans, characters, constant
  - Combinators: map, chain, filter, ignore_exceptions
  - Choice: one_of, frequency, of
  - Products: tuples, composite
"""

import bisect
import itertools
from typing import Any, Callable, Iterable, Iterator, NamedTuple, Optional, Sequence

from ptree import (
    ChoiceTree, MismatchedChoice, FilterLimitReached, ExceptionLimitReached,
    random_seed,
)


INT_MIN = -2**31
INT_MAX = 2**31 - 1
DEFAULT_THRESHOLD = 100
PRINTABLE = tuple(chr(c) for c in range(32, 127))


class GenResult(NamedTuple):
    value: Any
    shrinks: Iterable[ChoiceTree]


def _no_shrinks():
    return iter(())


# ═══════════════════════════════════════════════════════════════
# GEN
# ═══════════════════════════════════════════════════════════════

class Gen:
    """Wraps generate(tree) -> GenResult and carries the unary combinators."""

    def __init__(self, generate: Callable[[ChoiceTree], GenResult], name: str = "gen"):
        self._generate = generate
        self.name = name

    def __repr__(self):
        return self.name

    def generate(self, tree: ChoiceTree) -> GenResult:
        return self._generate(tree)

    def map(self, f: Callable) -> 'Gen':
        def generate(tree):
            value, shrinks = self.generate(tree)
            return GenResult(f(value), shrinks)
        return Gen(generate, f"{self.name}.map({_fn_name(f)})")

    def chain(self, f: Callable[[Any], 'Gen']) -> 'Gen':
        """
        Value-dependent generator selection. The first value is read from
        tree.left, the generator it selects reads tree.right.

        Shrinks of the left value keep the right subtree as recorded. If the
        new left value selects a generator reading a different kind of
        choice, replaying that candidate raises MismatchedChoice and the
        shrink search skips it.
        """
        def generate(tree):
            value, left_shrinks = self.generate(tree.left)
            result, right_shrinks = f(value).generate(tree.right)
            shrinks = itertools.chain(
                (tree.with_left(t) for t in left_shrinks),
                (tree.with_right(t) for t in right_shrinks),
            )
            return GenResult(result, shrinks)
        return Gen(generate, f"{self.name}.chain({_fn_name(f)})")

    flat_map = chain

    def filter(self, predicate: Callable[[Any], bool], threshold: int = DEFAULT_THRESHOLD) -> 'Gen':
        if threshold < 1:
            raise ValueError(f"threshold must be positive, got {threshold}")

        def generate(tree):
            current = tree
            last = None
            for _ in range(threshold):
                value, shrinks = self.generate(current.left)
                if predicate(value):
                    return GenResult(value, _revalidated(self, tree, shrinks, predicate))
                last = value
                current = current.right
            raise FilterLimitReached(threshold, last)
        return Gen(generate, f"{self.name}.filter({_fn_name(predicate)})")

    def ignore_exceptions(self, kind=Exception, threshold: int = DEFAULT_THRESHOLD) -> 'Gen':
        """Retry on successive positions while generation raises `kind`."""
        if threshold < 1:
            raise ValueError(f"threshold must be positive, got {threshold}")

        def generate(tree):
            current = tree
            last = None
            for _ in range(threshold):
                try:
                    value, shrinks = self.generate(current.left)
                except kind as e:
                    if isinstance(e, MismatchedChoice):
                        raise
                    last = e
                    current = current.right
                    continue
                return GenResult(value, _revalidated(self, tree, shrinks, lambda _: True))
            raise ExceptionLimitReached(threshold, last) from last
        return Gen(generate, f"{self.name}.ignore_exceptions({getattr(kind, '__name__', kind)})")

    # Collections live in ptree_collections
    def list(self, size=None, min_size: int = 0, max_size: int = 100) -> 'Gen':
        from ptree_collections import lists
        return lists(self, size=size, min_size=min_size, max_size=max_size)

    def set(self, size=None, min_size: int = 0, max_size: int = 100,
            threshold: int = DEFAULT_THRESHOLD) -> 'Gen':
        from ptree_collections import sets
        return sets(self, size=size, min_size=min_size, max_size=max_size, threshold=threshold)

    def string(self, size=None, min_size: int = 0, max_size: int = 100) -> 'Gen':
        return self.list(size=size, min_size=min_size, max_size=max_size).map(''.join)


def _fn_name(f) -> str:
    return getattr(f, '__name__', type(f).__name__)


def _revalidated(gen: Gen, tree: ChoiceTree, shrinks, accept) -> Iterator[ChoiceTree]:
    """
    Place each shrink of the accepted draw at the first read position of
    `tree`, keeping only candidates that replay to an accepted value.
    """
    for candidate in shrinks:
        try:
            value, _ = gen.generate(candidate)
        except Exception:
            # candidate not applicable
            continue
        if accept(value):
            yield tree.with_left(candidate)


# ═══════════════════════════════════════════════════════════════
# PRIMITIVES
# ═══════════════════════════════════════════════════════════════

def _halve(n: int) -> int:
    """n / 2 truncated toward zero."""
    return n // 2 if n >= 0 else -((-n) // 2)


def shrink_int(value: int, lo: int, hi: int) -> Iterator[int]:
    """
    Smaller candidates for `value` within [lo, hi]: first the target
    (0, or the bound nearest to it), then values closing half of the
    remaining distance each step. A negative value whose negation fits
    the range approaches through the positive side and ends with its
    positive mirror.
    """
    target = min(max(0, lo), hi)
    if value == target:
        return
    yield target
    origin = value
    if target == 0 and value < 0 and -value <= hi:
        origin = -value
    current = _halve(origin - target)
    while current != 0:
        yield origin - current
        current = _halve(current)
    if origin != value:
        yield origin


def integers(min_value: int = INT_MIN, max_value: int = INT_MAX) -> Gen:
    if min_value > max_value:
        raise ValueError(f"Empty range [{min_value}, {max_value}]")

    def generate(tree):
        value = tree.read_int(min_value, max_value)
        shrinks = (tree.fix_int(v) for v in shrink_int(value, min_value, max_value))
        return GenResult(value, shrinks)
    return Gen(generate, f"integers({min_value}, {max_value})")


def booleans() -> Gen:
    def generate(tree):
        value = tree.read_bool()
        shrinks = iter([tree.fix_bool(False)]) if value else _no_shrinks()
        return GenResult(value, shrinks)
    return Gen(generate, "booleans()")


def characters(domain: Optional[Iterable[str]] = None) -> Gen:
    """Single characters from `domain` (printable ASCII by default), shrinking toward the smallest."""
    chars = PRINTABLE if domain is None else tuple(sorted(set(domain)))
    if not chars:
        raise ValueError("characters() needs a non-empty domain")
    position = {c: i for i, c in enumerate(chars)}

    def generate(tree):
        value = tree.read_char(chars)
        index = position[value]
        shrinks = (tree.fix_char(chars[i]) for i in shrink_int(index, 0, len(chars) - 1))
        return GenResult(value, shrinks)
    return Gen(generate, "characters()")


def constant(value) -> Gen:
    return Gen(lambda tree: GenResult(value, _no_shrinks()), f"constant({value!r})")


def sample(gen: Gen, seed: Optional[int] = None):
    """One-shot generation from a root seed (random when omitted); no shrinking."""
    tree = ChoiceTree.from_seed(random_seed() if seed is None else seed)
    return gen.generate(tree).value


# ═══════════════════════════════════════════════════════════════
# CHOICE BETWEEN GENERATORS
# ═══════════════════════════════════════════════════════════════

def _choose(picker: Gen, index_of: Callable[[Any], int], gens: Sequence[Gen]) -> Callable:
    """
    Tree layout:
      tree.left        index draw
      tree.right.left  reserved, never written: the value region after a switch
      tree.right.right value region of the current generator
    """
    def generate(tree):
        draw, draw_shrinks = picker.generate(tree.left)
        index = index_of(draw)
        region = tree.right
        value, value_shrinks = gens[index].generate(region.right)

        def shrinks():
            fresh = region.left
            for t in draw_shrinks:
                if index_of(picker.generate(t).value) == index:
                    continue
                yield tree.with_left(t).with_right(region.with_right(fresh))
            for t in value_shrinks:
                yield tree.with_right(region.with_right(t))

        return GenResult(value, shrinks())
    return generate


def one_of(*gens: Gen) -> Gen:
    """Pick one generator uniformly; shrinks prefer earlier generators."""
    if not gens:
        raise ValueError("one_of() called with no generators")
    picker = integers(0, len(gens) - 1)
    return Gen(_choose(picker, lambda i: i, gens), f"one_of({', '.join(map(repr, gens))})")


def frequency(*weighted) -> Gen:
    """frequency((3, gen_a), (1, gen_b)): weighted one_of."""
    if not weighted:
        raise ValueError("frequency() called with no generators")
    weights = [w for w, _ in weighted]
    if any(w < 1 for w in weights):
        raise ValueError(f"frequency() weights must be positive, got {weights}")
    gens = [g for _, g in weighted]
    bounds = list(itertools.accumulate(weights))
    picker = integers(0, bounds[-1] - 1)
    return Gen(_choose(picker, lambda draw: bisect.bisect_right(bounds, draw), gens),
               f"frequency({', '.join(f'{w}:{g!r}' for w, g in weighted)})")


def of(*values) -> Gen:
    """One of the given values, shrinking toward the first."""
    return one_of(*[constant(v) for v in values])


# ═══════════════════════════════════════════════════════════════
# PRODUCTS
# ═══════════════════════════════════════════════════════════════

def tuples(*gens: Gen) -> Gen:
    """Fixed-arity tuple; the k-th generator reads the k-th right-advance."""
    def generate(tree):
        values = []
        all_shrinks = []
        node = tree
        for gen in gens:
            value, shrinks = gen.generate(node.left)
            values.append(value)
            all_shrinks.append(shrinks)
            node = node.right
        shrinks = (tree.replace_at(k, t) for k, ts in enumerate(all_shrinks) for t in ts)
        return GenResult(tuple(values), shrinks)
    return Gen(generate, f"tuples({', '.join(map(repr, gens))})")


class _Draw:
    """The `draw` handed to composite functions: one right-advance per call."""

    def __init__(self, tree: ChoiceTree):
        self.node = tree
        self.shrinks = []

    def __call__(self, gen: Gen):
        value, shrinks = gen.generate(self.node.left)
        self.shrinks.append(shrinks)
        self.node = self.node.right
        return value


def composite(fn: Callable) -> Callable[..., Gen]:
    """
    Decorator turning fn(draw, *args) into a generator factory:

        @composite
        def ordered_pair(draw, hi):
            a = draw(integers(0, hi))
            return a, draw(integers(a, hi))

    Draws whose generator depends on earlier values carry the same replay
    hazard as chain().
    """
    def factory(*args, **kwargs) -> Gen:
        def generate(tree):
            draw = _Draw(tree)
            value = fn(draw, *args, **kwargs)
            shrinks = (tree.replace_at(k, t) for k, ts in enumerate(draw.shrinks) for t in ts)
            return GenResult(value, shrinks)
        return Gen(generate, f"{fn.__name__}()")
    factory.__name__ = fn.__name__
    factory.__doc__ = fn.__doc__
    return factory
