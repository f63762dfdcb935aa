"""
Ψ (ptree) Collection Generators
Copyright (c) 2026 Alex P. Slaby — MIT License

Lists and sets draw their elements from successive right-advances of
the tree: tree.left, tree.right.left, tree.right.right.left, ...
Drawing and candidate construction walk that spine iteratively, so
ten-thousand element collections need no deep recursion.

Sized collections read their size from tree.left and the elements from
tree.right (size.chain(n -> fixed collection of n)). Candidates come in
this order:
  1. smaller sizes keeping a prefix (dropping the tail)
  2. the same sizes keeping a suffix (dropping the head)
  3. one element shrunk at a time, index 0 first
"""

from typing import Any, List

from ptree import ChoiceTree, ImpossibleSetSize, build_spine
from ptree_gen import Gen, GenResult, DEFAULT_THRESHOLD, characters, integers


class _Drawn:
    """Elements drawn along a spine, with the subtree each one was read from."""

    def __init__(self, body: ChoiceTree):
        self.body = body
        self.values: List[Any] = []
        self.lefts: List[ChoiceTree] = []
        self.shrinks = []
        # False once a draw was rejected, so element k no longer sits at position k
        self.contiguous = True

    def __len__(self):
        return len(self.values)

    def keep(self, start: int, stop: int) -> ChoiceTree:
        """A body that replays elements[start:stop]."""
        if self.contiguous:
            return self.body.nth_right(start)
        return build_spine(self.body, self.lefts[start:stop])

    def replace(self, index: int, subtree: ChoiceTree) -> ChoiceTree:
        """A body that replays the same elements with `index` read from `subtree`."""
        if self.contiguous:
            return self.body.replace_at(index, subtree)
        lefts = list(self.lefts)
        lefts[index] = subtree
        return build_spine(self.body, lefts)


def _draw_list(gen: Gen, body: ChoiceTree, size: int) -> _Drawn:
    drawn = _Drawn(body)
    node = body
    for _ in range(size):
        value, shrinks = gen.generate(node.left)
        drawn.values.append(value)
        drawn.lefts.append(node.left)
        drawn.shrinks.append(shrinks)
        node = node.right
    return drawn


def _draw_set(gen: Gen, body: ChoiceTree, size: int, threshold: int) -> _Drawn:
    drawn = _Drawn(body)
    seen = set()
    node = body
    misses = 0
    while len(drawn) < size:
        value, shrinks = gen.generate(node.left)
        if value in seen:
            misses += 1
            if misses >= threshold:
                raise ImpossibleSetSize(size, threshold)
            drawn.contiguous = False
        else:
            misses = 0
            seen.add(value)
            drawn.values.append(value)
            drawn.lefts.append(node.left)
            drawn.shrinks.append(shrinks)
        node = node.right
    return drawn


def _list_element_shrinks(drawn: _Drawn):
    for index, shrinks in enumerate(drawn.shrinks):
        for t in shrinks:
            yield drawn.replace(index, t)


def _set_element_shrinks(gen: Gen, drawn: _Drawn):
    """
    Element shrinks that keep the set's size: a replacement equal to any
    other element (or to the element itself) is never emitted.
    """
    present = set(drawn.values)
    for index, shrinks in enumerate(drawn.shrinks):
        original = drawn.values[index]
        for t in shrinks:
            try:
                value, _ = gen.generate(t)
            except Exception:
                # candidate not applicable
                continue
            if value == original or value in present:
                continue
            yield drawn.replace(index, t)


def _sized(size_gen: Gen, draw, element_shrinks, build, name: str) -> Gen:
    def generate(tree):
        size, size_shrinks = size_gen.generate(tree.left)
        body = tree.right
        drawn = draw(body, size)

        def shrinks():
            smaller = []
            for t in size_shrinks:
                try:
                    k = size_gen.generate(t).value
                except Exception:
                    continue
                if 0 <= k < size:
                    smaller.append((t, k))
            for t, k in smaller:
                yield tree.with_left(t).with_right(drawn.keep(0, k))
            for t, k in smaller:
                if k > 0:
                    yield tree.with_left(t).with_right(drawn.keep(size - k, size))
            for t in element_shrinks(drawn):
                yield tree.with_right(t)

        return GenResult(build(drawn.values), shrinks())
    return Gen(generate, name)


def _size_gen(size, min_size: int, max_size: int) -> Gen:
    if isinstance(size, Gen):
        return size
    if min_size < 0 or min_size > max_size:
        raise ValueError(f"Invalid size range [{min_size}, {max_size}]")
    return integers(min_size, max_size)


# ═══════════════════════════════════════════════════════════════
# LISTS
# ═══════════════════════════════════════════════════════════════

def lists(elements: Gen, size=None, min_size: int = 0, max_size: int = 100) -> Gen:
    """
    lists(g, size=5)              exactly five elements
    lists(g, min_size=1, max_size=10)
    lists(g, size=some_int_gen)   size drawn from a generator
    """
    if isinstance(size, int):
        if size < 0:
            raise ValueError(f"Size must be non-negative, got {size}")

        def generate(tree):
            drawn = _draw_list(elements, tree, size)
            return GenResult(drawn.values, _list_element_shrinks(drawn))
        return Gen(generate, f"{elements!r}.list({size})")

    return _sized(
        _size_gen(size, min_size, max_size),
        lambda body, n: _draw_list(elements, body, n),
        _list_element_shrinks,
        list,
        f"{elements!r}.list()",
    )


# ═══════════════════════════════════════════════════════════════
# SETS
# ═══════════════════════════════════════════════════════════════

def sets(elements: Gen, size=None, min_size: int = 0, max_size: int = 100,
         threshold: int = DEFAULT_THRESHOLD) -> Gen:
    """
    Sets of distinct elements. Each slot retries up to `threshold`
    consecutive duplicates before raising ImpossibleSetSize.
    """
    if threshold < 1:
        raise ValueError(f"threshold must be positive, got {threshold}")

    if isinstance(size, int):
        if size < 0:
            raise ValueError(f"Size must be non-negative, got {size}")

        def generate(tree):
            drawn = _draw_set(elements, tree, size, threshold)
            return GenResult(set(drawn.values), _set_element_shrinks(elements, drawn))
        return Gen(generate, f"{elements!r}.set({size})")

    return _sized(
        _size_gen(size, min_size, max_size),
        lambda body, n: _draw_set(elements, body, n, threshold),
        lambda drawn: _set_element_shrinks(elements, drawn),
        set,
        f"{elements!r}.set()",
    )


def text(alphabet=None, size=None, min_size: int = 0, max_size: int = 100) -> Gen:
    """Strings over `alphabet` (printable ASCII by default)."""
    return characters(alphabet).string(size=size, min_size=min_size, max_size=max_size)
