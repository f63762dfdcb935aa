#!/usr/bin/env python3
"""
Ψ (ptree) Choice Trees
Copyright (c) 2026 Alex P. Slaby — MIT License

Every random decision a generator makes is read from one lazy, infinite
binary tree derived from a 64-bit seed. Shrinking re-reads the same tree
with some nodes pinned to smaller values.

Usage:
  python ptree.py demo           Render a small tree and a few reads
  python ptree.py <seed>         Render the tree rooted at <seed>
"""

import hashlib
import random
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional, Sequence


SEED_MASK = (1 << 64) - 1
LEFT_SALT = 1
RIGHT_SALT = 2


# ═══════════════════════════════════════════════════════════════
# ERRORS
# ═══════════════════════════════════════════════════════════════

class PtreeError(Exception):
    """Base class for engine errors (the generator is at fault, not the property)."""
    pass


class MismatchedChoice(PtreeError):
    """A fixed node was read with an incompatible kind or constraint."""

    def __init__(self, expected, actual, detail=""):
        message = f"Mismatched choice: expected {expected}, found {actual}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class GenerationError(PtreeError):
    """A generator exhausted its retry budget."""
    pass


class FilterLimitReached(GenerationError):
    def __init__(self, threshold, last_value=None):
        super().__init__(f"filter() exceeded its budget of {threshold} misses "
                         f"(last rejected value: {last_value!r})")
        self.threshold = threshold
        self.last_value = last_value


class ExceptionLimitReached(GenerationError):
    def __init__(self, threshold, cause):
        super().__init__(f"ignore_exceptions() exceeded its budget of {threshold} exceptions "
                         f"(last: {cause!r})")
        self.threshold = threshold
        self.cause = cause


class ImpossibleSetSize(GenerationError):
    def __init__(self, size, threshold):
        super().__init__(f"set() could not draw {size} distinct elements: "
                         f"{threshold} consecutive duplicates exhausted the retry budget")
        self.size = size
        self.threshold = threshold


# ═══════════════════════════════════════════════════════════════
# SEED DERIVATION
# ═══════════════════════════════════════════════════════════════

def _to_signed(n: int) -> int:
    n &= SEED_MASK
    return n - (1 << 64) if n >> 63 else n


def derive_seed(seed: int, salt: int) -> int:
    """Derive a child seed from a parent seed and a discriminant."""
    h = hashlib.sha256()
    h.update((seed & SEED_MASK).to_bytes(8, 'big'))
    h.update((salt & SEED_MASK).to_bytes(8, 'big'))
    return int.from_bytes(h.digest()[:8], 'big', signed=True)


def random_seed() -> int:
    return _to_signed(random.getrandbits(64))


# ═══════════════════════════════════════════════════════════════
# CHOICES
# ═══════════════════════════════════════════════════════════════

class ChoiceKind(IntEnum):
    """Scalar kinds a fixed choice can record."""
    INT  = 0
    BOOL = 1
    CHAR = 2


@dataclass(frozen=True)
class Undetermined:
    """No value pinned yet; reads draw from Random(seed)."""
    seed: int

    def __str__(self):
        return f"seed({self.seed})"


@dataclass(frozen=True)
class Fixed:
    """A recorded scalar plus the kind it was recorded as."""
    kind: ChoiceKind
    value: Any

    def __str__(self):
        return f"{self.kind.name.lower()}({self.value!r})"


# ═══════════════════════════════════════════════════════════════
# CHOICE TREE
# ═══════════════════════════════════════════════════════════════

class ChoiceTree:
    """
    Immutable node of the lazy choice tree.

    Children derive from this node's seed (salt 1 for left, 2 for right)
    on first access and are memoized. Fixing the node's own choice never
    changes that lineage. with_left / with_right return a new node holding
    an explicit replacement child.
    """

    def __init__(self, seed: int, choice=None, left: Optional['ChoiceTree'] = None,
                 right: Optional['ChoiceTree'] = None):
        self.seed = seed
        self.choice = choice if choice is not None else Undetermined(seed)
        self._left_override = left
        self._right_override = right
        self._left_cache = None
        self._right_cache = None

    @classmethod
    def from_seed(cls, seed: int) -> 'ChoiceTree':
        return cls(seed)

    @classmethod
    def new(cls) -> 'ChoiceTree':
        return cls(random_seed())

    # ── children ──

    @property
    def left(self) -> 'ChoiceTree':
        if self._left_override is not None:
            return self._left_override
        if self._left_cache is None:
            self._left_cache = ChoiceTree(derive_seed(self.seed, LEFT_SALT))
        return self._left_cache

    @property
    def right(self) -> 'ChoiceTree':
        if self._right_override is not None:
            return self._right_override
        if self._right_cache is None:
            self._right_cache = ChoiceTree(derive_seed(self.seed, RIGHT_SALT))
        return self._right_cache

    def is_visited(self, side: str) -> bool:
        """Whether the child on `side` ('L' or 'R') exists yet."""
        if side == 'L':
            return self._left_override is not None or self._left_cache is not None
        return self._right_override is not None or self._right_cache is not None

    @property
    def is_undetermined(self) -> bool:
        return isinstance(self.choice, Undetermined)

    # ── reads ──

    def read_int(self, lo: int, hi: int) -> int:
        choice = self.choice
        if isinstance(choice, Undetermined):
            return random.Random(choice.seed).randint(lo, hi)
        if isinstance(choice, Fixed):
            if choice.kind != ChoiceKind.INT:
                raise MismatchedChoice(ChoiceKind.INT.name, choice.kind.name)
            if not lo <= choice.value <= hi:
                raise MismatchedChoice(f"int in [{lo}, {hi}]", choice.value, "out of range")
            return choice.value
        raise TypeError(f"Unknown choice {choice!r}")

    def read_bool(self) -> bool:
        choice = self.choice
        if isinstance(choice, Undetermined):
            return random.Random(choice.seed).random() < 0.5
        if isinstance(choice, Fixed):
            if choice.kind != ChoiceKind.BOOL:
                raise MismatchedChoice(ChoiceKind.BOOL.name, choice.kind.name)
            return choice.value
        raise TypeError(f"Unknown choice {choice!r}")

    def read_char(self, domain: Sequence[str]) -> str:
        choice = self.choice
        if isinstance(choice, Undetermined):
            return random.Random(choice.seed).choice(domain)
        if isinstance(choice, Fixed):
            if choice.kind != ChoiceKind.CHAR:
                raise MismatchedChoice(ChoiceKind.CHAR.name, choice.kind.name)
            if choice.value not in domain:
                raise MismatchedChoice("char in domain", choice.value, "outside domain")
            return choice.value
        raise TypeError(f"Unknown choice {choice!r}")

    # ── derived trees ──

    def _copy(self, choice=None, left=None, right=None) -> 'ChoiceTree':
        node = ChoiceTree(
            self.seed,
            choice if choice is not None else self.choice,
            left if left is not None else self._left_override,
            right if right is not None else self._right_override,
        )
        # derived children only depend on the seed, so they can be shared
        node._left_cache = self._left_cache
        node._right_cache = self._right_cache
        return node

    def fix(self, kind: ChoiceKind, value) -> 'ChoiceTree':
        return self._copy(choice=Fixed(ChoiceKind(kind), value))

    def fix_int(self, value: int) -> 'ChoiceTree':
        return self.fix(ChoiceKind.INT, value)

    def fix_bool(self, value: bool) -> 'ChoiceTree':
        return self.fix(ChoiceKind.BOOL, value)

    def fix_char(self, value: str) -> 'ChoiceTree':
        return self.fix(ChoiceKind.CHAR, value)

    def with_left(self, child: 'ChoiceTree') -> 'ChoiceTree':
        return self._copy(left=child)

    def with_right(self, child: 'ChoiceTree') -> 'ChoiceTree':
        return self._copy(right=child)

    def nth_right(self, n: int) -> 'ChoiceTree':
        """The node reached after n right-advances."""
        node = self
        for _ in range(n):
            node = node.right
        return node

    def replace_at(self, index: int, subtree: 'ChoiceTree') -> 'ChoiceTree':
        """New tree whose index-th right-advance has `subtree` as its left child."""
        spine = [self]
        for _ in range(index):
            spine.append(spine[-1].right)
        node = spine[-1].with_left(subtree)
        for parent in reversed(spine[:-1]):
            node = parent.with_right(node)
        return node

    # ── equality ──

    def __eq__(self, other):
        if not isinstance(other, ChoiceTree):
            return NotImplemented
        pending = [(self, other)]
        while pending:
            a, b = pending.pop()
            if a is b:
                continue
            if a.seed != b.seed or a.choice != b.choice:
                return False
            if a._left_override is not None or b._left_override is not None:
                pending.append((a.left, b.left))
            if a._right_override is not None or b._right_override is not None:
                pending.append((a.right, b.right))
        return True

    def __hash__(self):
        return hash((self.seed, self.choice))

    def __repr__(self):
        return f"ChoiceTree(seed={self.seed}, choice={self.choice})"

    def __str__(self):
        return render_tree(self)


def build_spine(base: ChoiceTree, lefts: Sequence[ChoiceTree]) -> ChoiceTree:
    """
    Rebuild the right spine of `base` so that its k-th node has lefts[k] as
    left child. Nodes past len(lefts) keep base's structure.
    """
    if not lefts:
        return base
    spine = [base]
    for _ in range(len(lefts) - 1):
        spine.append(spine[-1].right)
    node = spine[-1].with_left(lefts[-1])
    for k in range(len(lefts) - 2, -1, -1):
        node = spine[k].with_left(lefts[k]).with_right(node)
    return node


def _fixed_for(value):
    if isinstance(value, bool):
        return Fixed(ChoiceKind.BOOL, value)
    if isinstance(value, int):
        return Fixed(ChoiceKind.INT, value)
    if isinstance(value, str) and len(value) == 1:
        return Fixed(ChoiceKind.CHAR, value)
    raise TypeError(f"Cannot pin {value!r}: only int, bool and single characters are choices")


def tree_of(value=None, left=None, right=None, seed: int = 0) -> ChoiceTree:
    """
    Build a tree with pinned values, e.g. to replay an exact case:

        tree_of(left=2, right=tree_of(left=1, right=tree_of(left=4)))

    `left` / `right` accept a ChoiceTree or a scalar to pin on that child.
    Positions left unspecified stay undetermined.
    """
    tree = ChoiceTree(seed, _fixed_for(value) if value is not None else None)
    if left is not None:
        if not isinstance(left, ChoiceTree):
            left = tree_of(value=left, seed=derive_seed(seed, LEFT_SALT))
        tree = tree.with_left(left)
    if right is not None:
        if not isinstance(right, ChoiceTree):
            right = tree_of(value=right, seed=derive_seed(seed, RIGHT_SALT))
        tree = tree.with_right(right)
    return tree


# ═══════════════════════════════════════════════════════════════
# VISUALISATION
# ═══════════════════════════════════════════════════════════════

def render_tree(tree: ChoiceTree, max_depth: int = 3, force: bool = False,
                indent: int = 0, prefix: str = "") -> str:
    """Render visited nodes (all nodes when force=True) as an indented tree."""
    pad = "   " * indent
    if indent >= max_depth:
        return f"{pad}{prefix}..."
    lines = [f"{pad}{prefix}{tree.choice}"]
    sides = [s for s in ('L', 'R') if force or tree.is_visited(s)]
    for i, side in enumerate(sides):
        child = tree.left if side == 'L' else tree.right
        branch = "└─" if i == len(sides) - 1 else "├─"
        lines.append(render_tree(child, max_depth, force, indent + 1, f"{branch}{side}: "))
    return '\n'.join(lines)


def run_demo():
    print("╔═══════════════════════════════════════════════════════════╗")
    print("║  Ψ (ptree) Choice Trees                                   ║")
    print("╚═══════════════════════════════════════════════════════════╝\n")

    root = ChoiceTree.from_seed(42)
    print(f"  int   [0, 100] at root  → {root.read_int(0, 100)}")
    print(f"  bool  at left           → {root.left.read_bool()}")
    print(f"  char  'a'..'z' at right → {root.right.read_char('abcdefghijklmnopqrstuvwxyz')}")
    print(f"  re-read root (idempotent) → {root.read_int(0, 100)}\n")

    pinned = root.with_right(root.right.fix_int(7))
    print("  ── pinned right child ──\n")
    print(render_tree(pinned))
    print()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] != "demo":
        print(render_tree(ChoiceTree.from_seed(int(sys.argv[1])), force=True))
    else:
        run_demo()
