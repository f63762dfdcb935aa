"""
Tests for list / set / string generators and their shrink order
"""
import pytest, sys, os
from itertools import islice
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from hypothesis import given, settings
from hypothesis import strategies as st

from ptree import ChoiceTree, ImpossibleSetSize, tree_of
from ptree_gen import integers, characters, constant, sample
from ptree_collections import lists, sets, text
from ptree_shrink import depth_first_shrinks


SEEDS = st.integers(-2**63, 2**63 - 1)


def shrink_values(gen, tree):
    return [gen.generate(t).value for t in gen.generate(tree).shrinks]


def elements(*values):
    """Tree whose successive right-advances pin `values` on their left children."""
    tree = None
    for v in reversed(values):
        tree = tree_of(left=v, right=tree) if tree is not None else tree_of(left=v)
    return tree


# ═══════════════════════════════════════════
# LISTS
# ═══════════════════════════════════════════

class TestLists:
    def test_fixed_size(self):
        assert len(sample(integers().list(size=7), 3)) == 7

    def test_ranged_size(self):
        for s in range(30):
            assert 2 <= len(sample(integers().list(min_size=2, max_size=5), s)) <= 5

    def test_size_from_generator(self):
        assert len(sample(constant(1).list(size=integers(2, 2)), 0)) == 2

    def test_invalid_sizes(self):
        with pytest.raises(ValueError):
            lists(integers(), size=-1)
        with pytest.raises(ValueError):
            lists(integers(), min_size=5, max_size=2)

    def test_empty_list(self):
        value, shrinks = integers().list(size=0).generate(ChoiceTree.from_seed(0))
        assert value == []
        assert list(shrinks) == []

    def test_fixed_size_shrinks_one_element_at_a_time(self):
        gen = integers(0, 10).list(size=3)
        tree = elements(1, 2, 3)
        assert gen.generate(tree).value == [1, 2, 3]
        assert shrink_values(gen, tree) == [
            [0, 2, 3],
            [1, 0, 3], [1, 1, 3],
            [1, 2, 0], [1, 2, 2],
        ]

    def test_ranged_shrinks_tail_then_head_then_elements(self):
        gen = integers(0, 10).list(min_size=0, max_size=10)
        tree = tree_of(left=3, right=elements(1, 2, 3))
        assert gen.generate(tree).value == [1, 2, 3]
        assert shrink_values(gen, tree) == [
            [], [1, 2],
            [2, 3],
            [0, 2, 3],
            [1, 0, 3], [1, 1, 3],
            [1, 2, 0], [1, 2, 2],
        ]

    def test_strings(self):
        value = sample(text("ab", size=5), 4)
        assert len(value) == 5
        assert set(value) <= {"a", "b"}
        assert 1 <= len(sample(characters("xyz").string(min_size=1, max_size=3), 4)) <= 3

    def test_long_list(self):
        assert len(sample(integers().list(size=10_000), 1)) == 10_000

    def test_shrink_at_end_of_long_list(self):
        gen = integers(0, 10).list(size=10_000)
        tree = ChoiceTree.from_seed(2)
        original = gen.generate(tree).value
        drawn_last = tree.nth_right(9_999).left
        candidate = tree.replace_at(9_999, drawn_last.fix_int(0))
        shrunk = gen.generate(candidate).value
        assert shrunk[:-1] == original[:-1]
        assert shrunk[-1] == 0


# ═══════════════════════════════════════════
# SETS
# ═══════════════════════════════════════════

class TestSets:
    def test_one_element(self):
        gen = integers(0, 4).set()
        tree = tree_of(left=1, right=elements(4))
        assert gen.generate(tree).value == {4}
        assert shrink_values(gen, tree) == [set(), {0}, {2}, {3}]

    def test_two_elements(self):
        gen = integers(0, 10).set()
        tree = tree_of(left=2, right=elements(1, 4))
        assert gen.generate(tree).value == {1, 4}
        assert shrink_values(gen, tree) == [
            set(), {1},
            {4},
            {0, 4},
            {1, 0}, {1, 2}, {1, 3},
        ]

    def test_three_elements_skip_duplicates(self):
        gen = integers(0, 10).set()
        tree = tree_of(left=3, right=elements(1, 2, 3))
        assert gen.generate(tree).value == {1, 2, 3}
        assert shrink_values(gen, tree) == [
            set(), {1, 2},
            {2, 3},
            {0, 2, 3},
            {1, 0, 3},
            {1, 2, 0},
        ]

    def test_no_duplicate_candidates_in_full_domain(self):
        gen = integers(0, 2).set(size=3)
        tree = elements(0, 1, 2)
        value, shrinks = gen.generate(tree)
        assert value == {0, 1, 2}
        assert list(shrinks) == []

    def test_small_domain_generates(self):
        gen = integers(0, 2).set(size=3)
        for s in range(20):
            assert sample(gen, s) == {0, 1, 2}

    def test_impossible_size(self):
        with pytest.raises(ImpossibleSetSize) as exc:
            sample(integers(0, 10).set(size=100), 0)
        assert exc.value.size == 100
        assert "100" in str(exc.value)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            sets(integers(), size=-1)
        with pytest.raises(ValueError):
            sets(integers(), size=1, threshold=0)

    def test_rejected_draws_normalised(self):
        # the second draw duplicates the first and is skipped
        gen = integers(0, 10).set(size=2)
        tree = elements(5, 5, 7)
        value, shrinks = gen.generate(tree)
        assert value == {5, 7}
        for candidate in shrinks:
            shrunk = gen.generate(candidate).value
            assert len(shrunk) == 2
            assert len(value ^ shrunk) == 2

    def test_long_set(self):
        assert len(sample(integers().set(size=10_000), 1)) == 10_000

    @settings(max_examples=30, deadline=None)
    @given(st.integers(0, 30), SEEDS)
    def test_exact_size(self, size, seed):
        assert len(sample(integers(0, 100).set(size=size), seed)) == size

    @settings(max_examples=20, deadline=None)
    @given(st.integers(1, 20), SEEDS)
    def test_fixed_size_candidates_change_one_element(self, size, seed):
        gen = integers().set(size=size)
        value, shrinks = gen.generate(ChoiceTree.from_seed(seed))
        for candidate in islice(shrinks, 200):
            shrunk = gen.generate(candidate).value
            assert len(shrunk) == size
            assert len(value ^ shrunk) == 2

    @settings(max_examples=20, deadline=None)
    @given(SEEDS)
    def test_ranged_candidates_smaller_or_one_change(self, seed):
        gen = integers(0, 1000).set(min_size=0, max_size=20)
        value, shrinks = gen.generate(ChoiceTree.from_seed(seed))
        for candidate in islice(shrinks, 300):
            shrunk = gen.generate(candidate).value
            assert len(shrunk) < len(value) or len(value ^ shrunk) == 2

    @settings(max_examples=10, deadline=None)
    @given(st.integers(1, 50), SEEDS)
    def test_fixed_size_stays_fixed_depth_first(self, size, seed):
        gen = integers().set(size=size)
        values = depth_first_shrinks(gen, ChoiceTree.from_seed(seed), limit=300)
        assert all(len(v) == size for v in values)
