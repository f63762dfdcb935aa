"""
Shrinking challenges: end-to-end runs whose minimal counterexamples are known
"""
import pytest, sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from ptree_gen import integers, INT_MIN, INT_MAX
from ptree_check import PropertyFalsified, TestConfig, RecordingReporter, check_all


def shrunk_args(gen, test, seed, iterations=100):
    cfg = TestConfig(iterations=iterations, seed=seed, reporter=RecordingReporter())
    with pytest.raises(PropertyFalsified):
        check_all(gen, test, cfg)
    return cfg.reporter.failure["shrunk_args"]


# ═══════════════════════════════════════════
# REVERSE
# ═══════════════════════════════════════════

def reverse_is_identity(xs):
    assert list(reversed(xs)) == xs


class TestReverse:
    @pytest.mark.parametrize("seed", [1, 2, 3, 42, -7])
    def test_shrinks_to_zero_one(self, seed):
        gen = integers(INT_MIN, INT_MAX).list(min_size=0, max_size=10_000)
        assert shrunk_args(gen, reverse_is_identity, seed) == [[0, 1]]


# ═══════════════════════════════════════════
# LENGTH LIST
# ═══════════════════════════════════════════

def max_below_900(xs):
    assert max(xs) < 900


class TestLengthList:
    def test_shrinks_to_single_900(self):
        gen = integers(1, 1000).list(min_size=1, max_size=100)
        results = [shrunk_args(gen, max_below_900, seed) for seed in range(10)]
        assert all(len(args[0]) >= 1 and max(args[0]) >= 900 for args in results)
        assert sum(args == [[900]] for args in results) >= 8
