#!/usr/bin/env python3
"""
Ψ (ptree) Property Runner
Copyright (c) 2026 Alex P. Slaby — MIT License

Drives a property over many root seeds. On the first failure the shrink
search looks for a smaller counterexample; both the original and the
shrunk arguments are reported, then PropertyFalsified is raised.

Usage:
  python ptree_check.py demo [iterations]   Run the demo properties
  python ptree_check.py json [iterations]   Same, as a JSON report

Environment:
  PTREE_ITERATIONS   default iteration count (1000)
"""

import json
import os
import sys
import time
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from ptree import ChoiceTree, derive_seed, random_seed
from ptree_gen import Gen, GenResult, integers
from ptree_shrink import ShrinkStats, minimize


ITERATIONS_ENV = "PTREE_ITERATIONS"
DEFAULT_ITERATIONS = 1000


# ═══════════════════════════════════════════════════════════════
# OUTCOMES
# ═══════════════════════════════════════════════════════════════

@dataclass
class Success:
    args: List[Any] = field(default_factory=list)


@dataclass
class Failure:
    args: List[Any] = field(default_factory=list)
    cause: Optional[BaseException] = None


class PropertyFalsified(AssertionError):
    """Raised by the runner once a counterexample has been reported."""

    def __init__(self, seed, iteration, original: Failure, shrunk: Optional[Failure] = None):
        best = shrunk or original
        super().__init__(f"Property falsified on iteration {iteration} (seed {seed}) "
                         f"with args {best.args!r}: {best.cause!r}")
        self.seed = seed
        self.iteration = iteration
        self.original = original
        self.shrunk = shrunk


def _args_of(value) -> List[Any]:
    return list(value) if isinstance(value, tuple) else [value]


# ═══════════════════════════════════════════════════════════════
# PROPERTIES
# ═══════════════════════════════════════════════════════════════

class Property(Gen):
    """A generator of outcomes: the test body applied to each generated value."""

    def __init__(self, gen: Gen, test: Callable[[Any], None]):
        self.gen = gen
        self.test = test
        super().__init__(self._run, f"property({gen!r})")

    def _run(self, tree):
        value, shrinks = self.gen.generate(tree)
        args = _args_of(value)
        try:
            self.test(value)
        except Exception as e:
            return GenResult(Failure(args, e), shrinks)
        return GenResult(Success(args), shrinks)

    def check(self, config: Optional['TestConfig'] = None):
        check(self, config)


def property_of(gen: Gen, test: Callable[[Any], None]) -> Property:
    """Test body that raises (usually AssertionError) on failure."""
    return Property(gen, test)


def predicate_of(gen: Gen, predicate: Callable[[Any], bool]) -> Property:
    """Test body that returns False on failure."""
    def test(value):
        if not predicate(value):
            raise AssertionError("Property falsified")
    return Property(gen, test)


def run_property(gen: Gen, test: Callable[[Any], None], tree: ChoiceTree):
    """Generate at `tree` and run `test` once: Success or Failure."""
    return Property(gen, test).generate(tree).value


# ═══════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════

def default_iterations() -> int:
    raw = os.environ.get(ITERATIONS_ENV)
    if raw is None:
        return DEFAULT_ITERATIONS
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_ITERATIONS
    return value if value > 0 else DEFAULT_ITERATIONS


class TestConfig:
    """Iteration count, root seed, reporter and optional replay iteration."""

    __test__ = False  # not a pytest test class

    def __init__(self,
                 iterations=None,
                 seed=None,
                 reporter=None,
                 replay_iteration=None):
        self.iterations = default_iterations() if iterations is None else iterations
        if self.iterations < 1:
            raise ValueError(f"iterations must be positive, got {self.iterations}")
        self.seed = random_seed() if seed is None else seed
        self.reporter = reporter or PrintingReporter()
        if replay_iteration is not None and not 1 <= replay_iteration <= self.iterations:
            raise ValueError(f"replay iteration {replay_iteration} outside 1..{self.iterations}")
        self.replay_iteration = replay_iteration

    @classmethod
    def default(cls):
        return cls()

    @classmethod
    def quick(cls):
        """100 iterations."""
        return cls(iterations=100)

    @classmethod
    def replay(cls, seed, iteration, reporter=None):
        """Re-run only `iteration` of a run rooted at `seed`."""
        return cls(iterations=max(iteration, 1), seed=seed, reporter=reporter,
                   replay_iteration=iteration)

    def with_iterations(self, iterations):
        return TestConfig(iterations, self.seed, self.reporter, self.replay_iteration)

    def with_seed(self, seed):
        return TestConfig(self.iterations, seed, self.reporter, self.replay_iteration)

    def with_reporter(self, reporter):
        return TestConfig(self.iterations, self.seed, reporter, self.replay_iteration)

    def iteration_numbers(self):
        if self.replay_iteration is not None:
            return [self.replay_iteration]
        return range(1, self.iterations + 1)

    def tree_for(self, iteration) -> ChoiceTree:
        return ChoiceTree.from_seed(derive_seed(self.seed, iteration))

    def to_dict(self):
        return {
            "iterations": self.iterations,
            "seed": self.seed,
            "reporter": type(self.reporter).__name__,
            "replay_iteration": self.replay_iteration,
        }


# ═══════════════════════════════════════════════════════════════
# REPORTERS
# ═══════════════════════════════════════════════════════════════

class TestReporter:
    __test__ = False

    def report_success(self, seed, iterations):
        raise NotImplementedError

    def report_failure(self, seed, failed_iteration, original: Failure,
                       shrunk: Optional[Failure], stats: Optional[ShrinkStats] = None):
        raise NotImplementedError


class PrintingReporter(TestReporter):
    def __init__(self, stream=None, show_all_diagnostics=True):
        self.stream = stream
        self.show_all_diagnostics = show_all_diagnostics

    def _print(self, text):
        print(text, file=self.stream or sys.stdout)

    def report_success(self, seed, iterations):
        self._print(f"Success: {iterations} iterations succeeded (seed {seed})")

    def report_failure(self, seed, failed_iteration, original, shrunk, stats=None):
        lines = [f"Seed: {seed} - failed on iteration {failed_iteration}", ""]
        if shrunk is not None:
            lines += self._format("Shrunk ", shrunk)
            if stats is not None:
                lines.append(f"Shrink steps: {stats.steps} ({stats.tried} candidates tried)")
        else:
            lines.append("Warning - Could not shrink the input arguments")
        if self.show_all_diagnostics or shrunk is None:
            lines.append("")
            lines += self._format("Original ", original)
            lines.append("-----------------")
        self._print('\n'.join(lines))

    def _format(self, prefix, failure):
        lines = [f"{prefix}Arguments:", "-----------------"]
        lines += [f"Arg {i} -> {arg!r}" for i, arg in enumerate(failure.args)]
        if self.show_all_diagnostics:
            lines += ["", f"{prefix}Failure:", "-----------------", repr(failure.cause)]
        return lines


class RecordingReporter(TestReporter):
    """Keeps the last report instead of printing it."""

    def __init__(self):
        self.successes = []
        self.failure = None

    def report_success(self, seed, iterations):
        self.successes.append((seed, iterations))

    def report_failure(self, seed, failed_iteration, original, shrunk, stats=None):
        self.failure = {
            "seed": seed,
            "iteration": failed_iteration,
            "original_args": original.args,
            "shrunk_args": shrunk.args if shrunk is not None else None,
            "cause": (shrunk or original).cause,
            "stats": stats.to_dict() if stats is not None else None,
        }


class JsonReporter(TestReporter):
    """Accumulates a JSON report across several properties."""

    def __init__(self):
        self.results = {
            "started_at": time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "properties": [],
            "counterexamples": [],
        }

    def report_success(self, seed, iterations):
        self.results["properties"].append({"seed": seed, "iterations": iterations, "passed": True})

    def report_failure(self, seed, failed_iteration, original, shrunk, stats=None):
        self.results["properties"].append({"seed": seed, "iteration": failed_iteration, "passed": False})
        self.results["counterexamples"].append({
            "seed": seed,
            "iteration": failed_iteration,
            "original_args": original.args,
            "shrunk_args": shrunk.args if shrunk is not None else None,
            "error": repr((shrunk or original).cause),
            "shrink": stats.to_dict() if stats is not None else None,
        })

    def to_json(self):
        passed = sum(1 for p in self.results["properties"] if p["passed"])
        report = dict(self.results)
        report["summary"] = {
            "properties": len(self.results["properties"]),
            "passed": passed,
            "failed": len(self.results["properties"]) - passed,
        }
        report["completed_at"] = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        return json.dumps(report, indent=2, default=repr)


# ═══════════════════════════════════════════════════════════════
# RUNNER
# ═══════════════════════════════════════════════════════════════

def check(prop: Property, config: Optional[TestConfig] = None):
    """
    Run `prop` for config.iterations root trees. Engine errors during
    generation propagate. The first failure is shrunk, reported, and
    raised as PropertyFalsified chained from its cause.
    """
    config = config or TestConfig()
    reporter = config.reporter

    for iteration in config.iteration_numbers():
        tree = config.tree_for(iteration)
        outcome, _ = prop.generate(tree)
        if isinstance(outcome, Success):
            continue

        stats = ShrinkStats()
        shrunk = minimize(tree, prop.generate, stats)
        reporter.report_failure(config.seed, iteration, outcome, shrunk, stats)
        raise PropertyFalsified(config.seed, iteration, outcome, shrunk) from (shrunk or outcome).cause

    reporter.report_success(config.seed, config.iterations)


def check_all(gen: Gen, test: Callable[[Any], None], config: Optional[TestConfig] = None):
    """check(property_of(gen, test), config)"""
    check(property_of(gen, test), config)


def for_all(gen: Gen, predicate: Callable[[Any], bool], config: Optional[TestConfig] = None):
    """check(predicate_of(gen, predicate), config)"""
    check(predicate_of(gen, predicate), config)


# ═══════════════════════════════════════════════════════════════
# DEMO
# ═══════════════════════════════════════════════════════════════

def _demo_properties():
    big_ints = integers(-2**31, 2**31 - 1)

    def reversible(xs):
        assert list(reversed(xs)) == xs, "list differs from its reverse"

    def below_900(xs):
        assert max(xs) < 900, f"max is {max(xs)}"

    def sorted_is_idempotent(xs):
        assert sorted(sorted(xs)) == sorted(xs)

    return [
        ("reverse", property_of(big_ints.list(min_size=0, max_size=1000), reversible)),
        ("length list", property_of(integers(1, 1000).list(min_size=1, max_size=100), below_900)),
        ("sort idempotent", property_of(integers(-100, 100).list(), sorted_is_idempotent)),
    ]


def run_demo(iterations=100, as_json=False):
    reporter = JsonReporter() if as_json else PrintingReporter()
    if not as_json:
        print("╔═══════════════════════════════════════════════════════════╗")
        print("║  Ψ (ptree) Property Runner                                ║")
        print("╚═══════════════════════════════════════════════════════════╝\n")

    for name, prop in _demo_properties():
        if not as_json:
            print(f"  ── {name} ──\n")
        try:
            prop.check(TestConfig(iterations=iterations, reporter=reporter))
        except PropertyFalsified:
            pass
        except Exception:
            traceback.print_exc()
        if not as_json:
            print()

    if as_json:
        print(reporter.to_json())


if __name__ == "__main__":
    mode = sys.argv[1] if len(sys.argv) > 1 else "demo"
    rounds = int(sys.argv[2]) if len(sys.argv) > 2 else 100
    run_demo(rounds, as_json=(mode == "json"))
