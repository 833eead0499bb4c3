"""Tests for the fail-fast orchestration loop and its report."""

import io
import sys
from pathlib import Path

import pytest
from rich.console import Console

from flagmatrix.catalog import make_catalog
from flagmatrix.errors import BuildFailure, ProcessLaunchFailure
from flagmatrix.generator import Combination, count_combinations
from flagmatrix.invocation import Invocation
from flagmatrix.matrix import run_catalog
from flagmatrix.report import MatrixReport, Reporter, RunResult

BASE = ["cargo", "check", "--no-default-features"]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FakeRunner:
    """Records invocations; fails for any feature list in *fail_on*."""

    def __init__(self, fail_on: dict[str, int] | None = None) -> None:
        self.fail_on = fail_on or {}
        self.calls: list[Invocation] = []

    def __call__(self, invocation: Invocation) -> int:
        self.calls.append(invocation)
        features = invocation.args[-1] if "--features" in invocation.args else ""
        return self.fail_on.get(features, 0)


def _reporter() -> tuple[Reporter, io.StringIO, io.StringIO]:
    out, err = io.StringIO(), io.StringIO()
    reporter = Reporter(
        console=Console(file=out, highlight=False, soft_wrap=True, color_system=None),
        err_console=Console(file=err, highlight=False, soft_wrap=True, color_system=None),
    )
    return reporter, out, err


# ---------------------------------------------------------------------------
# run_catalog
# ---------------------------------------------------------------------------


class TestRunCatalog:
    def test_all_pass_invokes_every_combination(self) -> None:
        cat = make_catalog(independent=["bytes", "audio"], groups=[["image", "gif,image"]])
        runner = _FakeRunner()
        reporter, _, err = _reporter()
        report = run_catalog(BASE, cat, run=runner, reporter=reporter)
        assert report.passed
        assert report.exit_code == 0
        assert len(runner.calls) == count_combinations(cat) == 1 + 4 * 3
        assert report.attempted == report.total
        assert "All 13 combinations passed" in err.getvalue()

    def test_baseline_invoked_first_without_feature_option(self) -> None:
        runner = _FakeRunner()
        reporter, _, _ = _reporter()
        run_catalog(BASE, make_catalog(independent=["x"]), run=runner, reporter=reporter)
        assert runner.calls[0].argv == BASE
        assert runner.calls[2].argv == [*BASE, "--features", "x"]

    def test_stops_at_first_failure(self) -> None:
        cat = make_catalog(groups=[["a", "b"]])
        runner = _FakeRunner(fail_on={"a": 1})
        reporter, _, err = _reporter()
        report = run_catalog(BASE, cat, run=runner, reporter=reporter)
        assert not report.passed
        assert report.exit_code == 1
        # baseline, (), a -- "b" is never attempted
        assert len(runner.calls) == 3
        assert all(call.args[-1] != "b" for call in runner.calls)
        assert report.failure is not None
        assert report.failure.combination == Combination(flags=("a",))
        assert "FAILED: features: a (exit code 1)" in err.getvalue()
        assert "Stopped after 3/4 combinations (1 not attempted)" in err.getvalue()

    def test_failing_baseline_stops_immediately(self) -> None:
        runner = _FakeRunner(fail_on={"": 101})
        reporter, _, err = _reporter()
        report = run_catalog(BASE, make_catalog(independent=["x"]), run=runner, reporter=reporter)
        assert len(runner.calls) == 1
        assert report.exit_code == 101
        assert "no optional features" in err.getvalue()

    def test_negative_status_normalised(self) -> None:
        runner = _FakeRunner(fail_on={"x": -9})
        reporter, _, _ = _reporter()
        report = run_catalog(BASE, make_catalog(independent=["x"]), run=runner, reporter=reporter)
        assert report.exit_code == 1

    def test_launch_failure_stops_run(self) -> None:
        def _broken(invocation: Invocation) -> int:
            raise ProcessLaunchFailure(invocation, "program not found")

        reporter, _, err = _reporter()
        report = run_catalog(BASE, make_catalog(independent=["x"]), run=_broken, reporter=reporter)
        assert not report.passed
        assert report.attempted == 1
        assert report.exit_code == 1
        assert report.failure is not None and report.failure.exit_code is None
        assert "program not found" in err.getvalue()

    def test_progress_lines_in_order(self) -> None:
        reporter, out, _ = _reporter()
        run_catalog(BASE, make_catalog(independent=["x"]), run=_FakeRunner(), reporter=reporter)
        lines = [ln for ln in out.getvalue().splitlines() if not ln.startswith("$")]
        assert lines == [
            "[1/3] no optional features",
            "[2/3] features: (none)",
            "[3/3] features: x",
        ]

    def test_real_subprocess(self, tmp_path: Path) -> None:
        script = "import sys; sys.exit(5 if sys.argv[-1] == 'b' else 0)"
        reporter, _, _ = _reporter()
        report = run_catalog(
            [sys.executable, "-c", script],
            make_catalog(groups=[["a", "b"]]),
            cwd=tmp_path,
            reporter=reporter,
        )
        assert report.exit_code == 5
        assert report.attempted == 4


# ---------------------------------------------------------------------------
# MatrixReport
# ---------------------------------------------------------------------------


class TestMatrixReport:
    def _result(self, code: int | None, flags: tuple[str, ...] = ()) -> RunResult:
        return RunResult(
            combination=Combination(flags=flags),
            invocation=Invocation(program="cargo"),
            exit_code=code,
        )

    def test_empty_report_passes(self) -> None:
        assert MatrixReport(total=0).passed

    def test_to_dict(self) -> None:
        report = MatrixReport(total=5, results=[self._result(0), self._result(2, ("a",))])
        data = report.to_dict()
        assert data["passed"] is False
        assert data["attempted"] == 2
        assert data["exit_code"] == 2
        assert data["failure"]["features"] == ["a"]
        assert data["failure"]["command"] == ["cargo"]

    def test_raise_for_failure_passes_silently(self) -> None:
        MatrixReport(total=1, results=[self._result(0)]).raise_for_failure()

    def test_raise_for_failure_build(self) -> None:
        report = MatrixReport(total=3, results=[self._result(0), self._result(4, ("a",))])
        with pytest.raises(BuildFailure, match="features: a failed with exit code 4") as excinfo:
            report.raise_for_failure()
        assert excinfo.value.exit_code == 4
        assert excinfo.value.combination.flags == ("a",)

    def test_raise_for_failure_launch(self) -> None:
        failed = self._result(None)
        failed.error = "program not found"
        report = MatrixReport(total=2, results=[failed])
        with pytest.raises(ProcessLaunchFailure, match="program not found"):
            report.raise_for_failure()
