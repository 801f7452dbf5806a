from __future__ import annotations

from domain.run_result import RunResult, RunSummary


def test_summary_counts_http_errors_as_failed() -> None:
    results = [
        RunResult(request_id=1, request_name="ok", success=True, status=200),
        RunResult(request_id=2, request_name="redirect", success=True, status=302),
        RunResult(request_id=3, request_name="missing", success=True, status=404),
        RunResult(request_id=4, request_name="down", success=False, error="Connection error"),
    ]

    summary = RunSummary.from_results(results)

    assert summary == RunSummary(total=4, passed=2, failed=2)
    assert summary.passed + summary.failed == summary.total


def test_summary_of_nothing() -> None:
    assert RunSummary.from_results([]) == RunSummary(total=0, passed=0, failed=0)
