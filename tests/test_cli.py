import json

import pytest

import cli

REPORT_XML = """<testsuite name="{name}" tests="2" failures="{failures}" time="0.02">
  <testcase name="first" time="0.01"/>
  <testcase name="second" time="0.01">{failure}</testcase>
</testsuite>
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ("TESTLOGGER_CONFIG", "TESTLOGGER_ENABLED", "TESTLOGGER_ASCII", "TESTLOGGER_DECORATED"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def _results_dir(tmp_path, task, failures=0):
    directory = tmp_path / task
    directory.mkdir()
    failure = '<failure message="nope"/>' if failures else ""
    (directory / "TEST-Suite.xml").write_text(
        REPORT_XML.format(name=f"{task}.Suite", failures=failures, failure=failure), encoding="utf-8")
    return directory


def test_report_two_tasks_prints_total(tmp_path, capsys):
    first = _results_dir(tmp_path, "jsTest")
    second = _results_dir(tmp_path, "nativeTest")

    code = cli.main(["report", "--ascii", "--plain", str(first), str(second)])

    out = capsys.readouterr().out
    assert code == 0
    assert " T E S T S  (jsTest)" in out
    assert " T E S T S  (nativeTest)" in out
    assert " TOTAL (2 test tasks)" in out
    assert "[OK] Tests: 4, Passed: 4, Failed: 0, Skipped: 0" in out


def test_report_with_failures_exits_non_zero_and_prints_json(tmp_path, capsys):
    results = _results_dir(tmp_path, "jsTest", failures=1)

    code = cli.main(["report", "--ascii", "--plain", "--format", "json", str(results)])

    out = capsys.readouterr().out
    assert code == 1
    payload = json.loads(out[out.index("{"):])
    assert payload == {"tasks": 1, "total": 2, "passed": 1, "failed": 1, "skipped": 0}


def test_report_rejects_missing_directory(tmp_path, capsys):
    code = cli.main(["report", str(tmp_path / "missing")])
    assert code == 1
    assert "not a directory" in capsys.readouterr().err


def test_replay_event_log(tmp_path, capsys):
    log = tmp_path / "run.jsonl"
    log.write_text("\n".join(json.dumps(r) for r in [
        {"type": "test", "suite": "MathTest", "name": f"isPrime[{i}]", "status": "passed", "start": i, "end": i + 1}
        for i in range(6)
    ] + [{"type": "suite", "suite": "MathTest", "total": 6, "start": 0, "end": 6}]), encoding="utf-8")

    code = cli.main(["replay", "--ascii", "--plain", "--workers", "2", str(log)])

    out = capsys.readouterr().out
    assert code == 0
    assert "  [OK] isPrime (6 runs: 6 passed) (6ms)" in out.splitlines()


def test_replay_bad_status_is_reported(tmp_path, capsys):
    log = tmp_path / "bad.jsonl"
    log.write_text(json.dumps({"type": "test", "suite": "S", "name": "t", "status": "exploded"}), encoding="utf-8")

    code = cli.main(["replay", "--plain", str(log)])

    assert code == 1
    assert "Unknown test status" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_replay_bad_record_still_prints_build_total(tmp_path, capsys):
    good = tmp_path / "good.jsonl"
    good.write_text("\n".join(json.dumps(r) for r in [
        {"type": "test", "suite": "S", "name": "t", "status": "passed", "start": 0, "end": 1},
        {"type": "suite", "suite": "S", "total": 1, "start": 0, "end": 1},
    ]), encoding="utf-8")
    broken = tmp_path / "broken.jsonl"
    broken.write_text(json.dumps({"type": "test", "suite": "S", "name": "t", "status": "passed", "start": None}),
                      encoding="utf-8")

    code = cli.main(["replay", "--ascii", "--plain", str(good), str(broken)])

    captured = capsys.readouterr()
    assert code == 1
    assert "Error:" in captured.err
    assert "broken.jsonl" in captured.err
    assert " TOTAL (2 test tasks)" in captured.out
    assert "[OK] Tests: 1, Passed: 1, Failed: 0, Skipped: 0" in captured.out
