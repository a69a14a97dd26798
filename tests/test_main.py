import json

import pytest
import requests

from src import main as main_module
from src.config import EtlConfig, INIT_URL, UPDATE_URL
from src.main import main, run


TWO_MONTHS_XML = """
<gesmes:Envelope>
  <Cube>
    <Cube time="2024-02-01">
      <Cube currency="USD" rate="1.12"/>
    </Cube>
    <Cube time="2024-01-02">
      <Cube currency="USD" rate="1.10"/>
      <Cube currency="JPY" rate="160.0"/>
    </Cube>
  </Cube>
</gesmes:Envelope>
"""


@pytest.fixture
def fetched(monkeypatch):
    calls = []

    def _install(payload):
        def _fake_fetch(url, timeout_seconds=30):
            calls.append(url)
            if isinstance(payload, Exception):
                raise payload
            return payload

        monkeypatch.setattr(main_module, "fetch_text", _fake_fetch)
        return calls

    return _install


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_run_writes_month_shards_and_latest(tmp_path, fetched):
    calls = fetched(TWO_MONTHS_XML)
    config = EtlConfig.default(tmp_path)

    summary = run("init", config)

    assert calls == [INIT_URL]
    assert summary.records_parsed == 2
    assert summary.months_updated == ["2024/01", "2024/02"]
    assert summary.latest_date == "2024-02-01"
    assert summary.latest_written is True

    january = _read(tmp_path / "2024" / "01" / "data.json")
    february = _read(tmp_path / "2024" / "02" / "data.json")
    assert january == [{"date": "2024-01-02", "base": "EUR", "rates": {"USD": 1.10, "JPY": 160.0}}]
    assert february == [{"date": "2024-02-01", "base": "EUR", "rates": {"USD": 1.12}}]
    assert _read(tmp_path / "latest.json") == february[0]


def test_run_update_uses_daily_url(tmp_path, fetched):
    calls = fetched(TWO_MONTHS_XML)

    run("update", EtlConfig.default(tmp_path))

    assert calls == [UPDATE_URL]


def test_run_with_no_records_writes_nothing(tmp_path, fetched):
    fetched("<gesmes:Envelope><Cube></Cube></gesmes:Envelope>")

    summary = run("update", EtlConfig.default(tmp_path))

    assert summary.records_parsed == 0
    assert summary.months_updated == []
    assert not tmp_path.joinpath("latest.json").exists()
    assert list(tmp_path.iterdir()) == []


def test_run_rejects_unknown_mode_before_fetching(tmp_path, fetched):
    calls = fetched(TWO_MONTHS_XML)

    with pytest.raises(ValueError):
        run("refresh", EtlConfig.default(tmp_path))
    assert calls == []


def test_run_propagates_write_failure(tmp_path, fetched):
    fetched(TWO_MONTHS_XML)
    blocker = tmp_path / "2024"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(OSError):
        run("init", EtlConfig.default(tmp_path))


def test_main_success_exit_code(tmp_path, fetched):
    fetched(TWO_MONTHS_XML)

    assert main(["update", "--data-dir", str(tmp_path)]) == 0
    assert (tmp_path / "latest.json").exists()


def test_main_no_records_is_success(tmp_path, fetched):
    fetched("")

    assert main(["init", "--data-dir", str(tmp_path)]) == 0


@pytest.mark.parametrize("argv", [[], ["refresh"]])
def test_main_invalid_mode_prints_usage(tmp_path, fetched, capsys, argv):
    calls = fetched(TWO_MONTHS_XML)

    assert main(argv + ["--data-dir", str(tmp_path)]) == 1
    assert "Usage" in capsys.readouterr().err
    assert calls == []


def test_main_fetch_failure_exit_code(tmp_path, fetched, capsys):
    fetched(requests.HTTPError("503 Server Error"))

    assert main(["update", "--data-dir", str(tmp_path)]) == 1
    assert "Error: 503 Server Error" in capsys.readouterr().err


@pytest.mark.parametrize("argv", [["update", "--bogus"], ["update", "--timeout", "x"]])
def test_main_bad_options_exit_with_one(tmp_path, fetched, argv):
    calls = fetched(TWO_MONTHS_XML)

    assert main(argv + ["--data-dir", str(tmp_path)]) == 1
    assert calls == []


def test_main_writes_exact_shard_text(tmp_path, fetched):
    fetched(TWO_MONTHS_XML)

    assert main(["init", "--data-dir", str(tmp_path)]) == 0
    assert (tmp_path / "2024" / "01" / "data.json").read_text(encoding="utf-8") == (
        "[\n"
        "  {\n"
        '    "date": "2024-01-02",\n'
        '    "base": "EUR",\n'
        '    "rates": {\n'
        '      "USD": 1.1,\n'
        '      "JPY": 160\n'
        "    }\n"
        "  }\n"
        "]"
    )
