import json
from pathlib import Path

import pytest

from ots_attestations import cli


@pytest.fixture(autouse=True)
def isolate_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ots_attestations.config.DEFAULT_CONFIG_PATH", tmp_path / "none.yaml")
    monkeypatch.delenv("OTS_URI_POLICY", raising=False)
    monkeypatch.delenv("OTS_LOG_LEVEL", raising=False)


def test_decode_bitcoin_text(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["decode", "0588960d73d7190102e807"])

    assert capsys.readouterr().out.strip() == "VERIFY BitcoinAttestation(height=1000)"


def test_decode_unknown_json(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["decode", "ffffffffffffffff03616263", "--format", "json"])

    decoded = json.loads(capsys.readouterr().out)
    assert decoded == {"type": "unknown", "tag": "ffffffffffffffff", "payload": "616263"}


def test_decode_from_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    record = tmp_path / "record.bin"
    record.write_bytes(bytes.fromhex("0588960d73d7190101") + b"\x05")

    cli.main(["decode", "--file", str(record)])

    assert "height=5" in capsys.readouterr().out


def test_decode_raw_uri_policy(capsys: pytest.CaptureFixture[str]) -> None:
    record = "83dfe30d2ef90c8e" + "0302" + "61ff"

    cli.main(["decode", record, "--uri-policy", "raw", "--format", "json"])

    decoded = json.loads(capsys.readouterr().out)
    assert decoded["type"] == "pending"
    assert decoded["valid_utf8"] is False
    assert decoded["raw_uri"] == "61ff"


def test_decode_error_exits_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["decode", "0588960d73d7190103e80700"])

    assert excinfo.value.code == 1
    assert "expected end of payload" in capsys.readouterr().err


def test_decode_requires_input() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["decode"])

    assert excinfo.value.code == 1


def test_encode_commands(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["encode-bitcoin", "1000"])
    cli.main(["encode-pending", "abc"])

    lines = capsys.readouterr().out.split()
    assert lines == ["0588960d73d7190102e807", "83dfe30d2ef90c8e0403616263"]


def test_tags_table(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["tags"])

    out = capsys.readouterr().out
    assert "pending | 83dfe30d2ef90c8e" in out
    assert "bitcoin | 0588960d73d71901" in out


def test_encode_pending_unencodable_uri_exits_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["encode-pending", "http://\udcff"])

    assert excinfo.value.code == 1
    assert capsys.readouterr().err.startswith("error: ")


def test_config_option_selects_uri_policy(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = tmp_path / "decoder.yaml"
    config_path.write_text("decoder:\n  uri_policy: raw\n")

    cli.main(["--config", str(config_path), "decode", "83dfe30d2ef90c8e030261ff"])

    assert capsys.readouterr().out.strip() == "VERIFY PendingAttestation(url=a\ufffd)"


def test_config_option_missing_file_exits_nonzero(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(tmp_path / "absent.yaml"), "tags"])

    assert excinfo.value.code == 1
