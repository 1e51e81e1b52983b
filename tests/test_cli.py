"""
Tests for the sample-buddy command line.
"""

import pytest

from samplebuddy.cli import build_parser, main


pytestmark = pytest.mark.integration


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """Run the CLI against a database file in a temporary directory."""
    monkeypatch.setenv('SAMPLE_BUDDY_HOME', str(tmp_path))
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    def run(*args):
        return main(['--database', url, *args])

    return run


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_scan_cycle(cli, capsys):
    assert cli('--operator', 'Mario', 'scan', 'SC-01', 'CA-01', '2501234-001') == 0
    out = capsys.readouterr().out
    assert "Shelf SC-01 created" in out
    assert "Sample 2501234-001 TQ archived" in out
    assert "Next step: shelf" in out


def test_rejected_scan_exit_status(cli, capsys):
    assert cli('scan', '2501234-001') == 1
    assert "MissingParent" in capsys.readouterr().err


def test_manual_creation_and_search(cli, capsys):
    assert cli('-o', 'Mario', 'create-shelf', 'SC-01') == 0
    assert cli('create-box', 'SC-01', 'CA-01') == 0
    assert cli('create-sample', 'SC-01', 'CA-01', '2501234-001') == 0
    assert cli('create-sample', 'SC-01', 'CA-01', '2501234-001') == 1
    capsys.readouterr()

    assert cli('search', '2501') == 0
    out = capsys.readouterr().out
    assert "2501234-001 TQ  SC-01/CA-01  [active]" in out


def test_logs_csv(cli, tmp_path, capsys):
    cli('-o', 'Mario', 'create-shelf', 'SC-01')
    csv_path = tmp_path / "log.csv"

    assert cli('logs', '--csv', str(csv_path)) == 0

    assert csv_path.exists()
    out = capsys.readouterr().out
    assert "SCAFFALE_CREATO_MANUALMENTE" in out


def test_bulk_commands(cli, capsys):
    cli('-o', 'Mario', 'create-shelf', 'SC-01')
    cli('search', 'SC-01')
    out = capsys.readouterr().out
    shelf_id = out.split("id=")[1].split()[0]

    assert cli('dispose') == 1
    assert cli('delete', '--shelf', shelf_id, '--password', 'wrong') == 1
    assert cli('dispose', '--shelf', shelf_id) == 0
    assert cli('delete', '--shelf', shelf_id, '--password', 'Francimicrob') == 0
    assert "1 items deleted" in capsys.readouterr().out


def test_export_import(cli, tmp_path):
    cli('-o', 'Mario', 'create-shelf', 'SC-01')
    export_path = tmp_path / "export.json"

    assert cli('export', str(export_path)) == 0
    assert cli('import', str(export_path)) == 0
    assert list(tmp_path.glob("backup-*.json"))


def _ids(out, label):
    """Id printed on the search line that starts with ``label``."""
    for line in out.splitlines():
        if line.strip().startswith(label):
            return line.split("id=")[1].strip()
    raise AssertionError(f"{label} not in output")


def test_rename_and_move(cli, capsys):
    cli('-o', 'Mario', 'create-shelf', 'SC-01')
    cli('create-box', 'SC-01', 'CA-01')
    cli('create-box', 'SC-01', 'CA-02')
    cli('create-sample', 'SC-01', 'CA-01', '2501234-001')
    capsys.readouterr()
    cli('search', 'SC-01')
    shelves = capsys.readouterr().out
    cli('search', '2501234')
    samples = capsys.readouterr().out
    target_box = _ids(shelves, "CA-02")
    sample_id = _ids(samples, "2501234-001 TQ")

    assert cli('rename', 'sample', sample_id, '2501234-003') == 0
    assert cli('move', 'sample', sample_id, target_box) == 0
    assert cli('move', 'sample', sample_id, 'missing') == 1
    capsys.readouterr()

    cli('search', '2501234')
    assert "2501234-003  SC-01/CA-02" in capsys.readouterr().out


def test_set_password(cli, capsys):
    cli('-o', 'Mario', 'create-shelf', 'SC-01')
    assert cli('set-password', '--old', 'Francimicrob', '--new', 'a', '--confirm', 'b') == 1
    assert "PasswordMismatch" in capsys.readouterr().err
    assert cli('set-password', '--old', 'Francimicrob', '--new', 'nuova', '--confirm', 'nuova') == 0
    capsys.readouterr()

    cli('search', 'SC-01')
    shelf_id = _ids(capsys.readouterr().out, "SC-01")
    assert cli('delete', '--shelf', shelf_id, '--password', 'Francimicrob') == 1
    assert cli('delete', '--shelf', shelf_id, '--password', 'nuova') == 0


def test_printer_settings(cli, capsys):
    assert cli('-o', 'Mario', 'printer', '0', '2') == 1
    assert "InvalidSettings" in capsys.readouterr().err
    assert cli('printer', '5', '2.5', '--name', 'Zebra') == 0
    assert "Printer settings saved" in capsys.readouterr().out
