"""Tests for the legacy object migration command."""
from pathlib import Path

from scripts import migrate_objects

DATA_DIR = Path(__file__).resolve().parent / "data"

CONVERTIBLE = """\
define command {
    command_name    check_http
    command_line    $USER1$/check_http -H $HOSTADDRESS$
}

define contactgroup {
    contactgroup_name   admins
    alias               Administrators
    members             alice, bob
}
"""


def test_writes_rendered_objects_to_stdout(tmp_path, capsys):
    source = tmp_path / "objects.cfg"
    source.write_text(CONVERTIBLE)

    exit_code = migrate_objects.main([str(source)])

    captured = capsys.readouterr()
    assert exit_code == 0
    assert captured.out == (
        'object CheckCommand "check_http" {\n'
        '    command = "$USER1$/check_http -H $HOSTADDRESS$"\n'
        "}\n\n"
        'object UserGroup "admins" {\n'
        '    display_name = "Administrators"\n'
        '    assign where user.name == "alice"\n'
        '    assign where user.name == "bob"\n'
        "}\n\n"
    )
    assert "Converted 2 object(s), skipped 0" in captured.err


def test_skips_unconvertible_objects_and_fails(tmp_path, capsys):
    output = tmp_path / "migrated.conf"

    exit_code = migrate_objects.main([str(DATA_DIR / "legacy-objects.cfg"), "--output", str(output)])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert 'object HostGroup "linux-servers" {' in output.read_text()
    assert "skipped 1" in captured.err
    assert 'timeperiod 24x7: Cannot convert unknown object "24x7" of type "timeperiod"' in captured.err


def test_strict_stops_at_first_failure(tmp_path, capsys):
    output = tmp_path / "migrated.conf"

    exit_code = migrate_objects.main([str(DATA_DIR / "legacy-objects.cfg"), "-o", str(output), "--strict"])

    assert exit_code == 1
    assert not output.exists()
    assert "[migrate] Error:" in capsys.readouterr().err


def test_reports_parse_errors(tmp_path, capsys):
    source = tmp_path / "broken.cfg"
    source.write_text("define command {\n    command_name check_x\n")

    assert migrate_objects.main([str(source)]) == 1
    assert "unterminated 'command' block" in capsys.readouterr().err


def test_reports_missing_files(tmp_path, capsys):
    assert migrate_objects.main([str(tmp_path / "missing.cfg")]) == 1
    assert "cannot read" in capsys.readouterr().err
