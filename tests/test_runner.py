"""
End-to-end tests for the runner, CLI output and exit codes.
"""

import json

import pytest

from tenant_scope.reporting import PASS_MESSAGE
from tenant_scope.runner import main, run


VIOLATION = """\
@Injectable()
export class AppointmentsService {
  findAll(id: string) {
    return this.prisma.appointment.findMany({ where: { id } });
  }
}
"""

SUPPRESSED = """\
@Injectable()
export class AppointmentsService {
  findAll(id: string) {
    // tenant-scope-ignore
    return this.prisma.appointment.findMany({ where: { id } });
  }
}
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("TENANT_SCOPE_ROOT", raising=False)
    monkeypatch.delenv("TENANT_SCOPE_RULES", raising=False)
    monkeypatch.delenv("TENANT_SCOPE_LOG_LEVEL", raising=False)


class TestScenarios:
    """Pass/fail protocol."""

    def test_empty_root_passes(self, modules_dir, capsys):
        assert main([str(modules_dir)]) == 0
        out, err = capsys.readouterr()
        assert out == PASS_MESSAGE + "\n"
        assert err == ""

    def test_violation_fails(self, write_module, modules_dir, capsys):
        write_module("appointments/appointments.service.ts", VIOLATION)
        assert main([str(modules_dir)]) == 1
        out, err = capsys.readouterr()
        assert out == ""
        assert err.splitlines() == [
            "Tenant scope check failed with 1 finding(s):",
            "- src/modules/appointments/appointments.service.ts:4:12 "
            "prisma.appointment.findMany missing localId",
            'Use "tenant-scope-ignore" only for explicit cross-tenant cases.',
        ]

    def test_inline_ignore_passes(self, write_module, modules_dir, capsys):
        write_module("appointments/appointments.service.ts", SUPPRESSED)
        assert main([str(modules_dir)]) == 0
        assert capsys.readouterr().out == PASS_MESSAGE + "\n"

    def test_root_outside_cwd_reports_relative_path(self, tmp_path, monkeypatch, capsys):
        target = tmp_path / "scan" / "a" / "x.ts"
        target.parent.mkdir(parents=True)
        target.write_text("this.prisma.appointment.findMany({ where: { id } });\n", encoding="utf-8")
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)

        assert main([str(tmp_path / "scan")]) == 1
        assert (
            "- ../scan/a/x.ts:1:1 prisma.appointment.findMany missing localId"
            in capsys.readouterr().err.splitlines()
        )

    def test_excluded_module_passes(self, write_module, modules_dir, capsys):
        write_module("platform-admin/platform-admin.service.ts", VIOLATION)
        write_module("usage-metrics/usage-metrics.service.ts", VIOLATION)
        assert main([str(modules_dir)]) == 0

    def test_default_root_is_src_modules(self, write_module, capsys):
        write_module("appointments/appointments.service.ts", VIOLATION)
        assert main([]) == 1

    def test_root_from_env(self, write_module, modules_dir, monkeypatch, capsys):
        monkeypatch.setenv("TENANT_SCOPE_ROOT", str(modules_dir / "barbers"))
        (modules_dir / "barbers").mkdir()
        write_module("appointments/appointments.service.ts", VIOLATION)
        assert main([]) == 0


class TestReport:
    """Aggregation across files."""

    def test_findings_sorted_across_files(self, write_module, modules_dir, make_config):
        write_module("offers/offers.service.ts", VIOLATION)
        write_module("barbers/barbers.service.ts", VIOLATION + VIOLATION)

        reporter = run(make_config(modules_dir))
        assert [(f.path, f.line) for f in reporter.sorted_findings()] == [
            ("src/modules/barbers/barbers.service.ts", 4),
            ("src/modules/barbers/barbers.service.ts", 10),
            ("src/modules/offers/offers.service.ts", 4),
        ]
        assert reporter.files_scanned == 2
        assert reporter.exit_code == 1

    def test_repeat_runs_are_identical(self, write_module, modules_dir, make_config, capsys):
        write_module("offers/offers.service.ts", VIOLATION)
        write_module("roles/roles.service.ts", SUPPRESSED)
        write_module("notes/notes.service.ts", VIOLATION)

        first = main([str(modules_dir)])
        first_err = capsys.readouterr().err
        second = main([str(modules_dir)])
        second_err = capsys.readouterr().err

        assert first == second == 1
        assert first_err == second_err
        assert run(make_config(modules_dir)).findings == run(make_config(modules_dir)).findings

    def test_json_output(self, write_module, modules_dir, capsys):
        write_module("appointments/appointments.service.ts", VIOLATION)
        assert main([str(modules_dir), "--json"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data == [{
            "rule_id": "TS001",
            "path": "src/modules/appointments/appointments.service.ts",
            "line": 4,
            "col": 12,
            "receiver": "prisma",
            "model": "appointment",
            "action": "findMany",
            "missing": "localId",
        }]

    def test_strict_unknown_models_flag(self, write_module, modules_dir, capsys):
        write_module(
            "widgets/widgets.service.ts",
            "this.prisma.widget.findMany({ where: { localId } });\n",
        )
        assert main([str(modules_dir)]) == 0
        capsys.readouterr()
        assert main([str(modules_dir), "--strict-unknown-models"]) == 1
        assert "prisma.widget.findMany missing classification" in capsys.readouterr().err


class TestFatalErrors:
    """Environment errors abort the run."""

    def test_missing_root(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing")]) == 2
        assert capsys.readouterr().out == ""

    def test_unreadable_source(self, write_module, modules_dir, monkeypatch):
        write_module("offers/offers.service.ts", "")

        def _denied(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr("tenant_scope.scanner.load_source", _denied)
        assert main([str(modules_dir)]) == 2

    def test_undecodable_bytes_are_scanned(self, write_module, modules_dir):
        path = write_module("offers/offers.service.ts", "")
        path.write_bytes(b"\xff\xfe\nthis.prisma.offer.count();\n")
        assert main([str(modules_dir)]) == 1

    def test_bad_rules_file(self, modules_dir, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text("version: 2\nscopes: {}\n", encoding="utf-8")
        assert main([str(modules_dir), "--rules", str(rules)]) == 2

    def test_custom_rules_file(self, write_module, modules_dir, tmp_path):
        rules = tmp_path / "rules.yaml"
        rules.write_text(
            "version: 1\n"
            "scopes:\n"
            "  local:\n"
            "    field: localId\n"
            "    models: [offer]\n",
            encoding="utf-8",
        )
        write_module("appointments/appointments.service.ts", VIOLATION)
        assert main([str(modules_dir), "--rules", str(rules)]) == 0
