"""
Tests for the SampleManager facade
==================================

End-to-end behaviour of the operations used by the window and the command
line, backed by an in-memory database.
"""

import json
from unittest import mock

import pytest

from database.auth import DEFAULT_DELETE_PASSWORD
from samplebuddy.inventory.audit import AuditAction
from samplebuddy.inventory.models import ItemKind, ItemStatus
from samplebuddy.inventory.serialization import state_to_dict
from samplebuddy.inventory.workflow import ArchivingStep
from samplebuddy.manager import SampleManager


pytestmark = pytest.mark.integration


def _archive(manager, *codes):
    return [manager.on_scan(code) for code in codes]


class TestScanning:

    def test_archiving_cycle(self, manager):
        results = _archive(manager, "SC-01", "CA-01", "2501234-001")

        assert all(r['success'] for r in results)
        assert results[0]['message'] == "Shelf SC-01 created"
        assert results[1]['status'].step == ArchivingStep.SAMPLE
        assert results[2]['event'].code == "2501234-001 TQ"
        assert manager.archiving_status().step == ArchivingStep.SHELF

    def test_scan_persists(self, manager, gateway):
        _archive(manager, "SC-01")
        saved = gateway.load()
        assert [saved.shelves[sid].code for sid in saved.shelf_ids] == ["SC-01"]

    def test_rescan_selects_existing_shelf(self, manager):
        _archive(manager, "SC-01")
        manager.reset_archiving()
        result = manager.on_scan("SC-01")
        assert result['message'] == "Shelf SC-01 selected"
        assert len(manager.get_state().shelf_ids) == 1

    def test_rejected_scan_keeps_cursor(self, manager):
        _archive(manager, "SC-01", "CA-01", "2501234-001", "SC-01", "CA-01")
        before = manager.archiving_status()

        result = manager.on_scan("2501234-001")

        assert result == {'success': False, 'error': result['error'], 'code': 'DuplicateSample'}
        assert manager.archiving_status() == before

    def test_sample_before_shelf(self, manager):
        result = manager.on_scan("2501234-001")
        assert result['code'] == 'MissingParent'
        assert manager.archiving_status().step == ArchivingStep.SHELF

    def test_empty_code(self, manager):
        assert manager.on_scan("   ")['code'] == 'InvalidCode'

    def test_codes_are_trimmed(self, manager):
        manager.on_scan("  SC-01 \n")
        assert manager.archiving_status().current_shelf_code == "SC-01"

    def test_al_shelf_and_box(self, manager):
        results = _archive(manager, "AL-01", "AL-B1", "2509999-001")
        assert results[2]['event'].code == "2509999-001 MC"


class TestEditing:

    def test_create_and_rename(self, manager):
        assert manager.on_create_shelf("SC-01")['success']
        box = manager.on_create_box("SC-01", "CA-01")['box']
        assert manager.on_create_shelf("SC-01")['code'] == 'AlreadyExists'

        result = manager.on_rename(ItemKind.BOX, box.id, "CA-10")

        assert result['success']
        assert manager.get_state().boxes[box.id].code == "CA-10"

    def test_create_sample_duplicate(self, manager):
        manager.on_create_shelf("SC-01")
        manager.on_create_box("SC-01", "CA-01")
        assert manager.on_create_sample("SC-01", "CA-01", "2501234-001")['success']
        assert manager.on_create_sample("SC-01", "CA-01", "2501234-001")['code'] == 'DuplicateSample'

    def test_move_failures(self, manager):
        manager.on_create_shelf("SC-01")
        box = manager.on_create_box("SC-01", "CA-01")['box']

        assert manager.on_move(ItemKind.BOX, box.id, "missing")['code'] == 'NotFound'
        assert manager.on_move(ItemKind.SHELF, box.shelf_id, box.shelf_id)['code'] == 'InvalidMove'

    def test_rename_unknown(self, manager):
        assert manager.on_rename("sample", "missing", "X")['code'] == 'NotFound'


class TestBulk:

    def test_dispose_then_delete_with_default_password(self, manager):
        _archive(manager, "SC-01", "CA-01", "2501234-001")
        shelf_id = manager.get_state().shelf_ids[0]

        disposed = manager.on_bulk_dispose({"shelves": [shelf_id]})
        deleted = manager.on_bulk_delete({"shelves": [shelf_id]}, DEFAULT_DELETE_PASSWORD)

        assert disposed['result'].count == 1
        assert deleted['success']
        state = manager.get_state()
        assert all(s.status == ItemStatus.DELETED for s in state.samples.values())

    def test_delete_wrong_password(self, manager):
        _archive(manager, "SC-01", "CA-01", "2501234-001")
        before = state_to_dict(manager.get_state())

        result = manager.on_bulk_delete({"shelves": manager.get_state().shelf_ids}, "wrong")

        assert result['code'] == 'AuthFailed'
        assert state_to_dict(manager.get_state()) == before


class TestSettings:

    def test_change_password(self, manager):
        result = manager.change_password(DEFAULT_DELETE_PASSWORD, "nuova", "nuova")
        assert result['success']
        assert manager.get_state().logs[0].action == AuditAction.PASSWORD_CHANGED.value
        assert manager.authenticator.authenticate("nuova")

    @pytest.mark.parametrize("old,new,confirm,code", [
        (DEFAULT_DELETE_PASSWORD, "nuova", "diversa", "PasswordMismatch"),
        ("wrong", "nuova", "nuova", "AuthFailed"),
        (DEFAULT_DELETE_PASSWORD, "no", "no", "InvalidPassword"),
    ])
    def test_change_password_rejected(self, manager, old, new, confirm, code):
        logs_before = len(manager.get_state().logs)
        result = manager.change_password(old, new, confirm)
        assert result['code'] == code
        assert len(manager.get_state().logs) == logs_before

    def test_printer_settings(self, manager, gateway):
        assert manager.update_printer_settings(6, 3, "Zebra GK420")['success']
        assert gateway.load().settings.printer_settings.selected_printer == "Zebra GK420"
        assert manager.update_printer_settings(0, 3)['code'] == 'InvalidSettings'


class TestSession:

    def test_logout_and_login(self, manager):
        _archive(manager, "SC-01")
        assert manager.logout()['success']
        assert manager.current_operator is None
        assert manager.archiving_status().step == ArchivingStep.SHELF
        assert manager.logout()['code'] == 'NotLoggedIn'
        assert manager.login("  ")['code'] == 'InvalidOperator'

        manager.login("Luigi")
        assert manager.get_state().logs[0].action == AuditAction.LOGIN.value
        assert manager.get_state().logs[0].operator == "Luigi"

    def test_state_survives_restart(self, manager, gateway, clock, id_factory):
        _archive(manager, "SC-01", "CA-01", "2501234-001")

        restarted = SampleManager(gateway=gateway, clock=clock, id_factory=id_factory)

        assert state_to_dict(restarted.get_state()) == state_to_dict(manager.get_state())


class TestExportImport:

    def test_export_and_import(self, manager, tmp_path, backup_dir):
        _archive(manager, "SC-01", "CA-01", "2501234-001")
        exported = manager.export_database(tmp_path / "export.json")
        assert exported['success']
        assert manager.get_state().logs[0].action == AuditAction.DATABASE_EXPORTED.value

        document = json.loads((tmp_path / "export.json").read_text(encoding='utf-8'))
        assert document["shelves"][0]["code"] == "SC-01"

        manager.on_create_shelf("SC-02")
        manager.logout()
        manager.login("Luigi")
        manager.on_scan("SC-02")

        result = manager.import_database(tmp_path / "export.json")

        assert result['success']
        state = manager.get_state()
        assert [state.shelves[sid].code for sid in state.shelf_ids] == ["SC-01"]
        assert state.current_operator == "Luigi"
        assert state.logs[0].action == AuditAction.DATABASE_IMPORTED.value
        assert manager.archiving_status().step == ArchivingStep.SHELF
        assert len(list(backup_dir.glob("backup-*.json"))) == 1

    def test_import_with_repeated_log_ids_keeps_saving(self, manager, gateway, tmp_path):
        log = {"timestamp": "2023-11-14T22:13:20.000Z", "operator": "Anna",
               "itemType": "shelf", "itemCode": "SC-01", "id": "1700000000000"}
        document = {
            "currentOperator": "Anna",
            "shelves": [],
            "logs": [
                dict(log, action="SCAFFALE_CREATO", details="Shelf created: SC-01"),
                dict(log, action="SCAFFALE_SELEZIONATO", details="Shelf selected: SC-01"),
            ],
        }
        path = tmp_path / "legacy.json"
        path.write_text(json.dumps(document), encoding='utf-8')

        assert manager.import_database(path)['success']
        result = manager.on_scan("SC-02")

        assert result['success']
        assert result['saved'] is True
        assert "SC-02" in [s["code"] for s in gateway.export_document()["shelves"]]

    def test_import_invalid_file(self, manager, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("nope", encoding='utf-8')
        before = state_to_dict(manager.get_state())

        result = manager.import_database(path)

        assert result['code'] == 'InvalidSnapshot'
        assert state_to_dict(manager.get_state()) == before

    def test_import_missing_file(self, manager, tmp_path):
        assert manager.import_database(tmp_path / "missing.json")['code'] == 'IOError'


class TestQueries:

    def test_search_report_and_print(self, manager):
        _archive(manager, "SC-01", "CA-01", "2501234-001")
        sample_id = next(iter(manager.get_state().samples))

        results = manager.search("2501")
        assert [hit.sample.code for hit in results.samples] == ["2501234-001 TQ"]

        report = manager.report({"samples": [sample_id]})
        assert "SAMPLE: 2501234-001 TQ" in report
        assert manager.get_state().logs[0].action == AuditAction.REPORT_GENERATED.value

        printed = manager.print_log()
        assert printed.startswith("SAMPLE MANAGEMENT ACTIVITY LOG")
        assert manager.get_state().logs[0].action == AuditAction.LOG_PRINTED.value


def test_persist_error_callback(gateway, clock, id_factory):
    errors = []
    manager = SampleManager(gateway=gateway, clock=clock, id_factory=id_factory,
                            on_persist_error=errors.append)
    manager.login("Mario")

    with mock.patch.object(gateway.db, 'session', side_effect=OSError("read-only")):
        result = manager.on_create_shelf("SC-01")

    assert result['success']
    assert result['saved'] is False
    assert len(errors) == 1
    assert manager.get_state().shelves
