"""Tests for modify operations: callback order, partial failures, progress, faults."""

from __future__ import annotations

import pytest

from recordsim import (
    Completion,
    ErrorCode,
    MockDatabase,
    ModifyRecordsOperation,
    ModifyResult,
    PartialFailureError,
    PerRecordDelete,
    PerRecordSave,
    RecordID,
    SaveProgress,
    Scope,
    TransactionError,
    registry,
)
from tests.fakes.factories import WAIT_SECONDS, EventRecorder, create_records, make_record


def _wire(op: ModifyRecordsOperation, recorder: EventRecorder) -> ModifyRecordsOperation:
    return (
        op.on(PerRecordSave(recorder("save")))
        .on(PerRecordDelete(recorder("delete")))
        .on(SaveProgress(recorder("progress")))
        .on(ModifyResult(recorder("result")))
        .on(Completion(recorder("completion")))
    )


class TestSaveOrdering:
    def test_two_saves_no_errors(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        a, b = make_record(name="A"), make_record(name="B")
        op = _wire(ModifyRecordsOperation(records_to_save=[a, b]), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)

        assert [lbl for lbl in recorder.labels() if lbl != "progress"] == ["save", "save", "result", "completion"]
        saves = recorder.args_for("save")
        assert [rid for rid, _ in saves] == [a.record_id, b.record_id]
        assert all(result.ok for _, result in saves)
        assert saves[0][1].value == a
        (result,) = recorder.args_for("result")[0]
        assert result.ok
        assert len(private_db.get_records()) == 2

    def test_progress_follows_each_save(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        op = _wire(ModifyRecordsOperation(records_to_save=create_records(2)), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert recorder.labels() == ["save", "progress", "save", "progress", "result", "completion"]
        assert [p for _, p in recorder.args_for("progress")] == [1.0, 1.0]

    def test_fired_kinds_recorded_on_operation(self, private_db: MockDatabase) -> None:
        op = ModifyRecordsOperation(records_to_save=create_records(1))
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert op.fired == ["PerRecordSave", "SaveProgress", "ModifyResult", "Completion"]
        assert op.database is private_db
        assert private_db.last_executed is op


class TestPartialFailure:
    def test_item_error_on_second_record(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        a, b = make_record(name="A"), make_record(name="B")
        op = _wire(ModifyRecordsOperation(records_to_save=[a, b], failing_ids=[b.record_id]), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)

        saves = recorder.args_for("save")
        assert saves[0][1].ok
        assert not saves[1][1].ok
        assert saves[1][1].error.code == ErrorCode.SERVER_REJECTED_REQUEST
        (result,) = recorder.args_for("result")[0]
        assert isinstance(result.error, PartialFailureError)
        assert set(result.error.errors_by_item) == {b.record_id}
        assert recorder.labels()[-1] == "completion"
        assert [r.record_id for r in private_db.get_records()] == [a.record_id]

    def test_partial_progress_fractions(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        records = create_records(4)
        op = _wire(ModifyRecordsOperation(records_to_save=records, failing_ids=[records[1].record_id]), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert [p for _, p in recorder.args_for("progress")] == [0.25, 0.25, 0.5, 0.75]

    def test_k_failures_give_k_entries(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        records = create_records(5)
        failing = [records[0].record_id, records[2].record_id, records[4].record_id]
        op = _wire(ModifyRecordsOperation(records_to_save=records, failing_ids=failing), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert set(result.error.errors_by_item) == set(failing)

    def test_custom_item_error(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        record = make_record()
        op = _wire(
            ModifyRecordsOperation(
                records_to_save=[record],
                failing_ids=[record.record_id],
                item_error=TransactionError(ErrorCode.QUOTA_EXCEEDED),
            ),
            recorder,
        )
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert result.error.errors_by_item[record.record_id].code == ErrorCode.QUOTA_EXCEEDED

    def test_partial_failure_supersedes_transaction_error(
        self, private_db: MockDatabase, recorder: EventRecorder
    ) -> None:
        record = make_record()
        op = _wire(
            ModifyRecordsOperation(
                records_to_save=[record],
                failing_ids=[record.record_id],
                transaction_error=TransactionError(ErrorCode.NETWORK_FAILURE),
            ),
            recorder,
        )
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert isinstance(result.error, PartialFailureError)


class TestTransactionError:
    def test_transaction_error_without_item_errors(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        op = _wire(
            ModifyRecordsOperation(
                records_to_save=create_records(2),
                transaction_error=TransactionError(ErrorCode.NETWORK_FAILURE),
            ),
            recorder,
        )
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert all(result.ok for _, result in recorder.args_for("save"))
        (result,) = recorder.args_for("result")[0]
        assert result.error == TransactionError(ErrorCode.NETWORK_FAILURE)

    def test_scope_fault_applies(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        registry.inject_faults(scope=Scope.PRIVATE, transaction_error=TransactionError(ErrorCode.ZONE_BUSY))
        op = _wire(ModifyRecordsOperation(records_to_save=create_records(1)), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert result.error.code == ErrorCode.ZONE_BUSY

    def test_operation_fault_wins_over_global(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        registry.inject_faults(transaction_error=TransactionError(ErrorCode.ZONE_BUSY))
        op = _wire(
            ModifyRecordsOperation(
                records_to_save=create_records(1),
                transaction_error=TransactionError(ErrorCode.NETWORK_FAILURE),
            ),
            recorder,
        )
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert result.error.code == ErrorCode.NETWORK_FAILURE

    def test_global_failing_ids(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        record = make_record()
        registry.inject_faults(failing_ids=[record.record_id])
        op = _wire(ModifyRecordsOperation(records_to_save=[record]), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert isinstance(result.error, PartialFailureError)


class TestDeletes:
    def test_delete_removes_and_fires_no_progress(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        records = create_records(5)
        private_db.add_records(records)
        op = _wire(ModifyRecordsOperation(record_ids_to_delete=[r.record_id for r in records[:2]]), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert recorder.labels() == ["delete", "delete", "result", "completion"]
        assert len(private_db.get_records()) == 3

    def test_delete_absent_id_succeeds(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        op = _wire(ModifyRecordsOperation(record_ids_to_delete=[RecordID()]), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        ((_, result),) = recorder.args_for("delete")
        assert result.ok

    def test_failing_delete_keeps_record(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        record = make_record()
        private_db.add_records([record])
        op = _wire(
            ModifyRecordsOperation(record_ids_to_delete=[record.record_id], failing_ids=[record.record_id]),
            recorder,
        )
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert len(private_db.get_records()) == 1
        (result,) = recorder.args_for("result")[0]
        assert isinstance(result.error, PartialFailureError)

    def test_saves_fire_before_deletes(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        existing = make_record()
        private_db.add_records([existing])
        op = ModifyRecordsOperation(records_to_save=create_records(1), record_ids_to_delete=[existing.record_id])
        op.on(PerRecordDelete(recorder("delete"))).on(PerRecordSave(recorder("save")))
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert recorder.labels() == ["save", "delete"]

    def test_empty_operation_still_completes(self, private_db: MockDatabase, recorder: EventRecorder) -> None:
        op = _wire(ModifyRecordsOperation(), recorder)
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        assert recorder.labels() == ["result", "completion"]


class TestPartialFailureBatches:
    @pytest.mark.parametrize(("batch_size", "failures"), [(2, 1), (4, 1), (4, 3), (6, 2)])
    def test_k_item_errors_supersede_transaction_error(
        self, private_db: MockDatabase, recorder: EventRecorder, batch_size: int, failures: int
    ) -> None:
        records = create_records(batch_size)
        failing = [r.record_id for r in records[:failures]]
        op = _wire(
            ModifyRecordsOperation(
                records_to_save=records,
                failing_ids=failing,
                transaction_error=TransactionError(ErrorCode.NETWORK_FAILURE),
            ),
            recorder,
        )
        private_db.submit(op).result(timeout=WAIT_SECONDS)
        (result,) = recorder.args_for("result")[0]
        assert isinstance(result.error, PartialFailureError)
        assert len(result.error.errors_by_item) == failures
        assert set(result.error.errors_by_item) == set(failing)
        assert len(private_db.get_records()) == batch_size - failures
