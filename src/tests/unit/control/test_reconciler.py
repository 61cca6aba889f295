"""Tests for PersistentVolumeReconciler."""

from unittest.mock import AsyncMock

import pytest
from google.api_core import exceptions as gapi_exceptions
from kubernetes_asyncio.client.exceptions import ApiException
from prometheus_client import REGISTRY
from pv_factory import (
    KEY_PRINCIPAL,
    KEY_RESOURCE_NAME,
    REGIONAL_HANDLE,
    ZONAL_HANDLE,
    make_pv,
)

from kmsannotator.app.logging import get_trace_id
from kmsannotator.control.encryption_lookup import DiskEncryptionLookup
from kmsannotator.control.reconciler import (
    AnnotationKeys,
    PersistentVolumeReconciler,
    ReconcileOutcome,
    has_csi_volume_handle,
)
from kmsannotator.core.errors import LocalityResolutionError
from kmsannotator.core.interfaces.disk import DiskRecord

KEYS = AnnotationKeys.for_group("sijoma.dev")


@pytest.fixture
def reconciler(mock_volumes: AsyncMock, mock_backend: AsyncMock) -> PersistentVolumeReconciler:
    return PersistentVolumeReconciler(
        volumes=mock_volumes,
        lookup=DiskEncryptionLookup(mock_backend),
        annotations=KEYS,
    )


def _encrypted(mock_backend: AsyncMock) -> None:
    record = DiskRecord(name="disk1", kms_key_name=KEY_RESOURCE_NAME)
    mock_backend.get_zonal_disk.return_value = record
    mock_backend.get_regional_disk.return_value = record


class TestAnnotationKeys:
    def test_for_group(self):
        assert KEYS.key_name == "sijoma.dev/kms-key-name"
        assert KEYS.key_version == "sijoma.dev/kms-key-version"

    def test_alternate_namespace(self):
        keys = AnnotationKeys.for_group("example.com")
        assert keys.key_name == "example.com/kms-key-name"
        assert keys.key_version == "example.com/kms-key-version"


class TestHasCsiVolumeHandle:
    def test_csi_with_handle(self):
        assert has_csi_volume_handle(make_pv()) is True

    def test_no_csi(self):
        assert has_csi_volume_handle(make_pv(volume_handle=None)) is False

    def test_empty_handle(self):
        assert has_csi_volume_handle(make_pv(volume_handle="")) is False


class TestNotApplicable:
    """Outcomes that succeed without any write."""

    async def test_volume_not_found(self, reconciler, mock_volumes, mock_backend):
        mock_volumes.get.return_value = None

        outcome = await reconciler.reconcile("gone")

        assert outcome == ReconcileOutcome.NOT_FOUND
        mock_backend.get_zonal_disk.assert_not_awaited()
        mock_volumes.update.assert_not_awaited()

    async def test_no_csi_descriptor(self, reconciler, mock_volumes, mock_backend):
        """Volume without a CSI source is skipped without an update."""
        mock_volumes.get.return_value = make_pv(volume_handle=None)

        outcome = await reconciler.reconcile("disk1")

        assert outcome == ReconcileOutcome.NOT_MANAGED
        mock_backend.get_zonal_disk.assert_not_awaited()
        mock_volumes.update.assert_not_awaited()

    async def test_empty_volume_handle(self, reconciler, mock_volumes, mock_backend):
        mock_volumes.get.return_value = make_pv(volume_handle="")

        outcome = await reconciler.reconcile("disk1")

        assert outcome == ReconcileOutcome.NOT_MANAGED
        mock_volumes.update.assert_not_awaited()

    async def test_unencrypted_disk(self, reconciler, mock_volumes, mock_backend):
        """Disk without a KMS key leaves the volume unannotated."""
        outcome = await reconciler.reconcile("disk1")

        assert outcome == ReconcileOutcome.UNENCRYPTED
        mock_backend.get_zonal_disk.assert_awaited_once_with("proj1", "us-central1-a", "disk1")
        mock_volumes.update.assert_not_awaited()

    async def test_unencrypted_disk_keeps_stale_annotations(
        self, reconciler, mock_volumes
    ):
        pv = make_pv(annotations={KEYS.key_name: "old-key", KEYS.key_version: "1"})
        mock_volumes.get.return_value = pv

        outcome = await reconciler.reconcile("disk1")

        assert outcome == ReconcileOutcome.UNENCRYPTED
        assert pv.metadata.annotations == {KEYS.key_name: "old-key", KEYS.key_version: "1"}
        mock_volumes.update.assert_not_awaited()


class TestAnnotate:
    """Encrypted disks get key name/version annotations."""

    async def test_zonal_disk_annotated(self, reconciler, mock_volumes, mock_backend):
        _encrypted(mock_backend)

        outcome = await reconciler.reconcile("disk1")

        assert outcome == ReconcileOutcome.ANNOTATED
        mock_volumes.update.assert_awaited_once()
        written = mock_volumes.update.await_args.args[0]
        assert written.metadata.annotations == {
            "sijoma.dev/kms-key-name": KEY_PRINCIPAL,
            "sijoma.dev/kms-key-version": "3",
        }

    async def test_regional_disk_uses_regional_backend(
        self, reconciler, mock_volumes, mock_backend
    ):
        _encrypted(mock_backend)
        mock_volumes.get.return_value = make_pv(volume_handle=REGIONAL_HANDLE)

        outcome = await reconciler.reconcile("disk1")

        assert outcome == ReconcileOutcome.ANNOTATED
        mock_backend.get_regional_disk.assert_awaited_once_with("proj1", "us-central1", "disk1")
        mock_backend.get_zonal_disk.assert_not_awaited()

    async def test_existing_annotations_preserved(self, reconciler, mock_volumes, mock_backend):
        _encrypted(mock_backend)
        mock_volumes.get.return_value = make_pv(annotations={"team": "storage"})

        await reconciler.reconcile("disk1")

        written = mock_volumes.update.await_args.args[0]
        assert written.metadata.annotations["team"] == "storage"
        assert written.metadata.annotations[KEYS.key_version] == "3"

    async def test_existing_values_overwritten(self, reconciler, mock_volumes, mock_backend):
        _encrypted(mock_backend)
        mock_volumes.get.return_value = make_pv(
            annotations={KEYS.key_name: "old-key", KEYS.key_version: "1"}
        )

        await reconciler.reconcile("disk1")

        written = mock_volumes.update.await_args.args[0]
        assert written.metadata.annotations[KEYS.key_name] == KEY_PRINCIPAL
        assert written.metadata.annotations[KEYS.key_version] == "3"

    async def test_only_annotations_change(self, reconciler, mock_volumes, mock_backend):
        _encrypted(mock_backend)

        await reconciler.reconcile("disk1")

        written = mock_volumes.update.await_args.args[0]
        assert written.metadata.name == "disk1"
        assert written.metadata.resource_version == "1"
        assert written.spec.csi.volume_handle == ZONAL_HANDLE

    async def test_write_issued_when_values_unchanged(
        self, reconciler, mock_volumes, mock_backend
    ):
        """At-least-once write: matching annotations still trigger an update."""
        _encrypted(mock_backend)
        mock_volumes.get.side_effect = lambda name: make_pv(
            annotations={KEYS.key_name: KEY_PRINCIPAL, KEYS.key_version: "3"}
        )

        assert await reconciler.reconcile("disk1") == ReconcileOutcome.ANNOTATED
        assert await reconciler.reconcile("disk1") == ReconcileOutcome.ANNOTATED

        assert mock_volumes.update.await_count == 2
        first, second = (call.args[0] for call in mock_volumes.update.await_args_list)
        assert first.metadata.annotations == second.metadata.annotations

    async def test_custom_annotation_namespace(self, mock_volumes, mock_backend):
        _encrypted(mock_backend)
        reconciler = PersistentVolumeReconciler(
            volumes=mock_volumes,
            lookup=DiskEncryptionLookup(mock_backend),
            annotations=AnnotationKeys(key_name="a/key", key_version="a/version"),
        )

        await reconciler.reconcile("disk1")

        written = mock_volumes.update.await_args.args[0]
        assert written.metadata.annotations == {"a/key": KEY_PRINCIPAL, "a/version": "3"}

    async def test_annotation_write_counted(self, reconciler, mock_backend):
        _encrypted(mock_backend)
        before = REGISTRY.get_sample_value("kmsannotator_annotation_writes_total") or 0.0

        await reconciler.reconcile("disk1")

        after = REGISTRY.get_sample_value("kmsannotator_annotation_writes_total")
        assert after == before + 1


class TestFailures:
    """Failures propagate to the host framework unmodified."""

    async def test_ambiguous_locality(self, reconciler, mock_volumes, mock_backend):
        """Locality that is neither zone nor region fails before any disk read."""
        mock_volumes.get.return_value = make_pv(
            volume_handle="projects/proj1/zones/us-central1-x-y/disks/disk1"
        )

        with pytest.raises(LocalityResolutionError):
            await reconciler.reconcile("disk1")

        mock_backend.get_zonal_disk.assert_not_awaited()
        mock_backend.get_regional_disk.assert_not_awaited()
        mock_volumes.update.assert_not_awaited()

    async def test_backend_not_found(self, reconciler, mock_volumes, mock_backend):
        """Disk read not-found propagates as-is."""
        error = gapi_exceptions.NotFound("disk not found")
        mock_backend.get_zonal_disk.side_effect = error

        with pytest.raises(gapi_exceptions.NotFound) as exc_info:
            await reconciler.reconcile("disk1")

        assert exc_info.value is error
        mock_volumes.update.assert_not_awaited()

    async def test_update_conflict_propagates(self, reconciler, mock_volumes, mock_backend):
        _encrypted(mock_backend)
        mock_volumes.update.side_effect = ApiException(status=409, reason="Conflict")

        with pytest.raises(ApiException) as exc_info:
            await reconciler.reconcile("disk1")

        assert exc_info.value.status == 409
        assert mock_volumes.update.await_count == 1

    async def test_get_error_propagates(self, reconciler, mock_volumes):
        mock_volumes.get.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(ApiException):
            await reconciler.reconcile("disk1")

    async def test_failure_counted_by_error_class(self, reconciler, mock_backend):
        mock_backend.get_zonal_disk.side_effect = gapi_exceptions.NotFound("gone")
        labels = {"error_class": "permanent"}
        before = REGISTRY.get_sample_value("kmsannotator_reconcile_failures_total", labels) or 0.0

        with pytest.raises(gapi_exceptions.NotFound):
            await reconciler.reconcile("disk1")

        after = REGISTRY.get_sample_value("kmsannotator_reconcile_failures_total", labels)
        assert after == before + 1


class TestTraceContext:
    async def test_trace_cleared_after_reconcile(self, reconciler):
        await reconciler.reconcile("disk1")
        assert get_trace_id() is None

    async def test_trace_cleared_after_failure(self, reconciler, mock_volumes):
        mock_volumes.get.side_effect = ApiException(status=500)

        with pytest.raises(ApiException):
            await reconciler.reconcile("disk1")

        assert get_trace_id() is None


def _outcome_count(outcome: ReconcileOutcome) -> float:
    return (
        REGISTRY.get_sample_value("kmsannotator_reconcile_total", {"outcome": outcome.value})
        or 0.0
    )


class TestOutcomeMetrics:
    """Each successful pass is counted under its outcome."""

    @pytest.mark.parametrize(
        "pv,encrypted,expected",
        [
            (None, False, ReconcileOutcome.NOT_FOUND),
            (make_pv(volume_handle=None), False, ReconcileOutcome.NOT_MANAGED),
            (make_pv(), False, ReconcileOutcome.UNENCRYPTED),
            (make_pv(volume_handle=REGIONAL_HANDLE), True, ReconcileOutcome.ANNOTATED),
        ],
    )
    async def test_outcome_counted(
        self, reconciler, mock_volumes, mock_backend, pv, encrypted, expected
    ):
        mock_volumes.get.return_value = pv
        if encrypted:
            _encrypted(mock_backend)
        before = {outcome: _outcome_count(outcome) for outcome in ReconcileOutcome}

        assert await reconciler.reconcile("disk1") == expected

        for outcome in ReconcileOutcome:
            delta = 1 if outcome == expected else 0
            assert _outcome_count(outcome) == before[outcome] + delta

    async def test_failure_not_counted_as_outcome(self, reconciler, mock_backend):
        mock_backend.get_zonal_disk.side_effect = gapi_exceptions.NotFound("gone")
        before = {outcome: _outcome_count(outcome) for outcome in ReconcileOutcome}

        with pytest.raises(gapi_exceptions.NotFound):
            await reconciler.reconcile("disk1")

        assert {outcome: _outcome_count(outcome) for outcome in ReconcileOutcome} == before
