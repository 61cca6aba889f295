"""Fixtures for reconciler and lookup unit tests."""

from unittest.mock import AsyncMock

import pytest
from pv_factory import make_pv

from kmsannotator.core.interfaces.disk import DiskBackend, DiskRecord
from kmsannotator.core.interfaces.volume import VolumeClient


@pytest.fixture
def mock_backend() -> AsyncMock:
    """DiskBackend mock returning an unencrypted disk."""
    backend = AsyncMock(spec=DiskBackend)
    backend.get_zonal_disk = AsyncMock(return_value=DiskRecord(name="disk1"))
    backend.get_regional_disk = AsyncMock(return_value=DiskRecord(name="disk1"))
    return backend


@pytest.fixture
def mock_volumes() -> AsyncMock:
    """VolumeClient mock; update echoes the volume back."""
    volumes = AsyncMock(spec=VolumeClient)
    volumes.get = AsyncMock(return_value=make_pv())
    volumes.update = AsyncMock(side_effect=lambda pv: pv)
    return volumes
