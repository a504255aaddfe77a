"""Tests for the storage systems inventory."""

import json
from pathlib import Path

import pytest

from alphacloud.api.errors import ErrorCode, RequestStatus
from alphacloud.api.models.responses import SystemStatus
from alphacloud.api.request import EndPoint
from alphacloud.controllers.storage_systems import DeviceInventory

DATA_DIR = Path(__file__).parent / "data"


def fixture_data(name: str):
    return json.loads((DATA_DIR / name).read_text())["data"]


async def load(inventory: DeviceInventory) -> RequestStatus:
    assert inventory.reload()
    status = await inventory.wait()
    await inventory.drain()
    return status


class TestDeviceInventory:
    """Test loading the storage systems list."""

    def test_defaults(self, disk_cache):
        inventory = DeviceInventory(disk_cache=disk_cache)

        assert len(inventory) == 0
        assert inventory.primary_serial_number == ""
        assert inventory.status is RequestStatus.NO_REQUEST
        assert inventory.cached

    @pytest.mark.asyncio
    async def test_single(self, connector, fake_api, disk_cache):
        """Test a single system is converted to W and Wh."""
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)

        assert await load(inventory) is RequestStatus.FINISHED

        assert len(inventory) == 1
        system = inventory[0]
        assert system.serial_number == "SERIAL"
        assert system.status is SystemStatus.NORMAL
        assert system.inverter_model == "INVERTER"
        assert system.inverter_power == 10000
        assert system.battery_model == "BATTERY"
        assert system.battery_gross_capacity == 8190
        assert system.battery_remaining_capacity == 7800
        assert system.battery_usable_capacity == 95.0
        assert system.photovoltaic_power == 10000
        assert system.json_data == fixture_data("storagesystems_single.json")[0]
        assert inventory.primary_serial_number == "SERIAL"

        # No query parameters other than the signature headers
        assert not fake_api.requests[0].url.params

    @pytest.mark.asyncio
    async def test_multiple(self, connector, fake_api, disk_cache):
        """Test API order is kept and the first system is the primary one."""
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_multiple.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)

        await load(inventory)

        assert [system.serial_number for system in inventory] == ["SERIALA", "SERIALB", "SERIALC"]
        assert [system.battery_gross_capacity for system in inventory] == [2010, 3010, 4010]
        assert [system.battery_remaining_capacity for system in inventory] == [1800, 2800, 3800]
        assert [system.inverter_power for system in inventory] == [1000, 2000, 3000]
        assert inventory[1].status is SystemStatus.UNKNOWN
        assert inventory.primary_serial_number == "SERIALA"
        assert inventory.count == 3

    @pytest.mark.asyncio
    async def test_empty(self, connector, fake_api, disk_cache):
        fake_api.serve(EndPoint.ESS_LIST, "empty_array.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)

        assert await load(inventory) is RequestStatus.FINISHED

        assert len(inventory) == 0
        assert inventory.primary_serial_number == ""

    @pytest.mark.asyncio
    async def test_error_keeps_list(self, connector, fake_api, disk_cache):
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)
        await load(inventory)

        fake_api.serve(EndPoint.ESS_LIST, status_code=500, content=b"oops")
        assert await load(inventory) is RequestStatus.ERROR

        assert inventory.error != ErrorCode.NO_ERROR
        assert inventory.error_string.startswith("HTTP 500")
        assert inventory.primary_serial_number == "SERIAL"

    @pytest.mark.asyncio
    async def test_reset(self, connector, fake_api, disk_cache, spy):
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_multiple.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)
        await load(inventory)
        changes = spy(inventory.changed)

        inventory.reset()

        assert len(inventory) == 0
        assert ("primary_serial_number", "") in changes.calls
        assert ("count", 0) in changes.calls
        assert inventory.status is RequestStatus.NO_REQUEST


class TestDeviceInventoryDirtyCheck:
    """Test unchanged results are not materialized."""

    @pytest.mark.asyncio
    async def test_identical_result_is_silent(self, connector, fake_api, disk_cache, spy):
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_multiple.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)
        await load(inventory)
        first = inventory[0]
        resets = spy(inventory.model_reset)
        changes = spy(inventory.changed)

        await load(inventory)

        assert len(resets) == 0
        assert "primary_serial_number" not in changes.names()
        assert "count" not in changes.names()
        assert inventory[0] is first

    @pytest.mark.asyncio
    async def test_changed_result(self, connector, fake_api, disk_cache, spy):
        """Test a changed list resets the model once."""
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)
        await load(inventory)
        resets = spy(inventory.model_reset)
        changes = spy(inventory.changed)

        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_multiple.json")
        await load(inventory)

        assert len(resets) == 1
        assert changes.values("count") == [3]
        assert changes.values("primary_serial_number") == ["SERIALA"]

    @pytest.mark.asyncio
    async def test_same_count_different_content(self, connector, fake_api, disk_cache, spy):
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)
        await load(inventory)
        resets = spy(inventory.model_reset)
        changes = spy(inventory.changed)

        fake_api.serve(
            EndPoint.ESS_LIST,
            content=b'{"code": 200, "msg": "Success", "data": [{"sysSn": "SERIAL", "popv": 12}]}',
        )
        await load(inventory)

        assert len(resets) == 1
        assert "count" not in changes.names()
        assert "primary_serial_number" not in changes.names()
        assert inventory[0].photovoltaic_power == 12000


class TestDeviceInventoryDiskCache:
    """Test persisting the list on disk."""

    @pytest.mark.asyncio
    async def test_result_written(self, connector, fake_api, disk_cache):
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, disk_cache=disk_cache)

        await load(inventory)

        assert disk_cache.path.exists()
        assert json.loads(disk_cache.path.read_text()) == fixture_data("storagesystems_single.json")

    @pytest.mark.asyncio
    async def test_not_written_when_disabled(self, connector, fake_api, disk_cache):
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)

        await load(inventory)

        assert not disk_cache.path.exists()

    @pytest.mark.asyncio
    async def test_restored_on_creation(self, disk_cache, spy):
        """Test the cached list is restored without touching the status."""
        assert disk_cache.write(fixture_data("storagesystems_multiple.json"))

        inventory = DeviceInventory(disk_cache=disk_cache)
        resets = spy(inventory.model_reset)
        assert len(inventory) == 0

        await inventory.drain()

        assert len(inventory) == 3
        assert len(resets) == 1
        assert inventory.primary_serial_number == "SERIALA"
        assert inventory.status is RequestStatus.NO_REQUEST

    @pytest.mark.asyncio
    async def test_not_restored_when_disabled(self, disk_cache):
        assert disk_cache.write(fixture_data("storagesystems_multiple.json"))

        inventory = DeviceInventory(cached=False, disk_cache=disk_cache)
        await inventory.drain()

        assert len(inventory) == 0

    @pytest.mark.asyncio
    async def test_missing_cache_file(self, disk_cache):
        inventory = DeviceInventory(disk_cache=disk_cache)

        await inventory.drain()

        assert len(inventory) == 0
        assert not await inventory.restore_cache()

    @pytest.mark.asyncio
    async def test_restore_skipped_after_result(self, connector, fake_api, disk_cache):
        """Test a network result wins over a late cache read."""
        fake_api.serve(EndPoint.ESS_LIST, "storagesystems_single.json")
        inventory = DeviceInventory(connector, cached=False, disk_cache=disk_cache)
        await load(inventory)

        assert disk_cache.write(fixture_data("storagesystems_multiple.json"))

        assert not await inventory.restore_cache()
        assert inventory.primary_serial_number == "SERIAL"

    def test_no_running_loop(self, disk_cache):
        """Test creating the inventory outside an event loop skips the cache."""
        assert disk_cache.write(fixture_data("storagesystems_single.json"))

        inventory = DeviceInventory(disk_cache=disk_cache)

        assert len(inventory) == 0
