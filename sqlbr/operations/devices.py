# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Device registry - the storage devices attached to one operation.
"""

from typing import Dict, Iterator, Tuple

import structlog

from sqlbr.models import Device, DeviceKind

logger = structlog.get_logger()


class DeviceRegistry:
    """
    Holds at most one device per device kind.

    Adding a device whose kind is already present replaces the old one
    when the name differs and is a no-op when the name matches.
    """

    def __init__(self, database_name: str = ""):
        self._database_name = database_name
        self._devices: Dict[DeviceKind, Device] = {}

    def add_device(self, device: Device) -> bool:
        """
        Upsert a device keyed by its kind.

        Returns:
            True if the registry changed
        """
        existing = self._devices.get(device.kind)

        if existing is not None and existing.name == device.name:
            logger.debug(
                "device_already_configured",
                database=self._database_name,
                device=device.name,
                kind=device.kind.value,
            )
            return False

        self._devices[device.kind] = device
        logger.debug(
            "device_replaced" if existing else "device_added",
            database=self._database_name,
            device=device.name,
            kind=device.kind.value,
        )
        return True

    def get(self, kind: DeviceKind) -> Device | None:
        return self._devices.get(kind)

    def as_tuple(self) -> Tuple[Device, ...]:
        return tuple(self._devices.values())

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices.values()))

    def __contains__(self, device: object) -> bool:
        return isinstance(device, Device) and self._devices.get(device.kind) == device
