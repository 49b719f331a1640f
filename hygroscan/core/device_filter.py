"""Address filter applied to adapter-reported device addresses."""

from __future__ import annotations

from dataclasses import dataclass


def _normalize_address(address: str) -> str:
    return address.strip().lower()


def address_matches(configured: str | None, reported: str) -> bool:
    if not configured:
        return True
    return _normalize_address(configured) == _normalize_address(reported)


@dataclass(frozen=True)
class DeviceFilter:
    address: str | None = None

    def accepts(self, address: str) -> bool:
        return address_matches(self.address, address)
