"""Device gateway client for room IoT switches."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class DeviceClient(Protocol):
    """Interface for sending commands to physical devices."""

    async def set_device_state(self, device_id: str, dp_code: str, value: bool) -> bool:
        """Send an on/off command; return true when the gateway accepted it."""


@dataclass
class HttpxDeviceClient:
    """Device client implemented with httpx against the gateway's REST API."""

    base_url: str
    access_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, access_token: str) -> "HttpxDeviceClient":
        """Create a device client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            access_token=access_token,
            http_client=httpx.AsyncClient(),
        )

    async def set_device_state(self, device_id: str, dp_code: str, value: bool) -> bool:
        """Post a single data point command to the device."""
        url = f"{self.base_url}/v1.0/iot-03/devices/{device_id}/commands"
        payload: dict[str, object] = {"commands": [{"code": dp_code, "value": value}]}
        response = await self.http_client.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=10,
        )
        response.raise_for_status()
        body = response.json()
        return bool(body.get("success"))

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
