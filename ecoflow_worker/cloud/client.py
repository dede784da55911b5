import random
import time
from dataclasses import dataclass
from typing import Any

import requests

from ecoflow_worker.cloud.signature import sign
from ecoflow_worker.config import WorkerConfig
from ecoflow_worker.errors import ApiError, NetworkError
from ecoflow_worker.utils.logger import get_logger


DEVICE_LIST_ENDPOINT = "/iot-open/sign/device/list"
QUOTA_ALL_ENDPOINT = "/iot-open/sign/device/quota/all"


@dataclass(frozen=True)
class CloudDevice:
    sn: str
    product_type: str | None
    product_name: str | None
    online: bool


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _nonce() -> str:
    return str(random.randint(100000, 999999))


class DeviceCloudClient:
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        base_url: str = "https://api-e.ecoflow.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self._access_key = access_key
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._logger = get_logger(__name__)

    @classmethod
    def from_config(cls, config: WorkerConfig) -> "DeviceCloudClient":
        access_key, secret_key = config.require_device_cloud()
        return cls(access_key, secret_key, config.ecoflow_api_url, config.request_timeout)

    def _headers(self, signed_params: dict) -> dict:
        timestamp = _timestamp_ms()
        nonce = _nonce()
        return {
            "Content-Type": "application/json",
            "accessKey": self._access_key,
            "nonce": nonce,
            "timestamp": str(timestamp),
            "sign": sign(self._secret_key, self._access_key, signed_params, timestamp, nonce),
        }

    def _send(self, method: str, endpoint: str, headers: dict, query: dict | None) -> dict:
        url = f"{self._base_url}{endpoint}"
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                params=query or None,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"EcoFlow API request failed: {exc}") from exc

        if not response.ok:
            raise NetworkError(
                f"EcoFlow API HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        try:
            envelope = response.json()
        except ValueError as exc:
            raise NetworkError("EcoFlow API returned a non-JSON body") from exc

        code = str(envelope.get("code"))
        if code != "0":
            self._logger.warning("ecoflow_api_error", endpoint=endpoint, code=code)
            raise ApiError(code, envelope.get("message") or "unknown error")
        return envelope

    def request(self, endpoint: str, method: str = "GET", params: dict | None = None) -> dict:
        params = dict(params or {})
        headers = self._headers(params)
        query = params if method.upper() == "GET" else None
        return self._send(method.upper(), endpoint, headers, query)

    def list_devices(self) -> list[CloudDevice]:
        envelope = self.request(DEVICE_LIST_ENDPOINT)
        return [
            CloudDevice(
                sn=item.get("sn"),
                product_type=item.get("productType"),
                product_name=item.get("productName"),
                online=item.get("online") == 1,
            )
            for item in envelope.get("data") or []
        ]

    def get_device_quota(self, serial: str) -> dict[str, Any] | None:
        # The quota endpoint is signed over an empty parameter set; sn rides
        # along in the query string unsigned.
        headers = self._headers({})
        envelope = self._send("GET", QUOTA_ALL_ENDPOINT, headers, {"sn": serial})
        return envelope.get("data") or None
