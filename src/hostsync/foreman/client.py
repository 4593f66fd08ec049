# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/foreman/client.py

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ..config.models import ForemanServer
from ..host.models import Host, PowerCommand
from ..utils.retry import retry_call
from .errors import (
    ForemanError,
    HTTPError,
    MalformedResponseError,
    NotFoundError,
    PowerCommandFailed,
    TransportError,
)

log = logging.getLogger("hostsync")

API_PREFIX = "/api"
API_VERSION = "2"
HOSTS = "hosts"
USER_AGENT = "hostsync"


class ForemanClient:
    """
    Small Foreman API v2 client covering the host lifecycle.

    Endpoints used:
    - POST   /api/hosts
    - GET    /api/hosts/<id>
    - PUT    /api/hosts/<id>
    - DELETE /api/hosts/<id>
    - PUT    /api/hosts/<id>/power | /api/hosts/<id>/boot
    """

    def __init__(
        self,
        server: ForemanServer,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        retry_delay: float = 1.0,
    ):
        self.server = server
        self.base_url = str(server.url).rstrip("/")
        self.session = session or requests.Session()
        if server.username:
            self.session.auth = (server.username, server.password or "")
        self.sleep = sleep
        self.retry_delay = retry_delay

    # ----------------------------
    # Transport
    # ----------------------------
    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}{API_PREFIX}/{endpoint.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Accept": f"application/json,version={API_VERSION}",
            "Content-Type": "application/json",
        }

    def _send(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        expect_body: bool = True,
    ) -> Dict[str, Any]:
        url = self._url(endpoint)
        log.debug("Sending request: %s %s %s", method, url, _redact(payload))

        try:
            resp = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.server.timeout_seconds,
                verify=self.server.verify_tls,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        log.debug("Got response: %s %s", resp.status_code, resp.text)

        if resp.status_code == 404:
            raise NotFoundError(url, resp.status_code, resp.text)
        if resp.status_code < 200 or resp.status_code > 299:
            log.error("Request to %s failed with code %d", url, resp.status_code)
            raise HTTPError(url, resp.status_code, resp.text)

        text = (resp.text or "").strip()
        if not text:
            if expect_body:
                raise MalformedResponseError(url, resp.text)
            return {}
        try:
            body = json.loads(text)
        except ValueError as e:
            raise MalformedResponseError(url, resp.text) from e
        if not isinstance(body, dict):
            raise MalformedResponseError(url, resp.text)
        return body

    def _wrap(self, host: Host) -> Dict[str, Any]:
        wrapped: Dict[str, Any] = {"host": host.to_payload()}
        if self.server.location_id is not None and self.server.organization_id is not None:
            wrapped["location_id"] = self.server.location_id
            wrapped["organization_id"] = self.server.organization_id
        return wrapped

    def _with_retry(self, what: str, retry_count: int, fn: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        def _log_retry(attempt: int, exc: Exception) -> None:
            log.warning("%s attempt %d/%d failed: %s", what, attempt, retry_count, exc)

        return retry_call(
            fn,
            retries=retry_count,
            delay=self.retry_delay,
            retry_on=(ForemanError,),
            on_retry=_log_retry,
            sleep=self.sleep,
        )

    # ----------------------------
    # Hosts
    # ----------------------------
    def create_host(self, host: Host, retry_count: int) -> Host:
        body = self._with_retry(
            f"create host {host.name}",
            retry_count,
            lambda: self._send("POST", HOSTS, self._wrap(host)),
        )
        if not body.get("id"):
            # not retried, the record may exist remotely already
            raise MalformedResponseError(self._url(HOSTS), json.dumps(body))
        created = Host.from_payload(body, template=host)
        log.debug("Created host %s with id %s", created.name, created.id)
        return created

    def read_host(self, host_id: int) -> Host:
        body = self._send("GET", f"{HOSTS}/{host_id}")
        return Host.from_payload(body)

    def update_host(self, host: Host, retry_count: int) -> Host:
        if host.id is None:
            raise ValueError(f"cannot update host '{host.name}' without an id")
        body = self._with_retry(
            f"update host {host.name}",
            retry_count,
            lambda: self._send("PUT", f"{HOSTS}/{host.id}", self._wrap(host)),
        )
        return Host.from_payload(body, template=host)

    def delete_host(self, host_id: int) -> None:
        self._send("DELETE", f"{HOSTS}/{host_id}", expect_body=False)

    def send_power_command(self, host: Host, command: PowerCommand, retry_count: int) -> None:
        if host.id is None:
            raise ValueError(f"cannot send power command to host '{host.name}' without an id")
        endpoint = f"{HOSTS}/{host.id}/{command.endpoint}"

        result = self._with_retry(
            f"{command!r} on host {host.name}",
            retry_count,
            lambda: self._send("PUT", endpoint, command.body(), expect_body=False),
        )

        log.debug("Power response: %s", result)
        if result.get("power") is False:
            raise PowerCommandFailed(f"{command!r} failed on host {host.name}: {result}")
        boot = result.get("boot")
        if isinstance(boot, dict) and boot.get("result") is False:
            raise PowerCommandFailed(f"{command!r} failed on host {host.name}: {result}")


def _redact(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    if payload is None:
        return None
    text = json.dumps(payload)
    host = payload.get("host")
    if isinstance(host, dict):
        for nic in host.get("interfaces_attributes", []):
            if nic.get("password"):
                text = text.replace(json.dumps(nic["password"]), '"<redacted>"')
    return text
