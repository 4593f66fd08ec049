# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/foreman/errors.py
from typing import Optional


class ForemanError(RuntimeError):
    """Base class for control plane failures."""


class TransportError(ForemanError):
    """Connection refused, timeout or other failure before a response arrived."""


class HTTPError(ForemanError):
    def __init__(self, endpoint: str, status_code: int, body: str):
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code} from {endpoint}: {body}")


class NotFoundError(HTTPError):
    pass


class MalformedResponseError(ForemanError):
    """Empty or undecodable body where a record was expected."""

    def __init__(self, endpoint: str, body: Optional[str] = None):
        self.endpoint = endpoint
        self.body = body
        super().__init__(f"Malformed response from {endpoint}: {body!r}")


class PowerCommandFailed(ForemanError):
    """The control plane accepted a power/boot request but reported failure."""
