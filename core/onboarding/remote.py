"""
Remote Property API - Client for the Homeowner Property Service

PropertyAPI is the interface the submission orchestrator depends on.
HTTPPropertyAPI implements it over HTTP with a shared requests.Session.

Failure mapping:
- connection errors and timeouts -> NetworkError
- non-2xx responses, or a body with "success": false -> ServerRejection,
  carrying the server's message verbatim
"""

from __future__ import annotations

import contextlib
import logging
import mimetypes
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Optional

import requests

from core.onboarding.errors import NetworkError, PreconditionError, ServerRejection
from core.onboarding.schema import PendingUpload, UploadKind


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIMEOUT_SECONDS: Final[int] = 30
IMAGE_UPLOAD_TIMEOUT_SECONDS: Final[int] = 3 * 60
VIDEO_UPLOAD_TIMEOUT_SECONDS: Final[int] = 15 * 60

USER_AGENT: Final[str] = "PropertyOnboarding/1.0"


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class UploadedFile:
    """A file the property service has stored."""

    url: str
    key: Optional[str] = None
    original_name: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_response(cls, data: dict) -> "UploadedFile":
        return cls(
            url=data.get("url", ""),
            key=data.get("key"),
            original_name=data.get("originalName") or data.get("fileName"),
            mimetype=data.get("mimetype") or data.get("type"),
            size=data.get("size"),
        )


def extract_property_id(response: dict) -> Optional[str]:
    """
    Find the server-assigned id in a create response.

    The service has returned it as id/_id at the top level or under data.
    """
    candidates = [response]
    if isinstance(response.get("data"), dict):
        candidates.insert(0, response["data"])
    for candidate in candidates:
        for key in ("id", "_id"):
            value = candidate.get(key)
            if value:
                return str(value)
    return None


# =============================================================================
# Interface
# =============================================================================


class PropertyAPI(ABC):
    """Remote property service used by the submission orchestrator."""

    @abstractmethod
    def create_property(self, payload: dict) -> dict:
        """
        Create a property from the details section.

        Returns:
            Response body containing the new property id.
        """

    @abstractmethod
    def save_draft(self, property_id: str, payload: dict) -> dict:
        """Save one section's data against an existing property."""

    @abstractmethod
    def upload_files(
        self,
        property_id: str,
        upload_kind: UploadKind,
        files: list[PendingUpload],
        file_type: Optional[str] = None,
    ) -> list[UploadedFile]:
        """
        Upload local files to the property.

        Returns:
            One UploadedFile per input file, in order.
        """

    @abstractmethod
    def submit_for_review(self, property_id: str) -> dict:
        """Ask the service to review the property."""

    @abstractmethod
    def delete_property(self, property_id: str) -> dict:
        """Delete the remote property."""


# =============================================================================
# HTTP Implementation
# =============================================================================


def _local_path(uri: str) -> Path:
    return Path(uri[len("file://"):] if uri.startswith("file://") else uri)


class HTTPPropertyAPI(PropertyAPI):
    """
    HTTP client for the homeowner property service.

    Features:
    - Bearer token auth on a shared session
    - Longer timeouts for image and video uploads
    - No automatic retries; failures surface as typed errors
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        upload_timeout: int = IMAGE_UPLOAD_TIMEOUT_SECONDS,
        video_timeout: int = VIDEO_UPLOAD_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._upload_timeout = upload_timeout
        self._video_timeout = video_timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, timeout: Optional[int] = None, **kwargs: Any) -> dict:
        """
        Send a request and unwrap the JSON body.

        Raises:
            NetworkError: On connection failures and timeouts
            ServerRejection: On non-2xx status or success=false
        """
        url = f"{self._base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=timeout or self._timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise NetworkError(f"Could not reach property service: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.ok:
            message = body.get("message") or f"Request failed with status {response.status_code}"
            logger.warning("%s %s rejected (%s): %s", method, url, response.status_code, message)
            raise ServerRejection(message, status_code=response.status_code)

        if body.get("success") is False:
            message = body.get("message") or "Request failed"
            logger.warning("%s %s rejected: %s", method, url, message)
            raise ServerRejection(message, status_code=response.status_code)

        return body

    def create_property(self, payload: dict) -> dict:
        return self._request("POST", "/property", json=payload)

    def save_draft(self, property_id: str, payload: dict) -> dict:
        return self._request("PUT", "/property/save", json={"propertyId": property_id, **payload})

    def submit_for_review(self, property_id: str) -> dict:
        return self._request("POST", "/property/submit", json={"propertyId": property_id})

    def delete_property(self, property_id: str) -> dict:
        return self._request("DELETE", f"/property/{property_id}")

    def upload_files(
        self,
        property_id: str,
        upload_kind: UploadKind,
        files: list[PendingUpload],
        file_type: Optional[str] = None,
    ) -> list[UploadedFile]:
        """
        Upload files as multipart form data.

        Raises:
            PreconditionError: If a local file no longer exists
            NetworkError: On transport failures
            ServerRejection: If the service refuses the upload
        """
        timeout = self._video_timeout if upload_kind == UploadKind.VIDEOS else self._upload_timeout
        data = {"fileType": file_type} if file_type else None

        with contextlib.ExitStack() as stack:
            parts = []
            for upload in files:
                path = _local_path(upload.uri)
                if not path.exists():
                    raise PreconditionError(f"Local file not found: {upload.uri}")
                mimetype = (
                    upload.record.get("type")
                    or mimetypes.guess_type(path.name)[0]
                    or "application/octet-stream"
                )
                handle = stack.enter_context(path.open("rb"))
                parts.append((upload_kind.value, (upload.name or path.name, handle, mimetype)))

            body = self._request(
                "POST",
                f"/property/{property_id}/{upload_kind.value}",
                timeout=timeout,
                files=parts,
                data=data,
            )

        payload = body.get("data") if isinstance(body.get("data"), dict) else body
        uploaded = [UploadedFile.from_response(item) for item in payload.get("uploadedFiles", [])]
        if len(uploaded) != len(files):
            raise ServerRejection(
                f"Expected {len(files)} uploaded files, service returned {len(uploaded)}"
            )
        return uploaded
