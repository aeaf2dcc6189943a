"""
HTTP client for the remote translation server.

This module wraps the handful of endpoints the sync flow needs: checking
whether the server copy changed, downloading it, asking the server what it
knows about a store UUID, and uploading the local copy.

Every call goes through ``_make_request``, which never raises. Failures are
returned in a standardized dictionary and surface as ``success=False`` on the
typed result objects; :class:`~game_translator.sync.SyncService` decides
whether a failure is fatal.

Endpoints:
    GET  /translations/{id}/check?hash=   -> UpdateCheck (304 = unchanged)
    GET  /translations/{id}/download      -> Download (ETag = content hash)
    GET  /translations/check-uuid?uuid=   -> UuidCheck
    POST /translations                    -> UploadResult
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class UpdateCheck:
    success: bool
    has_update: bool = False
    file_hash: str | None = None
    line_count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class Download:
    success: bool
    content: str | None = None
    file_hash: str | None = None
    not_modified: bool = False
    error: str | None = None


@dataclass(frozen=True)
class UuidCheck:
    """What the server knows about a store UUID.

    Attributes:
        exists:         The UUID is known to the server.
        role:           ``"main"``, ``"branch"`` or ``"none"`` for the caller.
        translation_id: Server id of the caller's copy, or of the main copy
                        when the caller does not own one.
        file_hash:      Hash of that copy, when reported.
    """

    success: bool
    exists: bool = False
    role: str = "none"
    translation_id: int | None = None
    file_hash: str | None = None
    error: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.role in ("main", "branch")


@dataclass(frozen=True)
class UploadRequest:
    steam_id: str | None
    game_name: str
    source_language: str
    target_language: str
    content: str
    type: str = "ai"
    status: str = "in_progress"
    notes: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "steam_id": self.steam_id,
            "game_name": self.game_name,
            "source_language": self.source_language,
            "target_language": self.target_language,
            "type": self.type,
            "status": self.status,
            "content": self.content,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class UploadResult:
    success: bool
    translation_id: int | None = None
    file_hash: str | None = None
    line_count: int = 0
    error: str | None = None


# =============================================================================
# CLIENT
# =============================================================================


def _strip_etag(value: str | None) -> str | None:
    if not value:
        return None
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"') or None


class RemoteClient:
    """
    Client for the remote translation server.

    Attributes:
        base_url: API root, without trailing slash
        token:    Bearer token, or None for anonymous access
        timeout:  Request timeout in seconds
    """

    def __init__(self, base_url: str, token: str | None = None, timeout: float = 30):
        """
        Initialize the client.

        Args:
            base_url: API root URL (e.g. "https://example.org/api/v1")
            token:    Optional bearer token sent with every request
            timeout:  Request timeout in seconds (default: 30)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token or None
        self.timeout = timeout

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def _make_request(
        self,
        method: str,
        endpoint: str,
        json: dict | None = None,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Make an HTTP request to the translation server.

        Args:
            method:   HTTP method (GET, POST)
            endpoint: API endpoint path (e.g., "/translations/12/check")
            json:     Optional JSON body
            params:   Optional query parameters
            headers:  Extra request headers

        Returns:
            Dictionary with structure:
                {
                    "success": bool,
                    "data": dict | None,      # Response data if successful
                    "text": str,              # Raw body
                    "headers": dict,          # Response headers
                    "error": str | None,      # Error message if failed
                    "status_code": int        # HTTP status code
                }

        Note:
            This method never raises exceptions. All errors are caught and
            returned in the response dictionary. Redirects are not followed,
            so the bearer token is never forwarded to another host.
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = requests.request(
                method=method.upper(),
                url=url,
                json=json,
                params=params,
                headers=self._headers(headers),
                timeout=self.timeout,
                allow_redirects=False,
            )

            try:
                data = response.json()
            except ValueError:
                data = {}

            result: dict[str, Any] = {
                "success": 200 <= response.status_code < 300 or response.status_code == 304,
                "data": data if isinstance(data, dict) else {},
                "text": response.text,
                "headers": dict(response.headers),
                "error": None,
                "status_code": response.status_code,
            }
            if not result["success"]:
                detail = result["data"].get("error") or result["data"].get("message")
                result["error"] = detail or f"Request failed with status {response.status_code}"
            return result

        except requests.exceptions.ConnectionError:
            return self._failure(f"Cannot connect to server at {self.base_url}")

        except requests.exceptions.Timeout:
            return self._failure(f"Request timed out after {self.timeout} seconds")

        except requests.exceptions.RequestException as e:
            return self._failure(f"Request failed: {e}")

    @staticmethod
    def _failure(message: str) -> dict[str, Any]:
        logger.warning("RemoteClient: %s", message)
        return {
            "success": False,
            "data": None,
            "text": "",
            "headers": {},
            "error": message,
            "status_code": 0,
        }

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def check_update(self, translation_id: int, current_hash: str | None) -> UpdateCheck:
        """
        Ask whether the server copy differs from ``current_hash``.

        Returns:
            UpdateCheck with has_update=False on HTTP 304
        """
        headers = {"If-None-Match": f'"{current_hash}"'} if current_hash else None
        result = self._make_request(
            "GET",
            f"/translations/{translation_id}/check",
            params={"hash": current_hash or ""},
            headers=headers,
        )
        if not result["success"]:
            return UpdateCheck(success=False, error=result["error"])
        if result["status_code"] == 304:
            return UpdateCheck(success=True, has_update=False, file_hash=current_hash)

        data = result["data"]
        return UpdateCheck(
            success=True,
            has_update=bool(data.get("has_update", False)),
            file_hash=data.get("file_hash"),
            line_count=int(data.get("line_count") or 0),
        )

    def download(self, translation_id: int, current_hash: str | None = None) -> Download:
        """
        Download the server copy of a translation.

        Returns:
            Download whose file_hash comes from the ETag header
        """
        headers = {"If-None-Match": f'"{current_hash}"'} if current_hash else None
        result = self._make_request(
            "GET",
            f"/translations/{translation_id}/download",
            headers=headers,
        )
        if not result["success"]:
            return Download(success=False, error=result["error"])
        if result["status_code"] == 304:
            return Download(success=True, not_modified=True, file_hash=current_hash)

        etag = next((v for k, v in result["headers"].items() if k.lower() == "etag"), None)
        return Download(
            success=True,
            content=result["text"],
            file_hash=_strip_etag(etag),
        )

    def check_uuid(self, uuid: str) -> UuidCheck:
        """
        Look up a store UUID (requires a token).

        Returns:
            UuidCheck describing whether this is a new upload, an update of
            the caller's own copy, or a fork of somebody else's
        """
        result = self._make_request(
            "GET",
            "/translations/check-uuid",
            params={"uuid": uuid},
        )
        if not result["success"]:
            error = "Not authenticated" if result["status_code"] == 401 else result["error"]
            return UuidCheck(success=False, error=error)

        data = result["data"]
        role = data.get("role") if data.get("role") in ("main", "branch") else "none"
        source = data.get("translation") if role != "none" else data.get("main")
        source = source if isinstance(source, dict) else {}
        return UuidCheck(
            success=True,
            exists=bool(data.get("exists", False)),
            role=role,
            translation_id=source.get("id"),
            file_hash=source.get("file_hash"),
        )

    def upload(self, request: UploadRequest) -> UploadResult:
        """
        Upload the local store (requires a token).

        Returns:
            UploadResult with the server id and hash of the stored copy
        """
        logger.info(
            "RemoteClient: uploading %s (%s -> %s)",
            request.game_name,
            request.source_language,
            request.target_language,
        )
        result = self._make_request("POST", "/translations", json=request.to_payload())
        if not result["success"]:
            return UploadResult(success=False, error=result["error"])

        translation = result["data"].get("translation") or {}
        return UploadResult(
            success=True,
            translation_id=translation.get("id"),
            file_hash=translation.get("file_hash"),
            line_count=int(translation.get("line_count") or 0),
        )
