"""API wrapper for the Foundry REST API relay.

This module wraps a requests session bound to the relay and provides error
translation from HTTP exceptions to our typed exception hierarchy. Every
remote operation is exactly one HTTP call: either a direct verb+resource
endpoint (create, update, upload, file listing) or the generic execute-js
endpoint that runs a script inside the connected Foundry client.

Nothing here retries. Callers decide whether a failure degrades or aborts.
"""

import logging
import re
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout

from .auth import Authenticator, Credentials
from .errors import APIAccessError, APIUnreachableError, InvalidCredentialsError

logger = logging.getLogger(__name__)


class RelayAPI:
    """Thin wrapper around the relay HTTP endpoints with error translation.

    The requests session is created lazily on first use so constructing the
    wrapper never touches the environment or the network.

    Example:
        >>> api = RelayAPI(Authenticator())
        >>> api.get_status()
        True
        >>> api.select_client(api.list_clients()[0]['id'])
        >>> api.execute_script("return game.world.id")
    """

    def __init__(self, authenticator: Authenticator, timeout: int = 30):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator used to load the relay credentials
            timeout: Per-request timeout in seconds
        """
        self._authenticator = authenticator
        self._timeout = timeout
        self._session: Optional[requests.Session] = None
        self._credentials: Optional[Credentials] = None
        self.client_id: Optional[str] = None

    @property
    def credentials(self) -> Credentials:
        if self._credentials is None:
            self._credentials = self._authenticator.get_credentials()
        return self._credentials

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session carrying the API key header.

        Raises:
            InvalidCredentialsError: If credentials are missing
        """
        if self._session is None:
            session = requests.Session()
            session.headers.update({"x-api-key": self.credentials.api_key})
            self._session = session
        return self._session

    def close(self) -> None:
        """Release the underlying HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def select_client(self, client_id: str) -> None:
        """Target all client-scoped calls at the given Foundry client."""
        self.client_id = client_id

    def _require_client(self, operation: str) -> str:
        if not self.client_id:
            raise APIAccessError(f"No Foundry client selected for {operation}")
        return self.client_id

    def _sanitize_credentials(self, text: str) -> str:
        """Mask API keys in error messages before they reach a log.

        Args:
            text: The error message or log text to sanitize

        Returns:
            str: Sanitized text with the key masked
        """
        if not text:
            return text

        sanitized = re.sub(
            r'x-api-key["\']?\s*[:=]\s*["\']?[^"\'\s,}]+',
            'x-api-key: ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        if self._credentials is not None and self._credentials.api_key:
            sanitized = sanitized.replace(self._credentials.api_key, '***REDACTED***')
        return sanitized

    def _endpoint(self) -> str:
        if self._credentials is not None:
            return self._credentials.relay_url
        return "unknown"

    def _translate_error(self, exception: Exception, operation: str) -> Exception:
        """Translate HTTP exceptions to typed relay exceptions.

        Args:
            exception: The original exception from requests
            operation: Description of the operation that failed (for logging)

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (Timeout, ConnectionError)):
            return APIUnreachableError(endpoint=self._endpoint())

        status_code = None
        response = getattr(exception, 'response', None)
        if response is not None and hasattr(response, 'status_code'):
            status_code = response.status_code

        if status_code in (401, 403):
            return InvalidCredentialsError(
                endpoint=self._endpoint(),
                reason=f"relay rejected the key during {operation}"
            )

        safe_error_msg = self._sanitize_credentials(str(exception))
        logger.error(f"Relay operation failed: {operation} - {safe_error_msg}")
        if status_code is not None:
            return APIAccessError(
                f"Relay API failure during {operation} (HTTP {status_code})",
                status_code=status_code
            )
        return APIAccessError(f"Relay API failure during {operation}")

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Issue one relay call and decode its JSON body.

        Raises:
            InvalidCredentialsError: If the key is missing or rejected
            APIUnreachableError: If the relay cannot be reached
            APIAccessError: If the call fails or returns a non-JSON body
        """
        session = self._get_session()
        url = f"{self.credentials.relay_url}{path}"
        logger.debug(f"{method} {path} ({operation})")
        try:
            response = session.request(
                method,
                url,
                params=params,
                json=json_body,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            if not response.content:
                return {}
            payload = response.json()
        except (RequestException, ValueError) as e:
            raise self._translate_error(e, operation) from e

        if not isinstance(payload, dict):
            raise APIAccessError(
                f"Relay API returned {type(payload).__name__} during {operation}, expected an object"
            )
        return payload

    def get_status(self) -> bool:
        """Check that the relay answers and reports itself healthy."""
        payload = self._request("GET", "/api/status", "get_status")
        return payload.get("status") == "ok"

    def list_clients(self) -> List[Dict[str, Any]]:
        """List the Foundry clients currently connected to the relay."""
        payload = self._request("GET", "/clients", "list_clients")
        clients = payload.get("clients") or []
        return [client for client in clients if isinstance(client, dict)]

    def execute_script(self, script: str, operation: str = "execute_script") -> Any:
        """Run a script inside the connected Foundry client.

        Args:
            script: JavaScript source executed by the relay module
            operation: Name used in logs and error messages

        Returns:
            The ``result`` member of the relay response (may be None)
        """
        client_id = self._require_client(operation)
        payload = self._request(
            "POST",
            "/execute-js",
            operation,
            params={"clientId": client_id},
            json_body={"script": script},
        )
        return payload.get("result")

    def create_entity(
        self,
        entity_type: str,
        data: Dict[str, Any],
        folder_id: Optional[str] = None,
    ) -> str:
        """Create a world document and return its bare id.

        The relay answers with ``{"uuid": "JournalEntry.<id>"}``; only the
        last dot-separated part is returned.

        Raises:
            APIAccessError: If the response carries no uuid
        """
        client_id = self._require_client("create_entity")
        body: Dict[str, Any] = {"entityType": entity_type, "data": data}
        if folder_id:
            body["folder"] = folder_id
        payload = self._request(
            "POST",
            "/create",
            f"create_entity({entity_type})",
            params={"clientId": client_id},
            json_body=body,
        )
        uuid = payload.get("uuid")
        if not uuid or not isinstance(uuid, str):
            raise APIAccessError(f"Relay returned no uuid when creating {entity_type}")
        return uuid.split(".")[-1]

    def update_entity(self, uuid: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update (or embed children into) the document addressed by uuid."""
        client_id = self._require_client("update_entity")
        return self._request(
            "PUT",
            "/update",
            f"update_entity({uuid})",
            params={"clientId": client_id, "uuid": uuid, "selected": "false"},
            json_body={"data": data},
        )

    def list_files(self, path: str = "/", recursive: bool = True) -> List[Dict[str, Any]]:
        """List files in the Foundry data directory."""
        client_id = self._require_client("list_files")
        payload = self._request(
            "GET",
            "/file-system",
            "list_files",
            params={
                "clientId": client_id,
                "recursive": "true" if recursive else "false",
                "path": path,
            },
        )
        results = payload.get("results") or []
        return [entry for entry in results if isinstance(entry, dict)]

    def upload_file(
        self,
        path: str,
        filename: str,
        content: bytes,
        overwrite: bool = True,
    ) -> Dict[str, Any]:
        """Upload raw bytes into the Foundry data directory."""
        client_id = self._require_client("upload_file")
        return self._request(
            "POST",
            "/upload",
            f"upload_file({path}/{filename})",
            params={
                "clientId": client_id,
                "path": path,
                "filename": filename,
                "overwrite": "true" if overwrite else "false",
            },
            data=content,
            headers={"Content-Type": "application/octet-stream"},
        )
