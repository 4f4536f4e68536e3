from typing import Sequence
import uuid
import httpx

from box import Box
from common.errors import QueryError, ResultCode
from connectors.directory_interface import DirectoryQueryCapability, DirectorySessionProtocol
from directory.models import Location, MatchedEntry, SearchScope


##### Sessions #####
class RestDirectorySession(DirectorySessionProtocol):
    """
    A directory session that talks to a directory REST API.

    Args:
        host_URL (str): The base URL of the directory API.
            Must include scheme (http:// or https://) and optionally port.
            Examples: "http://localhost:8389", "https://directory.example.com"
        user (str): The username for authentication, or None for anonymous.
        password (str): The password for authentication.
        timeout (float): Seconds before a request is abandoned.
        client (httpx.Client): Use this client instead of creating one
            (for example fastapi's TestClient).
    """
    def __init__(self, host_URL: str, user: str | None = None, password: str | None = None,
                 timeout: float = 5.0, client: httpx.Client | None = None):
        self.base_URL = host_URL.rstrip("/")
        self.user = user
        self.password = password
        self.timeout = timeout
        self.session_id = str(uuid.uuid4())
        auth = (user, password or "") if user is not None else None
        self._client = client if client is not None else httpx.Client(base_url=self.base_URL, auth=auth, timeout=timeout)

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make an HTTP request to the directory API.
        raise_for_status() is called on the response.

        Args:
            method (str): The HTTP method (GET, POST, ...).
            endpoint (str): The API endpoint (path) to call.
            **kwargs: Additional arguments to pass to httpx request.
            example: session.request("POST", "/search", json={...})

        Returns:
            httpx.Response: The HTTP response object.
        """
        url = f"{self.base_URL}/{endpoint.lstrip('/')}"
        response = self._client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    @property
    def directory_type(self) -> str:
        return "rest"

    @property
    def is_alive(self) -> bool:
        """Check if the session is alive by asking the API for its status."""
        try:
            resp = self.request("GET", "/status", timeout=2)
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    def connect(self):
        """Establish the session. The API is stateless, so this only checks it answers."""
        if not self.is_alive:
            raise ConnectionError(f"Cannot connect to directory at {self.base_URL}")

    def disconnect(self):
        self._client.close()


##### Connectors #####

_STATUS_CODES = {
    400: ResultCode.PROTOCOL_ERROR,
    401: ResultCode.INSUFFICIENT_ACCESS_RIGHTS,
    403: ResultCode.INSUFFICIENT_ACCESS_RIGHTS,
    404: ResultCode.NO_SUCH_OBJECT,
    408: ResultCode.TIMEOUT,
    413: ResultCode.SIZE_LIMIT_EXCEEDED,
    422: ResultCode.PROTOCOL_ERROR,
    503: ResultCode.SERVER_DOWN,
    504: ResultCode.TIME_LIMIT_EXCEEDED,
}


def _error_from_response(response: httpx.Response) -> QueryError:
    """Build a QueryError from an error response, preferring the server's result code."""
    result_code = _STATUS_CODES.get(response.status_code, ResultCode.OTHER)
    message = f"HTTP {response.status_code} from {response.request.url}"
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        try:
            result_code = ResultCode(detail.get("result_code", result_code))
        except ValueError:
            pass
        message = str(detail.get("message", message))
    elif isinstance(detail, str):
        message = detail
    return QueryError(result_code, message)


class RestDirectoryConnector(DirectoryQueryCapability):
    """ Runs directory searches through a directory REST API."""

    def __init__(self, session: RestDirectorySession):
        self.session: RestDirectorySession = session
        self.request = self.session.request  # "alias" Now self.request(...) is the same as self.session.request(...)

    @property
    def status(self) -> Box:
        r = self.request("GET", "/status")
        return Box(r.json())

    @property
    def info(self) -> Box:
        """ Returns information about the connector,
            such as type and endpoint, as a Box.
        """
        return Box({
            "type": self.session.directory_type,
            "hostURL": self.session.base_URL,
            "user": self.session.user
        })

    def search(self, base: Location | str, scope: SearchScope, filter: str,
               requested_attributes: Sequence[str]) -> list[MatchedEntry]:
        payload = {
            "base": str(base),
            "scope": SearchScope(scope).value,
            "filter": filter,
            "attributes": list(requested_attributes),
        }
        try:
            r = self.request("POST", "/search", json=payload)
        except httpx.TimeoutException as exc:
            raise QueryError(ResultCode.TIMEOUT, f"Search on {base} timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise _error_from_response(exc.response) from exc
        except httpx.TransportError as exc:
            raise QueryError(ResultCode.SERVER_DOWN, f"Cannot reach {self.session.base_URL}: {exc}") from exc
        except httpx.RequestError as exc:
            raise QueryError(ResultCode.PROTOCOL_ERROR, f"Search on {base} failed: {exc}") from exc
        try:
            items = r.json()
            if not isinstance(items, list):
                raise ValueError(f"expected a list of entries, got {type(items).__name__}")
            return [MatchedEntry.model_validate(item) for item in items]
        except ValueError as exc:
            raise QueryError(ResultCode.PROTOCOL_ERROR, f"Malformed search response: {exc}") from exc
