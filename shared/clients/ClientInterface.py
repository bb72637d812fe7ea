from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent, RequestData, RequestFiles
from typing import Any, Awaitable, Callable
from shared.models.config import EnvConfig
from shared.clients.dms.DMSExceptions import DEFAULT_ERROR_MESSAGE, DMSAuthExpiredError, DMSNetworkError, DMSValidationError, error_for_status

from shared.helper.HelperConfig import HelperConfig

UnauthorizedHandler = Callable[[], Awaitable[None]]


class ClientInterface(ABC):
    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        # 0 means "wait forever", the backend contract does not define a timeout
        timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=0)
        self.timeout: float | None = float(timeout) if timeout and timeout > 0 else None

        # client and config
        self._client: httpx.AsyncClient | None = None
        self._unauthorized_handler: UnauthorizedHandler | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Validates that all required configuration values for the client are set and valid.

        Raises:
            ValueError: If any required configuration value is missing or invalid.
        """
        req_config = self._get_required_config()
        for config in req_config:
            _ = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """
        Returns the type of the client in lowercase. E.g. "dms"
        """
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "dms"
        """
        pass

    def get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "documentmanager"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the engine used by the client. E.g. "Documentmanager"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns all required configurations for the client.

        Returns:
            list[EnvConfig]: A list containing the details of each required configuration key.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The full configuration key name for the client. E.g. "DMS_DOCUMENTMANAGER_BASE_URL"
        """
        key_prefix = f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}"
        return f"{key_prefix}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves the value of a configuration key for the client.

        Args:
            raw_key (str): The raw configuration key name
            default (Any): The default value to return if the configuration key is not set
            val_type (str): The type of the configuration value ("string", "number", "bool")
        """
        key = self._get_config_key_name(raw_key)
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        elif val_type == "bool":
            return self._helper_config.get_bool_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in {self.get_client_type().upper()} client '{self.get_engine_name()}'.")

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the authentication header for the client backend server, if a credential is set.

        Returns:
            dict: A dictionary containing the auth data
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the base URL of the client backend server from env variables

        Returns:
            str: The base URL of the client backend server (e.g. "http://localhost:8080/api")
        """
        pass

    ##########################################
    ################ SETTER ##################
    ##########################################

    def set_unauthorized_handler(self, handler: UnauthorizedHandler | None) -> None:
        """
        Registers the coroutine that is awaited whenever the backend answers 401.

        The handler runs before DMSAuthExpiredError is raised, so the caller's
        success path is never reached after the session has been torn down.

        Args:
            handler (UnauthorizedHandler | None): Coroutine function without arguments, or None to unregister.
        """
        self._unauthorized_handler = handler

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialise the HTTP client. A custom transport may be passed, e.g. for tests."""
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP client and any other resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        data: RequestData | None = None,
        files: RequestFiles | None = None,
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = True,
        expire_session_on_401: bool = True,
    ) -> httpx.Response:
        """Send an HTTP request to the client backend.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, …).
            content: Raw bytes / stream body.
            data: Form-encoded body (dict or list of tuples).
            files: Multipart file upload.
            json: JSON-serialisable body (sets Content-Type automatically).
            params: URL query parameters.
            endpoint: Path to append to the base URL (leading slash optional).
            additional_headers: Extra headers that override the defaults.
            raise_on_error: Raise a DMSClientError subclass on non-2xx responses.
            expire_session_on_401: Treat 401 as an expired session and notify the unauthorized handler.
                Credential endpoints (login/register) switch this off, there 401 means "wrong password".

        Returns:
            The raw httpx.Response.

        Raises:
            DMSAuthExpiredError: On 401 when expire_session_on_401 is set, regardless of raise_on_error.
            DMSNetworkError: If no response could be received.
            DMSClientError: On any other non-2xx status (when raise_on_error is True).
            Exception: If the client is not initialised.
        """
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""

        # Do NOT set a default Content-Type: httpx sets it automatically for json/data/files.
        headers: dict = {}
        headers.update(self._get_auth_header())
        if additional_headers:
            headers.update(additional_headers)

        kwargs: dict = {
            "url": f"{self._get_base_url().rstrip('/')}{endpoint}",
            "headers": headers,
            "timeout": self.timeout,
            "params": params,
        }

        # add exactly one body argument, multipart may combine data and files
        if content is not None:
            kwargs["content"] = content
        elif files is not None:
            kwargs["files"] = files
            if data is not None:
                kwargs["data"] = data
        elif data is not None:
            kwargs["data"] = data
        elif json is not None:
            kwargs["json"] = json

        try:
            response = await self._client.request(method, **kwargs)
        except httpx.TransportError as e:
            self.logging.error("Request %s %s failed without response: %s", method, kwargs["url"], e)
            raise DMSNetworkError(f"Network error: {e}") from e

        if response.status_code == 401 and expire_session_on_401:
            self.logging.warning("Request %s %s was rejected with 401, session is no longer valid.", method, kwargs["url"])
            if self._unauthorized_handler is not None:
                await self._unauthorized_handler()
            raise DMSAuthExpiredError()

        # Log and raise on error if requested
        if raise_on_error and response.status_code >= 300:
            message = self._extract_error_message(response)
            self.logging.error(
                "Request %s %s failed with status %d: %s",
                method,
                kwargs["url"],
                response.status_code,
                message,
            )
            if response.status_code == 401:
                # credentials rejected on an endpoint that does not use the session
                raise DMSValidationError(message, response.status_code)
            raise error_for_status(response.status_code, message)

        return response

    def _extract_error_message(self, response: httpx.Response) -> str:
        """
        Extracts the user facing message from an error response.

        Args:
            response (httpx.Response): The failed response.

        Returns:
            str: The JSON "message" field, the plain text body, or a generic fallback.
        """
        try:
            body = response.json()
        except ValueError:
            text = response.text.strip()
            return text or DEFAULT_ERROR_MESSAGE
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        if isinstance(body, str) and body.strip():
            return body.strip()
        return DEFAULT_ERROR_MESSAGE
