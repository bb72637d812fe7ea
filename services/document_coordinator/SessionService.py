"""Session service: owns the authentication token and the current user.

States: UNAUTHENTICATED → VALIDATING → AUTHENTICATED, and back to
UNAUTHENTICATED on logout, on a failed validation, or when any request is
answered with 401. Every transition increments the session epoch, which
lets in-flight operations detect that the session they started in is gone.
"""

from typing import Awaitable, Callable

from pydantic import ValidationError

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.DMSExceptions import DMSAuthExpiredError, DMSClientError
from shared.clients.dms.models.User import AuthResponse, LoginRequest, RegisterRequest, UserDetails
from shared.helper.HelperConfig import HelperConfig
from services.document_coordinator.TokenStore import TokenStore
from services.document_coordinator.ViewState import AuthMode, SessionStatus, ViewState

AuthenticatedListener = Callable[[], Awaitable[None]]
LogoutListener = Callable[[], None]


class SessionService:
    """Drives login, registration, validation and logout of the DMS session."""

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        token_store: TokenStore,
        view_state: ViewState,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._token_store = token_store
        self._view = view_state
        self._epoch = 0
        self._authenticated_listeners: list[AuthenticatedListener] = []
        self._logout_listeners: list[LogoutListener] = []

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_status(self) -> SessionStatus:
        return self._view.session_status

    def get_user(self) -> UserDetails | None:
        return self._view.user

    def get_epoch(self) -> int:
        return self._epoch

    def is_authenticated(self) -> bool:
        return self._view.session_status == SessionStatus.AUTHENTICATED

    def is_current(self, epoch: int) -> bool:
        """
        Returns True if the session is still the authenticated one that existed at the given epoch.
        """
        return self._epoch == epoch and self.is_authenticated()

    def require_authenticated(self) -> bool:
        """
        Checks the gate every document operation passes through, telling the user when it is closed.
        """
        if self.is_authenticated():
            return True
        self._view.add_error("Please log in first.")
        return False

    ##########################################
    ############### LISTENERS ################
    ##########################################

    def add_authenticated_listener(self, listener: AuthenticatedListener) -> None:
        self._authenticated_listeners.append(listener)

    def add_logout_listener(self, listener: LogoutListener) -> None:
        self._logout_listeners.append(listener)

    ##########################################
    ############## TRANSITIONS ###############
    ##########################################

    async def load_persisted(self) -> bool:
        """
        Restores the session from the persisted token.

        Returns:
            bool: True if the stored token was found and accepted.
        """
        token = self._token_store.load()
        if not token:
            self.logging.info("No persisted session token found, credentials required.")
            self._set_unauthenticated()
            self._view.open_auth_prompt(AuthMode.LOGIN)
            return False
        return await self.validate(token)

    async def validate(self, token: str) -> bool:
        """
        Validates a token against the backend and adopts it on success.

        Any failure, including network errors, discards the token and logs out.

        Args:
            token (str): The token to validate.

        Returns:
            bool: True if the session is authenticated afterwards.
        """
        self._epoch += 1
        epoch = self._epoch
        self._view.session_status = SessionStatus.VALIDATING
        self._dms.set_token(token)
        try:
            user = await self._dms.do_validate()
        except DMSAuthExpiredError:
            self.logging.warning("Persisted session token was rejected.")
            # the unauthorized handler has already logged out
            return False
        except (DMSClientError, ValueError) as e:
            self.logging.warning("Session validation failed: %s", e)
            self.logout()
            return False

        if self._epoch != epoch:
            self.logging.debug("Session changed while validating, dropping validation result.")
            return self.is_authenticated()

        await self._set_authenticated(token, user)
        return True

    async def login(self, username: str, password: str) -> bool:
        """
        Logs in and persists the issued token.

        Returns:
            bool: True on success. On failure the server message is shown and the session stays unauthenticated.
        """
        try:
            request = LoginRequest(username=username, password=password)
        except ValidationError:
            self._view.add_error("Username and password are required.")
            return False

        try:
            auth = await self._dms.do_login(request)
        except DMSClientError as e:
            self.logging.warning("Login of user %r failed: %s", username, e.message)
            self._reject(e)
            return False
        return await self._adopt(auth)

    async def register(self, fields: RegisterRequest | dict) -> bool:
        """
        Registers a new account and logs it in.

        Args:
            fields (RegisterRequest | dict): username, password, email, firstname and lastname.

        Returns:
            bool: True on success. On failure the server message is shown and the session stays unauthenticated.
        """
        try:
            request = fields if isinstance(fields, RegisterRequest) else RegisterRequest.model_validate(fields)
        except ValidationError as e:
            missing = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            self._view.add_error(f"Please fill in all required fields: {missing}")
            return False

        try:
            auth = await self._dms.do_register(request)
        except DMSClientError as e:
            self.logging.warning("Registration of user %r failed: %s", request.username, e.message)
            self._reject(e)
            return False
        return await self._adopt(auth)

    def logout(self) -> None:
        """
        Discards the token and the user, clears all document state and reopens the login prompt.
        """
        was_authenticated = self.is_authenticated()
        self._token_store.clear()
        self._dms.set_token(None)
        self._set_unauthenticated()
        self._view.open_auth_prompt(AuthMode.LOGIN)
        for listener in self._logout_listeners:
            listener()
        if was_authenticated:
            self.logging.info("Logged out.", color="yellow")

    async def handle_unauthorized(self) -> None:
        """
        Reacts to a 401 from any request: the session is over, whatever the caller was doing.
        """
        self.logging.warning("Backend rejected the session token, logging out.")
        self.logout()

    def set_auth_mode(self, mode: AuthMode) -> None:
        self._view.open_auth_prompt(mode)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _reject(self, error: DMSClientError) -> None:
        """
        Surfaces a failed login or registration. A 401 resets the session like any other 401,
        which also puts the prompt back into login mode.
        """
        if error.status_code == 401:
            self.logout()
        self._view.add_error(error.message)

    async def _adopt(self, auth: AuthResponse) -> bool:
        if not auth.token:
            self._view.add_error("The server did not return a session token.")
            return False
        self._token_store.save(auth.token)
        self._epoch += 1
        await self._set_authenticated(auth.token, auth.user)
        return True

    async def _set_authenticated(self, token: str, user: UserDetails) -> None:
        self._dms.set_token(token)
        self._view.user = user
        self._view.session_status = SessionStatus.AUTHENTICATED
        self._view.close_auth_prompt()
        self.logging.info("Authenticated as %s.", user.username, color="green")
        for listener in self._authenticated_listeners:
            await listener()

    def _set_unauthenticated(self) -> None:
        self._epoch += 1
        self._view.user = None
        self._view.session_status = SessionStatus.UNAUTHENTICATED
