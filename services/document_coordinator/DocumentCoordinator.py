"""Document coordinator: the single owner of session, document list and OCR cache.

The presentation layer forwards user events to the methods below and reads
state only through get_view(), which returns a frozen snapshot.
"""

import httpx

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.models.Document import DocumentRequest
from shared.clients.dms.models.User import RegisterRequest
from shared.clients.dms.models.Upload import UploadFile
from shared.helper.HelperConfig import HelperConfig
from services.document_coordinator.MutationService import ConfirmCallback, MutationService
from services.document_coordinator.OcrCacheService import OcrCacheService
from services.document_coordinator.QueryService import QueryService
from services.document_coordinator.SessionService import SessionService
from services.document_coordinator.TokenStore import TokenStore
from services.document_coordinator.ViewState import AuthMode, UserMessage, ViewSnapshot, ViewState


class DocumentCoordinator:
    """Wires the coordinator services together and exposes the user event API."""

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        token_store: TokenStore | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._view = ViewState()

        self._session = SessionService(
            helper_config=helper_config,
            dms_client=dms_client,
            token_store=token_store or TokenStore(helper_config),
            view_state=self._view,
        )
        self._query = QueryService(helper_config=helper_config, dms_client=dms_client, session=self._session, view_state=self._view)
        self._ocr_cache = OcrCacheService(helper_config=helper_config, dms_client=dms_client)
        self._mutations = MutationService(
            helper_config=helper_config,
            dms_client=dms_client,
            session=self._session,
            query=self._query,
            ocr_cache=self._ocr_cache,
            view_state=self._view,
            confirm=confirm,
        )

        # a 401 from any request ends the session before the caller continues
        self._dms.set_unauthorized_handler(self._session.handle_unauthorized)
        self._session.add_logout_listener(self._on_logout)
        self._session.add_authenticated_listener(self._query.fetch)

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def start(self, transport: httpx.AsyncBaseTransport | None = None) -> bool:
        """
        Boots the DMS client and restores the persisted session, which fetches the list on success.

        Returns:
            bool: True if the persisted session was accepted.
        """
        if not self._dms.is_booted():
            await self._dms.boot(transport=transport)
        return await self._session.load_persisted()

    async def close(self) -> None:
        await self._dms.close()

    def _on_logout(self) -> None:
        self._query.invalidate()
        self._ocr_cache.clear()
        self._view.reset_documents()

    ##########################################
    ################ STATE ###################
    ##########################################

    def get_view(self) -> ViewSnapshot:
        return self._view.to_snapshot()

    def pop_messages(self) -> list[UserMessage]:
        return self._view.pop_messages()

    def get_ocr_cache(self) -> OcrCacheService:
        return self._ocr_cache

    ##########################################
    ################ SESSION #################
    ##########################################

    async def login(self, username: str, password: str) -> bool:
        return await self._session.login(username, password)

    async def register(self, fields: RegisterRequest | dict) -> bool:
        return await self._session.register(fields)

    def logout(self) -> None:
        self._session.logout()

    def set_auth_mode(self, mode: AuthMode | str) -> None:
        self._session.set_auth_mode(AuthMode(mode))

    ##########################################
    ################ SEARCH ##################
    ##########################################

    def set_draft_term(self, text: str) -> None:
        self._query.set_draft_term(text)

    async def commit_search(self) -> None:
        await self._query.commit()

    async def clear_search(self) -> None:
        await self._query.clear()

    async def toggle_ocr_mode(self) -> None:
        await self._query.toggle_ocr_mode()

    async def refresh(self) -> None:
        await self._query.fetch()

    ##########################################
    ############### DOCUMENTS ################
    ##########################################

    def open_new_document_form(self) -> None:
        self._mutations.open_new_document_form()

    def open_edit_form(self, document_id: int) -> None:
        self._mutations.open_edit_form(document_id)

    def close_form(self) -> None:
        self._mutations.close_form()

    async def create_document(self, fields: DocumentRequest | dict, file: UploadFile | None = None) -> bool:
        return await self._mutations.create(fields, file)

    async def update_document(self, document_id: int, fields: DocumentRequest | dict, file: UploadFile | None = None) -> bool:
        return await self._mutations.update(document_id, fields, file)

    async def delete_document(self, document_id: int) -> bool:
        return await self._mutations.delete(document_id)

    async def attach_file(self, document_id: int, file: UploadFile) -> bool:
        return await self._mutations.attach_file(document_id, file)

    async def detach_file(self, document_id: int) -> bool:
        return await self._mutations.detach_file(document_id)

    async def download_file(self, document_id: int, filename: str) -> str | None:
        return await self._mutations.download(document_id, filename)

    async def show_ocr_text(self, document_id: int, title: str) -> str | None:
        return await self._mutations.fetch_ocr_text(document_id, title)

    def close_ocr_view(self) -> None:
        self._mutations.close_ocr_view()
