"""Mutation service: create, update, delete, attach, detach, download and OCR view.

Every mutation requires an authenticated session. The list is re-fetched only
after the backend confirmed the mutation; a failed mutation surfaces its
message and leaves list, cache and open editor untouched. Mutations that can
change the attached file invalidate the OCR cache entry of the document.
"""

import inspect
import os
from typing import Awaitable, Callable

from pydantic import ValidationError

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.DMSExceptions import DMSAuthExpiredError, DMSClientError
from shared.clients.dms.models.Document import DocumentRequest
from shared.clients.dms.models.OcrText import OCR_LOAD_FAILED_MESSAGE
from shared.clients.dms.models.Upload import UploadFile
from shared.helper.HelperConfig import HelperConfig
from services.document_coordinator.OcrCacheService import OcrCacheService
from services.document_coordinator.QueryService import QueryService
from services.document_coordinator.SessionService import SessionService
from services.document_coordinator.ViewState import ViewState

ConfirmCallback = Callable[[str], bool | Awaitable[bool]]

CONFIRM_DELETE_DOCUMENT = "Are you sure you want to delete this document?"
CONFIRM_DELETE_FILE = "Are you sure you want to delete the attached file?"


class MutationService:
    """Sequences document mutations against the list refresh and the OCR cache."""

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        session: SessionService,
        query: QueryService,
        ocr_cache: OcrCacheService,
        view_state: ViewState,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._session = session
        self._query = query
        self._ocr_cache = ocr_cache
        self._view = view_state
        self._confirm = confirm
        self._download_dir = helper_config.get_path_val("DOWNLOAD_DIR", "downloads")
        self._ocr_request = 0

    ##########################################
    ################ EDITOR ##################
    ##########################################

    def open_new_document_form(self) -> None:
        self._view.open_editor(editing_id=None)

    def open_edit_form(self, document_id: int) -> None:
        self._view.open_editor(editing_id=document_id)

    def close_form(self) -> None:
        self._view.close_editor()

    ##########################################
    ############### MUTATIONS ################
    ##########################################

    async def create(self, fields: DocumentRequest | dict, file: UploadFile | None = None) -> bool:
        """
        Creates a document from metadata and an optional file.

        Returns:
            bool: True if the backend created the document.
        """
        if not self._session.require_authenticated():
            return False
        request = self._build_request(fields)
        if request is None:
            return False

        epoch = self._session.get_epoch()
        try:
            created = await self._dms.do_create_document(request, file)
        except DMSAuthExpiredError:
            return False
        except DMSClientError as e:
            self._report_failure("Error creating document", e)
            return False
        if not self._session.is_current(epoch):
            return False

        if created is not None:
            self.logging.info("Created document %d (%r).", created.id, created.title)
        else:
            self.logging.info("Created document %r, backend returned no body.", request.title)
        self._view.close_editor()
        await self._query.fetch()
        return True

    async def update(self, document_id: int, fields: DocumentRequest | dict, file: UploadFile | None = None) -> bool:
        """
        Updates the metadata of a document and, if given, replaces its file.

        Returns:
            bool: True if the backend applied the update.
        """
        if not self._session.require_authenticated():
            return False
        request = self._build_request(fields)
        if request is None:
            return False

        epoch = self._session.get_epoch()
        try:
            await self._dms.do_update_document(document_id, request, file)
        except DMSAuthExpiredError:
            return False
        except DMSClientError as e:
            self._report_failure("Error updating document", e)
            return False
        if not self._session.is_current(epoch):
            return False

        self.logging.info("Updated document %d (file replaced: %s).", document_id, file is not None)
        self._ocr_cache.invalidate_on_update(document_id)
        self._view.close_editor()
        await self._query.fetch()
        return True

    async def delete(self, document_id: int) -> bool:
        """
        Deletes a document after the user confirmed it.

        Returns:
            bool: True if the document was deleted.
        """
        if not self._session.require_authenticated():
            return False
        if not await self._ask(CONFIRM_DELETE_DOCUMENT):
            return False

        epoch = self._session.get_epoch()
        try:
            await self._dms.do_delete_document(document_id)
        except DMSAuthExpiredError:
            return False
        except DMSClientError as e:
            self._report_failure("Error deleting document", e)
            return False
        if not self._session.is_current(epoch):
            return False

        self.logging.info("Deleted document %d.", document_id)
        self._ocr_cache.invalidate(document_id)
        await self._query.fetch()
        return True

    async def attach_file(self, document_id: int, file: UploadFile) -> bool:
        """
        Uploads a file to a document that has none yet.

        Returns:
            bool: True if the upload succeeded.
        """
        if not self._session.require_authenticated():
            return False

        epoch = self._session.get_epoch()
        try:
            await self._dms.do_upload_file(document_id, file)
        except DMSAuthExpiredError:
            return False
        except DMSClientError as e:
            self._report_failure("Error uploading file", e)
            return False
        if not self._session.is_current(epoch):
            return False

        self.logging.info("Uploaded %r to document %d.", file.filename, document_id)
        self._ocr_cache.invalidate(document_id)
        await self._query.fetch()
        self._view.add_info("File uploaded successfully!")
        return True

    async def detach_file(self, document_id: int) -> bool:
        """
        Removes the attached file of a document after the user confirmed it.

        Returns:
            bool: True if the file was removed.
        """
        if not self._session.require_authenticated():
            return False
        if not await self._ask(CONFIRM_DELETE_FILE):
            return False

        epoch = self._session.get_epoch()
        try:
            await self._dms.do_delete_file(document_id)
        except DMSAuthExpiredError:
            return False
        except DMSClientError as e:
            self._report_failure("Error deleting file", e)
            return False
        if not self._session.is_current(epoch):
            return False

        self.logging.info("Removed attached file of document %d.", document_id)
        self._ocr_cache.invalidate(document_id)
        await self._query.fetch()
        self._view.add_info("File deleted successfully!")
        return True

    ##########################################
    ################ READS ###################
    ##########################################

    async def download(self, document_id: int, filename: str) -> str | None:
        """
        Downloads the attached file of a document and saves it into the download directory.

        Args:
            document_id (int): The document whose file is downloaded.
            filename (str): Name to save the file under, path components are stripped.

        Returns:
            str | None: The path of the saved file, None on failure.
        """
        if not self._session.require_authenticated():
            return None

        epoch = self._session.get_epoch()
        try:
            content = await self._dms.do_download_file(document_id)
        except DMSAuthExpiredError:
            return None
        except DMSClientError as e:
            self._report_failure("Error downloading file", e)
            return None
        if not self._session.is_current(epoch):
            return None

        target = os.path.join(self._download_dir, os.path.basename(filename) or f"document-{document_id}")
        try:
            if not os.path.exists(self._download_dir):
                os.makedirs(self._download_dir)
            with open(target, "wb") as f:
                f.write(content)
        except OSError as e:
            self.logging.error("Could not save download of document %d to %s: %s", document_id, target, e)
            self._view.add_error(f"Error downloading file: {e}")
            return None

        self.logging.info("Saved file of document %d to %s (%d bytes).", document_id, target, len(content))
        return target

    async def fetch_ocr_text(self, document_id: int, title: str) -> str | None:
        """
        Opens the OCR view for a document and fills it through the OCR cache.

        The committed search term becomes the highlight keyword. A failed fetch shows a
        placeholder text instead of blocking the view.

        Returns:
            str | None: The text now shown, None if the view moved on before the text arrived.
        """
        if not self._session.require_authenticated():
            return None

        self._ocr_request += 1
        request = self._ocr_request
        epoch = self._session.get_epoch()
        self._view.open_ocr_view(document_id, title, keyword=self._query.get_committed_term())

        try:
            ocr_text = await self._ocr_cache.fetch_and_store(document_id)
            text = ocr_text.get_display_text()
        except DMSAuthExpiredError:
            return None
        except DMSClientError as e:
            self.logging.warning("Error fetching OCR text of document %d: %s", document_id, e.message)
            text = OCR_LOAD_FAILED_MESSAGE

        if request != self._ocr_request or not self._session.is_current(epoch) or self._view.ocr_view.document_id != document_id:
            self.logging.debug("OCR view moved on, dropping text of document %d.", document_id)
            return None

        self._view.ocr_view.text = text
        self._view.ocr_view.is_loading = False
        return text

    def close_ocr_view(self) -> None:
        self._ocr_request += 1
        self._view.close_ocr_view()

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_request(self, fields: DocumentRequest | dict) -> DocumentRequest | None:
        if isinstance(fields, DocumentRequest):
            return fields
        try:
            return DocumentRequest.model_validate(fields)
        except ValidationError as e:
            invalid = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            self._view.add_error(f"Please fill in all required fields: {invalid}")
            return None

    async def _ask(self, question: str) -> bool:
        if self._confirm is None:
            self.logging.warning("No confirmation handler registered, refusing: %s", question)
            return False
        answer = self._confirm(question)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _report_failure(self, action: str, error: DMSClientError) -> None:
        self.logging.error("%s: %s", action, error.message)
        self._view.add_error(f"{action}: {error.message}")
