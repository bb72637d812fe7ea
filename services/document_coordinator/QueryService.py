"""Query service: owns the draft/committed search term and the OCR search mode.

Typing only changes the draft term. A list fetch is issued on commit, clear,
OCR mode toggle and whenever the session becomes authenticated. Each fetch
gets a generation number; a response is applied only if no newer fetch was
issued in the meantime, so a slow stale response never overwrites a newer list.
"""

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.DMSExceptions import DMSAuthExpiredError, DMSClientError
from shared.clients.dms.models.Document import DocumentDetails
from shared.helper.HelperConfig import HelperConfig
from services.document_coordinator.SessionService import SessionService
from services.document_coordinator.ViewState import ViewState


class QueryService:
    """Decides when the document list is re-fetched and applies the results."""

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        session: SessionService,
        view_state: ViewState,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._session = session
        self._view = view_state
        self._generation = 0

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_committed_term(self) -> str:
        return self._view.search.committed_term

    def get_draft_term(self) -> str:
        return self._view.search.draft_term

    def is_ocr_mode(self) -> bool:
        return self._view.search.ocr_mode

    ##########################################
    ############# USER EVENTS ################
    ##########################################

    def set_draft_term(self, text: str) -> None:
        self._view.search.draft_term = text

    async def commit(self) -> list[DocumentDetails] | None:
        """Apply the draft term and re-fetch."""
        self._view.search.committed_term = self._view.search.draft_term
        return await self.fetch()

    async def clear(self) -> list[DocumentDetails] | None:
        """Empty both terms and re-fetch the unfiltered list."""
        self._view.search.draft_term = ""
        self._view.search.committed_term = ""
        return await self.fetch()

    async def toggle_ocr_mode(self) -> list[DocumentDetails] | None:
        """Flip the OCR mode, re-commit the draft term and re-fetch under the new mode."""
        self._view.search.ocr_mode = not self._view.search.ocr_mode
        self._view.search.committed_term = self._view.search.draft_term
        return await self.fetch()

    ##########################################
    ################ CORE ####################
    ##########################################

    async def fetch(self) -> list[DocumentDetails] | None:
        """
        Issues exactly one list query for the committed term under the current mode.

        Returns:
            list[DocumentDetails] | None: The list now shown, or None if the fetch was
            not issued or its response was superseded before it arrived.
        """
        if not self._session.is_authenticated():
            self.logging.debug("Skipping document fetch, session is not authenticated.")
            return None

        self._generation += 1
        generation = self._generation
        epoch = self._session.get_epoch()
        term = self._view.search.committed_term
        ocr_mode = self._view.search.ocr_mode

        self._view.is_loading = True
        try:
            if ocr_mode:
                response = await self._dms.do_search_documents_ocr(term)
            else:
                response = await self._dms.do_search_documents(term)
            documents = response.documents
            error = None
        except DMSAuthExpiredError:
            # logout already reset the list
            return None
        except DMSClientError as e:
            documents = []
            error = e
        finally:
            if generation == self._generation:
                self._view.is_loading = False

        if generation != self._generation or self._session.get_epoch() != epoch:
            self.logging.debug("Discarding stale document list for term %r (ocr=%s).", term, ocr_mode)
            return None

        if error is not None:
            self.logging.warning("Error fetching documents for term %r (ocr=%s): %s", term, ocr_mode, error.message)
            self._view.add_error(f"Error fetching documents: {error.message}")
        else:
            self.logging.info("Fetched %d documents for term %r (ocr=%s).", len(documents), term, ocr_mode)
        self._view.documents = documents
        return documents

    def invalidate(self) -> None:
        """
        Makes every in-flight fetch stale, used when the session ends.
        """
        self._generation += 1
        self._view.is_loading = False
