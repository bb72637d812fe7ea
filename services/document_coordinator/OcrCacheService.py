"""OCR cache: per-document memoization of extracted OCR text.

Entries never expire by time. They are removed when the attached file of a
document may have changed (update, upload, file delete, document delete).
Each invalidation bumps a per-document version, and a response is stored only
if no invalidation happened while it was in flight.
"""

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.models.OcrText import OcrText
from shared.helper.HelperConfig import HelperConfig


class OcrCacheService:
    """Single source of truth for "have we fetched OCR for this document since its file last changed"."""

    def __init__(self, helper_config: HelperConfig, dms_client: DMSClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._entries: dict[int, OcrText] = {}
        self._versions: dict[int, int] = {}
        self._generation = 0

    def get(self, document_id: int) -> OcrText | None:
        """
        Returns the cached OCR text of a document, or None on a miss.
        """
        return self._entries.get(document_id)

    def contains(self, document_id: int) -> bool:
        return document_id in self._entries

    async def fetch_and_store(self, document_id: int) -> OcrText:
        """
        Returns the cached OCR text, fetching and storing it on a miss.

        A result without text is stored too, so documents without OCR text are not requested again.

        Args:
            document_id (int): The document whose OCR text is needed.

        Returns:
            OcrText: The OCR text of the document.

        Raises:
            DMSClientError: If the remote fetch fails. Nothing is stored in that case.
        """
        cached = self._entries.get(document_id)
        if cached is not None:
            self.logging.debug("OCR cache hit for document %d.", document_id)
            return cached

        version = self._versions.get(document_id, 0)
        generation = self._generation
        ocr_text = await self._dms.do_fetch_ocr_text(document_id)

        if self._versions.get(document_id, 0) == version and self._generation == generation:
            self._entries[document_id] = ocr_text
            self.logging.debug("Stored OCR text for document %d (has_text=%s).", document_id, ocr_text.has_text)
        else:
            self.logging.debug("OCR text for document %d was invalidated while loading, not caching it.", document_id)
        return ocr_text

    def invalidate(self, document_id: int) -> None:
        """
        Removes the entry of a document. Called on delete, file upload and file removal.
        """
        self._versions[document_id] = self._versions.get(document_id, 0) + 1
        if self._entries.pop(document_id, None) is not None:
            self.logging.debug("Invalidated OCR cache entry for document %d.", document_id)

    def invalidate_on_update(self, document_id: int) -> None:
        """
        Removes the entry after a successful update.

        The update request may carry a new file and the backend does not tell
        metadata-only updates apart, so every update invalidates.
        """
        self.invalidate(document_id)

    def clear(self) -> None:
        """
        Drops all entries and makes every in-flight fetch unstorable, used when the session ends.
        """
        self._generation += 1
        self._entries.clear()
        self._versions.clear()
