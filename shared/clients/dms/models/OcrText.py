"""Generic DMS OCR text model, backend-independent."""

from pydantic import BaseModel

NO_OCR_TEXT_MESSAGE = "No OCR text available for this document."
OCR_LOAD_FAILED_MESSAGE = "Failed to load OCR text."

class OcrText(BaseModel):
    """
    Represents the OCR text extracted from a document's attached file.

    A document without extracted text is represented with has_text=False, which is
    cached like any other result so the backend is not asked again until the file changes.
    """
    engine: str
    document_id: int
    text: str = ""
    has_text: bool = False

    def get_display_text(self) -> str:
        return self.text if self.has_text else NO_OCR_TEXT_MESSAGE
