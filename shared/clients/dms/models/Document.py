from datetime import date as DateType, datetime
"""Generic DMS document model, backend-independent."""

from pydantic import BaseModel, Field, field_validator

class DocumentBase(BaseModel):
    """
    Represents a single document as identified by a DMS client.
    """
    engine: str
    id: int

class DocumentDetails(DocumentBase):
    """
    Represents a single document with its metadata and attachment information, as returned by a DMS client.
    """
    title: str | None = None
    number: str | None = None
    date: DateType | None = None
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # attachment
    has_file: bool = False
    original_filename: str | None = None
    content_type: str | None = None
    file_size: int | None = None
    uploaded_at: datetime | None = None

    # ocr status
    ocr_processed: bool = False
    ocr_supported: bool = False

    def get_file_size_kb(self) -> int | None:
        """
        Returns the attachment size in whole kilobytes, as shown next to the filename in the list.
        """
        if self.file_size is None:
            return None
        return round(self.file_size / 1024)

class DocumentsListResponse(BaseModel):
    """
    Represents the response from a DMS when listing or searching documents.
    """
    engine: str
    documents: list[DocumentDetails] = []
    currentPage: int = 0
    overallCount: int | None = None
    pageLength: int | None = None
    lastPage: int | None = None

class DocumentRequest(BaseModel):
    """
    Metadata submitted on document create and update. Title, number and date are mandatory.
    """
    title: str = Field(min_length=1)
    number: str = Field(min_length=1)
    date: DateType
    description: str | None = None

    @field_validator("title", "number")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_payload(self) -> dict:
        """
        Returns the JSON body of the "document" multipart part.
        """
        return {
            "title": self.title,
            "number": self.number,
            "date": self.date.isoformat(),
            "description": self.description or "",
        }
