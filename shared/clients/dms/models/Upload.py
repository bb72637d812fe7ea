"""File payload attached to create, update and upload requests."""

import mimetypes
import os

from pydantic import BaseModel

class UploadFile(BaseModel):
    """
    A file selected by the user for upload.
    """
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str) -> "UploadFile":
        """
        Reads a file from disk and guesses its content type from the extension.

        Args:
            path (str): Path of the file to read.

        Returns:
            UploadFile: The loaded file.
        """
        with open(path, "rb") as f:
            content = f.read()
        content_type, _ = mimetypes.guess_type(path)
        return cls(
            filename=os.path.basename(path),
            content=content,
            content_type=content_type or "application/octet-stream",
        )

    def to_multipart(self) -> tuple[str, bytes, str]:
        return (self.filename, self.content, self.content_type)
