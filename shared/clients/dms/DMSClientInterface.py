from abc import abstractmethod
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.dms.DMSExceptions import INVALID_RESPONSE_MESSAGE, DMSServerError
from shared.clients.dms.models.Document import DocumentDetails, DocumentRequest, DocumentsListResponse
from shared.clients.dms.models.User import AuthResponse, LoginRequest, RegisterRequest, UserDetails
from shared.clients.dms.models.OcrText import OcrText
from shared.clients.dms.models.Upload import UploadFile
import json
from typing import Any, Callable

import httpx


class DMSClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # bearer token of the current session, owned by the session service
        self._token: str | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "dms"
        """
        return "dms"

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_validate(self) -> str:
        """
        Returns the endpoint path that validates the current token and returns the user (e.g. "/auth/validate")
        """
        pass

    @abstractmethod
    def _get_endpoint_login(self) -> str:
        """
        Returns the endpoint path for login requests (e.g. "/auth/login")
        """
        pass

    @abstractmethod
    def _get_endpoint_register(self) -> str:
        """
        Returns the endpoint path for register requests (e.g. "/auth/register")
        """
        pass

    @abstractmethod
    def _get_endpoint_documents(self) -> str:
        """
        Returns the endpoint path for listing documents and creating new ones (e.g. "/documents")
        """
        pass

    @abstractmethod
    def _get_endpoint_documents_search_params(self, term: str) -> dict:
        """
        Returns the query parameters for a metadata search on the document listing endpoint.

        Args:
            term (str): The search term, may be empty.
        """
        pass

    @abstractmethod
    def _get_endpoint_ocr_search(self) -> str:
        """
        Returns the endpoint path for searching inside the OCR text of documents (e.g. "/documents/ocr/search")
        """
        pass

    @abstractmethod
    def _get_endpoint_ocr_search_params(self, term: str) -> dict:
        """
        Returns the query parameters for an OCR text search.

        Args:
            term (str): The search term, may be empty.
        """
        pass

    @abstractmethod
    def _get_endpoint_document_details(self, document_id: int) -> str:
        """
        Returns the endpoint path for updating and deleting a document (e.g. "/documents/{id}")
        """
        pass

    @abstractmethod
    def _get_endpoint_document_upload(self, document_id: int) -> str:
        """
        Returns the endpoint path for attaching a file to a document (e.g. "/documents/{id}/upload")
        """
        pass

    @abstractmethod
    def _get_endpoint_document_file(self, document_id: int) -> str:
        """
        Returns the endpoint path for removing the attached file of a document (e.g. "/documents/{id}/file")
        """
        pass

    @abstractmethod
    def _get_endpoint_document_download(self, document_id: int) -> str:
        """
        Returns the endpoint path for downloading the attached file of a document (e.g. "/documents/{id}/download")
        """
        pass

    @abstractmethod
    def _get_endpoint_document_ocr_text(self, document_id: int) -> str:
        """
        Returns the endpoint path for the OCR text of a document (e.g. "/documents/{id}/ocr/text")
        """
        pass

    ################ PAYLOADS ##################
    @abstractmethod
    def _get_payload_login(self, request: LoginRequest) -> dict:
        pass

    @abstractmethod
    def _get_payload_register(self, request: RegisterRequest) -> dict:
        pass

    ##########################################
    ################ SETTER ##################
    ##########################################

    def set_token(self, token: str | None) -> None:
        """
        Sets the bearer token sent with every subsequent request, None sends no Authorization header.
        """
        self._token = token

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ############# AUTH REQUESTS ##############
    async def do_validate(self) -> UserDetails:
        """
        Validates the currently set token against the backend.

        Returns:
            UserDetails: The user the token belongs to.
        Raises:
            DMSAuthExpiredError: If the token is rejected.
            DMSClientError: On any other failure.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_validate())
        return self._parse_response(resp, self._parse_endpoint_auth).user

    async def do_login(self, request: LoginRequest) -> AuthResponse:
        """
        Logs in with username and password.

        Args:
            request (LoginRequest): The credentials.

        Returns:
            AuthResponse: The issued token and the user.
        Raises:
            DMSClientError: If the credentials are rejected or the request fails.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_login(),
            json=self._get_payload_login(request),
            expire_session_on_401=False,
        )
        return self._parse_response(resp, self._parse_endpoint_auth)

    async def do_register(self, request: RegisterRequest) -> AuthResponse:
        """
        Registers a new account.

        Args:
            request (RegisterRequest): All registration fields.

        Returns:
            AuthResponse: The issued token and the new user.
        Raises:
            DMSClientError: If the registration is rejected or the request fails.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_register(),
            json=self._get_payload_register(request),
            expire_session_on_401=False,
        )
        return self._parse_response(resp, self._parse_endpoint_auth)

    ############# LISTING REQUESTS ##############
    async def do_search_documents(self, term: str) -> DocumentsListResponse:
        """
        Lists the documents whose metadata match the term. An empty term lists all documents.

        Args:
            term (str): The search term.

        Returns:
            DocumentsListResponse: The first page as returned by the backend.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_documents(),
            params=self._get_endpoint_documents_search_params(term),
        )
        documents_list_response = self._parse_response(resp, self._parse_endpoint_documents)
        self.logging.debug("Fetched %d documents from %s for metadata term %r", len(documents_list_response.documents), self._get_engine_name(), term)
        return documents_list_response

    async def do_search_documents_ocr(self, term: str) -> DocumentsListResponse:
        """
        Lists the documents whose OCR text matches the term.

        Args:
            term (str): The search term.

        Returns:
            DocumentsListResponse: The first page as returned by the backend.
        """
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_ocr_search(),
            params=self._get_endpoint_ocr_search_params(term),
        )
        documents_list_response = self._parse_response(resp, self._parse_endpoint_documents)
        self.logging.debug("Fetched %d documents from %s for OCR term %r", len(documents_list_response.documents), self._get_engine_name(), term)
        return documents_list_response

    ############# DOCUMENT REQUESTS ##############
    async def do_create_document(self, request: DocumentRequest, file: UploadFile | None = None) -> DocumentDetails | None:
        """
        Creates a document from metadata and an optional file, sent as a single multipart request.

        Returns:
            DocumentDetails | None: The created document, None if the backend answered without a body.
        """
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_documents(),
            files=self._build_document_multipart(request, file),
        )
        if self._is_empty_body(resp):
            return None
        return self._parse_response(resp, self._parse_endpoint_document)

    async def do_update_document(self, document_id: int, request: DocumentRequest, file: UploadFile | None = None) -> DocumentDetails | None:
        """
        Replaces the metadata of a document and, if given, its attached file.

        Returns:
            DocumentDetails | None: The updated document, None if the backend answered without a body.
        """
        resp = await self.do_request(
            method="PUT",
            endpoint=self._get_endpoint_document_details(document_id),
            files=self._build_document_multipart(request, file),
        )
        if self._is_empty_body(resp):
            return None
        return self._parse_response(resp, self._parse_endpoint_document)

    async def do_delete_document(self, document_id: int) -> None:
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_document_details(document_id))

    async def do_upload_file(self, document_id: int, file: UploadFile) -> None:
        await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_document_upload(document_id),
            files={"file": file.to_multipart()},
        )

    async def do_delete_file(self, document_id: int) -> None:
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_document_file(document_id))

    async def do_download_file(self, document_id: int) -> bytes:
        """
        Downloads the raw bytes of the file attached to a document.

        Returns:
            bytes: The file content.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document_download(document_id))
        return resp.content

    async def do_fetch_ocr_text(self, document_id: int) -> OcrText:
        """
        Fetches the OCR text extracted from the file attached to a document.

        Returns:
            OcrText: The text, with has_text=False if nothing was extracted.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document_ocr_text(document_id))
        return self._parse_response(resp, self._parse_endpoint_ocr_text, document_id)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_document_multipart(self, request: DocumentRequest, file: UploadFile | None) -> dict:
        """
        Builds the multipart body for create and update: a JSON "document" part plus an optional "file" part.
        """
        files: dict = {
            "document": (None, json.dumps(self._get_payload_document(request)).encode("utf-8"), "application/json"),
        }
        if file is not None:
            files["file"] = file.to_multipart()
        return files

    def _get_payload_document(self, request: DocumentRequest) -> dict:
        return request.to_payload()

    def _is_empty_body(self, resp: httpx.Response) -> bool:
        return resp.status_code == 204 or not resp.content.strip()

    def _parse_response(self, resp: httpx.Response, parser: Callable[..., Any], *args: Any) -> Any:
        """
        Decodes a successful response and hands it to the engine parser.

        Args:
            resp (httpx.Response): The 2xx response.
            parser (Callable): One of the _parse_endpoint_* methods.
            *args: Extra arguments for the parser.

        Raises:
            DMSServerError: If the body is not JSON or does not fit the expected model.
        """
        try:
            return parser(resp.json(), *args)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # pydantic's ValidationError and json's JSONDecodeError are both ValueErrors
            self.logging.error("Could not parse response of %s %s: %s", resp.request.method, resp.request.url, e)
            raise DMSServerError(INVALID_RESPONSE_MESSAGE, resp.status_code) from e

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_auth(self, response: dict) -> AuthResponse:
        pass

    @abstractmethod
    def _parse_endpoint_documents(self, response: dict) -> DocumentsListResponse:
        pass

    @abstractmethod
    def _parse_endpoint_document(self, response: dict) -> DocumentDetails:
        pass

    @abstractmethod
    def _parse_endpoint_ocr_text(self, response: dict, document_id: int) -> OcrText:
        pass
