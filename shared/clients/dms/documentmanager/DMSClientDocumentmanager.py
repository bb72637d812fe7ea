from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.clients.dms.models.Document import DocumentsListResponse, DocumentDetails
from shared.clients.dms.models.User import AuthResponse, LoginRequest, RegisterRequest, UserDetails
from shared.clients.dms.models.OcrText import OcrText
from datetime import date, datetime


class DMSClientDocumentmanager(DMSClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Documentmanager"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
        ]

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_validate(self) -> str:
        return "/auth/validate"

    def _get_endpoint_login(self) -> str:
        return "/auth/login"

    def _get_endpoint_register(self) -> str:
        return "/auth/register"

    def _get_endpoint_documents(self) -> str:
        return "/documents"

    def _get_endpoint_documents_search_params(self, term: str) -> dict:
        return {"search": term}

    def _get_endpoint_ocr_search(self) -> str:
        return "/documents/ocr/search"

    def _get_endpoint_ocr_search_params(self, term: str) -> dict:
        return {"query": term}

    def _get_endpoint_document_details(self, document_id: int) -> str:
        return f"/documents/{document_id}"

    def _get_endpoint_document_upload(self, document_id: int) -> str:
        return f"/documents/{document_id}/upload"

    def _get_endpoint_document_file(self, document_id: int) -> str:
        return f"/documents/{document_id}/file"

    def _get_endpoint_document_download(self, document_id: int) -> str:
        return f"/documents/{document_id}/download"

    def _get_endpoint_document_ocr_text(self, document_id: int) -> str:
        return f"/documents/{document_id}/ocr/text"

    ################ PAYLOADS ##################
    def _get_payload_login(self, request: LoginRequest) -> dict:
        return {"username": request.username, "password": request.password}

    def _get_payload_register(self, request: RegisterRequest) -> dict:
        return {
            "username": request.username,
            "password": request.password,
            "email": request.email,
            "firstName": request.firstname,
            "lastName": request.lastname,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_endpoint_auth(self, response: dict) -> AuthResponse:
        # the backend flattens the token and the user fields into one object
        return AuthResponse(
            token=response.get("token") or "",
            user=UserDetails(
                engine=self._get_engine_name(),
                id=response.get("id"),
                username=response.get("username"),
                email=response.get("email"),
                firstname=response.get("firstName"),
                lastname=response.get("lastName"),
            ),
        )

    def _parse_endpoint_documents(self, response: dict) -> DocumentsListResponse:
        # spring data page: {"content": [...], "number": 0, "totalElements": n, "totalPages": m, "size": s}
        docs = [self._parse_endpoint_document(item) for item in (response.get("content") or [])]
        total_pages = response.get("totalPages")
        return DocumentsListResponse(
            engine=self._get_engine_name(),
            documents=docs,
            currentPage=response.get("number") or 0,
            overallCount=response.get("totalElements"),
            pageLength=response.get("size"),
            lastPage=total_pages - 1 if total_pages else None,
        )

    def _parse_endpoint_document(self, response: dict) -> DocumentDetails:
        return DocumentDetails(
                #base
                engine=self._get_engine_name(),
                id=response.get("id"),

                #details
                title=response.get("title"),
                number=response.get("number"),
                date=date.fromisoformat(response.get("date")) if response.get("date") else None,
                description=response.get("description"),
                created_at=datetime.fromisoformat(response.get("createdAt")) if response.get("createdAt") else None,
                updated_at=datetime.fromisoformat(response.get("updatedAt")) if response.get("updatedAt") else None,

                #attachment
                has_file=bool(response.get("hasFile")),
                original_filename=response.get("originalFilename"),
                content_type=response.get("contentType"),
                file_size=response.get("fileSize"),
                uploaded_at=datetime.fromisoformat(response.get("uploadedAt")) if response.get("uploadedAt") else None,

                #ocr
                ocr_processed=bool(response.get("ocrProcessed")),
                ocr_supported=bool(response.get("ocrSupported")),
            )

    def _parse_endpoint_ocr_text(self, response: dict, document_id: int) -> OcrText:
        text = response.get("ocrText") or ""
        has_text = response.get("hasOcrText")
        if has_text is None:
            has_text = bool(text.strip())
        return OcrText(
            engine=self._get_engine_name(),
            document_id=response.get("documentId") or document_id,
            text=text,
            has_text=bool(has_text) and bool(text.strip()),
        )
