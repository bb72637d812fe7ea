"""Process-wide state owned by the coordinator services.

The services mutate ViewState directly; everything outside the coordinator
only ever sees the frozen ViewSnapshot returned by DocumentCoordinator.get_view().
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from shared.clients.dms.models.Document import DocumentDetails
from shared.clients.dms.models.User import UserDetails
from shared.helper.HelperHighlight import TextSegment, highlight_text


class SessionStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    VALIDATING = "validating"
    AUTHENTICATED = "authenticated"


class AuthMode(str, Enum):
    LOGIN = "login"
    REGISTER = "register"


class UserMessage(BaseModel):
    """A notice shown to the user, e.g. a failed request or a successful upload."""

    model_config = ConfigDict(frozen=True)

    level: str
    text: str


class SearchState(BaseModel):
    draft_term: str = ""
    committed_term: str = ""
    ocr_mode: bool = False


class EditorState(BaseModel):
    is_open: bool = False
    editing_id: int | None = None


class OcrViewState(BaseModel):
    is_open: bool = False
    document_id: int | None = None
    title: str = ""
    text: str = ""
    keyword: str = ""
    is_loading: bool = False


class ViewSnapshot(BaseModel):
    """Read-only copy of the coordinator state, handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    session_status: SessionStatus
    user: UserDetails | None = None
    auth_prompt_visible: bool
    auth_mode: AuthMode
    search: SearchState
    documents: list[DocumentDetails]
    is_loading: bool
    editor: EditorState
    ocr_view: OcrViewState
    ocr_segments: list[TextSegment]
    messages: list[UserMessage]


class ViewState:
    """Mutable state shared by the coordinator services."""

    def __init__(self) -> None:
        self.session_status: SessionStatus = SessionStatus.UNAUTHENTICATED
        self.user: UserDetails | None = None
        self.auth_prompt_visible: bool = False
        self.auth_mode: AuthMode = AuthMode.LOGIN
        self.search = SearchState()
        self.documents: list[DocumentDetails] = []
        self.is_loading: bool = False
        self.editor = EditorState()
        self.ocr_view = OcrViewState()
        self.messages: list[UserMessage] = []

    ##########################################
    ############### MESSAGES #################
    ##########################################

    def add_error(self, text: str) -> None:
        self.messages.append(UserMessage(level="error", text=text))

    def add_info(self, text: str) -> None:
        self.messages.append(UserMessage(level="info", text=text))

    def pop_messages(self) -> list[UserMessage]:
        messages, self.messages = self.messages, []
        return messages

    ##########################################
    ################ PROMPTS #################
    ##########################################

    def open_auth_prompt(self, mode: AuthMode = AuthMode.LOGIN) -> None:
        self.auth_prompt_visible = True
        self.auth_mode = mode

    def close_auth_prompt(self) -> None:
        self.auth_prompt_visible = False

    def open_editor(self, editing_id: int | None = None) -> None:
        self.editor = EditorState(is_open=True, editing_id=editing_id)

    def close_editor(self) -> None:
        self.editor = EditorState()

    def open_ocr_view(self, document_id: int, title: str, keyword: str) -> None:
        self.ocr_view = OcrViewState(is_open=True, document_id=document_id, title=title, keyword=keyword, is_loading=True)

    def close_ocr_view(self) -> None:
        self.ocr_view = OcrViewState()

    ##########################################
    ################ RESET ###################
    ##########################################

    def reset_documents(self) -> None:
        """Drop everything derived from the previous session's documents."""
        self.documents = []
        self.is_loading = False
        self.close_editor()
        self.close_ocr_view()

    ##########################################
    ############### SNAPSHOT #################
    ##########################################

    def to_snapshot(self) -> ViewSnapshot:
        return ViewSnapshot(
            session_status=self.session_status,
            user=self.user,
            auth_prompt_visible=self.auth_prompt_visible,
            auth_mode=self.auth_mode,
            search=self.search.model_copy(),
            documents=list(self.documents),
            is_loading=self.is_loading,
            editor=self.editor.model_copy(),
            ocr_view=self.ocr_view.model_copy(),
            ocr_segments=highlight_text(self.ocr_view.text, self.ocr_view.keyword),
            messages=list(self.messages),
        )
