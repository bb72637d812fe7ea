"""In-memory fake of the document manager REST backend, served through httpx.MockTransport."""

from __future__ import annotations

import asyncio
import email
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

BASE_URL = "http://dms.test/api"


def make_helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("tests")))


@dataclass
class RecordedCall:
    method: str
    path: str
    params: dict[str, str]
    authorization: str | None


@dataclass
class StoredDocument:
    id: int
    title: str
    number: str
    date: str
    description: str = ""
    filename: str | None = None
    file_content: bytes | None = None
    content_type: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "number": self.number,
            "date": self.date,
            "description": self.description,
            "createdAt": "2024-01-01T10:00:00",
            "updatedAt": "2024-01-01T10:00:00",
            "hasFile": self.file_content is not None,
            "originalFilename": self.filename,
            "contentType": self.content_type,
            "fileSize": len(self.file_content) if self.file_content is not None else None,
            "uploadedAt": "2024-01-01T10:00:00" if self.file_content is not None else None,
            "ocrProcessed": self.file_content is not None,
            "ocrSupported": self.file_content is not None,
        }

    def ocr_text(self) -> str:
        if self.file_content is None:
            return ""
        return self.file_content.decode("utf-8", errors="ignore")


@dataclass
class FakeDocumentBackend:
    """Keeps users, tokens and documents in memory and records every request."""

    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)
    documents: dict[int, StoredDocument] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)
    failures: dict[tuple[str, str], tuple[int, Any]] = field(default_factory=dict)
    list_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    ocr_gate: asyncio.Event | None = None
    request_gates: dict[tuple[str, str], asyncio.Event] = field(default_factory=dict)
    _next_id: int = 1

    def __post_init__(self) -> None:
        self.add_user("alice", "secret", token="token-alice")

    ##########################################
    ################ SETUP ###################
    ##########################################

    def add_user(self, username: str, password: str, token: str | None = None) -> None:
        self.users[username] = {
            "id": len(self.users) + 1,
            "username": username,
            "password": password,
            "email": f"{username}@example.com",
            "firstName": username.capitalize(),
            "lastName": "Tester",
        }
        if token:
            self.tokens[token] = username

    def add_document(self, title: str, number: str, date: str = "2024-01-01", description: str = "", filename: str | None = None, file_content: bytes | None = None) -> StoredDocument:
        doc = StoredDocument(
            id=self._next_id,
            title=title,
            number=number,
            date=date,
            description=description,
            filename=filename,
            file_content=file_content,
            content_type="application/pdf" if file_content is not None else None,
        )
        self.documents[doc.id] = doc
        self._next_id += 1
        return doc

    def fail(self, method: str, path: str, status: int, body: Any = None) -> None:
        """Answer the next request to method + path with the given status."""
        self.failures[(method, path)] = (status, body)

    def revoke_all_tokens(self) -> None:
        self.tokens.clear()

    def calls_to(self, method: str, path: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == method and c.path == path]

    def list_calls(self) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == "GET" and c.path in ("/documents", "/documents/ocr/search")]

    def ocr_text_calls(self, document_id: int) -> list[RecordedCall]:
        return self.calls_to("GET", f"/documents/{document_id}/ocr/text")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    ##########################################
    ################ ROUTING #################
    ##########################################

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        params = dict(request.url.params)
        self.calls.append(RecordedCall(request.method, path, params, request.headers.get("Authorization")))

        gate = self.request_gates.get((request.method, path))
        if gate is not None:
            await gate.wait()

        failure = self.failures.pop((request.method, path), None)
        if failure is not None:
            status, body = failure
            if body is None:
                return httpx.Response(status)
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)

        if path == "/auth/login" and request.method == "POST":
            return self._login(json.loads(request.content))
        if path == "/auth/register" and request.method == "POST":
            return self._register(json.loads(request.content))

        username = self._authenticated_user(request)
        if username is None:
            return httpx.Response(401, text="Invalid token")

        if path == "/auth/validate" and request.method == "GET":
            token = request.headers["Authorization"][len("Bearer "):]
            return httpx.Response(200, json=self._auth_body(username, token))
        if path == "/documents" and request.method == "GET":
            term = params.get("search", "")
            await self._wait_for_gate(term)
            return self._page([d for d in self.documents.values() if self._matches_metadata(d, term)])
        if path == "/documents/ocr/search" and request.method == "GET":
            term = params.get("query", "")
            await self._wait_for_gate(term)
            return self._page([d for d in self.documents.values() if term.lower() in d.ocr_text().lower()])
        if path == "/documents" and request.method == "POST":
            return self._create(request)

        match = re.fullmatch(r"/documents/(\d+)(/.*)?", path)
        if not match:
            return httpx.Response(404, json={"message": "Not found"})
        doc = self.documents.get(int(match.group(1)))
        if doc is None:
            return httpx.Response(404, json={"message": "Document not found"})
        suffix = match.group(2) or ""

        if suffix == "" and request.method == "PUT":
            return self._update(doc, request)
        if suffix == "" and request.method == "DELETE":
            del self.documents[doc.id]
            return httpx.Response(204)
        if suffix == "/upload" and request.method == "POST":
            parts = _parse_multipart(request)
            doc.filename, doc.file_content, doc.content_type = parts["file"]
            return httpx.Response(200, json=doc.to_json())
        if suffix == "/file" and request.method == "DELETE":
            doc.filename = doc.file_content = doc.content_type = None
            return httpx.Response(200, json=doc.to_json())
        if suffix == "/download" and request.method == "GET":
            if doc.file_content is None:
                return httpx.Response(404, json={"message": "No file attached"})
            return httpx.Response(200, content=doc.file_content, headers={"Content-Type": "application/octet-stream"})
        if suffix == "/ocr/text" and request.method == "GET":
            if self.ocr_gate is not None:
                await self.ocr_gate.wait()
            text = doc.ocr_text()
            return httpx.Response(200, json={"documentId": doc.id, "ocrText": text, "hasOcrText": bool(text.strip())})
        return httpx.Response(405)

    ##########################################
    ############### HANDLERS #################
    ##########################################

    def _authenticated_user(self, request: httpx.Request) -> str | None:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return None
        return self.tokens.get(header[len("Bearer "):])

    def _auth_body(self, username: str, token: str) -> dict[str, Any]:
        user = self.users[username]
        return {
            "token": token,
            "id": user["id"],
            "username": username,
            "email": user["email"],
            "firstName": user["firstName"],
            "lastName": user["lastName"],
        }

    def _login(self, body: dict[str, Any]) -> httpx.Response:
        user = self.users.get(body.get("username", ""))
        if user is None or user["password"] != body.get("password"):
            return httpx.Response(401, text="Invalid username or password")
        token = f"token-{user['username']}-{len(self.tokens) + 1}"
        self.tokens[token] = user["username"]
        return httpx.Response(200, json=self._auth_body(user["username"], token))

    def _register(self, body: dict[str, Any]) -> httpx.Response:
        if body["username"] in self.users:
            return httpx.Response(400, text="Username is already taken!")
        self.add_user(body["username"], body["password"])
        user = self.users[body["username"]]
        user["email"] = body["email"]
        user["firstName"] = body["firstName"]
        user["lastName"] = body["lastName"]
        token = f"token-{body['username']}"
        self.tokens[token] = body["username"]
        return httpx.Response(200, json=self._auth_body(body["username"], token))

    def _create(self, request: httpx.Request) -> httpx.Response:
        parts = _parse_multipart(request)
        meta = json.loads(parts["document"][1])
        doc = self.add_document(meta["title"], meta["number"], meta["date"], meta.get("description", ""))
        if "file" in parts:
            doc.filename, doc.file_content, doc.content_type = parts["file"]
        return httpx.Response(201, json=doc.to_json())

    def _update(self, doc: StoredDocument, request: httpx.Request) -> httpx.Response:
        parts = _parse_multipart(request)
        meta = json.loads(parts["document"][1])
        doc.title = meta["title"]
        doc.number = meta["number"]
        doc.date = meta["date"]
        doc.description = meta.get("description", "")
        if "file" in parts:
            doc.filename, doc.file_content, doc.content_type = parts["file"]
        return httpx.Response(200, json=doc.to_json())

    def _matches_metadata(self, doc: StoredDocument, term: str) -> bool:
        term = term.lower()
        return term in doc.title.lower() or term in doc.number.lower() or term in doc.description.lower()

    def _page(self, docs: list[StoredDocument]) -> httpx.Response:
        return httpx.Response(200, json={
            "content": [d.to_json() for d in docs],
            "number": 0,
            "size": 20,
            "totalElements": len(docs),
            "totalPages": 1 if docs else 0,
        })

    async def _wait_for_gate(self, term: str) -> None:
        gate = self.list_gates.get(term)
        if gate is not None:
            await gate.wait()


def _parse_multipart(request: httpx.Request) -> dict[str, tuple[str | None, bytes, str]]:
    """Parse a multipart/form-data body into {name: (filename, content, content_type)}."""
    raw = b"Content-Type: " + request.headers["Content-Type"].encode() + b"\r\n\r\n" + request.read()
    message = email.message_from_bytes(raw)
    parts: dict[str, tuple[str | None, bytes, str]] = {}
    for part in message.get_payload():
        name = part.get_param("name", header="content-disposition")
        parts[name] = (part.get_filename(), part.get_payload(decode=True), part.get_content_type())
    return parts


async def start_logged_in(coordinator, backend: FakeDocumentBackend, token_store) -> None:
    """Start the coordinator with alice's persisted token and forget the startup requests."""
    token_store.save("token-alice")
    assert await coordinator.start(transport=backend.transport())
    backend.calls.clear()
