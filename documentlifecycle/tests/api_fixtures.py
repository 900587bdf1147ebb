"""
In-process stand-in for the document persistence API, served through
``httpx.MockTransport``. It applies the server-side transitions the client
relies on (approve/reject/assign, signer fan-in) so tests can observe the
re-fetched state.
"""
from __future__ import annotations

import copy
import json
import re
from typing import Any, Dict, List, Optional

import httpx

from documentlifecycle.logic.api.document_api_client import DocumentApiClient

BASE_URL = "http://docs.test/api"
_ROUTE = re.compile(r"^/api/documents/(\d+)(?:/([a-z-]+))?$")


def task(role: str, email: str, name: str = "", **extra: Any) -> Dict[str, Any]:
    data = {"role": role, "assignedUserEmail": email, "assignedUserName": name or email.split("@")[0],
            "createdAt": "2024-03-14T09:05:00Z"}
    data.update(extra)
    return data


def signer_slot(field_id: str, email: str, value: str = "") -> Dict[str, Any]:
    return {"id": field_id, "type": "signer_signature", "x": 100, "y": 1500, "width": 300, "height": 100,
            "page": 1, "signerEmail": email, "value": value}


def document(doc_id: int = 7, status: str = "DRAFT", tasks: Optional[List[Dict[str, Any]]] = None,
             fields: Optional[List[Dict[str, Any]]] = None, **extra: Any) -> Dict[str, Any]:
    data = {
        "id": doc_id,
        "title": "Purchase order",
        "status": status,
        "tasks": tasks or [],
        "data": {"coordinateFields": fields or [], "signatureFields": [], "signatures": {}},
        "template": {"pdfImagePaths": "[./uploads/po-1.png]"},
    }
    data.update(extra)
    return data


class FakeDocumentServer:
    """Holds wire documents by id and records every request."""

    def __init__(self, *docs: Dict[str, Any]) -> None:
        self.docs: Dict[int, Dict[str, Any]] = {d["id"]: copy.deepcopy(d) for d in docs}
        self.requests: List[httpx.Request] = []
        self.fail_with: Dict[str, httpx.Response] = {}

    # -------- Transport ---------------------------------------------------- #
    def client(self, token: str) -> DocumentApiClient:
        return DocumentApiClient(token, base_url=BASE_URL, timeout=5, transport=httpx.MockTransport(self.handle))

    def bodies(self, action: str) -> List[Dict[str, Any]]:
        out = []
        for r in self.requests:
            if r.url.path.endswith(f"/{action}") and r.content:
                out.append(json.loads(r.content))
        return out

    def calls(self, method: str) -> int:
        return sum(1 for r in self.requests if r.method == method)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = _ROUTE.match(request.url.path)
        if match is None:
            return httpx.Response(200, content=b"\x89PNG asset")
        doc_id, action = int(match.group(1)), match.group(2) or ""
        key = f"{request.method} {action}".strip()
        if key in self.fail_with:
            return self.fail_with[key]
        doc = self.docs.get(doc_id)
        if doc is None:
            return httpx.Response(404, json={"message": "not found"})
        body = json.loads(request.content) if request.content else {}

        if request.method == "GET" and not action:
            return httpx.Response(200, json=doc)
        if request.method == "PUT" and not action:
            doc["data"] = body["data"]
            if doc["status"] in ("DRAFT", "EDITING") and doc["data"].get("signatureFields"):
                doc["status"] = "READY_FOR_REVIEW"
            return httpx.Response(200, json=doc)
        if action == "assign-reviewer":
            doc["tasks"].append(task("REVIEWER", body["reviewerEmail"]))
            doc["status"] = "REVIEWING"
            return httpx.Response(200, json=doc)
        if action == "approve":
            return self._approve(doc, body)
        if action == "reject":
            doc["status"] = "REJECTED"
            doc.setdefault("statusLogs", []).append({"status": "REJECTED", "comment": body["reason"]})
            return httpx.Response(200, json=doc)
        if action == "mark-viewed":
            return httpx.Response(204)
        return httpx.Response(400, json={"message": f"unsupported {key}"})

    # -------- Transitions -------------------------------------------------- #
    def _approve(self, doc: Dict[str, Any], body: Dict[str, Any]) -> httpx.Response:
        if doc["status"] in ("READY_FOR_REVIEW", "REVIEWING"):
            doc["status"] = "SIGNING"
            return httpx.Response(200, json=doc)
        # tests use the signer's e-mail as bearer token
        auth = self.requests[-1].headers.get("Authorization", "").removeprefix("Bearer ")
        for f in doc["data"]["coordinateFields"]:
            if f.get("type") == "signer_signature" and f.get("signerEmail") == auth:
                f["value"] = body["signatureData"]
        signers = {t["assignedUserEmail"] for t in doc["tasks"] if t["role"] == "SIGNER"}
        signed = {f["signerEmail"] for f in doc["data"]["coordinateFields"]
                  if f.get("type") == "signer_signature" and f.get("value")}
        doc["status"] = "COMPLETED" if signers <= signed else "SIGNING"
        return httpx.Response(200, json=doc)
