from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, List

import httpx

MARCH = date(2025, 3, 1)
MARCH_DUE = date(2025, 4, 5)

ADMIN_USER_ID = "admin-user-1"
TENANT_USER_ID = "tenant-user-1"


class FakeLineApi:
    """httpx.MockTransport handler that records pushes."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code >= 400:
            return httpx.Response(self.status_code, json={"message": "The request was rejected"})
        return httpx.Response(200, json={"sentMessages": [{"id": f"msg-{len(self.requests)}"}]})

    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


class FailingJobQueue:
    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> str:
        raise ConnectionError("broker unavailable")
