import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from mear.utils.exceptions import DraftNotFoundError, RegistryError

logger = logging.getLogger(__name__)


@dataclass
class DraftRecord:
    """A draft as stored by the registry backend."""
    id: str
    form: Dict[str, Any] = field(default_factory=dict)
    current_phase: Optional[str] = None
    hospital_no: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DraftRecord":
        return cls(
            id=str(payload["id"]),
            form=payload.get("form") or {},
            current_phase=payload.get("currentPhase"),
            hospital_no=payload.get("hospitalNo"),
            updated_at=payload.get("updatedAt"),
        )


class RegistryClient:
    """
    Async client for the registry backend.

    Endpoints:
    1. /auth/login   — exchange credentials for a bearer token
    2. /api/draft    — create / upsert / fetch / delete in-progress drafts
    3. /api/mear     — persist and read completed case records

    Every failure (transport error or non-2xx) is raised as RegistryError so
    callers decide how to degrade.  A 404 on a draft lookup is raised as
    DraftNotFoundError.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:4000",
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

        if not self.token:
            logger.warning("No registry token configured; authenticated calls will be rejected until login().")

    # ── plumbing ──────────────────────────────────────────────────────────
    def _headers(self, authenticated: bool = True) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    headers=self._headers(authenticated),
                )
        except httpx.HTTPError as e:
            logger.error(f"Registry {method} {path} failed: {e}")
            raise RegistryError(f"Could not reach registry backend: {e}", endpoint=path) from e

        if response.status_code >= 400:
            logger.error(f"Registry {method} {path} error {response.status_code}: {response.text[:200]}")
            raise RegistryError(
                f"Registry returned {response.status_code}",
                status_code=response.status_code,
                endpoint=path,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"items": data}

    @staticmethod
    def _draft_params(draft_id: Optional[str], hospital_no: Optional[str]) -> Dict[str, str]:
        if draft_id is not None:
            return {"draftId": str(draft_id)}
        if hospital_no:
            return {"hospitalNo": hospital_no}
        raise ValueError("draft_id or hospital_no is required")

    # ── auth ──────────────────────────────────────────────────────────────
    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """POST /auth/login; stores the returned token on the client."""
        response = await self._request(
            "POST", "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        data = self._json(response)
        self.token = data.get("token")
        logger.info("Registry login succeeded")
        return data

    # ── drafts ────────────────────────────────────────────────────────────
    async def create_draft(self, form: Dict[str, Any], current_phase: str) -> Dict[str, Any]:
        """POST /api/draft → {id, hospitalNo?}"""
        response = await self._request(
            "POST", "/api/draft",
            json={"form": form, "currentPhase": current_phase},
        )
        return self._json(response)

    async def update_draft(
        self,
        draft_id: Optional[str],
        form: Dict[str, Any],
        current_phase: str,
        hospital_no: Optional[str] = None,
    ) -> Dict[str, Any]:
        """PUT /api/draft (upsert) → {id, hospitalNo}"""
        response = await self._request(
            "PUT", "/api/draft",
            json={
                "form": form,
                "currentPhase": current_phase,
                "hospitalNo": hospital_no,
                "draftId": draft_id,
            },
        )
        return self._json(response)

    async def get_draft(
        self,
        draft_id: Optional[str] = None,
        hospital_no: Optional[str] = None,
    ) -> DraftRecord:
        params = self._draft_params(draft_id, hospital_no)
        try:
            response = await self._request("GET", "/api/draft", params=params)
        except RegistryError as e:
            if e.status_code == 404:
                raise DraftNotFoundError(draft_id=draft_id, hospital_no=hospital_no) from e
            raise
        return DraftRecord.from_payload(self._json(response))

    async def delete_draft(
        self,
        draft_id: Optional[str] = None,
        hospital_no: Optional[str] = None,
    ) -> None:
        params = self._draft_params(draft_id, hospital_no)
        await self._request("DELETE", "/api/draft", params=params)
        logger.info(f"Registry draft deleted ({params})")

    # ── completed cases ───────────────────────────────────────────────────
    async def submit_case(self, form: Dict[str, Any]) -> Dict[str, Any]:
        """POST /api/mear with the final snapshot → {id}"""
        response = await self._request("POST", "/api/mear", json=form)
        return self._json(response)

    async def get_case(self, case_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/api/mear/{case_id}")
        return self._json(response)

    async def list_cases(self, limit: int = 20) -> List[Dict[str, Any]]:
        response = await self._request("GET", "/api/mear", params={"limit": limit})
        data = self._json(response)
        items = data.get("items", data.get("cases", []))
        return items if isinstance(items, list) else []
