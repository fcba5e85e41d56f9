"""
HTTP client for the Portfolio API and the admin-details provider used by
pages that show contact info and the banner.
"""

import logging
from typing import Optional

import requests

from errors import NotFound, UpstreamError, ValidationError
from schemas import AdminSettings, ContactMessage, WorkItem, WorkPage

logger = logging.getLogger(__name__)


class PortfolioClient:
    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise UpstreamError(f"Request to {path} failed") from exc
        if resp.status_code >= 400:
            try:
                message = resp.json().get("error")
            except ValueError:
                message = None
            message = message or f"HTTP {resp.status_code}"
            if resp.status_code == 404:
                raise NotFound(message)
            if resp.status_code == 400:
                raise ValidationError(message)
            raise UpstreamError(message)
        return resp.json()

    def list_works(self, page: int = 1, limit: int = 5) -> WorkPage:
        return WorkPage.model_validate(self._request("GET", "/api/works", params={"page": page, "limit": limit}))

    def get_work(self, work_id: str) -> WorkItem:
        return WorkItem.model_validate(self._request("GET", f"/api/works/{work_id}"))

    def delete_work(self, work_id: str, token: Optional[str] = None) -> bool:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return bool(self._request("DELETE", f"/api/works/{work_id}", headers=headers).get("success"))

    def get_admin_details(self) -> AdminSettings:
        return AdminSettings.model_validate(self._request("GET", "/api/admin-details"))

    def submit_contact(self, msg: ContactMessage) -> None:
        self._request("POST", "/api/contact-form", json=msg.model_dump())


class AdminDetailsProvider:
    """Holds admin details for one session. `load()` on mount, `refetch()` after edits."""

    def __init__(self, client: PortfolioClient) -> None:
        self.client = client
        self.details: Optional[AdminSettings] = None
        self.loading = True
        self.error: Optional[Exception] = None

    def load(self) -> Optional[AdminSettings]:
        if self.details is not None:
            return self.details
        return self.refetch()

    def refetch(self) -> Optional[AdminSettings]:
        self.loading = True
        try:
            self.details = self.client.get_admin_details()
            self.error = None
        except (UpstreamError, NotFound, ValidationError) as exc:
            logger.error("Error fetching admin details: %s", exc)
            self.error = exc
        finally:
            self.loading = False
        return self.details
