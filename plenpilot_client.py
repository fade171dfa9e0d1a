"""PlenPilot API client.

A small wrapper around the PlenPilot REST API for scripts and field
devices.  It uses the ``requests`` library and follows one
convention for every call: methods return a tuple ``(data, error)``.
On success ``error`` is ``None``; on failure ``data`` is empty and
``error`` is a dictionary with ``status_code`` and ``message``.

Typical use::

    client = PlenPilotClient(base_url="https://plenpilot.example.com")
    client.login("ola@plenpilot.no", "secret")
    locations, error = client.weekly_status(week=21)
    client.submit_time_entry(location_id=3, hours=1.5, tagged_employee_ids=[4])
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

Error = Dict[str, Any]


class PlenPilotClient:
    """Client for the PlenPilot API.

    The bearer token is either passed in as ``api_key`` (for example a
    long‑lived token from ``create_token.py``) or obtained with
    :meth:`login`.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request against ``API_PREFIX + path``.

        Returns ``(parsed_json, None)`` on success and
        ``(None, {"status_code", "message"})`` on failure.  Empty
        responses (e.g. 204) yield ``(None, None)``.
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("detail") or err_json.get("message") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Log in and keep the returned token for subsequent calls."""
        data, error = self._request("POST", "/auth/login", json_body={"email": email, "password": password})
        if error:
            return None, error
        self.api_key = data["access_token"]
        return data.get("user"), None

    def register_device(self, fcm_token: Optional[str]) -> Tuple[bool, Optional[Error]]:
        """Register the device's FCM token; ``None`` unregisters it."""
        _, error = self._request("PUT", "/auth/me/fcm-token", json_body={"token": fcm_token})
        return error is None, error

    # ------------------------------------------------------------------
    # Locations and time entries
    # ------------------------------------------------------------------
    def weekly_status(
        self, week: Optional[int] = None, year: Optional[int] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Locations with their status for an ISO week (current week by default)."""
        data, error = self._request("GET", "/locations/weekly-status", params={"week": week, "year": year})
        if error:
            return [], error
        return data or [], None

    def submit_time_entry(
        self,
        *,
        location_id: int,
        hours: float,
        edge_cutting_done: bool = False,
        mower_id: Optional[int] = None,
        notes: str = "",
        tagged_employee_ids: Optional[List[int]] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        payload = {
            "location_id": location_id,
            "hours": hours,
            "edge_cutting_done": edge_cutting_done,
            "mower_id": mower_id,
            "notes": notes,
            "tagged_employee_ids": tagged_employee_ids or [],
        }
        return self._request("POST", "/time-entries/", json_body=payload)

    def pending_time_entries(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        data, error = self._request("GET", "/time-entries/pending")
        if error:
            return [], error
        return data or [], None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def unread_notifications(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        data, error = self._request("GET", "/notifications/unread")
        if error:
            return [], error
        return data or [], None

    def mark_notification_read(self, notification_id: int) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("POST", f"/notifications/{notification_id}/read")
        return error is None, error

    def send_bulk_notification(
        self,
        user_ids: List[int],
        title: str,
        message: str,
        type: str = "general",
        custom_data: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Send the same notification to several users (admin token required)."""
        payload = {
            "user_ids": user_ids,
            "title": title,
            "message": message,
            "type": type,
            "custom_data": custom_data or {},
        }
        return self._request("POST", "/notifications/bulk", json_body=payload)
