"""Collaboration request workflow over the authenticated session."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..core.models import CollaborationOverview, CollaborationRequest, CollaborationStatus
from ..exceptions import CollaborationError, InvalidTransitionError, NotAuthorizedError, RDConnectError
from ..session.manager import SessionManager
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _find(records: List[CollaborationRequest], request_id: int) -> Tuple[int, Optional[CollaborationRequest]]:
    for index, record in enumerate(records):
        if record.id == request_id:
            return index, record
    return -1, None


def _upsert(records: List[CollaborationRequest], record: CollaborationRequest) -> None:
    index, _ = _find(records, record.id)
    if index >= 0:
        records[index] = record
    else:
        records.append(record)


class CollaborationWorkflow:
    """Send, list and answer collaboration requests."""

    BASE_PATH = "/api/papers/collaboration"

    def __init__(self, session: SessionManager) -> None:
        self.session = session
        self.sent: List[CollaborationRequest] = []
        self.received: List[CollaborationRequest] = []
        # Last confirmed copy of received records with an update in flight
        self._confirmed: Dict[int, CollaborationRequest] = {}
        self._in_flight: Dict[int, int] = {}

    @staticmethod
    def _parse_list(payload: Any) -> List[CollaborationRequest]:
        # Paginated backends wrap the list in {"results": [...]}
        if isinstance(payload, dict) and "results" in payload:
            payload = payload["results"]
        if not isinstance(payload, list):
            raise CollaborationError("Unexpected response for collaboration requests")
        return [CollaborationRequest.model_validate(item) for item in payload]

    async def send(self, to_researcher_id: int, message: str) -> CollaborationRequest:
        if not message or not message.strip():
            raise CollaborationError("Message cannot be empty")
        payload = await self.session.authorized_request(
            "POST",
            f"{self.BASE_PATH}/send/",
            json={"to_researcher": to_researcher_id, "message": message},
        )
        request = CollaborationRequest.model_validate(payload)
        _upsert(self.sent, request)
        logger.info("Sent collaboration request", extra={"request_id": request.id, "to_researcher": to_researcher_id})
        return request

    async def list_sent(self) -> List[CollaborationRequest]:
        payload = await self.session.authorized_request("GET", f"{self.BASE_PATH}/sent/")
        self.sent = self._parse_list(payload)
        return list(self.sent)

    async def list_received(self) -> List[CollaborationRequest]:
        """Requests addressed to the current researcher; empty (no call) otherwise."""
        if not self.session.is_researcher:
            self.received = []
            return []
        payload = await self.session.authorized_request("GET", f"{self.BASE_PATH}/received/")
        self.received = self._parse_list(payload)
        return list(self.received)

    async def refresh(self) -> CollaborationOverview:
        results = await asyncio.gather(self.list_sent(), self.list_received(), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        sent, received = results
        return CollaborationOverview(sent=sent, received=received)

    async def update_status(
        self,
        request_id: int,
        new_status: Union[CollaborationStatus, str],
    ) -> CollaborationRequest:
        """
        Accept or reject a received request.

        The local record switches to ``new_status`` tagged
        ``pending_confirmation`` while the call is in flight, then is
        replaced by the server's record. When the last in-flight update
        on a request fails, its last confirmed record is restored.
        Concurrent calls on one id are all dispatched; the backend
        decides which one wins.

        Raises:
            CollaborationError: Unknown target status
            InvalidTransitionError: The request is already accepted or rejected
            NotAuthorizedError: The current identity is not a researcher
            RDConnectError: The backend refused the update
        """
        try:
            target = CollaborationStatus(new_status)
        except ValueError:
            raise CollaborationError(f"Unknown collaboration status: {new_status}") from None
        if target is CollaborationStatus.PENDING:
            raise CollaborationError("A collaboration request can only be accepted or rejected")
        if not self.session.is_researcher:
            raise NotAuthorizedError("Only researchers can answer collaboration requests")

        index, current = _find(self.received, request_id)
        if current is not None:
            # Only a server-confirmed status is terminal
            if current.status.is_terminal and not current.pending_confirmation:
                raise InvalidTransitionError(request_id, current.status, target)
            self._confirmed.setdefault(request_id, current)
            self.received[index] = current.model_copy(update={"status": target, "pending_confirmation": True})
        self._in_flight[request_id] = self._in_flight.get(request_id, 0) + 1
        prior = self._confirmed.get(request_id)

        try:
            payload = await self.session.authorized_request(
                "PATCH",
                f"{self.BASE_PATH}/update/{request_id}/",
                json={"status": target.value},
            )
        except RDConnectError as e:
            if self._settle(request_id):
                baseline = self._confirmed.pop(request_id, None)
                if baseline is not None:
                    _upsert(self.received, baseline)
            logger.warning(f"Status update failed for request {request_id}: {e.message}")
            raise

        self._settle(request_id)
        self._confirmed.pop(request_id, None)
        confirmed = self._confirmed_record(payload, prior, target)
        if confirmed is None:
            # Partial answer about a record we never listed: reload the inbox
            await self.list_received()
            _, confirmed = _find(self.received, request_id)
            if confirmed is None:
                raise CollaborationError(f"Collaboration request {request_id} not found after update")
        else:
            _upsert(self.received, confirmed)
        logger.info("Updated collaboration request", extra={"request_id": request_id, "status": confirmed.status.value})
        return confirmed

    def _settle(self, request_id: int) -> bool:
        """Mark one update on ``request_id`` as finished; True if it was the last."""
        remaining = self._in_flight.pop(request_id) - 1
        if remaining:
            self._in_flight[request_id] = remaining
        return remaining == 0

    @staticmethod
    def _confirmed_record(
        payload: Any,
        prior: Optional[CollaborationRequest],
        target: CollaborationStatus,
    ) -> Optional[CollaborationRequest]:
        try:
            return CollaborationRequest.model_validate(payload)
        except ValidationError:
            pass
        if prior is None:
            return None
        status = target
        if isinstance(payload, dict) and "status" in payload:
            try:
                status = CollaborationStatus(payload["status"])
            except ValueError:
                pass
        return prior.model_copy(update={"status": status, "pending_confirmation": False})
