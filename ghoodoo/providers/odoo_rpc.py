"""Odoo task client using the JSON-RPC endpoint.

Every call goes through ``POST {url}/jsonrpc`` as ``object.execute_kw``.
Transient failures (HTTP 5xx, 429, dropped connections) are retried with
exponential backoff; JSON-RPC error payloads and other HTTP errors are
raised immediately.

Chatter messages are created directly as ``mail.message`` records because
``message_post`` escapes the HTML body.
"""

from typing import Any

import httpx
import structlog

from ghoodoo.config.settings import OdooConfig, StageConfig, StageRef
from ghoodoo.exceptions import (
    ExternalServiceError,
    OdooAuthenticationError,
    OdooRPCError,
    StageNotFoundError,
    TransientServiceError,
)
from ghoodoo.models.domain import OdooTask, OdooUser
from ghoodoo.providers.base import TaskClient
from ghoodoo.utils.retry import async_retry

log = structlog.get_logger(__name__)

MAX_ATTEMPTS = 6
BASE_DELAY = 0.5
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    TransientServiceError,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


class OdooClient(TaskClient):
    """TaskClient backed by Odoo's JSON-RPC API.

    The client memoizes author partner ids (keyed by the original GitHub
    email), the "Note" message subtype and the authenticated uid for its
    own lifetime. Use one instance per webhook delivery or CLI run.
    """

    def __init__(self, config: OdooConfig, http_client: httpx.AsyncClient | None = None):
        """Initialize Odoo client.

        Args:
            config: Connection, stage and attribution settings
            http_client: Optional pre-built client (used by tests); when
                omitted the client creates and owns one
        """
        self.config = config
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout)
        self._request_id = 0
        self._uid: int | None = None if config.username else config.uid
        self._partner_id_cache: dict[str, int] = {}
        self._note_subtype_id: int | None = None
        self._note_subtype_loaded = False

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "OdooClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def stages(self) -> StageConfig:
        return self.config.stages

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @async_retry(max_attempts=MAX_ATTEMPTS, base_delay=BASE_DELAY, exceptions=RETRYABLE_ERRORS)
    async def _call(self, service: str, method: str, args: list[Any]) -> Any:
        """Send one JSON-RPC request and return its result."""
        self._request_id += 1
        request = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": self._request_id,
        }

        response = await self._http.post(
            f"{self.config.url}/jsonrpc",
            json=request,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.config.api_key}",
            },
        )

        if response.status_code >= 500 or response.status_code == 429:
            raise TransientServiceError(
                f"Odoo HTTP error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                response_text=response.text[:500],
            )
        if not response.is_success:
            raise ExternalServiceError(
                f"Odoo HTTP error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                response_text=response.text[:500],
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalServiceError(
                "Odoo returned a non-JSON response",
                status_code=response.status_code,
                response_text=response.text[:500],
            ) from e

        if not isinstance(payload, dict):
            raise ExternalServiceError(
                "Odoo returned an unexpected response",
                status_code=response.status_code,
                response_text=response.text[:500],
            )

        error = payload.get("error")
        if error:
            data = error.get("data") or {}
            message = error.get("message") or data.get("message") or "Unknown error"
            raise OdooRPCError(f"Odoo RPC error: {message}", code=error.get("code"), data=data)

        return payload.get("result")

    async def _get_uid(self) -> int:
        if self._uid is None:
            uid = await self._call(
                "common",
                "authenticate",
                [self.config.database, self.config.username, self.config.api_key, {}],
            )
            if not uid:
                raise OdooAuthenticationError(f"Odoo authentication failed for user {self.config.username}")
            self._uid = int(uid)
            log.info("odoo_authenticated", uid=self._uid)
        return self._uid

    async def execute_kw(
        self,
        model: str,
        method: str,
        args: list[Any],
        kwargs: dict[str, Any] | None = None,
    ) -> Any:
        """Call a model method through ``object.execute_kw``."""
        uid = await self._get_uid()
        call_args: list[Any] = [self.config.database, uid, self.config.api_key, model, method, args]
        if kwargs is not None:
            call_args.append(kwargs)
        return await self._call("object", "execute_kw", call_args)

    # ------------------------------------------------------------------
    # Tasks and stages
    # ------------------------------------------------------------------

    async def get_task(self, task_id: int) -> OdooTask | None:
        log.debug("get_task", task_id=task_id)
        records = await self.execute_kw(
            "project.task",
            "search_read",
            [[["id", "=", task_id]]],
            {"fields": ["id", "name", "stage_id"], "limit": 1},
        )
        return OdooTask.from_record(records[0]) if records else None

    async def resolve_stage(self, ref: StageRef) -> int | None:
        if isinstance(ref, int):
            return ref

        records = await self.execute_kw(
            "project.task.type",
            "search_read",
            [[["name", "=", ref]]],
            {"fields": ["id", "name"], "limit": 1},
        )
        return int(records[0]["id"]) if records else None

    async def set_stage(self, task_id: int, stage_ref: StageRef | None = None) -> bool:
        ref = stage_ref if stage_ref is not None else self.stages.done
        stage_id = await self.resolve_stage(ref)
        if stage_id is None:
            raise StageNotFoundError(ref)

        result = await self.execute_kw("project.task", "write", [[task_id], {"stage_id": stage_id}])
        log.info("task_stage_set", task_id=task_id, stage_id=stage_id)
        return bool(result)

    # ------------------------------------------------------------------
    # Users and messages
    # ------------------------------------------------------------------

    async def get_user_by_email(self, email: str) -> OdooUser | None:
        """Find a user whose email or login equals the given address."""
        records = await self.execute_kw(
            "res.users",
            "search_read",
            [["|", ["email", "=", email], ["login", "=", email]]],
            {"fields": ["id", "name", "login", "email", "partner_id"], "limit": 1},
        )
        return OdooUser.from_record(records[0]) if records else None

    async def get_partner_id_for_user(self, user_id: int) -> int | None:
        records = await self.execute_kw("res.users", "read", [[user_id], ["partner_id"]])
        if not records:
            return None
        return OdooUser.from_record({"id": user_id, **records[0]}).partner_id

    async def resolve_author_partner_id(self, email: str | None = None) -> int | None:
        """Resolve the partner a chatter message should be attributed to.

        The email is mapped through ``user_mapping`` before lookup, and the
        result (including a default-user fallback) is cached under the
        original email.

        Returns:
            Partner id, or None to let Odoo attribute the message to the
            API user.
        """
        if not email:
            if self.config.default_user_id:
                return await self.get_partner_id_for_user(self.config.default_user_id)
            return None

        if email in self._partner_id_cache:
            return self._partner_id_cache[email]

        odoo_email = self.config.user_mapping.get(email, email)
        user = await self.get_user_by_email(odoo_email)
        if user and user.partner_id:
            self._partner_id_cache[email] = user.partner_id
            return user.partner_id

        if self.config.default_user_id:
            partner_id = await self.get_partner_id_for_user(self.config.default_user_id)
            if partner_id:
                log.debug("author_fallback_to_default", email=email, default_user_id=self.config.default_user_id)
                self._partner_id_cache[email] = partner_id
                return partner_id

        return None

    async def _get_note_subtype_id(self) -> int | None:
        if not self._note_subtype_loaded:
            records = await self.execute_kw(
                "mail.message.subtype",
                "search_read",
                [[["name", "=", "Note"]]],
                {"fields": ["id", "name"], "limit": 1},
            )
            self._note_subtype_id = int(records[0]["id"]) if records else None
            self._note_subtype_loaded = True
        return self._note_subtype_id

    async def add_message(self, task_id: int, body: str, author_email: str | None = None) -> int:
        author_partner_id = await self.resolve_author_partner_id(author_email)
        subtype_id = await self._get_note_subtype_id()

        message: dict[str, Any] = {
            "model": "project.task",
            "res_id": task_id,
            "body": body,
            "message_type": "comment",
            "subtype_id": subtype_id or False,
        }
        if author_partner_id:
            message["author_id"] = author_partner_id

        message_id = await self.execute_kw("mail.message", "create", [message])
        log.info("task_message_posted", task_id=task_id, message_id=message_id, author_id=author_partner_id)
        return int(message_id)
