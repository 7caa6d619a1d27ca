"""
GraphQL replica accessor.

Talks to the Todo GraphQL API exposed by both the local sandbox
(``http://localhost:20002/graphql``) and the deployed AppSync endpoint,
using the generated ``listTodos`` / ``createTodo`` / ``updateTodo``
operations.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from todosync.accessors.base import ReplicaAccessor
from todosync.errors import AccessError, NotFoundError
from todosync.models import Record

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)
AUTH_STATUS = (401, 403)

# AppSync errorType fragments that signal a transient upstream condition
TRANSIENT_ERROR_TYPES = ("Throttl", "Timeout", "InternalFailure", "ServiceUnavailable")

TODO_FIELDS = "id content completed createdAt updatedAt"

LIST_TODOS = f"""
query ListTodos($limit: Int, $nextToken: String) {{
  listTodos(limit: $limit, nextToken: $nextToken) {{
    items {{ {TODO_FIELDS} }}
    nextToken
  }}
}}
"""

CREATE_TODO = f"""
mutation CreateTodo($input: CreateTodoInput!) {{
  createTodo(input: $input) {{ {TODO_FIELDS} }}
}}
"""

UPDATE_TODO = f"""
mutation UpdateTodo($input: UpdateTodoInput!) {{
  updateTodo(input: $input) {{ {TODO_FIELDS} }}
}}
"""


def _record_input(record: Record) -> dict[str, Any]:
    """Mutation input; timestamps are sent so the upstream keeps the writer's clock."""
    payload = record.to_dict()
    return {key: value for key, value in payload.items() if value is not None}


class GraphQLAccessor(ReplicaAccessor):
    """
    Replica behind a GraphQL endpoint.

    Args:
        url: GraphQL endpoint URL
        name: Replica name used in logs and reports
        api_key: Sent as ``x-api-key`` when set
        auth_token: Sent as ``Authorization`` when set (user-pool JWT)
        page_size: ``limit`` passed to ``listTodos``
        session: Existing aiohttp session; when omitted one is created
            lazily and closed by ``close()``
        request_timeout: Total timeout for requests on an owned session
    """

    def __init__(
        self,
        url: str,
        name: str = "graphql",
        api_key: str | None = None,
        auth_token: str | None = None,
        page_size: int = 100,
        session: aiohttp.ClientSession | None = None,
        request_timeout: float = 30.0,
    ):
        super().__init__(name)
        self.url = url
        self.api_key = api_key
        self.auth_token = auth_token
        self.page_size = page_size
        self.request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        if self.auth_token:
            headers["Authorization"] = self.auth_token
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        POST one GraphQL request and return the decoded response body

        Raises:
            AccessError: On transport failure or an unusable HTTP status;
                401/403 and other 4xx are not retryable
        """
        payload = {"query": query, "variables": variables or {}}
        session = self._get_session()

        try:
            async with session.post(self.url, json=payload, headers=self._headers()) as resp:
                if resp.status in AUTH_STATUS:
                    raise AccessError(
                        f"{self.name}: not authorized (HTTP {resp.status})", retryable=False
                    )
                if resp.status in RETRYABLE_STATUS:
                    raise AccessError(f"{self.name}: retryable HTTP status {resp.status}")
                if resp.status >= 400:
                    raise AccessError(
                        f"{self.name}: request rejected (HTTP {resp.status})", retryable=False
                    )
                body = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise AccessError(f"{self.name}: could not reach {self.url}: {e}") from e

        if not isinstance(body, dict):
            raise AccessError(f"{self.name}: unexpected response body", retryable=False)
        return body

    def _raise_for_errors(self, body: dict[str, Any], record_id: str | None = None) -> None:
        errors = body.get("errors") or []
        if not errors:
            return

        error_types = [str(e.get("errorType") or "") for e in errors]
        message = "; ".join(str(e.get("message", e)) for e in errors)

        if record_id and any("ConditionalCheckFailed" in t for t in error_types):
            raise NotFoundError(record_id, self.name)

        retryable = any(
            fragment in t for t in error_types for fragment in TRANSIENT_ERROR_TYPES
        )
        raise AccessError(f"{self.name}: GraphQL error: {message}", retryable=retryable)

    async def list(self) -> list[Record]:
        records: list[Record] = []
        next_token = None

        while True:
            body = await self.execute(
                LIST_TODOS, {"limit": self.page_size, "nextToken": next_token}
            )
            self._raise_for_errors(body)

            page = (body.get("data") or {}).get("listTodos")
            if page is None:
                raise AccessError(f"{self.name}: listTodos returned no data", retryable=False)

            for item in page.get("items") or []:
                if item is None:
                    continue
                records.append(Record.from_dict(item))

            next_token = page.get("nextToken")
            if not next_token:
                break

        logger.debug(f"Listed {len(records)} records from {self.name}")
        return records

    async def create(self, record: Record) -> Record:
        body = await self.execute(CREATE_TODO, {"input": _record_input(record)})
        self._raise_for_errors(body)

        created = (body.get("data") or {}).get("createTodo")
        if created is None:
            raise AccessError(f"{self.name}: createTodo returned no data for '{record.id}'")
        return Record.from_dict(created)

    async def update(self, record: Record) -> Record:
        body = await self.execute(UPDATE_TODO, {"input": _record_input(record)})
        self._raise_for_errors(body, record_id=record.id)

        updated = (body.get("data") or {}).get("updateTodo")
        if updated is None:
            raise NotFoundError(record.id, self.name)
        return Record.from_dict(updated)
