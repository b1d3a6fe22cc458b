import json
from typing import Any, Dict, Optional

import httpx

from ilibrary.core.config import get_settings


class GraphQLError(Exception):
    """Any failure talking to the upstream GraphQL service.

    Transport errors, non-2xx responses and GraphQL ``errors`` payloads are
    all raised as this one type; callers do not distinguish between them.
    """


class HasuraClient:
    def __init__(
        self,
        endpoint: str,
        admin_secret: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.admin_secret = admin_secret
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.admin_secret:
            headers["x-hasura-admin-secret"] = self.admin_secret
        return headers

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {"query": query, "variables": variables or {}}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                r = client.post(self.endpoint, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise GraphQLError(f"GraphQL request failed: {e}") from e

        if r.is_error:
            raise GraphQLError(f"GraphQL request failed: {r.status_code} {r.reason_phrase}")

        try:
            body = r.json()
        except ValueError as e:
            raise GraphQLError("GraphQL response was not JSON") from e

        if body.get("errors"):
            raise GraphQLError(f"GraphQL errors: {json.dumps(body['errors'], ensure_ascii=False)}")
        return body.get("data") or {}


def get_hasura() -> HasuraClient:
    settings = get_settings()
    return HasuraClient(
        settings.graphql_endpoint,
        admin_secret=settings.hasura_admin_secret,
        timeout=settings.graphql_timeout,
    )
