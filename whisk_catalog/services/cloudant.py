"""Cloudant (CouchDB API) client used by the catalog tests."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from whisk_catalog.core.config import Settings, get_settings
from whisk_catalog.core.exceptions import DatabaseSetupError, DocumentStoreError
from whisk_catalog.core.logging import get_logger
from whisk_catalog.core.properties import load_properties, require_keys


logger = get_logger("services.cloudant")


@dataclass(frozen=True)
class Credential:
    """Identifies one database on a Cloudant account."""

    user: str
    password: str
    dbname: str
    explicit_host: str | None = None

    @property
    def host(self) -> str:
        """Account host, ``<user>.cloudant.com`` unless set explicitly."""
        return self.explicit_host or f"{self.user}.cloudant.com"

    def to_json(self) -> dict[str, str]:
        return {
            "host": self.host,
            "user": self.user,
            "password": self.password,
            "dbname": self.dbname,
        }

    def serialize(self) -> str:
        """JSON text form, as passed to actions in a single parameter."""
        return json.dumps(self.to_json())

    @classmethod
    def from_properties(cls, properties: dict[str, str], source: str = "<memory>") -> "Credential":
        require_keys(properties, ["user", "password", "dbname"], source)
        return cls(
            user=properties["user"],
            password=properties["password"],
            dbname=properties["dbname"],
            explicit_host=properties.get("host") or None,
        )

    @classmethod
    def from_property_file(cls, path: str | Path) -> "Credential":
        return cls.from_properties(load_properties(path), source=str(path))

    def __repr__(self) -> str:
        return f"Credential(host={self.host!r}, user={self.user!r}, dbname={self.dbname!r})"


def _json_or_error(response: httpx.Response) -> dict[str, Any]:
    """Decode a response body, mapping non-JSON bodies to an error dict."""
    try:
        body = response.json()
    except ValueError:
        return {"error": "invalid_json", "reason": response.text[:500]}
    if isinstance(body, dict):
        return body
    return {"error": "unexpected_body", "reason": str(body)[:500]}


class CloudantClient:
    """
    Thin synchronous client for the document store HTTP API.

    Document calls return the decoded body even for HTTP errors, so callers
    detect failure from missing fields (``id`` on create). Database
    lifecycle calls raise DatabaseSetupError instead.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self._client = httpx.Client(
            timeout=self.settings.cloudant_timeout,
            transport=transport,
        )

    def __enter__(self) -> "CloudantClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _url(self, credential: Credential, *parts: str) -> str:
        base = f"{self.settings.cloudant_scheme}://{credential.host}"
        path = "/".join(quote(p, safe="") for p in parts)
        return f"{base}/{path}" if path else f"{base}/"

    def _request(
        self,
        method: str,
        credential: Credential,
        *parts: str,
        body: Any = None,
    ) -> httpx.Response:
        url = self._url(credential, *parts)
        kwargs: dict[str, Any] = {"auth": (credential.user, credential.password)}
        if body is not None:
            if isinstance(body, str):
                kwargs["content"] = body.encode("utf-8")
                kwargs["headers"] = {"Content-Type": "application/json"}
            else:
                kwargs["json"] = body
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("Cloudant %s %s failed: %s", method, url, exc)
            raise DocumentStoreError(
                message=f"Cloudant unavailable at {credential.host}",
                details={"method": method, "url": url},
            ) from exc

    # -- databases ----------------------------------------------------------

    def create_database(self, credential: Credential) -> dict[str, Any]:
        """Create ``credential.dbname``. An existing database is an error."""
        response = self._request("PUT", credential, credential.dbname)
        body = _json_or_error(response)
        if response.status_code not in (201, 202) or not body.get("ok"):
            reason = body.get("reason") or body.get("error") or response.text
            if response.status_code == 412:
                reason = f"database already exists: {reason}"
            raise DatabaseSetupError(
                message=f"Failed to create database {credential.dbname}: {reason}",
                details={"status_code": response.status_code, "body": body},
            )
        logger.info("Created database %s on %s", credential.dbname, credential.host)
        return body

    def delete_database(
        self, credential: Credential, ignore_missing: bool = True
    ) -> dict[str, Any]:
        """Delete ``credential.dbname``."""
        response = self._request("DELETE", credential, credential.dbname)
        body = _json_or_error(response)
        if response.status_code == 404 and ignore_missing:
            logger.info("Database %s already absent", credential.dbname)
            return body
        if response.status_code not in (200, 202):
            raise DatabaseSetupError(
                message=f"Failed to delete database {credential.dbname}",
                details={"status_code": response.status_code, "body": body},
            )
        logger.info("Deleted database %s on %s", credential.dbname, credential.host)
        return body

    def set_up(self, credential: Credential) -> dict[str, Any]:
        return self.create_database(credential)

    def unset_up(self, credential: Credential) -> dict[str, Any]:
        return self.delete_database(credential)

    # -- documents ----------------------------------------------------------

    def create_document(
        self, credential: Credential, document: dict[str, Any] | str
    ) -> dict[str, Any]:
        """POST a document. Success responses carry ``id`` and ``rev``."""
        response = self._request("POST", credential, credential.dbname, body=document)
        body = _json_or_error(response)
        if response.is_error:
            logger.warning(
                "Create document in %s returned HTTP %s: %s",
                credential.dbname,
                response.status_code,
                body.get("reason") or body.get("error"),
            )
        return body

    def get_document(self, credential: Credential, doc_id: str) -> dict[str, Any]:
        response = self._request("GET", credential, credential.dbname, doc_id)
        body = _json_or_error(response)
        if response.is_error:
            logger.warning(
                "Get document %s from %s returned HTTP %s",
                doc_id,
                credential.dbname,
                response.status_code,
            )
        return body

    def server_info(self, credential: Credential) -> dict[str, Any]:
        """GET the account root. Raises DocumentStoreError on HTTP errors."""
        response = self._request("GET", credential)
        if response.is_error:
            raise DocumentStoreError(
                message=f"Cloudant at {credential.host} returned HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )
        return _json_or_error(response)
