"""Load and parse the OpenAPI document.

Fetches the document over HTTP (or reads it from disk) and extracts
paths, component schemas and local $ref targets.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30.0


class SpecLoadError(Exception):
    """The OpenAPI document could not be fetched, read or parsed."""


def fetch_spec(url: str, timeout: float = FETCH_TIMEOUT) -> dict[str, Any]:
    """Fetch the OpenAPI document from ``url``.

    Any non-2xx status or network failure raises SpecLoadError.
    """
    logger.info("Fetching OpenAPI spec from %s", url)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
    except httpx.RequestError as exc:
        raise SpecLoadError(f"Failed to fetch OpenAPI spec: {exc}") from exc

    if not response.is_success:
        raise SpecLoadError(
            f"Failed to fetch OpenAPI spec: {response.status_code} {response.reason_phrase}"
        )

    try:
        spec = response.json()
    except ValueError as exc:
        raise SpecLoadError(f"OpenAPI spec at {url} is not valid JSON") from exc
    return _check_document(spec, url)


def load_spec(path: Path) -> dict[str, Any]:
    """Load the OpenAPI document from a .json, .yaml or .yml file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Cannot read OpenAPI spec {path}: {exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            spec = yaml.safe_load(text)
        else:
            spec = json.loads(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise SpecLoadError(f"Cannot parse OpenAPI spec {path}: {exc}") from exc
    return _check_document(spec, str(path))


def save_spec(spec: dict[str, Any], path: Path) -> None:
    """Write the document to disk for reference."""
    path.write_text(json.dumps(spec, indent=2) + "\n", encoding="utf-8")
    logger.info("OpenAPI spec saved to %s", path)


def _check_document(spec: Any, source: str) -> dict[str, Any]:
    if not isinstance(spec, dict) or not isinstance(spec.get("paths"), dict):
        raise SpecLoadError(f"{source} is not an OpenAPI document (no 'paths' object)")
    return spec


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document."""
    return (spec.get("components") or {}).get("schemas") or {}


def get_base_url(spec: dict[str, Any]) -> str | None:
    """Return the first server URL declared by the document, if any."""
    for server in spec.get("servers") or []:
        url = server.get("url") if isinstance(server, dict) else None
        if url:
            return url.rstrip("/")
    return None


def ref_name(ref: str) -> str:
    """Return the last segment of a $ref pointer."""
    return ref.rsplit("/", 1)[-1]


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a local $ref pointer in the document.

    Only document-local pointers (``#/...``) are supported.
    """
    if not ref.startswith("#"):
        raise SpecLoadError(f"Remote $ref not supported: {ref}")

    node: Any = spec
    for raw in ref[1:].lstrip("/").split("/"):
        if not raw:
            continue
        part = raw.replace("~1", "/").replace("~0", "~")
        try:
            node = node[part]
        except (KeyError, TypeError) as exc:
            raise SpecLoadError(f"Unresolvable $ref: {ref}") from exc
    return node
