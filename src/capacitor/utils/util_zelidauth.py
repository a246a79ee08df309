# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Zelid credential normalisation.

The dashboard stores the wallet credential as a URL-encoded query string
(``zelid=...&signature=...&loginPhrase=...``); older clients send the
colon-joined form (``zelid:signature:loginPhrase``, where the login phrase
may itself contain colons). Node endpoints accept only the JSON-object form.

Normalisation is applied once, at the boundary; everything downstream sees
the header value produced by ``zelidauth_header``.
"""

from __future__ import annotations

import json
from typing import Optional
from urllib.parse import parse_qs

from pydantic import ValidationError

from capacitor.errors import ConfigurationError
from capacitor.models.model_zelid_auth import ModelZelidAuth


def _from_query_string(raw: str) -> Optional[ModelZelidAuth]:
    params = parse_qs(raw, keep_blank_values=False)
    zelid = params.get("zelid", [""])[0]
    signature = params.get("signature", [""])[0]
    login_phrase = params.get("loginPhrase", [""])[0]
    if zelid and signature and login_phrase:
        return ModelZelidAuth(
            zelid=zelid, signature=signature, login_phrase=login_phrase
        )
    return None


def _from_colon_form(raw: str) -> Optional[ModelZelidAuth]:
    parts = raw.split(":")
    if len(parts) < 3:
        return None
    zelid, signature = parts[0], parts[1]
    login_phrase = ":".join(parts[2:])
    if zelid and signature and login_phrase:
        return ModelZelidAuth(
            zelid=zelid, signature=signature, login_phrase=login_phrase
        )
    return None


def _from_json(raw: str) -> Optional[ModelZelidAuth]:
    if not raw.startswith("{"):
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return ModelZelidAuth(
            zelid=str(data.get("zelid", "")),
            signature=str(data.get("signature", "")),
            login_phrase=str(data.get("loginPhrase", "")),
        )
    except ValidationError:
        return None


def parse_zelidauth(raw: str) -> Optional[ModelZelidAuth]:
    """Parse a credential in any accepted wire format.

    Formats are tried in order: query string, JSON object, colon-joined.

    Returns:
        The canonical credential, or None if no format matched.
    """
    text = raw.strip()
    if not text:
        return None
    return _from_query_string(text) or _from_json(text) or _from_colon_form(text)


def zelidauth_header(raw: Optional[str]) -> str:
    """Return the value for the node ``zelidauth`` header.

    Unrecognised credentials are passed through unchanged; the node is the
    authority on whether they are valid.

    Raises:
        ConfigurationError: If no credential is present.

    Example:
        >>> zelidauth_header("1abc:c2ln:phrase:with:colons")
        '{"zelid":"1abc","signature":"c2ln","loginPhrase":"phrase:with:colons"}'
    """
    if raw is None or not raw.strip():
        raise ConfigurationError("Authentication required: zelidauth is missing")
    auth = parse_zelidauth(raw)
    if auth is None:
        return raw.strip()
    return auth.header_value()


__all__: list[str] = ["parse_zelidauth", "zelidauth_header"]
