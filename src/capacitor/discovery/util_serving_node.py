# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Serving-node probe.

The Flux load balancer sets a ``FDMSERVERID=IP:PORT|hash|hash`` cookie on
responses for application domains, naming the node that actually served
the request.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import httpx

from capacitor.utils.util_error_sanitization import sanitize_error_message

logger = logging.getLogger(__name__)

FDM_SERVER_ID_PATTERN = re.compile(r"FDMSERVERID=([^|;\s]+)")
PROBE_USER_AGENT = "Mozilla/5.0 (compatible; Capacitor/1.0)"


def parse_fdm_server_id(set_cookie: str) -> Optional[str]:
    """Extract ``IP:PORT`` from a ``Set-Cookie`` header value."""
    match = FDM_SERVER_ID_PATTERN.search(set_cookie)
    return match.group(1) if match else None


async def detect_serving_node(
    domain: str,
    timeout: float = 10.0,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """Return the ``IP:PORT`` of the node serving ``domain``, or None.

    A GET (not HEAD) is issued because some balancers omit ``Set-Cookie``
    on HEAD responses. Never raises for network failures.
    """
    url = f"https://{domain}"
    headers = {"User-Agent": PROBE_USER_AGENT}
    try:
        if http_client is not None:
            response = await http_client.get(
                url, headers=headers, timeout=timeout, follow_redirects=True
            )
        else:
            async with httpx.AsyncClient(
                timeout=timeout, follow_redirects=True
            ) as client:
                response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.info(
            "Serving-node probe failed: %s",
            sanitize_error_message(e),
            extra={"domain": domain},
        )
        return None

    for cookie in response.headers.get_list("set-cookie"):
        node = parse_fdm_server_id(cookie)
        if node:
            logger.debug(
                "Serving node detected", extra={"domain": domain, "node": node}
            )
            return node
    logger.debug("No FDMSERVERID cookie", extra={"domain": domain})
    return None


__all__: list[str] = [
    "FDM_SERVER_ID_PATTERN",
    "detect_serving_node",
    "parse_fdm_server_id",
]
