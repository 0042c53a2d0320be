"""JSON-over-HTTP helper for adapters without a vendor SDK."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from meetingmind.core.orchestration.errors import ProviderRejected, ProviderUnavailable


async def post_json(
    provider_id: str,
    url: str,
    payload: dict[str, Any],
    timeout_seconds: float,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
) -> dict[str, Any]:
    """POST a JSON payload and return the decoded JSON body.

    Raises:
        ProviderUnavailable: connection failure, timeout, 429 or 5xx
        ProviderRejected: any other non-200 status
    """
    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                url,
                json=payload,
                headers=headers,
                params=params,
                timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    detail = f"status {response.status}: {error_text[:200]}"
                    if response.status == 429 or response.status >= 500:
                        raise ProviderUnavailable(provider_id, detail)
                    raise ProviderRejected(provider_id, detail)

                return await response.json()

    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise ProviderUnavailable(provider_id, f"{type(e).__name__}: {e}") from e
