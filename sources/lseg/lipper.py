"""
Lipper fund analysis stream.

Fetches a list of Lipper properties for one fund, one call at a time,
and reports progress as server-sent events. The platform expects calls
to be paced, so consecutive properties are separated by a fixed wait.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple

from .proxy import LsegProxy, ProxyRequest, describe_error

logger = logging.getLogger(__name__)

Event = Tuple[str, Dict[str, Any]]
DisconnectCheck = Callable[[], Awaitable[bool]]


def format_sse(event: str, data: Any) -> str:
    """Encode one {event, data} record as a server-sent event."""
    return f"data: {json.dumps({'event': event, 'data': data}, default=str)}\n\n"


def _error_message(exc: Exception) -> str:
    status, details = describe_error(exc)
    if getattr(exc, "response", None) is None:
        return str(details)
    if isinstance(details, (dict, list)):
        details = json.dumps(details, default=str)
    return f"HTTP {status}: {details}"


class LipperAnalyzer:
    """Sequential multi-property fetch for one Lipper entity."""

    def __init__(self, proxy: LsegProxy, settings):
        self.proxy = proxy
        self.settings = settings

    @staticmethod
    def validate(entity_id: Optional[str], datapoints: Optional[List[str]]) -> None:
        """Raise ValueError unless there is an id and at least one property."""
        if not entity_id or not str(entity_id).strip():
            raise ValueError("Missing required field: id")
        if not datapoints:
            raise ValueError("datapoints must be a non-empty list of property names")

    async def fetch_property(self, entity_id: str, prop: str) -> Any:
        request = ProxyRequest(
            method="GET",
            endpoint=self.settings.LIPPER_ENDPOINT.format(id=entity_id),
            query={self.settings.LIPPER_PROPERTY_PARAM: prop},
        )
        return await self.proxy.call_api("lipper-analyze", self.settings.LIPPER_PROFILE, request)

    async def stream(
        self,
        entity_id: str,
        datapoints: List[str],
        is_disconnected: Optional[DisconnectCheck] = None,
    ) -> AsyncIterator[Event]:
        """
        Yield (event, data) pairs for one analysis session.

        Events, in order: progress, property_complete, waiting (between
        properties only), ..., complete. An orchestration fault yields a
        single error event instead. Stops early if the client disconnects.
        """
        self.validate(entity_id, datapoints)
        total = len(datapoints)
        delay = self.settings.LIPPER_CALL_DELAY_SECONDS
        results: List[Dict[str, Any]] = []

        async def gone() -> bool:
            return bool(is_disconnected and await is_disconnected())

        logger.info(f"Lipper analysis started for {entity_id}: {total} properties")
        try:
            for index, prop in enumerate(datapoints, start=1):
                if await gone():
                    logger.info(f"Client disconnected, stopping {entity_id} at {prop}")
                    return

                yield "progress", {
                    "index": index,
                    "total": total,
                    "property": prop,
                    "message": f"Fetching {prop} ({index}/{total})",
                }

                try:
                    data = await self.fetch_property(entity_id, prop)
                    result = {"property": prop, "success": True, "data": data}
                except Exception as e:
                    logger.warning(f"Lipper property {prop} failed for {entity_id}: {e}")
                    result = {
                        "property": prop,
                        "success": False,
                        "data": None,
                        "error": _error_message(e),
                    }
                results.append(result)
                yield "property_complete", {"index": index, **result}

                if index < total:
                    next_prop = datapoints[index]
                    yield "waiting", {
                        "seconds": delay,
                        "next_property": next_prop,
                        "message": f"Waiting {delay}s before fetching {next_prop}",
                    }
                    await asyncio.sleep(delay)

            succeeded = sum(1 for r in results if r["success"])
            yield "complete", {
                "id": entity_id,
                "total": total,
                "succeeded": succeeded,
                "failed": total - succeeded,
                "results": results,
            }
        except asyncio.CancelledError:
            logger.info(f"Lipper analysis for {entity_id} cancelled")
            raise
        except Exception as e:
            logger.error(f"Lipper analysis for {entity_id} failed: {e}")
            yield "error", {"message": str(e)}
        finally:
            logger.info(f"Lipper stream for {entity_id} closed ({len(results)}/{total} fetched)")
