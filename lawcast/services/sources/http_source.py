import aiohttp
import asyncio
from typing import Any, Dict, List, Optional
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from lawcast.models.config import SourceConfig
from lawcast.models.notice import Attachment, Notice
from lawcast.services.sources.base import NoticeSource
from lawcast.utils.exceptions import FetchError

logger = structlog.get_logger()

NOTICE_FIELDS = (
    "num",
    "subject",
    "proposer_category",
    "committee",
    "num_comments",
    "link",
    "attachments",
)


class SourceUnavailableError(FetchError):
    """Source answered with 429 or 5xx (retryable)"""

    pass


class HttpNoticeSource(NoticeSource):
    """Fetch notices from a JSON HTTP endpoint

    The endpoint returns either a JSON list of notice objects or an object
    holding that list under ``items_key``. Source field names are mapped to
    Notice fields through ``field_map``; unmapped fields use the Notice
    field name as-is.
    """

    def __init__(
        self,
        config: SourceConfig,
        retry_wait: Optional[wait_base] = None,
    ):
        self.config = config
        self.field_map = {f: config.field_map.get(f, f) for f in NOTICE_FIELDS}
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    @property
    def name(self) -> str:
        """Source name"""
        return "http"

    async def fetch(self) -> List[Notice]:
        """Fetch and parse the current notice list"""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.max_attempts),
                wait=self.retry_wait,
                retry=retry_if_exception_type(
                    (aiohttp.ClientError, asyncio.TimeoutError, SourceUnavailableError)
                ),
                reraise=True,
            ):
                with attempt:
                    data = await self._request()
        except FetchError:
            raise
        except asyncio.TimeoutError:
            logger.error("source_timeout", url=self.config.url)
            raise FetchError("Source request timed out")
        except aiohttp.ClientError as e:
            logger.error("source_network_error", url=self.config.url, error=str(e))
            raise FetchError(f"Source request failed: {e}")

        notices = self._parse_response(data)

        logger.info("notices_fetched", source=self.name, count=len(notices))
        return notices

    async def _request(self) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(
                self.config.url,
                headers={"Accept": "application/json"},
            ) as response:

                if response.status == 429 or response.status >= 500:
                    logger.warning("source_unavailable", status=response.status)
                    raise SourceUnavailableError(
                        f"Source returned status {response.status}"
                    )

                if response.status != 200:
                    text = await response.text(errors="replace")
                    logger.error(
                        "source_api_error", status=response.status, body=text[:200]
                    )
                    raise FetchError(f"Source returned status {response.status}")

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise FetchError(f"Source returned invalid JSON: {e}")

    def _parse_response(self, data: Any) -> List[Notice]:
        """Convert the JSON payload into unique Notice objects"""
        items = data
        if self.config.items_key is not None:
            if not isinstance(data, dict) or self.config.items_key not in data:
                raise FetchError(
                    f"Source response has no '{self.config.items_key}' key"
                )
            items = data[self.config.items_key]

        if not isinstance(items, list):
            raise FetchError("Source response is not a list of notices")

        notices: List[Notice] = []
        seen = set()
        for item in items:
            notice = self._parse_item(item)
            if notice is None:
                continue
            if notice.num in seen:
                logger.warning("source_duplicate_num", num=notice.num)
                continue
            seen.add(notice.num)
            notices.append(notice)

        return notices

    def _parse_item(self, item: Any) -> Optional[Notice]:
        if not isinstance(item, dict):
            logger.warning("source_item_skipped", reason="not_an_object")
            return None

        values: Dict[str, Any] = {}
        for field, source_key in self.field_map.items():
            if source_key in item and item[source_key] is not None:
                values[field] = item[source_key]

        if "attachments" in values:
            values["attachments"] = self._parse_attachments(values["attachments"])

        try:
            return Notice(**values)
        except ValidationError as e:
            logger.warning(
                "source_item_skipped",
                reason="validation_failed",
                num=values.get("num"),
                error=str(e),
            )
            return None

    @staticmethod
    def _parse_attachments(raw: Any) -> List[Attachment]:
        """Accept either [{label, url}, ...] or {label: url, ...}"""
        attachments: List[Attachment] = []
        if isinstance(raw, dict):
            pairs = [{"label": k, "url": v} for k, v in raw.items() if v]
        elif isinstance(raw, list):
            pairs = [a for a in raw if isinstance(a, dict)]
        else:
            return attachments

        for pair in pairs:
            try:
                attachments.append(Attachment(**pair))
            except ValidationError:
                logger.debug("attachment_skipped", attachment=str(pair)[:100])
        return attachments
