from lawcast.services.sources.base import NoticeSource
from lawcast.services.sources.http_source import HttpNoticeSource, SourceUnavailableError

__all__ = ["NoticeSource", "HttpNoticeSource", "SourceUnavailableError"]
