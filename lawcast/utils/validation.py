import re
from urllib.parse import urlparse
import structlog

from lawcast.utils.exceptions import InvalidWebhookUrlError

logger = structlog.get_logger()

DISCORD_HOSTS = {"discord.com", "discordapp.com"}
WEBHOOK_PATH_PREFIX = "/api/webhooks/"
URL_MAX_LENGTH = 500

# Discord snowflake ids are 17-20 digits; tokens are 60-80 url-safe chars
SNOWFLAKE_ID = re.compile(r"^\d{17,20}$")
WEBHOOK_TOKEN = re.compile(r"^[a-zA-Z0-9_-]{60,80}$")


class WebhookUrlValidation:
    """Validation for user-supplied webhook URLs"""

    @staticmethod
    def validate_discord_webhook_url(url: str) -> str:
        """Validate a Discord webhook URL and return it stripped.

        Raises:
            InvalidWebhookUrlError: If any part of the URL is malformed
        """
        v = url.strip()

        if not v:
            raise InvalidWebhookUrlError("Webhook URL is required")

        if len(v) > URL_MAX_LENGTH:
            raise InvalidWebhookUrlError(
                f"Webhook URL cannot exceed {URL_MAX_LENGTH} characters"
            )

        try:
            parsed = urlparse(v)
        except ValueError as e:
            raise InvalidWebhookUrlError(f"Malformed URL: {e}")

        if parsed.scheme != "https":
            raise InvalidWebhookUrlError("Webhook URL must use https")

        if parsed.hostname not in DISCORD_HOSTS:
            logger.warning("webhook_url_rejected", reason="host", host=parsed.hostname)
            raise InvalidWebhookUrlError("Only Discord webhook URLs are supported")

        if not parsed.path.startswith(WEBHOOK_PATH_PREFIX):
            raise InvalidWebhookUrlError("Not a Discord webhook path")

        # ['', 'api', 'webhooks', '<id>', '<token>']
        parts = parsed.path.rstrip("/").split("/")
        if len(parts) != 5 or not parts[3] or not parts[4]:
            raise InvalidWebhookUrlError("Webhook URL is missing its id or token")

        if not SNOWFLAKE_ID.match(parts[3]):
            raise InvalidWebhookUrlError("Invalid webhook id format")

        if not WEBHOOK_TOKEN.match(parts[4]):
            raise InvalidWebhookUrlError("Invalid webhook token format")

        return v
