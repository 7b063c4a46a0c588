import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiohttp

from ...application.ports.analytics import AnalyticsTracker
from ...config import Settings
from ...models import OptimizationEvent

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Image-Optimizer-Service/1.0.0"


class NullTracker(AnalyticsTracker):
    @property
    def enabled(self) -> bool:
        return False

    async def track_optimization(self, event: OptimizationEvent) -> bool:
        return False

    async def track_health_check(self, status: str, details: Optional[Dict[str, Any]] = None) -> bool:
        return False

    async def close(self) -> None:
        return None


class UmamiTracker(AnalyticsTracker):
    """Sends events to a Umami instance. Every failure is logged and reported as False."""

    def __init__(
        self,
        base_url: str,
        website_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        token: Optional[str] = None,
        hostname: str = "image-optimizer",
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.website_id = website_id
        self.username = username
        self.password = password
        self.configured_token = token
        self.hostname = hostname
        self.token: Optional[str] = None
        self.is_authenticated = False
        self._session = session

    @classmethod
    def from_settings(cls, settings: Settings) -> "UmamiTracker":
        return cls(
            base_url=settings.UMAMI_HOSTNAME,
            website_id=settings.UMAMI_WEBSITE_ID,
            username=settings.UMAMI_USER or None,
            password=settings.UMAMI_PASSWORD or None,
            token=settings.UMAMI_TOKEN or None,
        )

    @property
    def enabled(self) -> bool:
        return self.is_authenticated

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=10))
        return self._session

    async def start(self) -> bool:
        if self.username and self.password:
            return await self.authenticate()
        if self.configured_token:
            self.token = self.configured_token
            return await self.verify_token()
        logger.warning("Umami: No credentials provided for authentication")
        return False

    async def authenticate(self) -> bool:
        if self.configured_token:
            self.token = self.configured_token
            self.is_authenticated = True
            return True
        if not self.username or not self.password:
            logger.warning("Umami: No credentials provided for authentication")
            return False
        try:
            async with self.session.post(
                f"{self.base_url}/api/auth/login",
                json={"username": self.username, "password": self.password},
                headers={"Accept": "application/json"},
            ) as resp:
                if resp.status >= 400:
                    raise RuntimeError(f"Authentication failed: {resp.status}")
                data = await resp.json(content_type=None)
            self.token = data["token"]
            self.is_authenticated = True
            logger.info("Umami authentication successful")
            return True
        except Exception as e:
            logger.error(f"Umami authentication failed: {e}")
            return False

    async def verify_token(self) -> bool:
        if not self.token:
            return False
        try:
            async with self.session.post(
                f"{self.base_url}/api/auth/verify",
                headers={"Authorization": f"Bearer {self.token}", "Accept": "application/json"},
            ) as resp:
                ok = resp.status < 400
        except Exception as e:
            logger.error(f"Umami token verification failed: {e}")
            ok = False
        self.is_authenticated = ok
        if not ok:
            self.token = None
        return ok

    async def track_event(
        self,
        name: str,
        data: Optional[Dict[str, Any]] = None,
        url: str = "/",
        title: str = "Image Optimization",
        user_agent: Optional[str] = None,
    ) -> bool:
        if not self.is_authenticated:
            logger.warning("Umami: Not authenticated, skipping event tracking")
            return False
        data = data or {}
        payload = {
            "payload": {
                "hostname": self.hostname,
                "language": "en-US",
                "referrer": data.get("referrer") or "",
                "screen": "1920x1080",
                "title": title,
                "url": url,
                "website": self.website_id,
                "name": name,
                "data": data,
            },
            "type": "event",
        }
        headers = {
            "Accept": "application/json",
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
        }
        try:
            async with self.session.post(f"{self.base_url}/api/send", json=payload, headers=headers) as resp:
                if resp.status >= 400:
                    raise RuntimeError(f"Failed to send event: {resp.status}")
                text = await resp.text()
        except Exception as e:
            logger.error(f"Failed to track Umami event: {e}")
            return False
        if _is_bot_response(text):
            logger.error(f"Umami tagged request as bot/spam: {name} ({user_agent or 'default'})")
            return False
        return True

    async def track_optimization(self, event: OptimizationEvent) -> bool:
        return await self.track_event(
            "image_optimization",
            data=event.to_data(),
            url="/optimize",
            title="Image Optimization",
            user_agent=event.user_agent,
        )

    async def track_health_check(self, status: str, details: Optional[Dict[str, Any]] = None) -> bool:
        return await self.track_event(
            "health_check",
            data={"status": status, "details": details, "timestamp": datetime.now(timezone.utc).isoformat()},
            url="/health",
            title="Health Check",
        )

    def auth_status(self) -> dict:
        return {"isAuthenticated": self.is_authenticated, "hasToken": bool(self.token)}

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def _is_bot_response(text: str) -> bool:
    try:
        body = json.loads(text)
    except ValueError:
        # Not JSON, which is fine
        return False
    return isinstance(body, dict) and body.get("beep") == "boop"
