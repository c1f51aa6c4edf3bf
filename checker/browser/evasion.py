"""
Browsing-context profile that keeps the session looking like a manual visit.

The profile is built once per run and consumed when the context is created:
context options (UA, viewport, locale, timezone, headers), a fingerprint
override script injected before any page script runs, a few analytics-style
cookies and a localStorage seed.
"""

from __future__ import annotations

import random
import secrets
import string
import time
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlparse

from playwright.async_api import BrowserContext

from shared.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1366, "height": 768}

REALISTIC_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Accept-Language": "es-CL,es;q=0.9,en-US;q=0.8,en;q=0.7",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
    "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
    "Referer": "https://www.google.com/",
}

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
)

# Runs before every document in the context. Each override is guarded so a
# missing API never breaks the page.
FINGERPRINT_SCRIPT = """
(() => {
  const define = (obj, prop, value) => {
    try { Object.defineProperty(obj, prop, { get: () => value }); } catch (e) {}
  };
  define(navigator, 'webdriver', undefined);
  define(navigator, 'languages', ['es-CL', 'es', 'en-US', 'en']);
  define(navigator, 'platform', 'Win32');
  define(navigator, 'deviceMemory', 8);
  define(navigator, 'hardwareConcurrency', 4);
  define(navigator, 'plugins', [
    { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer', description: 'Portable Document Format', length: 1 },
    { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai', description: '', length: 1 },
  ]);
  define(screen, 'availWidth', 1920);
  define(screen, 'availHeight', 1040);
  define(screen, 'colorDepth', 24);
  define(screen, 'pixelDepth', 24);
  define(history, 'length', Math.floor(Math.random() * 5) + 2);

  try {
    const pushState = history.pushState;
    const replaceState = history.replaceState;
    history.pushState = function () { return pushState.apply(history, arguments); };
    history.replaceState = function () { return replaceState.apply(history, arguments); };
  } catch (e) {}

  try {
    const originalQuery = window.navigator.permissions.query;
    window.navigator.permissions.query = (parameters) => (
      parameters.name === 'notifications'
        ? Promise.resolve({ state: Notification.permission })
        : originalQuery(parameters)
    );
  } catch (e) {}

  try {
    if (window.chrome && window.chrome.runtime) {
      delete window.chrome.runtime.onConnect;
      delete window.chrome.runtime.onMessage;
    }
  } catch (e) {}

  // UTC-3 (Chile)
  Date.prototype.getTimezoneOffset = function () { return 180; };

  try {
    const getParameter = WebGLRenderingContext.prototype.getParameter;
    WebGLRenderingContext.prototype.getParameter = function (parameter) {
      if (parameter === 37445) return 'Intel Inc.';
      if (parameter === 37446) return 'Intel(R) Iris(R) Xe Graphics';
      return getParameter.call(this, parameter);
    };
  } catch (e) {}
})();
"""

LOCAL_STORAGE_SCRIPT = """
(() => {
  const seed = {
    language: 'es-CL',
    timezone: 'America/Santiago',
    visited: Date.now().toString(),
    preferences: JSON.stringify({ currency: 'CLP', region: 'chile' }),
  };
  for (const [key, value] of Object.entries(seed)) {
    try { localStorage.setItem(key, value); } catch (e) {}
  }
})();
"""


@dataclass(frozen=True)
class EvasionProfile:
    """Everything the context needs to look like a regular Chilean desktop visitor."""

    cookie_domain: str = ".ripley.cl"
    user_agent: str = USER_AGENT
    viewport: dict = field(default_factory=lambda: dict(VIEWPORT))
    locale: str = "es-CL"
    timezone_id: str = "America/Santiago"
    extra_http_headers: dict = field(default_factory=lambda: dict(REALISTIC_HEADERS))
    init_scripts: tuple[str, ...] = (FINGERPRINT_SCRIPT, LOCAL_STORAGE_SCRIPT)
    # Nominal jitter (ms) for scripted pauses.
    jitter_ms: int = 500

    def context_options(self) -> dict[str, Any]:
        """Keyword arguments for browser.new_context()."""
        return {
            "viewport": dict(self.viewport),
            "user_agent": self.user_agent,
            "locale": self.locale,
            "timezone_id": self.timezone_id,
            "extra_http_headers": dict(self.extra_http_headers),
        }


def cookie_domain_for(base_url: str) -> str:
    """.ripley.cl for https://www.ripley.cl; falls back to the bare host."""
    host = urlparse(base_url).hostname or ""
    if host.startswith("www."):
        host = host[len("www."):]
    return f".{host}" if host else ".ripley.cl"


def build_evasion_profile(base_url: str, jitter_ms: int = 500) -> EvasionProfile:
    return EvasionProfile(cookie_domain=cookie_domain_for(base_url), jitter_ms=jitter_ms)


def _random_token(length: int) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def realistic_cookies(domain: str, now: Optional[float] = None) -> list[dict[str, Any]]:
    """Analytics and session cookies a returning visitor would carry."""
    now_s = int(now if now is not None else time.time())
    return [
        {
            "name": "_ga",
            "value": f"GA1.2.{random.randint(0, 999_999_999)}.{now_s}",
            "domain": domain,
            "path": "/",
            "expires": now_s + 86400 * 365,
        },
        {
            "name": "_gid",
            "value": f"GA1.2.{random.randint(0, 999_999_999)}.{now_s}",
            "domain": domain,
            "path": "/",
            "expires": now_s + 86400,
        },
        {
            "name": "sessionId",
            "value": _random_token(32),
            "domain": domain,
            "path": "/",
            "httpOnly": False,
            "secure": True,
        },
    ]


async def apply_evasion_profile(context: BrowserContext, profile: EvasionProfile) -> None:
    """
    Inject fingerprint overrides and cookies into a fresh context.

    Failures are logged and swallowed; a context without overrides still works.
    """
    try:
        for script in profile.init_scripts:
            await context.add_init_script(script)
        await context.add_cookies(realistic_cookies(profile.cookie_domain))
        logger.debug("evasion_profile_applied", cookie_domain=profile.cookie_domain)
    except Exception as e:
        logger.warning("evasion_profile_failed", error=str(e), error_type=type(e).__name__)


def jittered_ms(nominal_ms: float, jitter_ms: float) -> float:
    """nominal_ms plus a uniform offset in [-jitter_ms, +jitter_ms], never negative."""
    return max(0.0, nominal_ms + random.uniform(-jitter_ms, jitter_ms))
