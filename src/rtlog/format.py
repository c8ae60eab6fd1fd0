"""Human-readable detail and time strings for log rows."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, tzinfo
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict

from rtlog.colors import color_of
from rtlog.events import BaseEvent, EventType

DEFAULT_LOCALE = "en-US"

SESSION_TEMPLATE = "Visitor from {country} using {browser} on {os} {device}"

BROWSERS = {
    "aol": "AOL",
    "edge": "Edge",
    "edge-ios": "Edge (iOS)",
    "yandexbrowser": "Yandex",
    "kakaotalk": "KaKaoTalk",
    "samsung": "Samsung",
    "silk": "Silk",
    "miui": "MIUI",
    "beaker": "Beaker",
    "edge-chromium": "Edge (Chromium)",
    "chrome": "Chrome",
    "chromium-webview": "Chrome (webview)",
    "phantomjs": "PhantomJS",
    "crios": "Chrome (iOS)",
    "firefox": "Firefox",
    "fxios": "Firefox (iOS)",
    "opera-mini": "Opera Mini",
    "opera": "Opera",
    "ie": "IE",
    "bb10": "BlackBerry 10",
    "android": "Android",
    "ios": "iOS",
    "ios-webview": "iOS (webview)",
    "safari": "Safari",
    "facebook": "Facebook",
    "instagram": "Instagram",
    "searchbot": "Searchbot",
}

DEVICES = {
    "desktop": "Desktop",
    "laptop": "Laptop",
    "tablet": "Tablet",
    "mobile": "Mobile",
}

COUNTRY_NAMES = {
    "AR": "Argentina",
    "AT": "Austria",
    "AU": "Australia",
    "BE": "Belgium",
    "BR": "Brazil",
    "CA": "Canada",
    "CH": "Switzerland",
    "CL": "Chile",
    "CN": "China",
    "CO": "Colombia",
    "CZ": "Czechia",
    "DE": "Germany",
    "DK": "Denmark",
    "EG": "Egypt",
    "ES": "Spain",
    "FI": "Finland",
    "FR": "France",
    "GB": "United Kingdom",
    "GR": "Greece",
    "HK": "Hong Kong",
    "HU": "Hungary",
    "ID": "Indonesia",
    "IE": "Ireland",
    "IL": "Israel",
    "IN": "India",
    "IT": "Italy",
    "JP": "Japan",
    "KE": "Kenya",
    "KR": "South Korea",
    "MX": "Mexico",
    "MY": "Malaysia",
    "NG": "Nigeria",
    "NL": "Netherlands",
    "NO": "Norway",
    "NZ": "New Zealand",
    "PE": "Peru",
    "PH": "Philippines",
    "PK": "Pakistan",
    "PL": "Poland",
    "PT": "Portugal",
    "RO": "Romania",
    "RU": "Russia",
    "SA": "Saudi Arabia",
    "SE": "Sweden",
    "SG": "Singapore",
    "TH": "Thailand",
    "TR": "Turkey",
    "TW": "Taiwan",
    "UA": "Ukraine",
    "US": "United States",
    "VN": "Vietnam",
    "ZA": "South Africa",
}

# Locales whose short time uses a 12-hour clock; everything else is 24-hour
TWELVE_HOUR_LOCALES = {"en", "en-US", "en-AU", "en-CA", "en-IN", "en-NZ", "en-PH", "hi-IN", "ar-EG"}


class Labels:
    """Display labels for country, browser and device codes.

    Country names are supplied per locale by the caller; the defaults are
    English.
    """

    def __init__(
        self,
        *,
        country_names: Mapping[str, str] | None = None,
        browsers: Mapping[str, str] | None = None,
        devices: Mapping[str, str] | None = None,
        unknown: str = "Unknown",
    ) -> None:
        self._country_names = COUNTRY_NAMES if country_names is None else country_names
        self._browsers = BROWSERS if browsers is None else browsers
        self._devices = DEVICES if devices is None else devices
        self.unknown = unknown

    def country(self, code: str | None) -> str:
        if not code:
            return self.unknown
        return self._country_names.get(code) or self.unknown

    def browser(self, code: str | None) -> str:
        if not code:
            return self.unknown
        return self._browsers.get(code, code)

    def device(self, code: str | None) -> str:
        if not code:
            return self.unknown
        return self._devices.get(code) or self.unknown


class Detail(BaseModel):
    """Description of a row; ``href`` is set only for page views."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    href: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text and self.href is None


class LogRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EventType
    created_at: datetime
    time: str
    color: str
    detail: Detail


def safe_decode_uri(url: str) -> str:
    """Percent-decode a URL for display, returning it unchanged if malformed."""
    try:
        return unquote(url, errors="strict")
    except UnicodeDecodeError:
        return url


def format_detail(event: BaseEvent, website_domain: str, labels: Labels | None = None) -> Detail:
    """Describe an event according to its type.

    Unknown events get an empty detail.
    """
    if labels is None:
        labels = Labels()

    if event.type is EventType.EVENT:
        return Detail(text=event.event_name or "")

    if event.type is EventType.PAGEVIEW:
        url = event.url or ""
        return Detail(text=safe_decode_uri(url), href=f"//{website_domain}{url}")

    if event.type is EventType.SESSION:
        return Detail(
            text=SESSION_TEMPLATE.format(
                country=labels.country(event.country),
                browser=labels.browser(event.browser),
                os=event.os or "",
                device=labels.device(event.device),
            )
        )

    return Detail()


def _normalize_locale(locale: str) -> str:
    return locale.replace("_", "-")


def format_time(created_at: datetime, locale: str = DEFAULT_LOCALE, *, tz: tzinfo | None = None) -> str:
    """Format a timestamp as a short time of day, e.g. '3:04:05 PM' or '15:04:05'.

    Args:
        created_at: Timezone-aware timestamp.
        locale: BCP 47 locale code, e.g. 'en-US' or 'de_DE'.
        tz: Display timezone (default: local timezone).
    """
    local = created_at.astimezone(tz)
    if _normalize_locale(locale) in TWELVE_HOUR_LOCALES:
        hour = local.hour % 12 or 12
        suffix = "AM" if local.hour < 12 else "PM"
        return f"{hour}:{local:%M:%S} {suffix}"
    return f"{local:%H:%M:%S}"


def format_row(
    event: BaseEvent,
    *,
    website_domain: str,
    uuids: Mapping[str, str],
    labels: Labels | None = None,
    locale: str = DEFAULT_LOCALE,
    tz: tzinfo | None = None,
) -> LogRow:
    """Build the display row for one event."""
    return LogRow(
        type=event.type,
        created_at=event.created_at,
        time=format_time(event.created_at, locale, tz=tz),
        color=color_of(event, uuids),
        detail=format_detail(event, website_domain, labels),
    )
