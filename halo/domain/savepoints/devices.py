"""Device detection from the User-Agent header"""

import re
from typing import NamedTuple

MOBILE_PATTERN = re.compile(r"mobile|android|iphone|ipad|ipod|blackberry|iemobile|opera mini", re.IGNORECASE)
TABLET_PATTERN = re.compile(r"ipad|tablet", re.IGNORECASE)


class DeviceInfo(NamedTuple):
    device_type: str  # desktop, mobile, tablet
    device_name: str  # e.g. "Chrome macOS"


def _browser(ua: str) -> str:
    if "edg/" in ua or "edge/" in ua:
        return "Edge"
    if "chrome" in ua and "chromium" not in ua:
        return "Chrome"
    if "firefox" in ua:
        return "Firefox"
    if "safari" in ua and "chrome" not in ua:
        return "Safari"
    if "opera" in ua or "opr/" in ua:
        return "Opera"
    return "Browser"


def _operating_system(ua: str) -> str:
    if "windows" in ua:
        return "Windows"
    # iOS user agents also say "like Mac OS X"
    if "iphone" in ua:
        return "iPhone"
    if "ipad" in ua:
        return "iPad"
    if "mac os" in ua:
        return "macOS"
    if "android" in ua:
        return "Android"
    if "linux" in ua:
        return "Linux"
    return ""


def parse_user_agent(user_agent: str) -> DeviceInfo:
    ua = (user_agent or "").lower()
    device_type = "desktop"
    if MOBILE_PATTERN.search(ua):
        device_type = "tablet" if TABLET_PATTERN.search(ua) else "mobile"

    browser = _browser(ua)
    os_name = _operating_system(ua)
    return DeviceInfo(device_type, f"{browser} {os_name}" if os_name else browser)
