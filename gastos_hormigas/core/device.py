import re
from enum import Enum
from typing import Optional


class OAuthFlow(str, Enum):
    POPUP = "popup"
    REDIRECT = "redirect"


_MOBILE_UA_RE = re.compile(
    r"android|webos|iphone|ipad|ipod|blackberry|iemobile|opera mini|mobile|tablet",
    re.IGNORECASE,
)

SMALL_SCREEN_MAX_WIDTH = 768


def is_mobile_device(
    user_agent: Optional[str],
    max_touch_points: int = 0,
    viewport_width: Optional[int] = None,
) -> bool:
    """Mobile UA, or a touch device with a small viewport."""
    if user_agent and _MOBILE_UA_RE.search(user_agent):
        return True
    has_touch = max_touch_points > 0
    is_small_screen = viewport_width is not None and viewport_width <= SMALL_SCREEN_MAX_WIDTH
    return has_touch and is_small_screen


def choose_oauth_flow(
    user_agent: Optional[str],
    max_touch_points: int = 0,
    viewport_width: Optional[int] = None,
) -> OAuthFlow:
    # popups get blocked on most mobile browsers
    if is_mobile_device(user_agent, max_touch_points, viewport_width):
        return OAuthFlow.REDIRECT
    return OAuthFlow.POPUP
