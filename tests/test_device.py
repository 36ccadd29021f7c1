import pytest

from gastos_hormigas.core.device import OAuthFlow, choose_oauth_flow, is_mobile_device


IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
ANDROID = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/120.0 Mobile Safari/537.36"
DESKTOP = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


@pytest.mark.parametrize("user_agent", [IPHONE, ANDROID])
def test_mobile_user_agents_use_redirect(user_agent):
    assert is_mobile_device(user_agent)
    assert choose_oauth_flow(user_agent) == OAuthFlow.REDIRECT


def test_desktop_uses_popup():
    assert not is_mobile_device(DESKTOP, max_touch_points=0, viewport_width=1440)
    assert choose_oauth_flow(DESKTOP) == OAuthFlow.POPUP


def test_touch_with_small_viewport_counts_as_mobile():
    assert is_mobile_device(DESKTOP, max_touch_points=5, viewport_width=768)


def test_touch_laptop_with_large_viewport_is_not_mobile():
    assert not is_mobile_device(DESKTOP, max_touch_points=10, viewport_width=1280)


def test_small_viewport_without_touch_is_not_mobile():
    assert not is_mobile_device(DESKTOP, max_touch_points=0, viewport_width=500)


def test_missing_user_agent():
    assert choose_oauth_flow(None) == OAuthFlow.POPUP
