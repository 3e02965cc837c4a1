from newsfeed.antibot import is_antibot_interstitial
from tests.conftest import ANTIBOT_HTML, LISTING_HTML


def test_marker_detected():
    assert is_antibot_interstitial(ANTIBOT_HTML)


def test_regular_listing_not_detected():
    assert not is_antibot_interstitial(LISTING_HTML)


def test_empty_marker_disables_detection():
    assert not is_antibot_interstitial(ANTIBOT_HTML, marker="")
