"""Detection of the anti-bot interstitial served before the real listing."""

ANTIBOT_MARKER = "Data processing... Please, wait."


def is_antibot_interstitial(content: str, marker: str = ANTIBOT_MARKER) -> bool:
    """Return True if ``content`` looks like the anti-bot waiting page.

    An empty ``marker`` disables detection.
    """
    if not marker:
        return False
    return marker in content
