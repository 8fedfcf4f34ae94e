import re
from typing import Optional

from linkapi.models.link import DeviceType

MOBILE_MARKERS = re.compile(
    r"mobile|android|iphone|ipad|ipod|blackberry|windows phone", re.IGNORECASE
)
# only consulted once the string is already known to be a mobile OS
TABLET_MARKERS = re.compile(r"tablet|ipad", re.IGNORECASE)


def classify_device(user_agent: Optional[str]) -> DeviceType:
    """Coarse device class from a User-Agent header.

    Examples:
        >>> classify_device("Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X)")
        <DeviceType.TABLET: 'tablet'>
        >>> classify_device(None)
        <DeviceType.UNKNOWN: 'unknown'>
    """
    if not user_agent or not user_agent.strip():
        return DeviceType.UNKNOWN

    if MOBILE_MARKERS.search(user_agent):
        if TABLET_MARKERS.search(user_agent):
            return DeviceType.TABLET
        return DeviceType.MOBILE

    return DeviceType.DESKTOP
