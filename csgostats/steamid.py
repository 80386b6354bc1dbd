# csgostats/steamid.py
"""
Steam ID normalization.

csgostats.gg addresses players by their 64-bit Steam ID. Users hand us every
other representation too: Steam2 (``STEAM_0:1:12345``), Steam3
(``[U:1:24691]``), bare integers and community profile URLs. The format
handling itself is ValvePython's ``steam.steamid.SteamID``.
"""

import re
from typing import Union

from steam.steamid import SteamID

from csgostats.errors import InvalidSteamIdError

PROFILE_URL_PATTERN = re.compile(r"^https?://steamcommunity\.com/profiles/(\d+)/?$", re.I)


def to_steam_id64(value: Union[str, int]) -> str:
    """
    Normalize any accepted Steam ID representation to a 64-bit decimal string.

    Args:
        value: SteamID64 (int or digits), 32-bit account id, Steam2, Steam3
               or a ``steamcommunity.com/profiles/<id>`` URL.

    Returns:
        The canonical SteamID64 as a string.

    Raises:
        InvalidSteamIdError: If the value is not a valid Steam ID.
    """
    if isinstance(value, bool) or (isinstance(value, int) and value < 0):
        raise InvalidSteamIdError(f"Unknown SteamID input format \"{value}\"")

    text = str(value).strip()
    match = PROFILE_URL_PATTERN.match(text)
    if match:
        text = match.group(1)

    try:
        steam_id = SteamID(text)
    except (ValueError, TypeError, AssertionError) as exc:
        # Unknown universe numbers and oversized instances fail inside the library
        raise InvalidSteamIdError(f"Unknown SteamID input format \"{text}\"") from exc

    if not steam_id.is_valid():
        raise InvalidSteamIdError(f"Unknown SteamID input format \"{text}\"")
    return str(steam_id.as_64)
