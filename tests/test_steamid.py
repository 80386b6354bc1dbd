# tests/test_steamid.py

import pytest

from csgostats.errors import InvalidSteamIdError, ValidationError
from csgostats.steamid import to_steam_id64

HIKO = "76561197960268519"


@pytest.mark.parametrize("value", [
    HIKO,
    int(HIKO),
    "STEAM_0:1:1395",
    "STEAM_1:1:1395",
    "[U:1:2791]",
    "[U:1:2791:1]",
    f"https://steamcommunity.com/profiles/{HIKO}",
    f"https://steamcommunity.com/profiles/{HIKO}/",
    f"  {HIKO}  ",
])
def test_hiko_representations_normalize_to_same_id(value):
    assert to_steam_id64(value) == HIKO


def test_steam2_account_id_is_doubled_plus_auth_bit():
    assert to_steam_id64("STEAM_0:1:12345") == "76561197960290419"
    assert to_steam_id64("STEAM_0:0:12345") == "76561197960290418"


def test_steam3_group_has_no_instance():
    assert to_steam_id64("[g:1:4]") == "103582791429521412"


def test_32_bit_account_id_is_public_individual():
    assert to_steam_id64("2791") == HIKO
    assert to_steam_id64(2791) == HIKO


@pytest.mark.parametrize("value", [
    "",
    "hiko",
    "STEAM_0:2:1395",
    "[X:1:2791]",
    "https://steamcommunity.com/id/hiko",
    str(1 << 64),
    str((1 << 64) - 1),
    "[U:1:0]",
    -1,
    True,
])
def test_invalid_inputs_raise(value):
    with pytest.raises(InvalidSteamIdError):
        to_steam_id64(value)


def test_invalid_steam_id_is_a_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        to_steam_id64("not-an-id")
    assert "not-an-id" in str(excinfo.value)
