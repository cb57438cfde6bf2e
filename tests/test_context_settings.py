import pytest

from fakes import make_drums, open_drums
from playdrums import BrowserNotOpenError, TargetNotFoundError


@pytest.mark.asyncio
async def test_set_cookie_needs_url_or_domain():
    drums, _ = await open_drums()
    with pytest.raises(ValueError):
        await drums.set_cookie("sid", "1")


@pytest.mark.asyncio
async def test_cookie_round_trip_and_delete():
    drums, _ = await open_drums()
    await drums.set_cookie("sid", "abc", domain="a.test", path="/", http_only=True)
    await drums.set_cookie("theme", "dark", domain="a.test", path="/")

    stored = drums.context.cookie_jar
    assert stored[0]["httpOnly"] is True
    assert [cookie["name"] for cookie in await drums.get_cookies()] == ["sid", "theme"]
    assert [cookie["value"] for cookie in await drums.get_cookies("sid")] == ["abc"]

    await drums.delete_cookies("sid")
    assert [cookie["name"] for cookie in await drums.get_cookies()] == ["theme"]

    with pytest.raises(TargetNotFoundError):
        await drums.delete_cookies("sid")

    await drums.delete_cookies()
    assert await drums.get_cookies() == []


@pytest.mark.asyncio
async def test_permissions_are_granted_and_cleared():
    drums, _ = await open_drums()
    await drums.override_permissions("https://maps.test", ["geolocation"])
    assert drums.context.permissions == [(("geolocation",), "https://maps.test")]

    await drums.clear_permission_overrides()
    assert drums.context.permissions == []


@pytest.mark.asyncio
async def test_set_location_validates_coordinates():
    drums, _ = await open_drums()
    await drums.set_location(latitude=27.17, longitude=78.04)
    assert drums.context.geolocation == {"latitude": 27.17, "longitude": 78.04, "accuracy": 0}

    with pytest.raises(ValueError):
        await drums.set_location({"latitude": 120, "longitude": 0})


@pytest.mark.asyncio
async def test_set_location_takes_positional_coordinates_or_a_mapping():
    drums, _ = await open_drums()
    await drums.set_location(27.17, 78.04)
    assert drums.context.geolocation == {"latitude": 27.17, "longitude": 78.04, "accuracy": 0}

    await drums.set_location(48.85, 2.35, 25)
    assert drums.context.geolocation["accuracy"] == 25

    await drums.set_location({"latitude": 51.5, "longitude": -0.12})
    assert drums.context.geolocation == {"latitude": 51.5, "longitude": -0.12, "accuracy": 0}

    with pytest.raises(ValueError):
        await drums.set_location(10)


@pytest.mark.asyncio
async def test_get_device():
    drums, _ = make_drums()
    with pytest.raises(BrowserNotOpenError):
        drums.get_device("iPhone 13")

    await drums.open_browser()
    assert drums.get_device("iPhone 13")["is_mobile"] is True
    with pytest.raises(ValueError, match="device models"):
        drums.get_device("Nokia 3310")
