import asyncio

import httpx
import pytest

from srbweather.maps.view import (
    InteractiveMap,
    MapNotInteractiveError,
    MapState,
    MapView,
    StaticMap,
    probe_map_library,
)
from srbweather.models.city import DEFAULT_CITY


async def ready_after(delay: float, value: bool = True) -> bool:
    await asyncio.sleep(delay)
    return value


async def failing_load() -> bool:
    raise OSError("script blocked")


def mount(view: MapView, library_ready, timeout_s: float = 0.5) -> MapState:
    return asyncio.run(view.mount(library_ready, timeout_s=timeout_s))


def test_library_ready_before_timer_goes_interactive():
    view = MapView()
    assert view.state is MapState.loading
    assert view.render(DEFAULT_CITY) is None
    assert mount(view, ready_after(0)) is MapState.interactive
    rendered = view.render(DEFAULT_CITY)
    assert isinstance(rendered, InteractiveMap)
    assert rendered.center_lat == DEFAULT_CITY.lat
    assert rendered.zoom == 7


def test_timer_wins_goes_static():
    view = MapView()
    assert mount(view, ready_after(5), timeout_s=0.01) is MapState.static_fallback
    rendered = view.render(DEFAULT_CITY)
    assert isinstance(rendered, StaticMap)
    assert rendered.tile_url == "https://tile.openstreetmap.org/7/71/46.png"
    assert rendered.marker == "📍"
    assert rendered.link_url.startswith("https://www.openstreetmap.org/?mlat=44.7866")


def test_load_failure_goes_static():
    view = MapView()
    assert mount(view, failing_load()) is MapState.static_fallback
    assert mount(view, ready_after(0, value=False)) is MapState.static_fallback


def test_library_not_ready_goes_static():
    assert mount(MapView(), ready_after(0, value=False)) is MapState.static_fallback


def test_settled_view_does_not_race_again():
    view = MapView()
    mount(view, ready_after(5), timeout_s=0.01)
    assert mount(view, ready_after(0)) is MapState.static_fallback


def test_click_on_interactive_map_builds_custom_city():
    view = MapView()
    mount(view, ready_after(0))
    city = view.handle_click(45.3, 19.9)
    assert city.name == "Custom • Novi Sad"
    assert city.display_name == "Custom"
    assert (city.lat, city.lon) == (45.3, 19.9)


def test_click_without_interactive_map_is_rejected():
    view = MapView()
    with pytest.raises(MapNotInteractiveError):
        view.handle_click(45.3, 19.9)
    mount(view, failing_load())
    with pytest.raises(MapNotInteractiveError):
        view.handle_click(45.3, 19.9)


def test_probe_map_library():
    def handler(request):
        if request.url.path.endswith("leaflet.js"):
            return httpx.Response(200, text="/* leaflet */")
        return httpx.Response(404)

    async def run(url):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await probe_map_library(url, client)

    assert asyncio.run(run("https://unpkg.com/leaflet@1.9.4/dist/leaflet.js")) is True
    assert asyncio.run(run("https://unpkg.com/missing.js")) is False


def test_probe_map_library_network_error():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await probe_map_library(client=client)

    assert asyncio.run(run()) is False
