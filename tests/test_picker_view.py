import asyncio

from locpicker.errors import GeolocationTimeout
from locpicker.geolocation.source import GeolocationSource
from locpicker.map.surface import HeadlessMapSurface
from locpicker.models.location import Coordinate, Location
from locpicker.resolver.resolver import LocationResolver
from locpicker.settings import GeolocationSettings, PickerSettings
from locpicker.view.picker_view import LOCATE_BUSY, LOCATE_IDLE, LocationPickerView
from tests.fakes import HangingPositionProvider, ScriptedGeocoder, ScriptedPositionProvider, spin


def _view(geocoder, provider, **settings):
    resolver = LocationResolver(
        map_surface=HeadlessMapSurface(),
        geocoder=geocoder,
        geolocation=GeolocationSource(provider),
        settings=PickerSettings(locate_on_mount=False, **settings),
        geolocation_settings=GeolocationSettings(timeout_ms=30),
    )
    resolver.mount()
    return resolver, LocationPickerView(resolver)


def test_render_reflects_search_lifecycle():
    async def _run():
        geocoder = ScriptedGeocoder()
        resolver, view = _view(geocoder, None)

        initial = view.render()
        assert initial.search_text == ""
        assert initial.status_line is None
        assert initial.locate_label == LOCATE_IDLE

        view.type_text("Harbour Road")
        view.submit()
        assert view.render().searching
        assert view.render().search_text == "Harbour Road"

        await spin()
        geocoder.forward_calls[0].resolve([Location(53.35, -6.26, "Harbour Road, Dublin")])
        await resolver.settle()

        model = view.render()
        assert not model.searching
        assert model.search_text == ""
        assert model.status_line == "Harbour Road, Dublin"

    asyncio.run(_run())


def test_locate_control_is_disabled_while_locating():
    async def _run():
        provider = ScriptedPositionProvider()
        resolver, view = _view(ScriptedGeocoder(auto_reverse=lambda c: Location.at(c)), provider)

        view.use_my_location()
        model = view.render()
        assert model.locate_label == LOCATE_BUSY
        assert not model.locate_enabled
        assert view.use_my_location() is None

        await spin()
        assert len(provider.calls) == 1
        provider.calls[0].resolve(Coordinate(10.5, 20.5))
        await resolver.settle()

        model = view.render()
        assert model.locate_enabled
        assert model.status_line == "Latitude: 10.500000, Longitude: 20.500000"

    asyncio.run(_run())


def test_notices_render_and_dismiss():
    async def _run():
        resolver, view = _view(ScriptedGeocoder(), HangingPositionProvider())
        view.use_my_location()
        await resolver.settle()

        model = view.render()
        assert len(model.notices) == 1
        payload = model.to_dict()["notices"][0]
        assert payload["severity"] == "error"
        assert payload["error"] == GeolocationTimeout.__name__

        assert view.dismiss(model.notices[0].notice_id)
        assert view.render().notices == ()
        assert not view.dismiss(model.notices[0].notice_id)

    asyncio.run(_run())
