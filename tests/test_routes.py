import pytest

from sightline import routes


class TestRoutes:
    @pytest.mark.parametrize("route, name", [
        ('/', 'home'),
        ('/settings', 'settings'),
        ('/settings/', 'settings'),
        ('/live-vision', 'live_vision'),
        ('/emergency', 'emergency'),
    ])
    def test_screen_name_for(self, route, name):
        assert routes.screen_name_for(route) == name

    @pytest.mark.parametrize("route", ['', None, '/nowhere', 'settings'])
    def test_unknown_routes_go_to_not_found(self, route):
        assert routes.screen_name_for(route) == routes.NOT_FOUND_SCREEN

    def test_titles(self):
        assert routes.title_for(routes.WHATS_AROUND) == "What's Around"
        assert routes.title_for('/nowhere') == 'Page Not Found'
        assert routes.title_for(None) == 'Page Not Found'

    def test_every_navigate_command_has_a_route(self, catalog):
        from sightline.voice.commands import Category

        for definition in catalog:
            if definition.category is Category.NAVIGATE:
                assert definition.action.operand in routes.ROUTES
