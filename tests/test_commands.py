import pytest

from sightline.voice.commands import (
    Action,
    Category,
    CommandCatalog,
    CommandDefinition,
    DetectMode,
    EmergencyAction,
    SettingsChange,
    command,
    default_catalog,
)


class TestAction:
    @pytest.mark.voice
    def test_parse_navigate(self):
        action = Action.parse("navigate:/live-vision")
        assert action.category is Category.NAVIGATE
        assert action.operand == "/live-vision"
        assert action.is_known

    @pytest.mark.voice
    def test_parse_typed_operands(self):
        assert Action.parse("emergency:call").operand is EmergencyAction.CALL
        assert Action.parse("detect:depth").operand is DetectMode.DEPTH
        assert Action.parse("settings:volume:up").operand == SettingsChange("volume", "up")

    @pytest.mark.voice
    def test_category_aliases(self):
        assert Action.parse("navigation:/").category is Category.NAVIGATE
        assert Action.parse("detection:text").category is Category.DETECT

    @pytest.mark.voice
    def test_unknown_operand_is_kept_raw(self):
        action = Action.parse("emergency:teleport")
        assert action.category is Category.EMERGENCY
        assert action.operand == "teleport"
        assert not action.is_known

    @pytest.mark.voice
    def test_unknown_setting_value(self):
        assert not Action.parse("settings:voice:robot").is_known

    @pytest.mark.voice
    def test_general_is_never_known(self):
        assert not Action.parse("general").is_known

    @pytest.mark.voice
    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            Action.parse("launch:rocket")
        with pytest.raises(ValueError):
            Action.parse("  ")

    @pytest.mark.voice
    def test_str_round_trips_text(self):
        for text in ("navigate:/settings", "emergency:location", "settings:voice:female", "general"):
            assert str(Action.parse(text)) == text


class TestCommandDefinition:
    @pytest.mark.voice
    def test_patterns_normalized_at_build_time(self):
        definition = command(["  Go   HOME "], "navigate:/", "Go to home page")
        assert definition.patterns == ("go home",)

    @pytest.mark.voice
    def test_requires_a_pattern(self):
        with pytest.raises(ValueError):
            command([], "navigate:/", "Nothing")
        with pytest.raises(ValueError):
            CommandDefinition(("   ",), Action(Category.GENERAL), "Blank")

    @pytest.mark.voice
    def test_immutable(self):
        definition = command(["go home"], "navigate:/", "Go to home page")
        with pytest.raises(AttributeError):
            definition.description = "changed"


class TestCommandCatalog:
    @pytest.mark.voice
    def test_default_catalog_contents(self, catalog):
        commands = catalog.list_commands()
        assert len(commands) == 21
        assert commands[0].description == "Go to home page"
        assert all(c.patterns for c in commands)

    @pytest.mark.voice
    def test_order_preserved(self):
        a = command(["alpha"], "navigate:/a", "A")
        b = command(["beta"], "navigate:/b", "B")
        assert CommandCatalog([b, a]).list_commands() == (b, a)

    @pytest.mark.voice
    def test_by_category_keeps_order(self, catalog):
        groups = catalog.by_category()
        assert set(groups) == {Category.NAVIGATE, Category.EMERGENCY, Category.DETECT, Category.SETTINGS}
        assert [c.description for c in groups[Category.EMERGENCY]] == [
            "Make emergency call",
            "Send emergency message",
            "Share current location",
        ]
        assert sum(len(v) for v in groups.values()) == len(catalog)

    @pytest.mark.voice
    def test_describe(self, catalog):
        definition = catalog.list_commands()[-2]
        assert CommandCatalog.describe(definition) == "Increase volume. Increase volume."

    @pytest.mark.voice
    def test_default_catalog_is_fresh_but_equal(self):
        assert default_catalog().list_commands() == default_catalog().list_commands()
