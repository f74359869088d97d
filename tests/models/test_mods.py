"""
Tests for mod source models.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sicario_loader.models.mods import (
    CompositeMetadata,
    InstalledMod,
    Mod,
    Patch,
    Preset,
    SlotAssignment,
    SlotConfiguration,
    SourceKind,
    coerce_parameters,
)


# =============================================================================
# Parameter Coercion
# =============================================================================


class TestCoerceParameters:
    """Test coerce_parameters function."""

    def test_scalars_become_strings(self):
        """Numbers, booleans and null are converted."""
        result = coerce_parameters({"a": 1, "b": 2.5, "c": True, "d": False, "e": None, "f": "x"})

        assert result == {"a": "1", "b": "2.5", "c": "true", "d": "false", "e": "", "f": "x"}

    def test_none_is_empty(self):
        assert coerce_parameters(None) == {}

    @pytest.mark.parametrize("value", [{"a": [1]}, {"a": {"b": "c"}}])
    def test_nested_rejected(self, value):
        with pytest.raises(ValueError, match="scalar"):
            coerce_parameters(value)

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError, match="mapping"):
            coerce_parameters(["a", "b"])


# =============================================================================
# Patch & Mod
# =============================================================================


class TestPatch:
    """Test Patch model."""

    def test_valid_patch(self):
        patch = Patch(target="ProjectWingman/Content/Data/a.json", content="{}")

        assert patch.target == "ProjectWingman/Content/Data/a.json"
        assert patch.description is None

    def test_unsafe_target_rejected(self):
        """Traversal in targets is a validation error."""
        with pytest.raises(ValidationError, match="traversal"):
            Patch(target="../../evil.dll", content="")

    def test_frozen(self):
        patch = Patch(target="a.json", content="x")

        with pytest.raises(ValidationError):
            patch.content = "y"


class TestMod:
    """Test Mod model."""

    def test_key_uses_id(self):
        assert Mod(id="night-hud").key == "night-hud"

    def test_key_without_id_is_content_digest(self):
        """Identical anonymous mods share a key; different ones do not."""
        a = Mod(name="A", patches=[Patch(target="x.json", content="1")])
        b = Mod(name="A", patches=[Patch(target="x.json", content="1")])
        c = Mod(name="A", patches=[Patch(target="x.json", content="2")])

        assert a.key == b.key
        assert a.key != c.key
        assert a.key.startswith("sha256:")

    def test_parameters_coerced(self):
        mod = Mod.model_validate({"parameters": {"speed": 1.5}})
        assert mod.parameters == {"speed": "1.5"}

    def test_label_falls_back(self):
        assert Mod(name="Pretty").label == "Pretty"
        assert Mod(id="some-id").label == "some-id"
        assert Mod().label.startswith("sha256:")

    def test_unknown_keys_ignored(self):
        """Files from other tools may carry extra keys."""
        mod = Mod.model_validate({"id": "a", "homepage": "https://example.com"})
        assert mod.id == "a"


# =============================================================================
# Presets & Metadata
# =============================================================================


class TestPreset:
    """Test Preset model."""

    def test_camel_case_keys(self):
        preset = Preset.model_validate({"name": "P", "modParameters": {"a": "1"}})
        assert preset.mod_parameters == {"a": "1"}

    def test_snake_case_keys(self):
        preset = Preset.model_validate({"mod_parameters": {"a": "1"}})
        assert preset.mod_parameters == {"a": "1"}

    def test_defaults(self):
        preset = Preset()

        assert preset.mods == ()
        assert preset.mod_parameters == {}
        assert preset.kind == SourceKind.LOOSE

    def test_nested_parameter_rejected(self):
        with pytest.raises(ValidationError):
            Preset.model_validate({"modParameters": {"a": {"b": 1}}})


class TestCompositeMetadata:
    """Test metadata documents."""

    def test_document_uses_camel_case(self):
        metadata = CompositeMetadata(
            name="SicarioMerge",
            user_name="loader:host",
            created_at="2026-01-15T12:30:00Z",
            template_inputs={"a": "1"},
            mods=(Mod(id="m"),),
        )
        document = metadata.to_document()

        assert document["userName"] == "loader:host"
        assert document["templateInputs"] == {"a": "1"}
        assert document["mods"][0]["id"] == "m"
        assert document["format"] == 1

    def test_installed_mod_reads_document(self):
        installed = InstalledMod.model_validate(
            {
                "name": "SicarioMerge",
                "templateInputs": {"a": "1"},
                "mods": [{"id": "m"}],
                "source": "/paks/~sicario/SicarioMerge_P.pak",
            }
        )

        assert installed.template_inputs == {"a": "1"}
        assert installed.mods[0].key == "m"


# =============================================================================
# Slots
# =============================================================================


class TestSlotAssignment:
    """Test SlotAssignment model."""

    @pytest.mark.parametrize("skin", [None, "", "  ", "default", "DEFAULT", " Default "])
    def test_default_skins(self, skin):
        assert SlotAssignment(aircraft="F-14D", slot=0, skin=skin).is_default

    def test_named_skin_not_default(self):
        assert not SlotAssignment(aircraft="F-14D", slot=1, skin="Mobius").is_default

    def test_numeric_skin_coerced(self):
        assert SlotAssignment(aircraft="F-14D", slot=1, skin=13).skin == "13"


class TestSlotConfiguration:
    """Test SlotConfiguration parsing."""

    def test_from_document(self):
        config = SlotConfiguration.from_document(
            {"slots": {"F-14D": {0: "default", "1": "Mobius"}, "MiG-29A": {2: "Yellow 13"}}}
        )

        assert [(a.aircraft, a.slot, a.skin) for a in config.assignments] == [
            ("F-14D", 0, "default"),
            ("F-14D", 1, "Mobius"),
            ("MiG-29A", 2, "Yellow 13"),
        ]

    @pytest.mark.parametrize("document", [None, {}, {"slots": None}, {"slots": {"F-14D": None}}])
    def test_empty_documents(self, document):
        assert SlotConfiguration.from_document(document).assignments == ()

    @pytest.mark.parametrize(
        "document",
        [
            ["not", "a", "mapping"],
            {"slots": ["x"]},
            {"slots": {"F-14D": "x"}},
            {"slots": {"F-14D": {"one": "x"}}},
        ],
    )
    def test_malformed_documents(self, document):
        with pytest.raises(ValueError):
            SlotConfiguration.from_document(document)
