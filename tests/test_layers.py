import pytest

from toneguard.design.contrast import blended_contrast
from toneguard.design.derivation import build_plan, compute_property_map
from toneguard.design.issues import IssueKind
from toneguard.design.layers import layer_nodes
from toneguard.design.naming import var
from toneguard.design.resolution import PropertyView


def _resolved(tokens, brand, names):
    plan = build_plan(tokens, brand, names=names)
    values, results = compute_property_map(plan)
    return plan, values, results, PropertyView(values.get, names)


def test_layer_order_regular_then_alternative(brand):
    ids = [lid for lid, _ in layer_nodes(brand, "light")]
    assert ids == ["layer-0", "layer-1", "alternative-inverse"]


def test_text_follows_surface_palette_on_tone(tokens, brand, names):
    _, values, _, view = _resolved(tokens, brand, names)
    text = names.layer_element("light", "layer-0", "text", "color")
    assert values[text] == var(names.palette("light", "neutral", "000", "on-tone"))
    assert view.hex(text) == "#000000"
    dark_text = names.layer_element("dark", "layer-0", "text", "color")
    assert view.hex(dark_text) == "#ffffff"


def test_static_layer_properties_and_emphasis(tokens, brand, names):
    plan, values, _, _ = _resolved(tokens, brand, names)
    assert values[names.layer("light", "layer-1", "border-width")] == var(names.token("size", "1x"))
    assert values[names.layer_element("light", "layer-1", "text", "low-emphasis")] == var(
        names.text_emphasis("light", "low")
    )
    assert plan.unit("layer:light:alternative-inverse") is not None


def test_every_compliant_element_meets_aa(tokens, brand, names):
    _, values, results, view = _resolved(tokens, brand, names)
    exhausted = {i.locus for r in results for i in r.issues if i.kind is IssueKind.RAMP_EXHAUSTED}
    for mode, layer_id in (("light", "layer-0"), ("light", "layer-1"), ("dark", "layer-0")):
        surface = view.hex(names.layer(mode, layer_id, "surface"))
        for role in ("color", "alert", "warning", "success"):
            name = names.layer_element(mode, layer_id, "text", role)
            if name in exhausted:
                continue
            assert blended_contrast(view.hex(name), surface) >= 4.5, name
        for slot in ("tone", "tone-hover"):
            tone = names.layer_element(mode, layer_id, "interactive", slot)
            if tone in exhausted:
                continue
            assert blended_contrast(view.hex(tone), surface) >= 4.5, tone


def test_interactive_on_tone_measured_against_tone(tokens, brand, names):
    _, _, _, view = _resolved(tokens, brand, names)
    for slot, on_slot in (("tone", "on-tone"), ("tone-hover", "on-tone-hover")):
        tone = view.hex(names.layer_element("dark", "layer-0", "interactive", slot))
        on = view.hex(names.layer_element("dark", "layer-0", "interactive", on_slot))
        assert blended_contrast(on, tone) >= 4.5


def test_interactive_tone_steps_on_dark_surface(tokens, brand, names):
    _, values, _, view = _resolved(tokens, brand, names)
    light_tone = names.layer_element("light", "layer-0", "interactive", "tone")
    dark_tone = names.layer_element("dark", "layer-0", "interactive", "tone")
    assert values[light_tone] == var(names.core("light", "interactive", "default", "tone"))
    # blue/600 fails on the dark surface, so a token-tier level is chosen
    assert names.is_token(values[dark_tone][4:-1])
    assert view.token_target(dark_tone)[0] == "blue"


def test_status_color_exhaustion_is_reported(tokens, brand, names):
    _, values, results, _ = _resolved(tokens, brand, names)
    alert = names.layer_element("dark", "layer-0", "text", "alert")
    issues = [i for r in results for i in r.issues if i.locus == alert]
    assert issues and issues[0].kind is IssueKind.RAMP_EXHAUSTED
    # the design intent is kept
    assert values[alert] == var(names.core("dark", "alert"))


def test_explicit_text_binding_is_start_of_search(tokens, brand, names):
    brand["brand"]["themes"]["light"]["layers"]["layer-0"]["elements"] = {
        "text": {"color": {"$value": "{tokens.color.gray.300}"}}
    }
    _, values, _, view = _resolved(tokens, brand, names)
    text = names.layer_element("light", "layer-0", "text", "color")
    assert view.token_target(text)[0] == "gray"
    assert blended_contrast(view.hex(text), "#ffffff") >= 4.5
    assert values[text] != var(names.token_color("gray", "300"))


def test_missing_surface_palette_falls_back(tokens, brand, names):
    del brand["brand"]["themes"]["light"]["palettes"]["salmon"]
    plan, values, _, view = _resolved(tokens, brand, names)
    surface = names.layer("light", "layer-1", "surface")
    assert values[surface] == var(names.palette("light", "neutral", "100", "tone"))
    assert any(i.kind is IssueKind.SURFACE_PALETTE_MISSING for i in plan.issues)
    assert view.hex(names.layer_element("light", "layer-1", "text", "color")) == "#000000"


def test_text_on_darkest_surface_lands_on_lightest_level(names):
    tokens = {
        "tokens": {
            "color": {"gray": {"000": {"$value": "#ffffff"}, "500": {"$value": "#808080"}, "900": {"$value": "#000000"}}},
            "opacity": {"solid": {"$value": 1}},
        }
    }
    palette = {lvl: {"color": {"tone": {"$value": f"{{tokens.color.gray.{lvl}}}"}}} for lvl in ("000", "500", "900")}
    brand = {
        "brand": {
            "themes": {
                "light": {
                    "palettes": {
                        "core-colors": {"black": "{tokens.color.gray.900}", "white": "{tokens.color.gray.000}"},
                        "neutral": palette,
                    },
                    "text-emphasis": {"high": {"$value": "{tokens.opacity.solid}"}},
                    "layers": {"layer-0": {"properties": {"surface": {"$value": "{brand.palettes.neutral.900}"}}}},
                }
            }
        }
    }
    _, _, _, view = _resolved(tokens, brand, names)
    text = names.layer_element("light", "layer-0", "text", "color")
    assert view.token_target(text) == ("gray", "000")
    assert blended_contrast(view.hex(text), "#000000") == pytest.approx(21.0)
