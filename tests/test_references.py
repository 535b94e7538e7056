from toneguard.design.naming import PropertyNames
from toneguard.design.references import (
    BrandRef,
    ReferenceContext,
    TokenRef,
    UIKitRef,
    Unresolved,
    extract_brace_content,
    parse_reference,
    reference_to_property,
    resolve_reference,
    resolve_to_token,
)
from toneguard.design.token_index import build_token_index


def _ctx(tokens, brand, mode="light"):
    return ReferenceContext(mode=mode, token_index=build_token_index(tokens), brand=brand, names=PropertyNames("t"))


def test_extract_brace_content_normalizes_whitespace():
    assert extract_brace_content("{ tokens.color  gray .500 }") == "tokens.color.gray.500"
    assert extract_brace_content("tokens.color.gray.500") is None
    assert extract_brace_content("{}") is None


def test_parse_token_reference_variants():
    assert parse_reference("{tokens.colors.gray.50}") == TokenRef(("color", "gray", "050"))
    assert parse_reference({"$value": "{token.opacity.smoky}"}) == TokenRef(("opacity", "smoky"))
    bad = parse_reference("{tokens.color.gray}")
    assert isinstance(bad, Unresolved)


def test_parse_brand_reference_modes():
    ctx = ReferenceContext(mode="dark")
    assert parse_reference("{brand.themes.light.palettes.neutral.500}") == BrandRef(
        ("palettes", "neutral", "500"), "light"
    )
    assert parse_reference("{brand.light.palette.neutral.500}") == BrandRef(("palettes", "neutral", "500"), "light")
    assert parse_reference("{brand.palettes.core.alert}", ctx) == BrandRef(("palettes", "core-colors", "alert"), "dark")
    assert parse_reference("{brand.dimensions.gutters.md}", ctx) == BrandRef(("dimensions", "gutters", "md"), None)


def test_parse_other_domains():
    assert parse_reference("{ui-kit.button.background}") == UIKitRef(("button", "background"))
    assert isinstance(parse_reference("{weird.path}"), Unresolved)
    assert isinstance(parse_reference("#ffffff"), Unresolved)
    assert parse_reference("{tokens.color.gray.500}").type == "token"


def test_resolve_reference_follows_brand_chain(tokens, brand):
    ctx = _ctx(tokens, brand)
    assert resolve_reference("{brand.themes.light.palettes.neutral.900}", ctx) == "#1a1a1a"
    assert resolve_reference("{brand.themes.light.layers.layer-0.properties.surface}", ctx) == "#ffffff"
    assert resolve_reference("{brand.themes.light.palettes.missing.100}", ctx) is None
    assert resolve_reference("{tokens.opacity.smoky}", ctx) == 0.6


def test_resolve_reference_bounded_on_cycles(tokens, brand):
    brand["brand"]["dimensions"]["a"] = {"$value": "{brand.dimensions.b}"}
    brand["brand"]["dimensions"]["b"] = {"$value": "{brand.dimensions.a}"}
    ctx = _ctx(tokens, brand)
    assert resolve_reference("{brand.dimensions.a}", ctx) is None


def test_resolve_to_token(tokens, brand):
    ctx = _ctx(tokens, brand)
    ref = resolve_to_token("{brand.themes.light.palettes.salmon.400}", ctx)
    assert ref == TokenRef(("color", "salmon", "400"))


def test_reference_to_property(tokens, brand):
    ctx = _ctx(tokens, brand)
    names = ctx.names
    assert reference_to_property(parse_reference("{tokens.color.scale-01.500}"), ctx) == names.token_color("gray", "500")
    assert reference_to_property(parse_reference("{brand.palettes.neutral.primary}", ctx), ctx) == names.palette(
        "light", "neutral", "primary", "tone"
    )
    assert reference_to_property(parse_reference("{brand.palettes.core.interactive.hover}", ctx), ctx) == names.core(
        "light", "interactive", "hover", "tone"
    )
    assert reference_to_property(parse_reference("{brand.themes.dark.layers.layer-0.properties.surface}"), ctx) == (
        names.layer("dark", "layer-0", "surface")
    )
    assert reference_to_property(parse_reference("{tokens.color.nothing.500}"), ctx) is None
