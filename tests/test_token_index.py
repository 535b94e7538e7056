import pytest

from toneguard.design.token_index import LEVELS, build_token_index, normalize_level
from toneguard.errors import TokenValidationError


def test_normalize_level():
    assert normalize_level(50) == "050"
    assert normalize_level("0") == "000"
    assert normalize_level("1000") == "1000"
    assert normalize_level("primary") == "primary"


def test_alias_and_scale_id_resolve_to_same_ramp(tokens):
    index = build_token_index(tokens)
    assert index.get("color/gray/500") == "#777777"
    assert index.get("color/scale-01/500") == "#777777"
    assert index.get("colors.gray.50") == "#f7f7f7"
    ramp = index.ramp("scale-01")
    assert ramp.name == "gray"
    assert ramp.scale_id == "scale-01"
    assert ramp.levels == LEVELS


def test_scalar_categories_indexed(tokens):
    index = build_token_index(tokens)
    assert index.get("opacity/smoky") == 0.6
    assert index.get("size/2x") == 8
    assert index.get("font/weight/bold") == 700
    assert index.get("color/unknown/500") is None


def test_find_token_by_hex_skips_translucent(tokens):
    index = build_token_index(tokens)
    assert index.find_token_by_hex("#777777") == ("gray", "500")
    assert index.find_token_by_hex("#FA8072") == ("salmon", "400")
    assert index.find_token_by_hex("#00000080") is None
    assert index.find_token_by_hex("#123456") is None
    assert "translucent" in index.ramps
    assert index.ramp("translucent").levels == ()


def test_find_token_by_value(tokens):
    index = build_token_index(tokens)
    assert index.find_token_by_value("opacity", "0.6") == "smoky"
    assert index.find_token_by_value("size", "8px") == "2x"
    assert index.find_token_by_value("size", 5) is None


def test_malformed_color_raises(tokens):
    tokens["tokens"]["color"]["blue"]["500"] = {"$value": "#3b82"}
    with pytest.raises(TokenValidationError):
        build_token_index(tokens)


def test_malformed_color_skipped_when_not_strict(tokens):
    tokens["tokens"]["color"]["blue"]["500"] = {"$value": "blue"}
    index = build_token_index(tokens, strict=False)
    assert index.get("color/blue/500") is None
    assert index.get("color/blue/600") == "#2563eb"
