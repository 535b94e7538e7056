import pytest

from toneguard.design.derivation import build_plan, compute_property_map
from toneguard.design.issues import IssueKind, Severity
from toneguard.design.naming import var
from toneguard.design.palettes import pick_on_tone, primary_level
from toneguard.design.resolution import PropertyView


def test_pick_on_tone_both_pass_prefers_higher():
    assert pick_on_tone("#ffffff").anchor == "black"
    assert pick_on_tone("#000000").anchor == "white"
    assert pick_on_tone("#1a1a1a").compliant


def test_pick_on_tone_only_one_passes():
    # white reaches ~4.48 only, black ~4.69
    choice = pick_on_tone("#777777")
    assert choice.anchor == "black"
    assert choice.compliant


def test_pick_on_tone_neither_passes_keeps_higher():
    choice = pick_on_tone("#777777", threshold=7.0)
    assert choice.anchor == "black"
    assert not choice.compliant


def test_primary_level_requires_declared_level(brand):
    neutral = brand["brand"]["themes"]["light"]["palettes"]["neutral"]
    assert primary_level(neutral) == "500"
    neutral["primary-level"] = {"$value": "700"}
    assert primary_level(neutral) is None


def test_palette_tones_are_token_indirections(tokens, brand, names):
    plan = build_plan(tokens, brand, names=names)
    tone = names.palette("light", "salmon", "400", "tone")
    assert plan.sources[tone] == var(names.token_color("salmon", "400"))
    primary = names.palette("light", "neutral", "primary", "tone")
    assert plan.sources[primary] == var(names.palette("light", "neutral", "500", "tone"))


def test_literal_tone_is_repaired_by_reverse_lookup(tokens, brand, names):
    brand["brand"]["themes"]["light"]["palettes"]["neutral"]["100"] = {"color": {"tone": {"$value": "#EEEEEE"}}}
    plan = build_plan(tokens, brand, names=names)
    assert plan.sources[names.palette("light", "neutral", "100", "tone")] == var(names.token_color("gray", "100"))


def test_unknown_literal_tone_is_reported_not_emitted(tokens, brand, names):
    brand["brand"]["themes"]["light"]["palettes"]["neutral"]["100"] = {"color": {"tone": {"$value": "#123456"}}}
    plan = build_plan(tokens, brand, names=names)
    name = names.palette("light", "neutral", "100", "tone")
    assert name not in plan.sources
    assert any(i.kind is IssueKind.LITERAL_VALUE and i.locus == name for i in plan.issues)


def test_on_tones_point_at_core_anchors(tokens, brand, names):
    values, _ = compute_property_map(build_plan(tokens, brand, names=names))
    view = PropertyView(values.get, names)
    assert values[names.palette("light", "neutral", "000", "on-tone")] == var(names.core("light", "black"))
    assert values[names.palette("light", "neutral", "900", "on-tone")] == var(names.core("light", "white"))
    assert view.hex(names.palette("light", "neutral", "primary", "on-tone")) == "#000000"
    # core white is bound to gray/000
    assert view.token_target(names.palette("dark", "neutral", "900", "on-tone")) == ("gray", "000")


def test_on_tone_choice_measures_pure_anchors(tokens, brand, names):
    core = brand["brand"]["themes"]["light"]["palettes"]["core-colors"]
    core["black"] = {"tone": {"$value": "{tokens.color.gray.400}"}}
    core["white"] = {"tone": {"$value": "{tokens.color.gray.600}"}}
    plan = build_plan(tokens, brand, names=names)
    values, results = compute_property_map(plan)
    issues = [i for r in results for i in r.issues]
    # the choice is made against pure black / white
    assert not [i for i in issues if i.kind is IssueKind.NO_COMPLIANT_ANCHOR]
    on_tone = names.palette("light", "neutral", "500", "on-tone")
    assert values[on_tone] == var(names.core("light", "black"))
    # but the bound anchor (#999999 on #777777) is measured and reported
    failing = [i for i in issues if i.locus == on_tone]
    assert [i.kind for i in failing] == [IssueKind.CONTRAST_FAIL]
    assert failing[0].severity is Severity.WARNING
    assert not failing[0].auto_fixable
    assert failing[0].measured_ratio == pytest.approx(1.57, abs=0.01)


def test_core_on_tone_reports_bound_anchor_shortfall(tokens, brand, names):
    core = brand["brand"]["themes"]["light"]["palettes"]["core-colors"]
    core["white"] = {"tone": {"$value": "{tokens.color.gray.600}"}}
    plan = build_plan(tokens, brand, names=names)
    values, results = compute_property_map(plan)
    issues = [i for r in results for i in r.issues]
    on_tone = names.core("light", "interactive", "default", "on-tone")
    assert values[on_tone] == var(names.core("light", "white"))
    failing = [i for i in issues if i.locus == on_tone]
    assert failing and failing[0].kind is IssueKind.CONTRAST_FAIL
    assert failing[0].measured_ratio < 4.5
    # dark mode keeps its pure anchors
    assert not [i for i in issues if i.locus == names.core("dark", "interactive", "default", "on-tone")]


def test_text_emphasis_falls_back_to_solid(tokens, brand, names):
    brand["brand"]["themes"]["dark"]["text-emphasis"] = {"high": {"$value": "{tokens.opacity.missing}"}}
    plan = build_plan(tokens, brand, names=names)
    assert plan.sources[names.text_emphasis("dark", "high")] == var(names.token("opacity", "solid"))
    assert plan.sources[names.text_emphasis("light", "low")] == var(names.token("opacity", "smoky"))
    warnings = [i for i in plan.issues if i.locus == names.text_emphasis("dark", "low")]
    assert warnings and warnings[0].severity is Severity.WARNING
