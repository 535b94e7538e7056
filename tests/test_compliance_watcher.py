import pytest

from toneguard.design.contrast import contrast_ratio
from toneguard.design.issues import IssueKind, Severity
from toneguard.design.naming import var
from toneguard.design.resolution import PropertyView
from toneguard.services.event_bus import EngineEvent


def _text(names, layer_id="layer-0", mode="light"):
    return names.layer_element(mode, layer_id, "text", "color")


def test_find_layers_using_palette(watcher):
    assert watcher.find_layers_using_palette("salmon") == [("light", "layer-1")]
    assert ("light", "layer-0") in watcher.find_layers_using_palette("neutral")
    assert ("dark", "layer-0") in watcher.find_layers_using_palette("neutral")


def test_delete_palette_rederives_dependent_layer_once(watcher, context, names):
    updates = []
    context.bus.subscribe(EngineEvent.PROPERTIES_UPDATED, updates.append)
    context.delete_palette("salmon")
    assert watcher.run_counts["layer:light:layer-1"] == 1
    assert watcher.run_counts["layer:light:layer-0"] == 0
    assert context.store.get(_text(names, "layer-1")) == var(names.palette("light", "neutral", "100", "on-tone"))
    for name in context.store.names():
        assert "-palettes-salmon-" not in (context.store.get(name) or "")
    assert len(updates) == 1
    assert _text(names, "layer-1") in updates[0].names


def test_token_change_runs_each_affected_unit_at_most_once(watcher, context, names):
    context.set_token("color/gray/900", "#222222")
    assert watcher.run_counts
    assert max(watcher.run_counts.values()) == 1
    assert watcher.run_counts["layer:dark:layer-0"] == 1
    assert watcher.run_counts["palette:light:neutral"] == 1
    assert context.store.get(_text(names, mode="dark")) is not None


def test_palette_family_change_reaches_surface_consumers(watcher, context):
    context.set_palette_family("salmon", "blue")
    assert watcher.run_counts["layer:light:layer-1"] == 1
    assert watcher.run_counts["layer:light:layer-0"] == 0


def test_disabled_watcher_queues_until_enabled(watcher, context):
    watcher.disable()
    context.delete_palette("salmon")
    assert watcher.run_counts["layer:light:layer-1"] == 0
    assert watcher.pending
    watcher.enable()
    assert watcher.run_counts["layer:light:layer-1"] == 1
    assert not watcher.pending


def test_check_picks_up_direct_store_edits(watcher, context, names):
    surface = names.layer("light", "layer-0", "surface")
    assert watcher.watch_layer_surface("layer-0", mode="light") == [surface]
    assert watcher.check() == []
    context.store.set(surface, var(names.palette("light", "salmon", "500", "tone")))
    assert watcher.check() == [surface]
    assert watcher.run_counts["layer:light:layer-0"] == 1
    assert context.store.get(_text(names)) == var(names.palette("light", "salmon", "500", "on-tone"))
    assert watcher.check() == []


def test_check_is_ignored_while_updating(watcher, context, names):
    surface = names.layer("light", "layer-0", "surface")
    watcher.watch_layer_surface("layer-0", mode="light")
    context.store.set(surface, var(names.palette("light", "neutral", "100", "tone")))
    watcher.is_updating = True
    assert watcher.check() == []
    watcher.is_updating = False
    assert watcher.check() == [surface]


def test_watch_palette_on_tone_and_core(watcher, names):
    watched = watcher.watch_palette_on_tone("neutral", mode="light")
    assert names.palette("light", "neutral", "000", "tone") in watched
    assert all("-palettes-neutral-" in n for n in watched)
    core = watcher.watch_core_colors(mode="dark")
    assert names.core("dark", "interactive", "hover", "tone") in core
    assert watcher.watched >= set(watched) | set(core)


def test_bulk_rederive_helpers(watcher, context, names):
    on_tone = names.palette("light", "neutral", "000", "on-tone")
    expected_on = context.store.get(on_tone)
    context.store.set(on_tone, var(names.core("light", "white")))
    assert on_tone in watcher.check_all_palette_on_tones()
    assert context.store.get(on_tone) == expected_on

    text = _text(names)
    expected_text = context.store.get(text)
    context.store.set(text, var(names.token_color("gray", "100")))
    assert watcher.update_all_layers() == [text]
    assert context.store.get(text) == expected_text


def test_clean_startup_validation(watcher, context):
    reports = []
    context.bus.subscribe(EngineEvent.COMPLIANCE_REPORTED, reports.append)
    report = watcher.run_startup_validation()
    assert not [i for i in report if i.severity is Severity.ERROR]
    assert any(i.kind is IssueKind.RAMP_EXHAUSTED for i in report)
    assert len(reports) == 1
    assert reports[0].payload["errors"] == 0
    published = reports[0].payload["issues"]
    assert all(set(entry) == {"kind", "message", "severity"} for entry in published)
    assert ("ramp-exhausted", "warning") in [(e["kind"], e["severity"]) for e in published]
    # single run
    assert watcher.run_startup_validation() == report
    assert len(reports) == 1


def test_startup_auto_fix_restores_tampered_property(watcher, context, names, clock):
    text = _text(names)
    expected = context.store.get(text)
    context.store.set(text, var(names.token_color("gray", "100")))
    report = watcher.run_startup_validation()
    assert context.store.get(text) == expected
    assert not [i for i in report if i.locus == text]
    assert watcher.is_fixing
    clock.now = 1.0
    assert watcher.auto_fix() == []
    clock.now = 2.5
    assert not watcher.is_fixing


def test_unfixed_errors_are_downgraded(watcher, context, names, monkeypatch):
    text = _text(names)
    context.store.set(text, var(names.token_color("gray", "100")))
    monkeypatch.setattr(watcher, "auto_fix", lambda: [])
    report = watcher.run_startup_validation()
    found = [i for i in report if i.locus == text]
    assert len(found) == 1
    assert found[0].severity is Severity.WARNING
    assert found[0].message.endswith("(still failing after auto-fix)")


def test_errors_reported_as_is_inside_fix_window(watcher, context, names):
    watcher.auto_fix()
    text = _text(names)
    context.store.set(text, var(names.token_color("gray", "100")))
    report = watcher.run_startup_validation()
    found = [i for i in report if i.locus == text]
    assert found and found[0].severity is Severity.ERROR
    assert context.store.get(text) == var(names.token_color("gray", "100"))


def test_dispose_unsubscribes(watcher, context):
    assert context.bus.subscriber_count(EngineEvent.TOKEN_CHANGED) == 1
    watcher.dispose()
    assert context.bus.subscriber_count(EngineEvent.TOKEN_CHANGED) == 0
    context.set_token("color/gray/900", "#222222")
    assert not watcher.run_counts


def test_debounced_burst_flushes_once(qcore_app, context):
    from toneguard.services.compliance_watcher import ComplianceWatcher
    from toneguard.services.debounce import QtDebounceScheduler

    scheduler = QtDebounceScheduler(interval_ms=10_000)
    watcher = ComplianceWatcher(context, scheduler=scheduler)
    try:
        context.set_token("color/gray/900", "#222222")
        context.set_token("color/gray/900", "#202020")
        assert not watcher.run_counts
        assert scheduler.pending
        scheduler.flush_now()
        assert max(watcher.run_counts.values()) == 1
        assert not watcher.pending
    finally:
        watcher.dispose()


@pytest.mark.parametrize("layer_id", ["layer-0", "layer-1"])
def test_layer_surface_edit_keeps_text_compliant(watcher, context, names, layer_id):
    from toneguard.design.contrast import blended_contrast
    from toneguard.design.resolution import PropertyView

    context.set_layer_surface(layer_id, "{brand.themes.light.palettes.neutral.500}", mode="light")
    view = PropertyView(context.store.get, names)
    surface = view.hex(names.layer("light", layer_id, "surface"))
    assert surface == "#777777"
    assert blended_contrast(view.hex(_text(names, layer_id)), surface) >= 4.5


def test_family_change_does_not_rerun_refreshed_palette_unit(watcher, context, names):
    context.set_palette_family("salmon", "blue")
    assert watcher.run_counts["palette:light:salmon"] == 1
    assert max(watcher.run_counts.values()) == 1
    assert context.store.get(names.palette("light", "salmon", "400", "on-tone")) is None
    assert context.store.get(names.palette("light", "salmon", "500", "on-tone")) is not None
    assert not watcher.prederived


def test_later_change_reruns_prederived_unit(watcher, context):
    watcher.disable()
    context.set_palette_family("salmon", "blue")
    assert watcher.run_counts["palette:light:salmon"] == 1
    context.set_token("color/blue/500", "#2f6fe0")
    watcher.enable()
    assert watcher.run_counts["palette:light:salmon"] == 2


def test_core_rebinding_reports_on_tone_shortfall(watcher, context, names):
    tone = names.palette("light", "neutral", "500", "tone")
    on_tone = names.palette("light", "neutral", "500", "on-tone")
    context.set_core_color("black", "{tokens.color.gray.400}", mode="light")
    view = PropertyView(context.store.get, names)
    assert contrast_ratio(view.hex(tone), view.hex(on_tone)) < 4.5
    assert watcher.run_counts["palette:light:neutral"] == 1
    failing = [i for i in context.issues if i.locus == on_tone]
    assert [i.kind for i in failing] == [IssueKind.CONTRAST_FAIL]
    assert not failing[0].auto_fixable

    context.set_core_color("black", "{tokens.color.gray.1000}", mode="light")
    assert contrast_ratio(view.hex(tone), view.hex(on_tone)) >= 4.5
    assert on_tone not in [i.locus for i in context.issues]
