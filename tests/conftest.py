# Shared fixtures: small but complete token / brand / ui-kit documents and a
# headless Qt application for the Qt-bound adapters. If pytest-qt is installed
# its qapp fixture is unaffected; ours is named separately.

import copy
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

P = "--toneguard"


def _ramp(**levels):
    return {lvl.lstrip("_"): {"$value": hex_} for lvl, hex_ in levels.items()}


TOKENS = {
    "tokens": {
        "color": {
            "scale-01": {
                "alias": "gray",
                **_ramp(
                    _000="#ffffff",
                    _050="#f7f7f7",
                    _100="#eeeeee",
                    _200="#dddddd",
                    _300="#bbbbbb",
                    _400="#999999",
                    _500="#777777",
                    _600="#555555",
                    _700="#444444",
                    _800="#333333",
                    _900="#1a1a1a",
                    _1000="#000000",
                ),
            },
            "blue": _ramp(
                _100="#dbeafe", _300="#93c5fd", _500="#3b82f6", _600="#2563eb", _700="#1d4ed8", _900="#1e3a8a"
            ),
            "salmon": _ramp(
                _100="#ffe4dc",
                _200="#ffc9b9",
                _300="#ffa98f",
                _400="#fa8072",
                _500="#e5604f",
                _600="#c4412f",
                _700="#9c2f20",
                _800="#73200f",
                _900="#4a1408",
            ),
            "red": _ramp(_500="#dc2626", _700="#b91c1c"),
            "yellow": _ramp(_800="#854d0e"),
            "green": _ramp(_700="#15803d"),
            "translucent": {"black-50": {"$value": "#00000080"}},
        },
        "opacity": {"solid": {"$value": 1}, "smoky": {"$value": 0.6}},
        "size": {"1x": {"$value": 4}, "2x": {"$value": 8}},
        "font": {"weight": {"bold": {"$value": 700}}},
    }
}


def _tone(ref):
    return {"color": {"tone": {"$value": ref}}}


def _core():
    return {
        "black": {"tone": {"$value": "{tokens.color.gray.1000}"}},
        "white": "{tokens.color.gray.000}",
        "alert": {"tone": {"$value": "{tokens.color.red.700}"}},
        "warning": {"tone": {"$value": "{tokens.color.yellow.800}"}},
        "success": {"tone": {"$value": "{tokens.color.green.700}"}},
        "interactive": {
            "default": {"tone": {"$value": "{tokens.color.blue.600}"}},
            "hover": {"tone": {"$value": "{tokens.color.blue.700}"}},
        },
    }


def _neutral():
    node = {"primary-level": {"$value": "500"}}
    for lvl in ("000", "100", "500", "900"):
        node[lvl] = _tone(f"{{tokens.color.gray.{lvl}}}")
    return node


def _emphasis():
    return {"high": {"$value": "{tokens.opacity.solid}"}, "low": {"$value": "{tokens.opacity.smoky}"}}


BRAND = {
    "brand": {
        "themes": {
            "light": {
                "palettes": {
                    "core-colors": _core(),
                    "neutral": _neutral(),
                    "salmon": {lvl: _tone(f"{{tokens.color.salmon.{lvl}}}") for lvl in ("100", "400", "500", "900")},
                },
                "text-emphasis": _emphasis(),
                "layers": {
                    "layer-0": {"properties": {"surface": {"$value": "{brand.themes.light.palettes.neutral.000}"}}},
                    "layer-1": {
                        "properties": {
                            "surface": {"$value": "{brand.themes.light.palettes.salmon.100}"},
                            "border-width": {"$value": "{tokens.size.1x}"},
                        }
                    },
                    "alternative": {
                        "inverse": {"properties": {"surface": {"$value": "{brand.themes.light.palettes.neutral.900}"}}}
                    },
                },
                "elevations": {"elevation-1": {"shadow-color": {"$value": "{tokens.color.gray.900}"}}},
            },
            "dark": {
                "palettes": {"core-colors": _core(), "neutral": _neutral()},
                "text-emphasis": _emphasis(),
                "layers": {
                    "layer-0": {"properties": {"surface": {"$value": "{brand.themes.dark.palettes.neutral.900}"}}},
                },
            },
        },
        "dimensions": {
            "gutters": {"md": {"$value": "{tokens.size.2x}"}},
            "icon": {"$value": "{brand.dimensions.gutters.md}"},
        },
        "typography": {"heading": {"weight": {"$value": "{tokens.font.weight.bold}"}}},
    }
}

UIKIT = {
    "ui-kit": {
        "button": {
            "background": {"$value": "{brand.palettes.neutral.500}"},
            "border-style": {"$value": "solid"},
            "radius": {"$value": 4, "$type": "number"},
        }
    }
}


@pytest.fixture
def tokens():
    return copy.deepcopy(TOKENS)


@pytest.fixture
def brand():
    return copy.deepcopy(BRAND)


@pytest.fixture
def uikit():
    return copy.deepcopy(UIKIT)


@pytest.fixture
def names():
    from toneguard.design.naming import PropertyNames

    return PropertyNames("toneguard")


@pytest.fixture
def context(tokens, brand, uikit, names):
    from toneguard.services.engine_context import EngineContext

    ctx = EngineContext(tokens, brand, uikit, names=names)
    ctx.apply()
    return ctx


@pytest.fixture
def clock():
    class Clock:
        now = 0.0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def watcher(context, clock):
    from toneguard.services.compliance_watcher import ComplianceWatcher

    w = ComplianceWatcher(context, clock=clock)
    yield w
    w.dispose()


@pytest.fixture(scope="session")
def qcore_app():
    QtCore = pytest.importorskip("PyQt6.QtCore")
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
