"""Design package.

Pure, Qt-free building blocks: document loading, the token index, the
reference grammar, color math, the stepping search and the palette / layer
resolvers. Nothing here holds state between calls.
"""

from .loader import DesignDocuments, load_documents, load_json  # noqa: F401
from .token_index import LEVELS, Ramp, TokenIndex, build_token_index, normalize_level  # noqa: F401
from .color_mixing import blend, normalize_hex, parse_hex, to_hex  # noqa: F401
from .contrast import (  # noqa: F401
    AA_THRESHOLD,
    blended_contrast,
    contrast_ratio,
    meets_aa,
    relative_luminance,
    validate_contrast,
)
from .naming import PropertyNames, color_mix, parse_color_mix, parse_var, var  # noqa: F401
from .references import (  # noqa: F401
    BrandRef,
    Reference,
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
from .issues import ComplianceIssue, IssueKind, Severity  # noqa: F401
from .stepping import StepResult, alternating_levels, step_for_contrast  # noqa: F401
from .palettes import OnToneChoice, pick_on_tone  # noqa: F401
from .derivation import DerivationPlan, DerivedUnit, build_plan, compute_property_map  # noqa: F401
from .audit import audit_properties  # noqa: F401
