"""Design document loading.

Responsibilities:
- Load the three input documents (raw tokens, brand bindings, ui-kit
  bindings) from JSON files into a typed container.
- Reject files that are unreadable or whose top level is not an object.
- Hand out deep copies so callers never share a mutable document.

Usage:
    from toneguard.design import load_documents
    docs = load_documents("tokens.json", "brand.json", "uikit.json")
    ctx = EngineContext(docs.tokens, docs.brand, docs.uikit)
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DocumentLoadError

__all__ = ["DesignDocuments", "load_json", "load_documents"]

JsonDict = Dict[str, Any]


@dataclass
class DesignDocuments:
    tokens: JsonDict
    brand: JsonDict
    uikit: JsonDict = field(default_factory=dict)

    def copy(self) -> "DesignDocuments":
        return DesignDocuments(
            tokens=copy.deepcopy(self.tokens),
            brand=copy.deepcopy(self.brand),
            uikit=copy.deepcopy(self.uikit),
        )


def load_json(path: str | Path) -> JsonDict:
    """Load a JSON object from ``path``.

    Raises DocumentLoadError when the file is missing, not valid JSON or the
    top-level value is not an object.
    """
    doc_path = Path(path)
    if not doc_path.exists():
        raise DocumentLoadError(f"Design document not found: {doc_path}")
    try:
        with doc_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise DocumentLoadError(f"Cannot read design document {doc_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise DocumentLoadError(f"Design document {doc_path} must contain a JSON object")
    return data


def load_documents(
    tokens_path: str | Path,
    brand_path: str | Path,
    uikit_path: Optional[str | Path] = None,
) -> DesignDocuments:
    """Load tokens, brand and (optionally) ui-kit documents."""
    uikit = load_json(uikit_path) if uikit_path else {}
    return DesignDocuments(tokens=load_json(tokens_path), brand=load_json(brand_path), uikit=uikit)
