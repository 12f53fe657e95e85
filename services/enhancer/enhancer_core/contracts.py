from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from libs.core.models import RequestKind

CONTRACTS_DIR = Path(__file__).resolve().parents[1] / "contracts" / "v1"

RESULT_CONTRACTS: Dict[RequestKind, str] = {
    RequestKind.skills: "skills_result.json",
    RequestKind.ats_scan: "ats_scan_result.json",
    RequestKind.full_resume: "enhanced_resume.json",
}


@lru_cache(maxsize=None)
def _validator(file_name: str) -> Draft202012Validator:
    schema = json.loads((CONTRACTS_DIR / file_name).read_text(encoding="utf-8"))
    return Draft202012Validator(schema)


def contract_violations(kind: RequestKind, payload: Dict[str, Any], limit: int = 5) -> List[str]:
    """Describe how a parsed result deviates from its published contract.

    Kinds without a contract always conform.
    """
    file_name = RESULT_CONTRACTS.get(kind)
    if file_name is None:
        return []
    messages = sorted(
        f"{'/'.join(map(str, err.path)) or '<root>'}: {err.message}"
        for err in _validator(file_name).iter_errors(payload)
    )
    return messages[:limit]
