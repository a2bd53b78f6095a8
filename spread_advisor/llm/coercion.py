"""Turn free-form model output into a validated StructuredPayload."""
from __future__ import annotations

import json
import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

from spread_advisor.models import ErrorKind, RecommendationContext, StructuredPayload, to_decimal
from spread_advisor.utils.errors import ValidationError

logger = logging.getLogger(__name__)

DEGRADED_CONFIDENCE = Decimal("0.3")

_FENCED_JSON = re.compile(r"```\s*json\s*(.*?)```", re.IGNORECASE | re.DOTALL)


def _find_fenced_object(text: str) -> Optional[Dict[str, Any]]:
    for match in _FENCED_JSON.finditer(text):
        try:
            data = json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _balanced_end(text: str, start: int) -> int:
    """Index just past the brace closing the one at ``start``, or -1."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def _find_brace_object(text: str) -> Optional[Dict[str, Any]]:
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end != -1:
            try:
                data = json.loads(text[start:end])
            except json.JSONDecodeError:
                data = None
            if isinstance(data, dict):
                return data
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Fenced ```json block first, then the first balanced ``{...}`` that parses."""
    if not text:
        return None
    return _find_fenced_object(text) or _find_brace_object(text)


class ResponseCoercer:
    """Extracts, validates and clamps provider output against a context's bounds."""

    def coerce(self, raw_text: str, context: RecommendationContext, model: Optional[str] = None) -> StructuredPayload:
        data = extract_json_object(raw_text or "")
        if data is None:
            logger.warning("No JSON object found in model response")
            return self.degraded(context, model, "no JSON object found in the response")

        try:
            spread = to_decimal(data.get("recommendedSpread"))
            confidence = to_decimal(data.get("confidenceScore"))
        except ValidationError as e:
            logger.warning(f"Model response has a non-numeric field: {e}")
            return self.degraded(context, model, str(e))

        reasoning = data.get("reasoning")
        if spread is None or confidence is None or not isinstance(reasoning, str) or not reasoning.strip():
            missing = [
                name for name, value in (
                    ("recommendedSpread", spread),
                    ("confidenceScore", confidence),
                    ("reasoning", reasoning if isinstance(reasoning, str) and reasoning.strip() else None),
                ) if value is None
            ]
            logger.warning(f"Model response is missing required fields: {missing}")
            return self.degraded(context, model, f"missing required fields: {', '.join(missing)}")

        corrections: List[str] = []
        bounds = context.bounds
        if spread < bounds.min_spread:
            corrections.append(f"recommendedSpread {spread} raised to minimum {bounds.min_spread}")
            spread = bounds.min_spread
        elif spread > bounds.max_spread:
            corrections.append(f"recommendedSpread {spread} lowered to maximum {bounds.max_spread}")
            spread = bounds.max_spread

        if confidence < 0:
            corrections.append(f"confidenceScore {confidence} raised to 0")
            confidence = Decimal("0")
        elif confidence > 1:
            corrections.append(f"confidenceScore {confidence} lowered to 1")
            confidence = Decimal("1")

        for note in corrections:
            logger.warning(f"Corrected model output: {note}", extra={"customer_id": context.customer_id})

        key_factors = data.get("keyFactors") or ()
        if not isinstance(key_factors, (list, tuple)):
            key_factors = (key_factors,)

        return StructuredPayload(
            recommended_spread=spread,
            confidence_score=confidence,
            reasoning=reasoning.strip(),
            risk_assessment=str(data.get("riskAssessment") or ""),
            market_analysis=str(data.get("marketAnalysis") or ""),
            key_factors=tuple(str(f) for f in key_factors),
            model=model,
            corrections=tuple(corrections),
            issues=(ErrorKind.CONSTRAINT_VIOLATION,) if corrections else (),
        )

    def degraded(self, context: RecommendationContext, model: Optional[str], detail: str) -> StructuredPayload:
        """Conservative payload used when the response cannot be read."""
        return StructuredPayload(
            recommended_spread=context.bounds.clamp(context.bounds.default_spread),
            confidence_score=DEGRADED_CONFIDENCE,
            reasoning=f"The model response could not be parsed ({detail}); the default spread was applied.",
            risk_assessment="Parsing failed; apply a conservative strategy and review manually.",
            market_analysis="Market analysis unavailable because the model response could not be parsed.",
            key_factors=("response parsing failed",),
            model=model,
            parse_failed=True,
            issues=(ErrorKind.RESPONSE_PARSE_FAILURE,),
        )
