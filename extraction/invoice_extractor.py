"""
Vision LLM extraction of invoice line items.

This module sends one invoice document (image or PDF) together with the
nomenclature text to the OpenAI chat completions API and turns the answer into
validated ExtractedItem dicts.

Core responsibilities:
- Build the vision request (image_url for images, file part for PDFs).
- Parse model output into JSON reliably (markdown fences, trailing commas).
- Enforce the response contract: an array of items, every required field present,
  numeric fields numeric, matchedProductName/sku UNKNOWN together or not at all.
- Report every failure as ExtractionFailed(file, cause).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from config.settings import DEFAULT_MODEL, DEFAULT_TEMPERATURE, JSON_RETRY_ATTEMPTS, MAX_NOMENCLATURE_CHARS
from domain.errors import ExtractionFailed
from domain.invoice import UNKNOWN, ExtractedItem, Vertex
from fields.normalization import cell_to_str, to_float
from input_readers.image import to_data_url

from .llm_client import get_client
from .prompts import EXTRACTION_SYSTEM_PROMPT, build_extraction_prompt

logger = logging.getLogger(__name__)

INVALID_SHAPE = "invalid response shape"

TEXT_KEYS = ("matchedProductName", "originalName", "sku", "unitOfMeasure")
NUMBER_KEYS = ("quantity", "unitPrice", "totalPrice", "totalQuantity")
REQUIRED_KEYS = TEXT_KEYS + NUMBER_KEYS


class InvalidResponse(ValueError):
    """The model answered, but not with the agreed item array."""
    pass


def _extract_json_from_text(text: str) -> str:
    """Strip markdown fences and surrounding prose, keeping the outermost JSON value."""
    text = (text or "").strip()

    if "```" in text:
        match = re.search(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", text, flags=re.DOTALL)
        if match:
            return match.group(1)
        text = re.sub(r"```(?:json)?", "", text).strip()

    starts = [i for i in (text.find("["), text.find("{")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    end = max(text.rfind("]"), text.rfind("}"))
    return text[start : end + 1] if end > start else text


def parse_llm_response(raw_response: str) -> Any:
    """Parse model output into JSON with one trailing-comma repair attempt."""
    if not raw_response or not raw_response.strip():
        raise InvalidResponse("LLM returned empty response")

    json_text = _extract_json_from_text(raw_response)
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        fixed = re.sub(r",\s*([}\]])", r"\1", json_text)
        try:
            return json.loads(fixed)
        except json.JSONDecodeError:
            raise InvalidResponse(
                f"LLM did not return valid JSON. Position {e.pos}: {e.msg}. "
                f"First 300 chars: {raw_response[:300]}"
            ) from e


def _validate_bounding_box(value: Any) -> Optional[List[Vertex]]:
    """Keep a bounding box only if it is 4 vertices with coordinates in [0, 1]."""
    if not isinstance(value, list) or len(value) != 4:
        return None
    vertices: List[Vertex] = []
    for point in value:
        if not isinstance(point, dict):
            return None
        x, y = to_float(point.get("x")), to_float(point.get("y"))
        if x is None or y is None or not (0 <= x <= 1 and 0 <= y <= 1):
            return None
        vertices.append(Vertex(x=x, y=y))
    return vertices


def _validate_item(raw: Any, position: int) -> ExtractedItem:
    if not isinstance(raw, dict):
        raise InvalidResponse(f"item {position} is not an object")

    missing = [k for k in REQUIRED_KEYS if k not in raw]
    if missing:
        raise InvalidResponse(f"item {position} is missing {', '.join(missing)}")

    numbers: Dict[str, Optional[float]] = {k: to_float(raw.get(k)) for k in NUMBER_KEYS}
    # a null totalQuantity is derived later from the pack size in the name
    bad = [k for k, v in numbers.items() if v is None and not (k == "totalQuantity" and raw.get(k) is None)]
    if bad:
        raise InvalidResponse(f"item {position} has non-numeric {', '.join(bad)}")

    matched = cell_to_str(raw.get("matchedProductName"))
    sku = cell_to_str(raw.get("sku"))
    if not matched or not sku or matched.upper() == UNKNOWN or sku.upper() == UNKNOWN:
        matched, sku = UNKNOWN, UNKNOWN

    item = ExtractedItem(
        matchedProductName=matched,
        originalName=cell_to_str(raw.get("originalName")),
        quantity=numbers["quantity"],
        unitPrice=numbers["unitPrice"],
        totalPrice=numbers["totalPrice"],
        sku=sku,
        totalQuantity=numbers["totalQuantity"],
        unitOfMeasure=cell_to_str(raw.get("unitOfMeasure")),
    )
    box = _validate_bounding_box(raw.get("boundingBox"))
    if box is not None:
        item["boundingBox"] = box
    return item


def validate_items(parsed: Any) -> List[ExtractedItem]:
    """
    Validate parsed JSON against the item contract.

    Accepts a top-level array, or an object whose "items" value is an array
    (JSON mode always answers with an object).
    """
    if isinstance(parsed, dict) and "items" in parsed:
        parsed = parsed["items"]
    if not isinstance(parsed, list):
        raise InvalidResponse("response is not an array of items")
    return [_validate_item(raw, i) for i, raw in enumerate(parsed, start=1)]


def _file_type(mime_type: str) -> str:
    return "pdf" if mime_type == "application/pdf" else "image"


def _document_part(mime_type: str, b64_data: str, file_name: str) -> Dict[str, Any]:
    data_url = to_data_url(mime_type, b64_data)
    if mime_type == "application/pdf":
        return {"type": "file", "file": {"filename": file_name or "invoice.pdf", "file_data": data_url}}
    return {"type": "image_url", "image_url": {"url": data_url}}


def _build_messages(
    b64_data: str,
    mime_type: str,
    nomenclature_text: str,
    file_name: str,
) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": build_extraction_prompt(nomenclature_text, _file_type(mime_type))},
                _document_part(mime_type, b64_data, file_name),
            ],
        },
    ]


def _complete(client: Any, model: str, messages: List[Dict[str, Any]]) -> str:
    response = client.chat.completions.create(
        model=model,
        messages=messages,
        temperature=DEFAULT_TEMPERATURE,
        response_format={"type": "json_object"},
    )
    return response.choices[0].message.content or ""


def _repair_json(client: Any, model: str, raw_output: str, error: Exception) -> str:
    fix_prompt = (
        "The following JSON is invalid:\n\n"
        f"{raw_output}\n\n"
        f"Error: {error}\n\n"
        'Output ONLY the corrected valid JSON object of the form {"items": [...]} with no additional text.'
    )
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": "You are a JSON validator. Fix invalid JSON."},
            {"role": "user", "content": fix_prompt},
        ],
        temperature=DEFAULT_TEMPERATURE,
    )
    return response.choices[0].message.content or ""


def extract_invoice_items(
    b64_data: str,
    mime_type: str,
    nomenclature_text: str,
    file_name: str = "",
    model: str = DEFAULT_MODEL,
    client: Any = None,
) -> List[ExtractedItem]:
    """
    Extract line items from one invoice document.

    Args:
        b64_data: Document bytes, base64 encoded
        mime_type: e.g. image/jpeg, application/pdf
        nomenclature_text: Raw nomenclature CSV sent as matching context
        file_name: Used in error reports and for PDF parts

    Raises:
        ExtractionFailed: service/transport error, or response not matching the contract
    """
    if len(nomenclature_text or "") > MAX_NOMENCLATURE_CHARS:
        raise ExtractionFailed(
            file_name,
            f"nomenclature ({len(nomenclature_text):,} characters) exceeds limit ({MAX_NOMENCLATURE_CHARS:,})",
        )

    client = client or get_client()
    messages = _build_messages(b64_data, mime_type, nomenclature_text, file_name)

    try:
        raw_output = _complete(client, model, messages)
    except Exception as e:
        logger.error("Extraction service call failed for %s", file_name, exc_info=True)
        raise ExtractionFailed(file_name, e) from e

    for attempt in range(JSON_RETRY_ATTEMPTS):
        try:
            parsed = parse_llm_response(raw_output)
            break
        except InvalidResponse as e:
            if attempt >= JSON_RETRY_ATTEMPTS - 1:
                logger.error("Unparseable extraction response for %s: %s", file_name, e)
                raise ExtractionFailed(file_name, INVALID_SHAPE) from e
            logger.warning("Invalid JSON for %s, asking the model to repair it", file_name)
            try:
                raw_output = _repair_json(client, model, raw_output, e)
            except Exception as repair_error:
                raise ExtractionFailed(file_name, repair_error) from repair_error
    else:
        raise ExtractionFailed(file_name, INVALID_SHAPE)

    try:
        items = validate_items(parsed)
    except InvalidResponse as e:
        logger.error("Extraction response for %s violates the item contract: %s", file_name, e)
        raise ExtractionFailed(file_name, INVALID_SHAPE) from e

    logger.info("Extracted %d line items from %s", len(items), file_name)
    return items
