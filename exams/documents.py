"""
JSON documents stored in ExamAttempt text columns.

Shapes (untagged, as written by every release so far):
- answers:             {"<questionId>": "<label>"}
- question_order:      [<questionId>, ...]
- option_mapping:      {"<questionId>": {"<presentedLabel>": "<originalLabel>"}}
- answer_key_snapshot: {"<questionId>": "<label>"}

Readers also accept a versioned envelope {"version": N, "data": <shape>} so the
format can evolve; writers keep the untagged shape so older rows and newer rows
look the same. Unreadable values are logged and treated as empty.
"""
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 1


def _decode(raw: Any, field: str, expected: type) -> Any:
    if raw is None or raw == '':
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode('utf-8', errors='replace')
    if isinstance(raw, str):
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("exam_document field=%s corrupt_json length=%s", field, len(raw))
            return None
    else:
        value = raw
    if isinstance(value, dict) and set(value.keys()) == {'version', 'data'}:
        value = value['data']
    if not isinstance(value, expected):
        logger.warning("exam_document field=%s unexpected_type=%s", field, type(value).__name__)
        return None
    return value


def _encode(value: Any) -> str:
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def normalize_answers(answers: Any) -> dict[str, str]:
    """Question ids as strings, labels as upper-case strings; empty selections dropped."""
    if not isinstance(answers, dict):
        return {}
    out = {}
    for qid, label in answers.items():
        if label is None:
            continue
        label = str(label).strip().upper()
        if label:
            out[str(qid)] = label
    return out


def load_answers(raw: Any) -> dict[str, str]:
    """Corrupt or missing answers decode to an empty map."""
    return normalize_answers(_decode(raw, 'answers', dict) or {})


def dump_answers(answers: Any) -> str:
    return _encode(normalize_answers(answers))


def load_question_order(raw: Any) -> list[int]:
    order = _decode(raw, 'question_order', list) or []
    out = []
    for qid in order:
        try:
            out.append(int(qid))
        except (TypeError, ValueError):
            logger.warning("exam_document field=question_order bad_id=%r", qid)
    return out


def dump_question_order(question_ids) -> str:
    return _encode([int(qid) for qid in question_ids])


def load_option_mapping(raw: Any) -> dict[str, dict[str, str]]:
    mapping = _decode(raw, 'option_mapping', dict) or {}
    out = {}
    for qid, labels in mapping.items():
        if isinstance(labels, dict):
            out[str(qid)] = {str(new): str(orig) for new, orig in labels.items()}
    return out


def dump_option_mapping(mapping: dict) -> str | None:
    if not mapping:
        return None
    return _encode({str(qid): dict(labels) for qid, labels in mapping.items()})


def load_answer_key(raw: Any) -> dict[str, str] | None:
    """
    None when no snapshot was stored (legacy rows) or it is unreadable; callers then
    fall back to the live key. A stored empty snapshot stays an empty key.
    """
    key = _decode(raw, 'answer_key_snapshot', dict)
    if key is None:
        return None
    return {str(qid): str(label).strip().upper() for qid, label in key.items() if label is not None}


def dump_answer_key(key: dict) -> str:
    return _encode({str(qid): label for qid, label in key.items()})


def wrap_versioned(value: Any, version: int = DOCUMENT_VERSION) -> str:
    """Envelope form understood by every loader above."""
    return _encode({'version': version, 'data': value})
