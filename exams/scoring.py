"""
Scoring: pure functions, shared by submit, force-submit and recalculation.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple


class ScoreResult(NamedTuple):
    correct: int
    total: int


def build_answer_key(questions) -> dict[str, str]:
    """Live key from the bank: {str(question_id): correct label}."""
    return {str(q.id): (q.correct_option or '').strip().upper() for q in questions}


def original_label(chosen: str, question_mapping: dict | None) -> str:
    """Translate a presented label back to the canonical one; unknown labels pass through."""
    chosen = (chosen or '').strip().upper()
    if question_mapping:
        return question_mapping.get(chosen, chosen)
    return chosen


def score_answers(
    key: dict[str, str],
    answers: dict[str, str],
    option_mapping: dict[str, dict[str, str]] | None = None,
    shuffle_options_enabled: bool = False,
) -> ScoreResult:
    """
    One point per question in key whose answer (translated through option_mapping
    when shuffle_options_enabled) equals the key label. Unanswered questions score 0.
    """
    option_mapping = option_mapping or {}
    correct = 0
    for qid, expected in key.items():
        chosen = answers.get(qid)
        if not chosen:
            continue
        mapping = option_mapping.get(qid) if shuffle_options_enabled else None
        if original_label(chosen, mapping) == (expected or '').strip().upper():
            correct += 1
    return ScoreResult(correct=correct, total=len(key))


def percentage(score: int | None, max_score: int | None) -> int:
    """Integer percent, half rounded up; 0 when max_score is 0 or missing."""
    if not max_score:
        return 0
    value = Decimal(score or 0) * 100 / Decimal(max_score)
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
