"""
Question and option shuffling.

prepare_questions runs once, when an attempt is created; its order and option
mapping are persisted on the attempt. Every later read goes through
replay_questions so a page refresh shows exactly the same exam.
"""
import logging
import random

from exams.models import OPTION_LABELS

logger = logging.getLogger(__name__)

HIDDEN_FIELDS = ('explanation', 'correct', 'originalCorrect')


def question_payload(question) -> dict:
    """Canonical (unshuffled) presentation of one question."""
    return {
        'id': question.id,
        'number': question.number,
        'text': question.text,
        'options': [{'label': label, 'text': text} for label, text in question.labeled_options()],
        'correct': question.correct_option,
        'originalCorrect': question.correct_option,
        'explanation': question.explanation,
    }


def _relabel(item: dict, labels_in_order: list) -> dict:
    """
    Present item's options in the order of labels_in_order (original labels), relabelled A, B, C...
    Returns the mapping {newLabel: originalLabel}.
    """
    by_label = {opt['label']: opt for opt in item['options']}
    mapping = {}
    options = []
    for idx, original_label in enumerate(labels_in_order):
        new_label = OPTION_LABELS[idx]
        mapping[new_label] = original_label
        options.append({'label': new_label, 'text': by_label[original_label]['text']})
    item['options'] = options
    reverse = {original: new for new, original in mapping.items()}
    item['correct'] = reverse.get(item['originalCorrect'], item['originalCorrect'])
    return mapping


def prepare_questions(questions, shuffle_questions: bool, shuffle_options: bool, rng: random.Random | None = None):
    """
    Returns (ordered_items, option_mapping).
    ordered_items: question payloads in presentation order; option_mapping: {str(qid): {new: original}}
    (empty when options are not shuffled).
    """
    rng = rng or random.Random()
    items = [question_payload(q) for q in sorted(questions, key=lambda q: q.number)]
    if shuffle_questions:
        rng.shuffle(items)
    option_mapping = {}
    if shuffle_options:
        for item in items:
            labels = [opt['label'] for opt in item['options']]
            rng.shuffle(labels)
            option_mapping[str(item['id'])] = _relabel(item, labels)
    return items, option_mapping


def _replay_options(item: dict, mapping: dict, question_id) -> None:
    """
    Present item's current options under the labels stored in mapping ({new: original}).

    Options whose original label no longer exists are dropped. Options the mapping
    does not know keep their own label, which original_label passes through, so
    what is shown and what is graded always agree.
    """
    by_label = {opt['label']: opt for opt in item['options']}
    pairs = [(new, original) for new, original in sorted(mapping.items()) if original in by_label]
    mapped = {original for _, original in pairs}
    pairs += [(label, label) for label in by_label if label not in mapped and label not in mapping]
    if len(pairs) != len(mapping) or len(pairs) != len(by_label):
        logger.warning(
            "replay_questions question_id=%s option_set_changed stored=%s current=%s shown=%s",
            question_id, len(mapping), len(by_label), len(pairs),
        )
    item['options'] = [{'label': new, 'text': by_label[original]['text']} for new, original in pairs]
    item['correct'] = next((new for new, original in pairs if original == item['originalCorrect']), None)


def replay_questions(questions, question_order: list, option_mapping: dict) -> list[dict]:
    """
    Rebuild the presented exam from a stored order and mapping. Questions added to the
    bank after the attempt started are appended in sequence-number order.
    """
    by_id = {q.id: q for q in questions}
    ordered = [by_id[qid] for qid in question_order if qid in by_id]
    seen = {q.id for q in ordered}
    ordered.extend(q for q in sorted(questions, key=lambda q: q.number) if q.id not in seen)

    items = []
    for question in ordered:
        item = question_payload(question)
        mapping = option_mapping.get(str(question.id))
        if mapping:
            _replay_options(item, mapping, question.id)
        items.append(item)
    return items


def public_questions(items: list[dict]) -> list[dict]:
    """Strip answer key and explanation before sending to a participant."""
    return [{k: v for k, v in item.items() if k not in HIDDEN_FIELDS} for item in items]
