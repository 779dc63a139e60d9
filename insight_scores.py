"""
Insight Score Calculator
Turns raw questionnaire responses (1-5 statement scores) into insight category scores,
score bands and display colours.

Per-student scoring:
    score_category('growth_mindset', {'field_Q5': '4', 'field_Q26': '3'})
    -> InsightScore(category_id='growth_mindset', mean=3.5, band='good', count=2)

Cohort scoring (summarize_cohort) builds a DataFrame of all accepted values and reports the
percentage of responses that agree (score 4 or 5) per category, the same rule the
analytics service uses for its QLA insights.
"""

import math
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from insights_catalog import INSIGHT_DEFINITIONS, get_insight

logger = logging.getLogger(__name__)

MIN_SCORE = 1.0
MAX_SCORE = 5.0
AGREE_THRESHOLD = 4.0

# (lower bound, band, colour) evaluated high to low on the 1-5 scale
BAND_THRESHOLDS = [
    (4.0, 'excellent', '#10b981'),  # green
    (3.0, 'good', '#3b82f6'),       # blue
    (2.0, 'average', '#f59e0b'),    # amber
]
POOR_BAND = ('poor', '#ef4444')     # red


@dataclass(frozen=True)
class InsightScore:
    category_id: str
    mean: Optional[float]
    band: Optional[str]
    count: int

    @property
    def has_data(self):
        return self.mean is not None

    def to_dict(self):
        return {
            'id': self.category_id,
            'score': round(self.mean, 2) if self.mean is not None else None,
            'band': self.band,
            'color': get_score_color(self.mean),
            'count': self.count,
        }


def response_keys(question_id) -> List[str]:
    """Field names a question's response may be stored under, in lookup order"""
    return [
        f"field_{question_id}",
        f"field_{question_id}_raw",
        question_id,
        f"{question_id}_raw",
    ]


def find_response_value(responses, question_id):
    """First present, non-null raw value for a question (or None)"""
    if not isinstance(responses, dict):
        return None
    for key in response_keys(question_id):
        value = responses.get(key)
        if value is not None:
            return value
    return None


def parse_response_value(value) -> Optional[float]:
    """Parse a raw statement score. Anything that isn't a finite number in [1, 5] is rejected."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(score) or math.isinf(score):
        return None
    if MIN_SCORE <= score <= MAX_SCORE:
        return score
    return None


def _to_five_point(score, scale):
    if scale == 100:
        # Inverse of the service's percentage conversion: (mean - 1) * 25
        return 1 + score / 25.0
    if scale != 5:
        raise ValueError(f"Unsupported score scale: {scale}")
    return score


def _band_and_color(score, scale=5):
    if score is None:
        return None, None
    value = _to_five_point(float(score), scale)
    for lower_bound, band, color in BAND_THRESHOLDS:
        if value >= lower_bound:
            return band, color
    return POOR_BAND


def get_score_interpretation(score, scale=5) -> Optional[str]:
    """Band for a score: excellent (>=4), good (>=3), average (>=2), poor. None means no data."""
    return _band_and_color(score, scale)[0]


def get_score_color(score, scale=5) -> Optional[str]:
    return _band_and_color(score, scale)[1]


def get_interpretation_text(category_id, score, scale=5) -> Optional[str]:
    insight = get_insight(category_id)
    band = get_score_interpretation(score, scale)
    if insight is None or band is None:
        return None
    return insight.interpretation[band]


def score_category(category_id, responses) -> Optional[InsightScore]:
    """
    Score one insight category from a single set of raw responses

    Args:
        category_id: Insight id from the catalog (e.g. 'growth_mindset')
        responses: Dict of response field -> raw value

    Returns:
        InsightScore, or None if the category id is unknown
    """
    insight = get_insight(category_id)
    if insight is None:
        return None

    accepted = []
    for question_id in insight.question_ids:
        score = parse_response_value(find_response_value(responses, question_id))
        if score is not None:
            accepted.append(score)

    if not accepted:
        return InsightScore(category_id, None, None, 0)

    mean = sum(accepted) / len(accepted)
    return InsightScore(category_id, mean, get_score_interpretation(mean), len(accepted))


def score_all_categories(responses) -> Dict[str, InsightScore]:
    scores = {}
    for category_id in INSIGHT_DEFINITIONS:
        try:
            scores[category_id] = score_category(category_id, responses)
        except Exception as e:
            # One bad category must not take the rest of the batch down
            logger.error(f"Failed to score insight {category_id}: {e}")
            scores[category_id] = InsightScore(category_id, None, None, 0)
    return scores


def rag_rating(value) -> str:
    """Red/amber/green rating for a single statement response"""
    score = parse_response_value(value)
    if score is None:
        return 'none'
    if score >= 4:
        return 'green'
    if score == 3:
        return 'amber'
    return 'red'


def summarize_rag(responses: Iterable[Dict[str, Any]], value_key='responseValue') -> Dict[str, int]:
    summary = {'green': 0, 'amber': 0, 'red': 0, 'none': 0}
    for response in responses:
        summary[rag_rating(response.get(value_key))] += 1
    return summary


# --- Cohort summaries ---

def catalog_question_ids() -> List[str]:
    seen = {}
    for insight in INSIGHT_DEFINITIONS.values():
        for question_id in insight.question_ids:
            seen.setdefault(question_id, None)
    return list(seen)


def build_response_frame(response_sets) -> pd.DataFrame:
    """One row per response set, one column per catalog question; rejected values are NaN"""
    question_ids = catalog_question_ids()
    rows = []
    for responses in response_sets or []:
        rows.append([parse_response_value(find_response_value(responses, qid)) for qid in question_ids])
    frame = pd.DataFrame(rows, columns=question_ids, dtype=float)
    logger.info(f"Built response frame: {len(frame)} response sets x {len(question_ids)} questions")
    return frame


def summarize_cohort(response_sets) -> List[Dict[str, Any]]:
    """
    Insight summaries for a group of students

    percentageAgreement is the share of accepted responses scoring 4 or 5 across the
    category's questions (None when there are none); totalResponses counts the students who
    answered at least one of them.
    """
    frame = build_response_frame(response_sets)
    insights = []

    for insight in INSIGHT_DEFINITIONS.values():
        values = frame[insight.question_ids]
        valid = values.notna()
        total_values = int(valid.to_numpy().sum())
        agree_values = int((values >= AGREE_THRESHOLD).to_numpy().sum())
        contributors = int(valid.any(axis=1).sum())

        # No valid values means no score, not 0% agreement
        percentage = round(agree_values / total_values * 100, 1) if total_values > 0 else None
        insights.append({
            'id': insight.id,
            'title': insight.title,
            'percentageAgreement': percentage,
            'questionIds': insight.question_ids,
            'icon': insight.icon,
            'totalResponses': contributors,
        })

    # Highest agreement first, categories without data last
    insights.sort(key=lambda x: (x['percentageAgreement'] is not None, x['percentageAgreement'] or 0), reverse=True)
    return insights


def summarize_questions(response_sets, limit=5) -> Dict[str, List[Dict[str, Any]]]:
    """Top and bottom statements by mean score, shaped like the service's highLowQuestions"""
    frame = build_response_frame(response_sets)
    question_text = {
        q.id: q.text for insight in INSIGHT_DEFINITIONS.values() for q in insight.questions
    }

    stats = []
    for question_id in frame.columns:
        column = frame[question_id].dropna()
        if column.empty:
            continue
        distribution = [int((column == value).sum()) for value in range(1, 6)]
        stats.append({
            'id': question_id,
            'text': question_text.get(question_id, f"Question {question_id}"),
            'score': round(float(column.mean()), 2),
            'n': int(column.count()),
            'std_dev': round(float(column.std()), 2) if column.count() > 1 else 0,
            'distribution': distribution,
        })

    stats.sort(key=lambda x: x['score'])
    if len(stats) >= limit * 2:
        bottom = stats[:limit]
        top = stats[-limit:][::-1]
    else:
        half = len(stats) // 2
        bottom = stats[:half]
        top = stats[half:][::-1]

    return {
        'topQuestions': [dict(stat, rank=i + 1) for i, stat in enumerate(top)],
        'bottomQuestions': [dict(stat, rank=i + 1) for i, stat in enumerate(bottom)],
    }
