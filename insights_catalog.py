"""
Insights Catalog
The twelve psychometric insight categories shown on the dashboard, the questionnaire
statements that feed each one, and the guidance text for each score band.

Some statements feed more than one category (e.g. Q8 "I have a positive view of myself"
counts towards both Resilience and Academic Confidence). Each category is scored on its own.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

BANDS = ('excellent', 'good', 'average', 'poor')


@dataclass(frozen=True)
class QuestionRef:
    id: str
    text: str


@dataclass(frozen=True)
class InsightCategory:
    id: str
    title: str
    icon: str
    description: str
    why: str
    questions: Tuple[QuestionRef, ...]
    interpretation: Mapping[str, str]

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]


def _insight(insight_id, title, icon, description, why, questions, interpretation):
    missing = [band for band in BANDS if band not in interpretation]
    if missing:
        raise ValueError(f"Insight {insight_id} is missing interpretation bands: {missing}")
    return InsightCategory(
        id=insight_id,
        title=title,
        icon=icon,
        description=description,
        why=why,
        questions=tuple(QuestionRef(qid, text) for qid, text in questions),
        interpretation=MappingProxyType(dict(interpretation)),
    )


_CATEGORIES = [
    _insight(
        'growth_mindset', 'Growth Mindset', '🌱',
        "Measures students' belief that intelligence and abilities can be developed through effort and learning.",
        'Students with a growth mindset are more likely to persist through challenges, embrace feedback, and achieve better academic outcomes.',
        [
            ('Q5', 'No matter who you are, you can change your intelligence a lot'),
            ('Q26', 'Your intelligence is something about you that you can change very much'),
        ],
        {
            'excellent': 'Most students believe they can improve their abilities - excellent foundation for learning',
            'good': 'Good growth mindset culture, but room for improvement',
            'average': 'Mixed beliefs about ability to improve - consider growth mindset interventions',
            'poor': 'Fixed mindset prevalent - urgent need for growth mindset education',
        },
    ),
    _insight(
        'academic_momentum', 'Academic Momentum', '🚀',
        "Captures students' intrinsic drive, engagement with learning, and commitment to excellence.",
        'Students with high academic momentum are self-motivated and more likely to sustain performance through challenges.',
        [
            ('Q14', 'I strive to achieve the goals I set for myself'),
            ('Q16', 'I enjoy learning new things'),
            ('Q17', "I'm not happy unless my work is the best it can be"),
            ('Q9', 'I am a hard working student'),
        ],
        {
            'excellent': 'Students show strong drive and engagement - maintain this momentum',
            'good': 'Good levels of motivation, but could be strengthened',
            'average': 'Moderate engagement - explore ways to boost intrinsic motivation',
            'poor': 'Low academic drive - investigate underlying causes and provide support',
        },
    ),
    _insight(
        'study_effectiveness', 'Study Effectiveness', '📚',
        'Measures adoption of evidence-based study techniques that improve learning and retention.',
        'Effective study techniques significantly improve exam performance and long-term retention of material.',
        [
            ('Q7', 'I test myself on important topics until I remember them'),
            ('Q12', 'I spread out my revision, rather than cramming at the last minute'),
            ('Q15', 'I summarise important information in diagrams, tables or lists'),
        ],
        {
            'excellent': 'Students use proven study techniques - likely to achieve strong results',
            'good': 'Good study habits, but some techniques could be improved',
            'average': 'Mixed study practices - provide training on effective techniques',
            'poor': 'Poor study habits prevalent - urgent need for study skills training',
        },
    ),
    _insight(
        'exam_confidence', 'Exam Confidence', '💪',
        "Students' belief in their ability to achieve their potential in final exams.",
        'Confidence correlates with performance - students who believe they can succeed are more likely to do so.',
        [
            ('Outcome_Q', 'I am confident I will achieve my potential in my final exams'),
        ],
        {
            'excellent': 'High confidence levels - students believe in their ability to succeed',
            'good': 'Good confidence, but some students need reassurance',
            'average': 'Mixed confidence - identify and support less confident students',
            'poor': 'Low confidence widespread - investigate causes and provide support',
        },
    ),
    _insight(
        'organization_skills', 'Organization Skills', '📋',
        "Measures students' ability to plan, organize, and manage their academic responsibilities.",
        'Well-organized students are less stressed, more productive, and better able to balance multiple demands.',
        [
            ('Q2', 'I plan and organise my time to get my work done'),
            ('Q22', 'My books/files are organised'),
            ('Q11', 'I always meet deadlines'),
        ],
        {
            'excellent': 'Students are highly organized - a key success factor',
            'good': 'Good organizational skills, minor improvements possible',
            'average': 'Mixed organization - provide tools and training',
            'poor': 'Poor organization widespread - implement organizational support systems',
        },
    ),
    _insight(
        'resilience_factor', 'Resilience', '🛡️',
        "Students' ability to bounce back from setbacks and maintain a positive outlook.",
        'Resilient students persist through challenges and learn from failures rather than being defeated by them.',
        [
            ('Q13', "I don't let a poor test/assessment result get me down for too long"),
            ('Q8', 'I have a positive view of myself'),
            ('Q27', 'I like hearing feedback about how I can improve'),
        ],
        {
            'excellent': 'High resilience - students bounce back well from setbacks',
            'good': 'Good resilience, but some students need support',
            'average': 'Mixed resilience - build culture of learning from mistakes',
            'poor': 'Low resilience - implement resilience-building programs',
        },
    ),
    _insight(
        'stress_management', 'Stress Management', '🧘',
        "Students' ability to handle academic pressure and control exam nerves.",
        'Effective stress management improves performance, wellbeing, and prevents burnout.',
        [
            ('Q20', 'I feel I can cope with the pressure at school/college/University'),
            ('Q28', 'I can control my nerves in tests/practical assessments'),
        ],
        {
            'excellent': 'Students manage stress well - maintain supportive environment',
            'good': 'Good stress management, but monitor for changes',
            'average': 'Some students struggling - provide stress management resources',
            'poor': 'High stress levels - urgent intervention needed',
        },
    ),
    _insight(
        'active_learning', 'Active Learning', '🎯',
        'Engagement with active learning techniques that deepen understanding and retention.',
        'Active learning techniques are proven to be more effective than passive studying.',
        [
            ('Q7', 'I test myself on important topics until I remember them'),
            ('Q23', 'When preparing for a test/exam I teach someone else the material'),
            ('Q19', 'When revising I mix different kinds of topics/subjects in one study session'),
        ],
        {
            'excellent': 'Strong use of active learning - excellent practice',
            'good': 'Good active learning, could expand techniques',
            'average': 'Some active learning - promote more techniques',
            'poor': 'Passive learning dominant - teach active strategies',
        },
    ),
    _insight(
        'support_readiness', 'Support Readiness', '🤝',
        "Students' perception of having adequate support to achieve their goals.",
        'Students who feel supported are more likely to seek help when needed and achieve better outcomes.',
        [
            ('Outcome_Q2', 'I have the support I need to achieve this year'),
        ],
        {
            'excellent': 'Students feel well-supported - maintain this environment',
            'good': 'Good support perception, but some gaps exist',
            'average': 'Mixed feelings about support - investigate specific needs',
            'poor': 'Students feel unsupported - review support systems urgently',
        },
    ),
    _insight(
        'time_management', 'Time Management', '⏰',
        "Students' ability to effectively plan and use their time for academic work.",
        'Good time management reduces stress, improves work quality, and enables better work-life balance.',
        [
            ('Q2', 'I plan and organise my time to get my work done'),
            ('Q4', 'I complete all my homework on time'),
            ('Q11', 'I always meet deadlines'),
        ],
        {
            'excellent': 'Excellent time management skills across cohort',
            'good': 'Good time management, minor improvements possible',
            'average': 'Mixed time management - provide planning tools',
            'poor': 'Poor time management - implement time management training',
        },
    ),
    _insight(
        'academic_confidence', 'Academic Confidence', '🎓',
        "Students' belief in their academic abilities and positive self-perception.",
        'Academic confidence is a strong predictor of achievement and willingness to take on challenges.',
        [
            ('Q10', 'I am confident in my academic ability'),
            ('Q8', 'I have a positive view of myself'),
        ],
        {
            'excellent': 'High academic confidence - students believe in themselves',
            'good': 'Good confidence levels, some students need boosting',
            'average': 'Mixed confidence - identify and support less confident students',
            'poor': 'Low academic confidence - build success experiences',
        },
    ),
    _insight(
        'revision_readiness', 'Revision Readiness', '📝',
        "Students' perception of being equipped to handle revision and study challenges.",
        'Feeling prepared for revision reduces anxiety and improves study effectiveness.',
        [
            ('Outcome_Q3', 'I feel equipped to face the study and revision challenges this year'),
        ],
        {
            'excellent': 'Students feel well-prepared for revision challenges',
            'good': 'Good preparation, but some students need support',
            'average': 'Mixed readiness - provide revision skills training',
            'poor': 'Students feel unprepared - urgent revision support needed',
        },
    ),
]

INSIGHT_DEFINITIONS: Mapping[str, InsightCategory] = MappingProxyType(
    {category.id: category for category in _CATEGORIES}
)

# Every question id the catalog knows, keyed by lower case for matching service-side ids (q5, outcome_q2)
_QUESTION_IDS_BY_LOWER: Dict[str, str] = {
    q.id.lower(): q.id for category in _CATEGORIES for q in category.questions
}


def get_insight(insight_id) -> Optional[InsightCategory]:
    """Look up an insight category by id, None if it isn't one of the twelve"""
    if not isinstance(insight_id, str):
        return None
    return INSIGHT_DEFINITIONS.get(insight_id)


def insight_ids() -> List[str]:
    return list(INSIGHT_DEFINITIONS.keys())


def canonical_question_id(raw_id):
    """Map a question id from the analytics service onto the catalog's casing (q5 -> Q5).
    Ids the catalog doesn't know are returned unchanged."""
    if not isinstance(raw_id, str):
        return raw_id
    return _QUESTION_IDS_BY_LOWER.get(raw_id.strip().lower(), raw_id)


def insights_for_question(question_id) -> List[str]:
    """Ids of every category a question feeds"""
    canonical = canonical_question_id(question_id)
    return [c.id for c in _CATEGORIES if canonical in c.question_ids]
