"""
Dashboard Store
Loads the four dashboard facets (statistics, question level analysis, comment word cloud,
comment themes) in parallel and merges them into one view model.

A QLA failure is replaced by an empty result so the rest of the dashboard still renders;
a failure in any other facet is raised as DataLoadError and the previous view model is kept.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from context_resolver import ContextResolver
from dashboard_api import create_api
from dashboard_errors import (
    DashboardError,
    DataLoadError,
    MissingFieldError,
    NoEstablishmentSelectedError,
)
from filter_state import FilterState
from insight_scores import score_all_categories, summarize_cohort, summarize_questions, summarize_rag
from insights_catalog import canonical_question_id
from role_bindings import create_role_binding_store

logger = logging.getLogger(__name__)

FACET_LABELS = {
    'statistics': 'statistics',
    'qla_data': 'question level analysis',
    'word_cloud_data': 'word cloud',
    'comment_insights': 'comment themes',
}


@dataclass(frozen=True)
class DashboardViewModel:
    statistics: Optional[Any] = None
    qla_data: Optional[Dict[str, Any]] = None
    word_cloud_data: Optional[Any] = None
    comment_insights: Optional[Any] = None

    def to_dict(self):
        return {
            'statistics': self.statistics,
            'qlaData': self.qla_data,
            'wordCloudData': self.word_cloud_data,
            'commentInsights': self.comment_insights,
        }


def empty_qla_result():
    return {
        'highLowQuestions': {
            'topQuestions': [],
            'bottomQuestions': []
        },
        'insights': []
    }


def _normalize_questions(questions):
    if not isinstance(questions, (list, tuple)):
        return []
    normalized = []
    for question in questions:
        if not isinstance(question, dict):
            continue
        question = dict(question)
        if 'id' in question:
            question['id'] = canonical_question_id(question['id'])
        normalized.append(question)
    return normalized


def _question_id_list(question_ids):
    if isinstance(question_ids, str):
        question_ids = [question_ids]
    if not isinstance(question_ids, (list, tuple)):
        return []
    return [canonical_question_id(qid) for qid in question_ids]


def _normalize_insight(insight):
    # None means the category had no valid responses, not 0% agreement
    percentage = insight.get('percentageAgreement')
    if percentage is not None:
        try:
            percentage = float(percentage)
        except (TypeError, ValueError):
            percentage = None
    try:
        total = int(insight.get('totalResponses') or 0)
    except (TypeError, ValueError):
        total = 0
    return {
        'id': insight.get('id'),
        'title': insight.get('title'),
        'percentageAgreement': percentage,
        'questionIds': _question_id_list(insight.get('questionIds')),
        'icon': insight.get('icon'),
        'totalResponses': total,
    }


def normalize_qla(data) -> Dict[str, Any]:
    """
    Bring a QLA response into the one shape the dashboard uses

    - topQuestions/bottomQuestions at the top level are moved under highLowQuestions
    - raw per-student 'responses' without 'insights' are scored locally from the catalog
    - question ids are mapped onto the catalog's casing (q5 -> Q5)
    """
    if not isinstance(data, dict):
        return empty_qla_result()

    if data.get('responses') is not None and 'insights' not in data:
        logger.info("[Dashboard Store] QLA facet returned raw responses - calculating insights locally")
        responses = data['responses'] if isinstance(data['responses'], list) else []
        responses = [r for r in responses if isinstance(r, dict)]
        high_low = summarize_questions(responses)
        insights = summarize_cohort(responses)
    else:
        high_low = data.get('highLowQuestions') or {
            'topQuestions': data.get('topQuestions') or [],
            'bottomQuestions': data.get('bottomQuestions') or [],
        }
        insights = data.get('insights')
        insights = [i for i in insights if isinstance(i, dict)] if isinstance(insights, list) else []
    if not isinstance(high_low, dict):
        high_low = {}

    result = {
        'highLowQuestions': {
            'topQuestions': _normalize_questions(high_low.get('topQuestions')),
            'bottomQuestions': _normalize_questions(high_low.get('bottomQuestions')),
        },
        'insights': [_normalize_insight(i) for i in insights],
    }
    if 'metadata' in data:
        result['metadata'] = data['metadata']
    return result


class DashboardOrchestrator:
    def __init__(self, api, max_workers=4):
        self.api = api
        self.max_workers = max_workers
        self.view_model: Optional[DashboardViewModel] = None
        self.last_error: Optional[DashboardError] = None
        self._lock = threading.Lock()
        self._latest_token = 0
        self._in_flight = 0

    @property
    def is_loading(self):
        return self._in_flight > 0

    def _load_qla(self, establishment_id, filters):
        try:
            data = self.api.get_qla_data(establishment_id, filters)
            return normalize_qla(data)
        except Exception as e:
            logger.error(f"[Dashboard Store] QLA API Error: {e}")
            return empty_qla_result()

    def load_dashboard_data(self, establishment_id, active_filters=None) -> DashboardViewModel:
        if not establishment_id:
            raise NoEstablishmentSelectedError()

        filters = dict(active_filters or {})
        with self._lock:
            self._latest_token += 1
            token = self._latest_token
            self._in_flight += 1

        logger.info(f"[Dashboard Store] Loading data for {establishment_id} with filters: {filters} (request {token})")

        try:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = {
                    'statistics': executor.submit(self.api.get_statistics, establishment_id, filters),
                    'qla_data': executor.submit(self._load_qla, establishment_id, filters),
                    'word_cloud_data': executor.submit(self.api.get_word_cloud_data, establishment_id, filters),
                    'comment_insights': executor.submit(self.api.get_comment_insights, establishment_id, filters),
                }

                results = {}
                failures = []
                for facet, future in futures.items():
                    try:
                        results[facet] = future.result()
                    except Exception as e:
                        logger.error(f"[Dashboard Store] Failed to load {FACET_LABELS[facet]}: {e}")
                        failures.append(DataLoadError(FACET_LABELS[facet], e))

            if failures:
                with self._lock:
                    if token == self._latest_token:
                        self.last_error = failures[0]
                raise failures[0]

            view_model = DashboardViewModel(**results)
            self._commit(token, view_model)
            return view_model

        finally:
            with self._lock:
                self._in_flight -= 1

    def _commit(self, token, view_model):
        with self._lock:
            if token != self._latest_token:
                logger.info(f"[Dashboard Store] Discarding stale result for request {token} (latest is {self._latest_token})")
                return False
            self.view_model = view_model
            self.last_error = None
            return True


class DashboardStore:
    def __init__(self, config, api=None, role_bindings=None, session=None, today=None):
        """
        Args:
            config: DashboardConfig
            api: Data source for the analytics service (picked from config by default)
            role_bindings: Staff admin -> establishment lookup (picked from config by default)
            session: HostSession accessors for the logged-in user
            today: Date provider, used for the default academic year
        """
        self.config = config
        self.api = api if api is not None else create_api(config)
        self.role_bindings = role_bindings if role_bindings is not None else create_role_binding_store(config)
        self.resolver = ContextResolver(config, self.api, self.role_bindings, session=session, today=today)
        self.filters = FilterState(on_change=self._on_filters_changed)
        self.orchestrator = DashboardOrchestrator(self.api)

        self.filter_options: Dict[str, List[Any]] = {}
        self.student_responses: Optional[Dict[str, Any]] = None
        self.loading = {'init': False, 'data': False}
        self.errors = {'init': None, 'data': None}

    # --- Getters ---

    @property
    def user_email(self):
        context = self.resolver.user_context
        return context.email if context else None

    @property
    def is_super_user(self):
        return self.resolver.is_super_user

    @property
    def is_staff_admin(self):
        return self.resolver.user_context is not None and not self.resolver.is_super_user

    @property
    def establishments(self):
        return self.resolver.establishments

    @property
    def selected_establishment(self):
        return self.resolver.selected_establishment

    @property
    def active_filters(self):
        return self.filters.active_filters

    @property
    def dashboard_data(self) -> DashboardViewModel:
        return self.orchestrator.view_model or DashboardViewModel()

    @property
    def has_data(self):
        return self.dashboard_data.statistics is not None

    # --- Actions ---

    def initialize(self):
        self.loading['init'] = True
        self.errors['init'] = None
        try:
            context = self.resolver.resolve()
            self.filters.set_default_academic_year(self.resolver.default_academic_year)
            return context
        except DashboardError as e:
            self.errors['init'] = e.message
            raise
        finally:
            self.loading['init'] = False

    def select_establishment(self, establishment_id):
        return self.resolver.select_establishment(establishment_id)

    def load_dashboard_data(self) -> DashboardViewModel:
        self.loading['data'] = True
        self.errors['data'] = None
        try:
            return self.orchestrator.load_dashboard_data(self.selected_establishment, self.active_filters)
        except DashboardError as e:
            self.errors['data'] = e.message
            raise
        finally:
            self.loading['data'] = False

    def update_filter(self, filter_type, value):
        return self.filters.update(filter_type, value)

    def reset_filters(self):
        self.filters.reset()

    def _on_filters_changed(self, filters):
        # Reload data when filters change, but only if an establishment is selected
        if self.selected_establishment:
            self.load_dashboard_data()

    def insight_scores(self, responses):
        """Per-category scores for one student's raw responses"""
        return {category_id: score.to_dict() for category_id, score in score_all_categories(responses).items()}

    def load_filter_options(self):
        establishment_id = self.selected_establishment
        if not establishment_id:
            raise NoEstablishmentSelectedError()

        loaders = {
            'academicYears': lambda: self.api.get_academic_years(),
            'keyStages': lambda: self.api.get_key_stages(),
            'yearGroups': lambda: self.api.get_year_groups(establishment_id),
            'groups': lambda: self.api.get_groups(establishment_id),
            'faculties': lambda: self.api.get_faculties(establishment_id),
            'genders': lambda: self.api.get_genders(establishment_id),
        }
        options = {}
        for name, loader in loaders.items():
            try:
                options[name] = loader() or []
            except DashboardError as e:
                # A missing option list only hides that dropdown
                logger.warning(f"Failed to load {name} filter options: {e}")
                options[name] = []
        self.filter_options = options
        return options

    def search_students(self, search_term):
        if not self.selected_establishment:
            raise NoEstablishmentSelectedError()
        if not search_term or not search_term.strip():
            return []
        return self.api.search_students(self.selected_establishment, search_term.strip())

    def load_student_responses(self, student_id=None, cycle=None):
        student_id = student_id or self.filters['studentId']
        if not student_id:
            raise MissingFieldError("Student ID is required")
        cycle = cycle or self.filters.cycle

        data = self.api.get_student_responses(student_id, cycle)
        responses = data.get('responses') or []
        if 'summary' not in data:
            data['summary'] = summarize_rag(responses)

        raw = {
            canonical_question_id(r.get('questionId')): r.get('responseValue')
            for r in responses if isinstance(r, dict) and r.get('questionId')
        }
        data['insightScores'] = self.insight_scores(raw)
        self.student_responses = data
        return data

    def refresh_establishment_data(self):
        if not self.selected_establishment:
            raise NoEstablishmentSelectedError()
        result = self.api.refresh_establishment_data(self.selected_establishment)
        self.load_dashboard_data()
        return result
