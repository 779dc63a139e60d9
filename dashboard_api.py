"""
Dashboard API Client
Talks to the VESPA analytics service (Heroku backend) for establishments, statistics,
question level analysis, comment word clouds and themes, and student responses.

Failures are raised as ApiError; deciding which failures the dashboard can live with is
the store's job, not the client's.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from dashboard_errors import ApiError, MissingFieldError

logger = logging.getLogger(__name__)

REPORT_TIMEOUT = 60    # comparative report generation
REFRESH_TIMEOUT = 310  # establishment re-sync (5 min 10 sec)

# Filter name -> query parameter, per naming style of the service endpoints
FILTER_PARAM_NAMES = {
    'camel': {
        'cycle': 'cycle',
        'academicYear': 'academic_year',
        'yearGroup': 'yearGroup',
        'group': 'group',
        'faculty': 'faculty',
        'gender': 'gender',
        'studentId': 'studentId',
    },
    'snake': {
        'cycle': 'cycle',
        'academicYear': 'academic_year',
        'yearGroup': 'year_group',
        'group': 'group',
        'faculty': 'faculty',
        'gender': 'gender',
        'studentId': 'student_id',
    },
}


def build_filter_params(establishment_id, filters=None, style='camel') -> Dict[str, Any]:
    """Query parameters for a facet request. Empty filter values are left out."""
    if style not in FILTER_PARAM_NAMES:
        raise ValueError(f"Unknown parameter style: {style}")

    params = {'establishment_id': establishment_id}
    for filter_name, param_name in FILTER_PARAM_NAMES[style].items():
        value = (filters or {}).get(filter_name)
        if value is None or value == '' or value == 'all':
            continue
        params[param_name] = value
    return params


class DashboardAPI:
    def __init__(self, base_url: str, app_id: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: int = 30, session: Optional[requests.Session] = None):
        """
        Args:
            base_url: Root URL of the analytics service
            app_id: Knack application id, sent as a header when set
            api_key: Knack REST API key, sent as a header when set
            timeout: Seconds to wait on interactive requests
            session: requests.Session to use (a new one by default)
        """
        self.base_url = (base_url or '').rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {'Content-Type': 'application/json'}
        if app_id:
            self.headers['X-Knack-Application-Id'] = app_id
        if api_key:
            self.headers['X-Knack-REST-API-Key'] = api_key

    @classmethod
    def from_config(cls, config):
        return cls(config.api_url, app_id=config.knack_app_id, api_key=config.knack_api_key,
                   timeout=config.timeout)

    def get_base_url(self):
        return self.base_url

    def _request(self, method, path, params=None, json_body=None, timeout=None):
        url = f"{self.base_url}{path}"
        timeout = timeout or self.timeout
        logger.info(f"[API] {method} {url} params={params}")

        try:
            response = self.session.request(method, url, headers=self.headers, params=params,
                                            json=json_body, timeout=timeout)
            response.raise_for_status()
            return response.json()

        except requests.exceptions.Timeout:
            logger.error(f"[API] {path} timed out after {timeout} seconds")
            raise ApiError(f"Request to {path} timed out after {timeout} seconds", 504)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 500
            message = self._error_message(e.response) or str(e)
            logger.error(f"[API] {path} failed: {status} - {message}")
            raise ApiError(message, status)
        except requests.exceptions.RequestException as e:
            logger.error(f"[API] {path} request failed: {e}")
            raise ApiError(f"Request to {path} failed: {e}", 503)
        except ValueError as e:
            logger.error(f"[API] {path} returned invalid JSON: {e}")
            raise ApiError(f"Invalid response from {path}", 502)

    @staticmethod
    def _error_message(response):
        if response is None:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get('message') or body.get('error')
        return None

    def _get(self, path, params=None, timeout=None):
        return self._request('GET', path, params=params, timeout=timeout)

    def _post(self, path, body, timeout=None):
        return self._request('POST', path, json_body=body, timeout=timeout)

    # --- Users and establishments ---

    def get_schools(self) -> List[Dict[str, Any]]:
        schools = self._get('/api/schools')
        logger.info(f"[API] Loaded {len(schools)} schools")
        return schools

    def check_super_user(self, email) -> Dict[str, Any]:
        return self._get('/api/check-super-user', params={'email': email})

    def get_establishment_name(self, establishment_id) -> Dict[str, Any]:
        return self._get(f"/api/establishment/{establishment_id}")

    # --- Dashboard facets ---

    def get_statistics(self, establishment_id, filters=None):
        params = build_filter_params(establishment_id, filters, 'camel')
        data = self._get('/api/statistics', params=params)
        if isinstance(data, dict):
            logger.info(f"[API] Total Students: {data.get('totalStudents')} Total Responses: {data.get('totalResponses')}")
        return data

    def get_qla_data(self, establishment_id, filters=None):
        params = build_filter_params(establishment_id, filters, 'camel')
        return self._get('/api/qla', params=params)

    def get_word_cloud_data(self, establishment_id, filters=None):
        params = build_filter_params(establishment_id, filters, 'snake')
        return self._get('/api/comments/word-cloud', params=params)

    def get_comment_insights(self, establishment_id, filters=None):
        params = build_filter_params(establishment_id, filters, 'snake')
        return self._get('/api/comments/themes', params=params)

    def get_student_responses(self, student_id, cycle=1):
        if not student_id:
            logger.error("[API] Student ID is missing")
            raise MissingFieldError("Student ID is required")
        return self._get('/api/student-responses', params={'student_id': student_id, 'cycle': cycle})

    # --- Filter options ---

    def get_academic_years(self):
        return self._get('/api/academic-years')

    def get_key_stages(self):
        return self._get('/api/key-stages')

    def get_year_groups(self, establishment_id=None):
        params = {'establishment_id': establishment_id} if establishment_id else {}
        return self._get('/api/year-groups', params=params)

    def get_groups(self, establishment_id):
        return self._get('/api/groups', params={'establishment_id': establishment_id})

    def get_faculties(self, establishment_id):
        return self._get('/api/faculties', params={'establishment_id': establishment_id})

    def get_genders(self, establishment_id):
        return self._get('/api/genders', params={'establishment_id': establishment_id})

    def search_students(self, establishment_id, search_term):
        return self._get('/api/students/search', params={'establishment_id': establishment_id, 'q': search_term})

    # --- Long running calls ---

    def generate_comparative_report(self, report_config):
        logger.info(f"[API] generate_comparative_report called with config: {report_config}")
        return self._post('/api/comparative-report', report_config, timeout=REPORT_TIMEOUT)

    def refresh_establishment_data(self, establishment_id):
        if not establishment_id:
            raise MissingFieldError("Establishment ID is required")
        logger.info(f"[API] Refreshing establishment data: {establishment_id}")
        return self._post('/api/sync/refresh-establishment', {'establishmentId': establishment_id},
                          timeout=REFRESH_TIMEOUT)


def create_api(config):
    """Pick the data source for the environment: canned development data or the live service"""
    if config.use_mock_data:
        from mock_dashboard_api import MockDashboardAPI
        logger.warning("Using mock dashboard data source")
        return MockDashboardAPI()
    return DashboardAPI.from_config(config.validate())
