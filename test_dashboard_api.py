"""
Tests for the analytics service client
Run with: pytest test_dashboard_api.py
"""

from unittest.mock import MagicMock

import pytest
import requests

from dashboard_api import DashboardAPI, build_filter_params, create_api
from dashboard_config import DashboardConfig
from dashboard_errors import ApiError, ConfigurationError, MissingFieldError
from mock_dashboard_api import MockDashboardAPI

BASE_URL = 'https://dashboard.example.com'


def make_response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response)
    return response


def make_client(payload=None, status_code=200, **kwargs):
    session = MagicMock()
    session.request.return_value = make_response(payload, status_code)
    return DashboardAPI(BASE_URL + '/', app_id='app', api_key='key', session=session, **kwargs), session


def test_build_filter_params_camel():
    params = build_filter_params('est_1', {
        'cycle': 2,
        'academicYear': '2024-25',
        'yearGroup': '12',
        'studentId': 'stu_1',
        'faculty': 'all',
        'gender': None,
        'group': '',
    })
    assert params == {
        'establishment_id': 'est_1',
        'cycle': 2,
        'academic_year': '2024-25',
        'yearGroup': '12',
        'studentId': 'stu_1',
    }


def test_build_filter_params_snake():
    params = build_filter_params('est_1', {'yearGroup': '13', 'studentId': 'stu_1', 'group': '13A'}, 'snake')
    assert params == {
        'establishment_id': 'est_1',
        'year_group': '13',
        'student_id': 'stu_1',
        'group': '13A',
    }


def test_build_filter_params_without_filters():
    assert build_filter_params('est_1') == {'establishment_id': 'est_1'}
    with pytest.raises(ValueError):
        build_filter_params('est_1', {}, 'kebab')


def test_statistics_request():
    client, session = make_client({'totalStudents': 10})

    assert client.get_statistics('est_1', {'cycle': 1, 'yearGroup': 'all'}) == {'totalStudents': 10}
    session.request.assert_called_once_with(
        'GET', f"{BASE_URL}/api/statistics",
        headers={
            'Content-Type': 'application/json',
            'X-Knack-Application-Id': 'app',
            'X-Knack-REST-API-Key': 'key',
        },
        params={'establishment_id': 'est_1', 'cycle': 1},
        json=None,
        timeout=30,
    )


def test_comment_endpoints_use_snake_params():
    client, session = make_client({'wordCloudData': []})

    client.get_word_cloud_data('est_1', {'yearGroup': '12'})
    assert session.request.call_args.args[1] == f"{BASE_URL}/api/comments/word-cloud"
    assert session.request.call_args.kwargs['params'] == {'establishment_id': 'est_1', 'year_group': '12'}

    client.get_comment_insights('est_1', {'studentId': 's1'})
    assert session.request.call_args.args[1] == f"{BASE_URL}/api/comments/themes"
    assert session.request.call_args.kwargs['params'] == {'establishment_id': 'est_1', 'student_id': 's1'}


def test_headers_omit_missing_credentials():
    client = DashboardAPI(BASE_URL, session=MagicMock())
    assert client.headers == {'Content-Type': 'application/json'}


def test_http_error_carries_status_and_message():
    client, _ = make_client({'message': 'Establishment not found'}, status_code=404)

    with pytest.raises(ApiError) as excinfo:
        client.get_establishment_name('missing')

    assert excinfo.value.status_code == 404
    assert excinfo.value.message == 'Establishment not found'


def test_timeout_maps_to_504():
    session = MagicMock()
    session.request.side_effect = requests.exceptions.Timeout()
    client = DashboardAPI(BASE_URL, session=session, timeout=5)

    with pytest.raises(ApiError) as excinfo:
        client.get_schools()
    assert excinfo.value.status_code == 504


def test_connection_error_maps_to_503():
    session = MagicMock()
    session.request.side_effect = requests.exceptions.ConnectionError('refused')
    client = DashboardAPI(BASE_URL, session=session)

    with pytest.raises(ApiError) as excinfo:
        client.get_qla_data('est_1')
    assert excinfo.value.status_code == 503


def test_invalid_json_maps_to_502():
    client, session = make_client()
    session.request.return_value.json.side_effect = ValueError('No JSON object could be decoded')

    with pytest.raises(ApiError) as excinfo:
        client.get_statistics('est_1')
    assert excinfo.value.status_code == 502


def test_student_responses_require_student_id():
    client, session = make_client()
    for student_id in (None, ''):
        with pytest.raises(MissingFieldError):
            client.get_student_responses(student_id)
    session.request.assert_not_called()


def test_student_responses_request():
    client, session = make_client({'responses': []})
    client.get_student_responses('stu_1', cycle=2)
    assert session.request.call_args.kwargs['params'] == {'student_id': 'stu_1', 'cycle': 2}


def test_search_sends_term_as_q():
    client, session = make_client([])
    client.search_students('est_1', 'smi')
    assert session.request.call_args.kwargs['params'] == {'establishment_id': 'est_1', 'q': 'smi'}


def test_long_running_calls_use_their_own_timeouts():
    client, session = make_client({'ok': True})

    client.generate_comparative_report({'establishmentId': 'est_1', 'reportType': 'cycle_vs_cycle'})
    assert session.request.call_args.args[0] == 'POST'
    assert session.request.call_args.kwargs['timeout'] == 60

    client.refresh_establishment_data('est_1')
    assert session.request.call_args.kwargs['json'] == {'establishmentId': 'est_1'}
    assert session.request.call_args.kwargs['timeout'] == 310

    with pytest.raises(MissingFieldError):
        client.refresh_establishment_data(None)


def test_create_api_selects_source():
    assert isinstance(create_api(DashboardConfig(use_mock_data=True)), MockDashboardAPI)

    client = create_api(DashboardConfig(api_url=BASE_URL + '/', timeout=12))
    assert isinstance(client, DashboardAPI)
    assert client.get_base_url() == BASE_URL
    assert client.timeout == 12

    with pytest.raises(ConfigurationError):
        create_api(DashboardConfig(api_url=None))
