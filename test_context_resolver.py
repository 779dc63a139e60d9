"""
Tests for user/establishment context resolution
Run with: pytest test_context_resolver.py
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from context_resolver import ContextResolver, ResolverState, get_current_academic_year
from dashboard_config import DashboardConfig
from dashboard_errors import (
    ApiError,
    DataLoadError,
    IdentityResolutionError,
    ScopeResolutionError,
)
from host_session import HostSession, StaticHostSession


def make_api(is_super_user=False, schools=None):
    api = MagicMock()
    api.check_super_user.return_value = {'is_super_user': is_super_user, 'user': None}
    api.get_schools.return_value = schools or []
    return api


def make_bindings(establishment_id='est_1'):
    bindings = MagicMock()
    bindings.find_establishment_id.return_value = establishment_id
    return bindings


def make_resolver(email='staff@school.org', api=None, bindings=None, session=None, today=date(2024, 9, 1)):
    config = DashboardConfig(logged_in_user_email=email)
    return ContextResolver(config, api or make_api(), bindings or make_bindings(),
                           session=session, today=lambda: today)


@pytest.mark.parametrize('today,expected', [
    (date(2024, 7, 15), '2023-24'),
    (date(2024, 9, 1), '2024-25'),
    (date(2024, 8, 1), '2024-25'),
    (date(2024, 7, 31), '2023-24'),
    (date(2025, 1, 10), '2024-25'),
    (date(1999, 9, 1), '1999-00'),
])
def test_current_academic_year(today, expected):
    assert get_current_academic_year(today) == expected


def test_staff_admin_resolves_to_bound_establishment():
    bindings = make_bindings('est_42')
    resolver = make_resolver(bindings=bindings, today=date(2024, 7, 15))

    context = resolver.resolve()

    assert context.email == 'staff@school.org'
    assert context.is_super_user is False
    assert context.establishment_id == 'est_42'
    assert context.role == 'staff_admin'
    assert resolver.selected_establishment == 'est_42'
    assert resolver.state == ResolverState.READY
    assert resolver.default_academic_year == '2023-24'
    bindings.find_establishment_id.assert_called_once_with('staff@school.org')


def test_email_from_host_user_attributes():
    session = StaticHostSession(user_attributes={'values': {'email': 'attr@school.org'}})
    resolver = make_resolver(email=None, session=session)
    assert resolver.resolve().email == 'attr@school.org'


def test_email_from_host_session_user_when_attributes_fail():
    class BrokenAttributesSession(HostSession):
        def get_user_attributes(self):
            raise RuntimeError('not available')

        def get_session_user(self):
            return {'email': 'session@school.org'}

    resolver = make_resolver(email=None, session=BrokenAttributesSession())
    assert resolver.resolve().email == 'session@school.org'


def test_config_email_takes_priority():
    session = StaticHostSession(user_attributes={'email': 'attr@school.org'},
                                session_user={'email': 'session@school.org'})
    resolver = make_resolver(email='config@school.org', session=session)
    assert resolver.resolve().email == 'config@school.org'


def test_no_email_fails_identity():
    api = make_api()
    resolver = make_resolver(email=None, api=api, session=StaticHostSession())

    with pytest.raises(IdentityResolutionError):
        resolver.resolve()

    assert resolver.state == ResolverState.FAILED
    assert isinstance(resolver.error, IdentityResolutionError)
    api.check_super_user.assert_not_called()


def test_super_user_check_outage_assumes_staff_admin():
    api = make_api()
    api.check_super_user.side_effect = ApiError('Service unavailable', 503)
    resolver = make_resolver(api=api, bindings=make_bindings('est_9'))

    context = resolver.resolve()

    assert context.is_super_user is False
    assert context.establishment_id == 'est_9'
    assert resolver.state == ResolverState.READY
    api.get_schools.assert_not_called()


def test_super_user_loads_establishments_and_defers_selection():
    api = make_api(is_super_user=True, schools=[
        {'id': 'a', 'name': 'Alpha Academy'},
        {'id': 'b', 'name': 'Beta Primary', 'type': 'Primary'},
    ])
    bindings = make_bindings()
    resolver = make_resolver(api=api, bindings=bindings)

    context = resolver.resolve()

    assert context.is_super_user is True
    assert context.establishment_id is None
    assert resolver.selected_establishment is None
    assert resolver.establishments == [
        {'id': 'a', 'name': 'Alpha Academy', 'type': 'School'},
        {'id': 'b', 'name': 'Beta Primary', 'type': 'Primary'},
    ]
    bindings.find_establishment_id.assert_not_called()

    assert resolver.select_establishment('b') == 'b'
    assert resolver.selected_establishment == 'b'
    with pytest.raises(ScopeResolutionError):
        resolver.select_establishment('zzz')
    assert resolver.selected_establishment == 'b'


def test_super_user_establishment_load_failure_is_fatal():
    api = make_api(is_super_user=True)
    api.get_schools.side_effect = ApiError('boom', 500)
    resolver = make_resolver(api=api)

    with pytest.raises(DataLoadError):
        resolver.resolve()
    assert resolver.state == ResolverState.FAILED


def test_staff_admin_without_role_binding_fails():
    bindings = MagicMock()
    bindings.find_establishment_id.side_effect = ScopeResolutionError()
    resolver = make_resolver(bindings=bindings)

    with pytest.raises(ScopeResolutionError):
        resolver.resolve()

    assert resolver.state == ResolverState.FAILED
    assert resolver.selected_establishment is None
    assert resolver.user_context is None


def test_unexpected_lookup_error_marks_resolver_failed():
    bindings = MagicMock()
    bindings.find_establishment_id.side_effect = RuntimeError('connection pool exhausted')
    resolver = make_resolver(bindings=bindings)

    with pytest.raises(RuntimeError):
        resolver.resolve()

    assert resolver.state == ResolverState.FAILED
    assert isinstance(resolver.error, RuntimeError)
    assert not resolver.is_ready
    with pytest.raises(ScopeResolutionError):
        resolver.select_establishment('est_1')


def test_staff_admin_with_empty_binding_fails():
    resolver = make_resolver(bindings=make_bindings(None))
    with pytest.raises(ScopeResolutionError):
        resolver.resolve()
    assert resolver.selected_establishment is None


def test_staff_admin_cannot_select_other_establishment():
    resolver = make_resolver(bindings=make_bindings('est_1'))
    resolver.resolve()
    with pytest.raises(ScopeResolutionError):
        resolver.select_establishment('est_2')
    assert resolver.select_establishment('est_1') == 'est_1'


def test_select_before_resolve_fails():
    resolver = make_resolver()
    with pytest.raises(ScopeResolutionError):
        resolver.select_establishment('est_1')
