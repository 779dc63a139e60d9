"""
Context Resolver
Works out who is using the dashboard and which establishment(s) they may see.

    UNRESOLVED -> RESOLVING_IDENTITY -> RESOLVING_SCOPE -> READY
                                   (any) -> FAILED

Super users get the full establishment list and pick one later with
select_establishment(); staff admins are bound to exactly one establishment.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from dashboard_errors import (
    DashboardError,
    DataLoadError,
    IdentityResolutionError,
    ScopeResolutionError,
)
from host_session import HostSession

logger = logging.getLogger(__name__)


class ResolverState(Enum):
    UNRESOLVED = 'unresolved'
    RESOLVING_IDENTITY = 'resolving_identity'
    RESOLVING_SCOPE = 'resolving_scope'
    READY = 'ready'
    FAILED = 'failed'


@dataclass(frozen=True)
class UserContext:
    email: str
    is_super_user: bool
    establishment_id: Optional[str] = None

    @property
    def role(self):
        return 'super_user' if self.is_super_user else 'staff_admin'


def get_current_academic_year(today=None):
    """Academic year string (e.g. '2024-25'); the year starts on 1 August"""
    today = today or date.today()
    year = today.year
    if today.month >= 8:
        return f"{year}-{str(year + 1)[-2:]}"
    return f"{year - 1}-{str(year)[-2:]}"


class ContextResolver:
    def __init__(self, config, api, role_bindings, session: Optional[HostSession] = None,
                 today: Optional[Callable[[], date]] = None):
        """
        Args:
            config: DashboardConfig (logged_in_user_email is the first identity source)
            api: Analytics service client (check_super_user, get_schools)
            role_bindings: Store with find_establishment_id(email)
            session: Host session accessors, optional
            today: Date provider used for the default academic year
        """
        self.config = config
        self.api = api
        self.role_bindings = role_bindings
        self.session = session or HostSession()
        self.today = today or date.today

        self.state = ResolverState.UNRESOLVED
        self.error: Optional[Exception] = None
        self.user_context: Optional[UserContext] = None
        self.establishments: List[Dict[str, Any]] = []
        self.selected_establishment: Optional[str] = None
        self.default_academic_year: Optional[str] = None

    @property
    def is_ready(self):
        return self.state == ResolverState.READY

    @property
    def is_super_user(self):
        return bool(self.user_context and self.user_context.is_super_user)

    def resolve(self) -> UserContext:
        try:
            self.state = ResolverState.RESOLVING_IDENTITY
            email = self._resolve_email()
            is_super_user = self._check_super_user(email)

            self.state = ResolverState.RESOLVING_SCOPE
            if is_super_user:
                self.establishments = self._load_establishments()
                self.user_context = UserContext(email, True)
            else:
                establishment_id = self.role_bindings.find_establishment_id(email)
                if not establishment_id:
                    raise ScopeResolutionError()
                self.user_context = UserContext(email, False, establishment_id)
                self.selected_establishment = establishment_id

            self.default_academic_year = get_current_academic_year(self.today())
            self.state = ResolverState.READY
            logger.info(f"Context resolved for {email} as {self.user_context.role}")
            return self.user_context

        except DashboardError as e:
            self.state = ResolverState.FAILED
            self.error = e
            logger.error(f"Context resolution failed: {e}")
            raise
        except Exception as e:
            self.state = ResolverState.FAILED
            self.error = e
            logger.error(f"Context resolution failed unexpectedly: {e}")
            raise

    def _resolve_email(self):
        email = self.config.logged_in_user_email
        if email:
            return email

        try:
            attributes = self.session.get_user_attributes() or {}
            email = attributes.get('email') or (attributes.get('values') or {}).get('email')
            if email:
                logger.info(f"Got user email from host user attributes: {email}")
                return email
        except Exception as e:
            logger.error(f"Failed to get user email from host user attributes: {e}")

        try:
            user = self.session.get_session_user() or {}
            email = user.get('email')
            if email:
                logger.info(f"Got user email from host session user: {email}")
                return email
        except Exception as e:
            logger.error(f"Failed to get user email from host session: {e}")

        raise IdentityResolutionError()

    def _check_super_user(self, email):
        try:
            result = self.api.check_super_user(email) or {}
            is_super_user = bool(result.get('is_super_user', result.get('isSuperUser', False)))
            logger.info(f"Super user check result for {email}: {is_super_user}")
            return is_super_user
        except Exception as e:
            logger.error(f"Super user check failed: {e}")
            logger.warning("Assuming staff admin role")
            return False

    def _load_establishments(self):
        try:
            schools = self.api.get_schools()
        except DashboardError as e:
            raise DataLoadError('establishments', e)

        establishments = [{
            'id': school['id'],
            'name': school.get('name'),
            'type': school.get('type') or 'School'
        } for school in schools or [] if isinstance(school, dict) and school.get('id')]
        logger.info(f"Loaded {len(establishments)} establishments")
        return establishments

    def select_establishment(self, establishment_id):
        if not self.is_ready:
            raise ScopeResolutionError("Context has not been resolved yet")

        if self.is_super_user:
            known = {est['id'] for est in self.establishments}
            if establishment_id not in known:
                raise ScopeResolutionError(f"Establishment not found with ID: {establishment_id}")
        elif establishment_id != self.user_context.establishment_id:
            raise ScopeResolutionError("Staff admins can only view their own establishment")

        logger.info(f"selectEstablishment called with: {establishment_id}")
        self.selected_establishment = establishment_id
        return establishment_id
