"""
Role Binding Stores
Find the establishment a staff admin belongs to, keyed by their email.

KnackRoleBindingStore reads the Knack staff admin roles object directly
(email in field_86, establishment connection in field_110_raw).
SupabaseRoleBindingStore reads the synced staff_admins / establishments tables.
"""

import json
import logging

import requests
from supabase import create_client

from dashboard_errors import ConfigurationError, ScopeResolutionError

logger = logging.getLogger(__name__)

BASE_KNACK_URL = "https://api.knack.com/v1/objects"
STAFF_ADMIN_EMAIL_FIELD = 'field_86'
STAFF_ADMIN_ESTABLISHMENT_FIELD = 'field_110_raw'


def extract_establishment_id(staff_record):
    """Pull the single establishment id out of a staff admin record's connection field"""
    if not isinstance(staff_record, dict):
        return None
    connections = staff_record.get(STAFF_ADMIN_ESTABLISHMENT_FIELD)
    if not isinstance(connections, list) or not connections:
        return None
    first = connections[0]
    if not isinstance(first, dict):
        return None
    return first.get('id') or None


class KnackRoleBindingStore:
    def __init__(self, app_id, api_key, object_key, session=None, timeout=20):
        if not app_id or not api_key:
            raise ConfigurationError("Knack API credentials not configured. Please set KNACK_APP_ID and KNACK_API_KEY environment variables.")
        self.object_key = object_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            'X-Knack-Application-Id': app_id,
            'X-Knack-REST-API-Key': api_key,
            'Content-Type': 'application/json'
        }

    def find_establishment_id(self, email):
        filters = [{
            'field': STAFF_ADMIN_EMAIL_FIELD,
            'operator': 'is',
            'value': email
        }]
        url = f"{BASE_KNACK_URL}/{self.object_key}/records"
        logger.info(f"Loading staff admin establishment for: {email}")

        try:
            response = self.session.get(url, headers=self.headers,
                                        params={'filters': json.dumps(filters)}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Failed to get staff admin establishment: {e}")
            raise ScopeResolutionError()

        records = (data.get('records') or []) if isinstance(data, dict) else []
        if not records:
            logger.error(f"No staff admin record found for {email}")
            raise ScopeResolutionError()

        establishment_id = extract_establishment_id(records[0])
        if not establishment_id:
            logger.error(f"Staff admin record for {email} has no establishment connection")
            raise ScopeResolutionError()
        return establishment_id


class SupabaseRoleBindingStore:
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_credentials(cls, url, key):
        if not url or not key:
            raise ConfigurationError("Supabase credentials not configured")
        return cls(create_client(url, key))

    def find_establishment_id(self, email):
        try:
            result = self.client.table('staff_admins').select('*').eq('email', email).execute()
        except Exception as e:
            logger.error(f"Failed to fetch staff admin: {e}")
            raise ScopeResolutionError()

        if not result.data:
            logger.error(f"Staff Admin not found: {email}")
            raise ScopeResolutionError()

        establishment_uuid = result.data[0].get('establishment_id')
        if not establishment_uuid:
            raise ScopeResolutionError()

        # Dashboard requests use the Knack id where one exists
        try:
            est_result = self.client.table('establishments').select('id, knack_id')\
                .eq('id', establishment_uuid).execute()
        except Exception as e:
            logger.warning(f"Could not look up knack_id for establishment {establishment_uuid}: {e}")
            return establishment_uuid

        if est_result.data and est_result.data[0].get('knack_id'):
            return est_result.data[0]['knack_id']
        return establishment_uuid


class StaticRoleBindingStore:
    """Fixed email -> establishment bindings, for development and local runs"""
    def __init__(self, bindings=None):
        self.bindings = {email.lower(): est for email, est in (bindings or {}).items()}

    def find_establishment_id(self, email):
        establishment_id = self.bindings.get((email or '').lower())
        if not establishment_id:
            raise ScopeResolutionError()
        return establishment_id


def create_role_binding_store(config):
    if config.use_mock_data:
        return StaticRoleBindingStore({config.logged_in_user_email or '': 'est_1'})
    if config.role_binding_source == 'supabase':
        return SupabaseRoleBindingStore.from_credentials(config.supabase_url, config.supabase_key)
    return KnackRoleBindingStore(config.knack_app_id, config.knack_api_key, config.staff_admin_object)
