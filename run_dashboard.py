#!/usr/bin/env python3
"""
VESPA Insights Dashboard - command line runner

Resolves the user's context, loads the dashboard facets for one establishment and
prints the merged view model as JSON.

Usage:
    python run_dashboard.py --email staff@school.org
    python run_dashboard.py --email admin@vespa.academy --establishment-id <knack_id> --cycle 2
    python run_dashboard.py --mock --email demo@school.org --student-id 1
"""

import sys
import json
import logging
import argparse

from dashboard_config import DashboardConfig
from dashboard_errors import DashboardError
from dashboard_store import DashboardStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Load VESPA insights dashboard data')
    parser.add_argument('--email', help='Logged in user email (overrides LOGGED_IN_USER_EMAIL)')
    parser.add_argument('--establishment-id', help='Establishment to load (required for super users)')
    parser.add_argument('--cycle', type=int, default=None, help='Questionnaire cycle (1-3)')
    parser.add_argument('--academic-year', help='Academic year, e.g. 2024-25')
    parser.add_argument('--year-group', help='Year group filter')
    parser.add_argument('--student-id', help='Also load responses for this student')
    parser.add_argument('--mock', action='store_true', help='Use the development data source')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    config = DashboardConfig.from_env()
    if args.email:
        config.logged_in_user_email = args.email
    if args.mock:
        config.use_mock_data = True
    config.describe()

    try:
        store = DashboardStore(config)
        context = store.initialize()

        if store.is_super_user:
            if not args.establishment_id:
                logging.error("Super users must choose an establishment with --establishment-id")
                for est in store.establishments:
                    print(f"  {est['id']}: {est['name']} ({est['type']})")
                return 2
            store.select_establishment(args.establishment_id)

        # Filters are applied before the first load, so no reload is triggered yet
        filters = {
            'cycle': args.cycle,
            'academicYear': args.academic_year,
            'yearGroup': args.year_group,
        }
        for name, value in filters.items():
            if value is not None:
                store.filters.update(name, value, notify=False)

        view_model = store.load_dashboard_data()
        output = {
            'user': {'email': context.email, 'role': context.role},
            'establishmentId': store.selected_establishment,
            'filters': store.active_filters,
            'dashboard': view_model.to_dict(),
        }
        if args.student_id:
            output['student'] = store.load_student_responses(args.student_id)

        print(json.dumps(output, indent=2, default=str))
        return 0

    except DashboardError as e:
        logging.error(f"Dashboard failed: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
