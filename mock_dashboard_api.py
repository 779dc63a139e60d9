"""
Mock Dashboard API
Development data source with the same interface as DashboardAPI.
Select it with DASHBOARD_USE_MOCK_DATA=true; see dashboard_api.create_api.

The QLA facet returns raw per-student responses rather than pre-aggregated insights,
so the store derives insight scores locally from the catalog.
"""

import copy
import logging

from dashboard_errors import MissingFieldError

logger = logging.getLogger(__name__)

MOCK_SCHOOLS = [
    {'id': 'est_1', 'name': 'Sample High School', 'type': 'Secondary'},
    {'id': 'est_2', 'name': 'Sample Primary School', 'type': 'Primary'},
]

MOCK_STATISTICS = {
    'totalStudents': 450,
    'averageERI': 72.5,
    'eriChange': 2.3,
    'completionRate': 89,
    'averageScore': 68.4,
    'scoreChange': 1.8,
    'nationalERI': 70.2,
    'eriTrend': 'up',
    'vespaScores': {
        'vision': 75, 'effort': 82, 'systems': 68, 'practice': 71, 'attitude': 78,
        'nationalVision': 72, 'nationalEffort': 80, 'nationalSystems': 65,
        'nationalPractice': 69, 'nationalAttitude': 75,
    },
    'comparison': {
        'school': [75, 82, 68, 71, 78],
        'national': [72, 80, 65, 69, 75],
    },
}

# Raw questionnaire responses, keyed the way Knack exports them
MOCK_RESPONSES = [
    {'field_Q2': '4', 'field_Q4': '5', 'field_Q5': '4', 'field_Q7': '3', 'field_Q8': '4', 'field_Q9': '5',
     'field_Q10': '4', 'field_Q11': '4', 'field_Q12': '2', 'field_Q13': '3', 'field_Q14': '5',
     'field_Q15': '3', 'field_Q16': '4', 'field_Q17': '3', 'field_Q19': '2', 'field_Q20': '3',
     'field_Q22': '4', 'field_Q23': '1', 'field_Q26': '5', 'field_Q27': '4', 'field_Q28': '2',
     'field_Outcome_Q': '4', 'field_Outcome_Q2': '5', 'field_Outcome_Q3': '4'},
    {'field_Q2': '3', 'field_Q4': '3', 'field_Q5': '5', 'field_Q7': '4', 'field_Q8': '3', 'field_Q9': '4',
     'field_Q10': '3', 'field_Q11': '3', 'field_Q12': '3', 'field_Q13': '2', 'field_Q14': '4',
     'field_Q15': '4', 'field_Q16': '5', 'field_Q17': '2', 'field_Q19': '3', 'field_Q20': '2',
     'field_Q22': '3', 'field_Q23': '2', 'field_Q26': '4', 'field_Q27': '5', 'field_Q28': '3',
     'field_Outcome_Q': '3', 'field_Outcome_Q2': '4', 'field_Outcome_Q3': '3'},
    {'Q2': 5, 'Q4': 4, 'Q5': 3, 'Q7': 5, 'Q8': 5, 'Q9': 4, 'Q10': 5, 'Q11': 5, 'Q12': 4, 'Q13': 4,
     'Q14': 4, 'Q15': 5, 'Q16': 3, 'Q17': 4, 'Q19': 3, 'Q20': 4, 'Q22': 5, 'Q23': 2, 'Q26': 3,
     'Q27': 4, 'Q28': 4, 'Outcome_Q': 5, 'Outcome_Q2': 4, 'Outcome_Q3': 5},
    {'field_Q2_raw': 2, 'field_Q4_raw': 2, 'field_Q5_raw': 4, 'field_Q7_raw': 2, 'field_Q8_raw': 2,
     'field_Q9_raw': 3, 'field_Q10_raw': 2, 'field_Q11_raw': 2, 'field_Q12_raw': 1, 'field_Q13_raw': 2,
     'field_Q14_raw': 3, 'field_Q15_raw': 2, 'field_Q16_raw': 3, 'field_Q17_raw': 3,
     'field_Q20_raw': 1, 'field_Q22_raw': 2, 'field_Q26_raw': 4, 'field_Q27_raw': 3,
     'field_Q28_raw': 1, 'field_Outcome_Q_raw': 2, 'field_Outcome_Q2_raw': 3},
]

MOCK_WORD_CLOUD = {
    'wordCloudData': [
        {'text': 'revision', 'size': 45, 'count': 234},
        {'text': 'practice', 'size': 38, 'count': 187},
        {'text': 'understanding', 'size': 32, 'count': 156},
        {'text': 'confident', 'size': 28, 'count': 134},
        {'text': 'improve', 'size': 25, 'count': 123},
    ],
    'totalComments': 1234,
    'uniqueWords': 567,
    'topWord': ['revision', 234],
}

MOCK_COMMENT_INSIGHTS = {
    'themes': {
        'positive': [
            {'name': 'Strong Work Ethic', 'count': 45, 'id': 'pos_1'},
            {'name': 'Good Progress', 'count': 38, 'id': 'pos_2'},
            {'name': 'Excellent Understanding', 'count': 32, 'id': 'pos_3'},
        ],
        'improvement': [
            {'name': 'Time Management', 'count': 28, 'id': 'imp_1'},
            {'name': 'Revision Strategies', 'count': 23, 'id': 'imp_2'},
            {'name': 'More Practice Needed', 'count': 19, 'id': 'imp_3'},
        ],
    },
    'sampleComments': [
        {'text': 'I need to focus more on revision techniques to improve my understanding.', 'yearGroup': '11', 'date': '2024-03-15'},
        {'text': 'Practice tests are really helping me feel more confident about exams.', 'yearGroup': '10', 'date': '2024-03-14'},
    ],
    'totalComments': 543,
}

MOCK_STUDENTS = [
    {'id': '1', 'name': 'John Doe', 'yearGroup': '10', 'displayText': 'John Doe (10)'},
    {'id': '2', 'name': 'Jane Smith', 'yearGroup': '11', 'displayText': 'Jane Smith (11)'},
]


class MockDashboardAPI:
    def __init__(self, super_users=None):
        self.super_users = set(email.lower() for email in (super_users or []))

    def get_base_url(self):
        return ''

    def get_schools(self):
        return copy.deepcopy(MOCK_SCHOOLS)

    def check_super_user(self, email):
        return {'is_super_user': (email or '').lower() in self.super_users}

    def get_establishment_name(self, establishment_id):
        for school in MOCK_SCHOOLS:
            if school['id'] == establishment_id:
                return {'name': school['name']}
        return {'name': 'Demo School'}

    def get_statistics(self, establishment_id, filters=None):
        return copy.deepcopy(MOCK_STATISTICS)

    def get_qla_data(self, establishment_id, filters=None):
        return {'responses': copy.deepcopy(MOCK_RESPONSES)}

    def get_word_cloud_data(self, establishment_id, filters=None):
        return copy.deepcopy(MOCK_WORD_CLOUD)

    def get_comment_insights(self, establishment_id, filters=None):
        return copy.deepcopy(MOCK_COMMENT_INSIGHTS)

    def get_student_responses(self, student_id, cycle=1):
        if not student_id:
            raise MissingFieldError("Student ID is required")
        raw = MOCK_RESPONSES[0]
        responses = [
            {'questionId': key.replace('field_', ''), 'responseValue': int(value)}
            for key, value in sorted(raw.items())
        ]
        return {
            'student': {'name': 'John Doe', 'email': 'john.doe@school.edu', 'id': student_id},
            'cycle': cycle,
            'responses': responses,
        }

    def get_academic_years(self):
        return ['2023-24', '2022-23', '2021-22']

    def get_key_stages(self):
        return ['KS3', 'KS4', 'KS5']

    def get_year_groups(self, establishment_id=None):
        return ['7', '8', '9', '10', '11', '12', '13']

    def get_groups(self, establishment_id):
        return ['Group A', 'Group B', 'Group C']

    def get_faculties(self, establishment_id):
        return ['Mathematics', 'Science', 'English', 'History', 'Arts']

    def get_genders(self, establishment_id):
        return ['Female', 'Male']

    def search_students(self, establishment_id, search_term):
        term = (search_term or '').lower()
        return [s for s in copy.deepcopy(MOCK_STUDENTS) if term in s['name'].lower()]

    def generate_comparative_report(self, report_config):
        logger.warning("Using mock comparative report")
        return {'success': True, 'html': '<h1>Mock Comparative Report</h1>', 'data': {'mock': True}}

    def refresh_establishment_data(self, establishment_id):
        return {'success': True, 'establishmentId': establishment_id}
