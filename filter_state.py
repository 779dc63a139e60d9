"""
Filter State
The slicing parameters for dashboard queries. Only filters that differ from their
"unfiltered" value ('all' / None) are sent to the analytics service.
"""

import logging
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

FILTER_KEYS = (
    'cycle',
    'academicYear',
    'yearGroup',
    'group',
    'faculty',
    'gender',
    'studentId',
    'studentName',
)

# Held for display next to studentId, never sent to the service
DISPLAY_ONLY_KEYS = ('studentName',)


def default_filters(academic_year=None, cycle=1) -> Dict[str, Any]:
    return {
        'cycle': cycle,
        'academicYear': academic_year,
        'yearGroup': 'all',
        'group': 'all',
        'faculty': 'all',
        'gender': 'all',
        'studentId': None,
        'studentName': None,
    }


def is_unfiltered(value):
    return value is None or value == 'all'


def _parse_cycle(value):
    try:
        cycle = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"cycle must be a positive integer, got {value!r}")
    if cycle < 1 or (isinstance(value, float) and value != cycle):
        raise ValueError(f"cycle must be a positive integer, got {value!r}")
    return cycle


class FilterState:
    def __init__(self, academic_year=None, on_change: Optional[Callable[['FilterState'], Any]] = None):
        self.default_academic_year = academic_year
        self.filters = default_filters(academic_year)
        self.on_change = on_change

    def __getitem__(self, key):
        return self.filters[key]

    @property
    def cycle(self):
        return self.filters['cycle']

    def set_default_academic_year(self, academic_year):
        """Set the academic year resolved at start-up without triggering a reload"""
        self.default_academic_year = academic_year
        self.filters['academicYear'] = academic_year

    def update(self, field, value, notify=True) -> bool:
        """Set one filter. Unknown filter names are ignored (returns False)."""
        if field not in FILTER_KEYS:
            logger.warning(f"Ignoring update for unknown filter: {field}")
            return False

        if field == 'cycle':
            value = _parse_cycle(value)

        self.filters[field] = value
        logger.info(f"Filter {field} set to {value!r}")
        if notify:
            self._changed()
        return True

    def reset(self):
        """Back to unfiltered defaults, keeping the current cycle"""
        self.filters = default_filters(self.default_academic_year, cycle=self.filters.get('cycle') or 1)
        self._changed()

    @property
    def active_filters(self) -> Dict[str, Any]:
        """Filters to send with facet requests: set values only, display-only keys left out"""
        return {
            key: value for key, value in self.filters.items()
            if key not in DISPLAY_ONLY_KEYS and not is_unfiltered(value)
        }

    def as_dict(self):
        return dict(self.filters)

    def _changed(self):
        if self.on_change is not None:
            self.on_change(self)
