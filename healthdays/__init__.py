"""Health Day Aggregator package.

This package contains the core modules: models, day_calendar, aggregator,
metrics, data_loader, source, state, reporter.
"""

__all__ = [
    'models',
    'day_calendar',
    'aggregator',
    'metrics',
    'data_loader',
    'source',
    'state',
    'reporter'
]
