# hardware_report/processors/__init__.py
from .merge_engine import MergeEngine
from .summary_processor import SummaryProcessor

__all__ = ['MergeEngine', 'SummaryProcessor']
