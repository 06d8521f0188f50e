from crm_api.services.segment_evaluator import SegmentEvaluator
from crm_api.services.customer_query import CustomerQueryService
from crm_api.services.customer_counts import CustomerCountService

__all__ = [
    "SegmentEvaluator",
    "CustomerQueryService",
    "CustomerCountService",
]
