"""Lazy transform stages applied on top of record sources."""

from vfeed.core.feeds.stages.aggregation import AggregationStage
from vfeed.core.feeds.stages.base import Stage
from vfeed.core.feeds.stages.corporate_events import CorporateEventStage
from vfeed.core.feeds.stages.fill_forward import FillForwardStage, QuoteBarFillForwardStage
from vfeed.core.feeds.stages.filter import FilterStage

__all__ = [
    "Stage",
    "AggregationStage",
    "CorporateEventStage",
    "FillForwardStage",
    "QuoteBarFillForwardStage",
    "FilterStage",
]
