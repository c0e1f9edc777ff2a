"""
SchemaBuilder - enumerates GPUs once at startup and fixes the column layout.
"""
from resmon.core.models import Schema
from resmon.core.parser import parse_gpu_list
from resmon.utils import get_logger

logger = get_logger(__name__)


class SchemaBuilder:
    def __init__(self, sampler, date_column_label: str = "time"):
        self._sampler = sampler
        self._date_column_label = date_column_label

    def build(self) -> Schema:
        indices = parse_gpu_list(self._sampler.list_gpus())
        if not indices:
            logger.info("No GPUs detected; GPU columns omitted")
        else:
            logger.info("Detected %d GPU(s): %s", len(indices), indices)
        return Schema(self._date_column_label, tuple(indices))
