"""Redis TimeSeries output package exports."""

from redis_output.base import Datapoint, Metric, SimpleMetric, Tag, TimeseriesClient  # noqa: F401
from redis_output.config import RedisOutputConfig, load_redis_output_config  # noqa: F401
from redis_output.deadline import Deadline  # noqa: F401
from redis_output.plugin import RedisOutput, register  # noqa: F401
from redis_output.registry import OutputRegistry  # noqa: F401
from redis_output.writer import BatchWriter, WriteReport  # noqa: F401
