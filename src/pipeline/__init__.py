from src.pipeline.batching import Batch, BatchAccumulator
from src.pipeline.metrics import MetricsSnapshot
from src.pipeline.runner import PipelineConfig, run_pipeline
from src.pipeline.sink import DirectorySink, LoggingSink, PayloadSink

__all__ = [
    "Batch",
    "BatchAccumulator",
    "DirectorySink",
    "LoggingSink",
    "MetricsSnapshot",
    "PayloadSink",
    "PipelineConfig",
    "run_pipeline",
]
