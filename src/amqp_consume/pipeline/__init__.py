"""Child process pipelines fed with message bodies."""

from .subprocess_pipeline import FailedPipeline, SubprocessPipeline, SubprocessPipelineRunner

__all__ = ["FailedPipeline", "SubprocessPipeline", "SubprocessPipelineRunner"]
