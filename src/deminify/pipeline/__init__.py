"""Pipeline module - multi-file stage sequencing with file-level checkpoints."""

from deminify.pipeline.driver import (
    DriverState,
    FileState,
    PipelineDriver,
    PipelineResult,
    StageFailure,
    read_mapping,
)
from deminify.pipeline.extract import extract_sources
from deminify.pipeline.stages import FunctionStage, RenameStage, SourceFile, Stage

__all__ = [
    "DriverState",
    "FileState",
    "FunctionStage",
    "PipelineDriver",
    "PipelineResult",
    "RenameStage",
    "SourceFile",
    "Stage",
    "StageFailure",
    "extract_sources",
    "read_mapping",
]
