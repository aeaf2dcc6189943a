"""Asynchronous translation dispatch."""

from game_translator.pipeline.dispatcher import (
    DEFAULT_MIN_TEXT_LENGTH,
    PipelineOptions,
    RequestState,
    TranslationPipeline,
)

__all__ = [
    "DEFAULT_MIN_TEXT_LENGTH",
    "PipelineOptions",
    "RequestState",
    "TranslationPipeline",
]
