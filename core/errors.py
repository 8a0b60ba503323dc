# -*- coding: utf-8 -*-
"""
Error taxonomy for the studio core.

GenerationError subclasses are the failures of a single backend call; the
batch path counts any of them against its retry budget. Everything else is
either a configuration problem or a data-model invariant violation and is
never retried.
"""


class StudioError(Exception):
    pass


class ConfigurationError(StudioError):
    """Missing credential or unusable settings."""


class InvalidEpisodeNumber(StudioError, ValueError):
    def __init__(self, message: str, number: int = 0):
        super().__init__(message)
        self.number = number


class BatchAlreadyRunning(StudioError):
    pass


class GenerationError(StudioError):
    kind = "generation"


class TransportError(GenerationError):
    kind = "transport"


class MalformedOutput(GenerationError):
    kind = "malformed_output"

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class EmptyOutput(GenerationError):
    kind = "empty_output"


class NoImageData(GenerationError):
    kind = "no_image_data"
