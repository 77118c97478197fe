"""Exception hierarchy shared by the classifier and the session layer."""

from __future__ import annotations


class EcoClearError(Exception):
    """Base class for EcoClear errors."""


class ModelLoadError(EcoClearError):
    """The classification model could not be downloaded or loaded."""


class ClassificationError(EcoClearError):
    """A single classification request failed."""


class ImageDecodeError(ClassificationError, ValueError):
    """Uploaded bytes are not a decodable image or exceed the size limits."""
