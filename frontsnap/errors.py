"""Terminal signals raised by the resolution flow."""


class ResolutionError(RuntimeError):
    """Base class for failures that stop a photo resolution."""


class LocationRequiredError(ResolutionError):
    """Neither the photo nor the device could supply a location."""


class ImageAnalysisError(ResolutionError):
    """The image analyzer failed, so there is no business guess to search with."""


class ResolutionCancelled(ResolutionError):
    """The caller abandoned the flow before it finished."""
