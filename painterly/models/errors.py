class StylizationError(Exception):
    """
    Terminal failure of a single stylization run.

    ``str(err)`` carries the technical cause for logs; ``user_message`` is the
    short, non-technical text shown to the person who uploaded the photo.
    """
    user_message = "Something went wrong while stylizing your photo. Please try again."


class DecodeFailure(StylizationError):
    user_message = "We couldn't read that image. Please upload a valid JPG or PNG file."


class EncodeFailure(StylizationError):
    user_message = "We couldn't save the stylized image. Please try again."


class ProcessingFailure(StylizationError):
    pass


class PipelineCancelled(StylizationError):
    user_message = "The transformation was cancelled."
