"""Project-specific exception types.

Every error aborts conversion of the current input file. The batch driver
reports it and moves on to the next file.
"""


class SkinConvError(Exception):
    """Base exception for conversion errors."""
    pass


class ParseError(SkinConvError):
    """Source document has an unexpected shape (missing child, attribute, bad text)."""
    pass


class DuplicateJointError(ParseError):
    """Two joints of one skeleton share the same short id."""
    pass


class SingularMatrixError(SkinConvError):
    """A transform that must be inverted has a (near) zero determinant."""
    pass


class JointNotFoundError(SkinConvError):
    """A joint could not be resolved to a bone index or animation channel."""
    pass


class MalformedAnimationError(SkinConvError):
    """Animation samples are inconsistent (length mismatch, unordered times)."""
    pass


class UnsupportedMultiAnimationError(SkinConvError):
    """The document holds more than one animation clip."""
    pass


class MultipleRootsError(SkinConvError):
    """More than one root was found where exactly one is expected."""
    pass
