"""
engiffen -- Encode sequences of images as animated GIFs.

Builds a single shared palette of at most 256 colors for a sequence of
same-sized frames (by frequency ranking or by NeuQuant training), maps
every pixel to it and writes the result as a looping GIF.
"""

__version__ = "0.8.1"

from engiffen.assembly import Animation, convert, engiffen
from engiffen.exceptions import (
    DecodeError,
    DimensionMismatchError,
    EngiffenError,
    NoImagesError,
    WriteError,
)
from engiffen.loading import load_image, load_images
from engiffen.types import (
    ConversionConfig,
    ErrorPolicy,
    Frame,
    Quantizer,
    QuantizerKind,
    TransparencyPolicy,
)

__all__ = [
    "Animation",
    "ConversionConfig",
    "DecodeError",
    "DimensionMismatchError",
    "EngiffenError",
    "ErrorPolicy",
    "Frame",
    "NoImagesError",
    "Quantizer",
    "QuantizerKind",
    "TransparencyPolicy",
    "WriteError",
    "convert",
    "engiffen",
    "load_image",
    "load_images",
]
