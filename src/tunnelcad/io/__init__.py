"""I/O utilities for tunnelcad."""

from .design import DesignFormatError, TunnelDesign, design_from_dict, load_design
from .stl import write_stl

__all__ = [
    'DesignFormatError',
    'TunnelDesign',
    'design_from_dict',
    'load_design',
    'write_stl',
]
