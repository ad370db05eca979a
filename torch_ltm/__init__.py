"""Local tone mapping of HDR images by exposure fusion, in PyTorch."""

# Import all modules
from . import (
  blend,
  exposures,
  pyramid,
  tonemap,
)
from .blend import (
  blend_base,
  blend_laplacian_level,
  blend_pyramid,
  laplacian_weights,
  weighted_laplacian,
)
from .exposures import (
  HIGHLIGHTS,
  MIDTONES,
  SHADOWS,
  exposure_multipliers,
  exposure_weights,
  synthesize_exposures,
)
from .guided_upsample import guided_upsample, local_linear_model
from .pipeline.config import LocalToneMapSettings
from .pipeline.local_tonemap import LocalToneMapper, local_tonemap
from .pipeline.presets import get_preset, presets
from .pyramid import Pyramid, downsample, pyramid_sizes
from .tonemap import aces_filmic, luminance, perceptual, tonemapped_luminance
from .util import PyramidShapeError

__all__ = [
  # Modules
  'blend',
  'exposures',
  'pyramid',
  'tonemap',
  # Channel layout
  'HIGHLIGHTS',
  'MIDTONES',
  'SHADOWS',
  # Tone curve
  'aces_filmic',
  'luminance',
  'perceptual',
  'tonemapped_luminance',
  # Synthetic exposures
  'exposure_multipliers',
  'exposure_weights',
  'synthesize_exposures',
  # Pyramid
  'Pyramid',
  'PyramidShapeError',
  'downsample',
  'pyramid_sizes',
  # Blending
  'blend_base',
  'blend_laplacian_level',
  'blend_pyramid',
  'laplacian_weights',
  'weighted_laplacian',
  # Guided upsample
  'guided_upsample',
  'local_linear_model',
  # Pipeline
  'LocalToneMapSettings',
  'LocalToneMapper',
  'get_preset',
  'local_tonemap',
  'presets',
]
