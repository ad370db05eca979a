"""Synthetic exposures and their per-pixel preference weights."""

from beartype import beartype
import torch

from .tonemap import check_image, sanitize, tonemapped_luminance
from .util import store

# Channel layout of the exposure and weight grids
HIGHLIGHTS = 0
MIDTONES = 1
SHADOWS = 2

# Guard for the weight normalization when every exposure is far from mid-gray
WEIGHT_EPS = 1e-5


@beartype
def exposure_multipliers(
  shadows: float, highlights: float, enable_local_tonemapping: bool = True
) -> tuple[float, float, float]:
  """Per-exposure gain in (highlights, midtones, shadows) channel order."""
  if not enable_local_tonemapping:
    return (1.0, 1.0, 1.0)
  return (2.0 ** -highlights, 1.0, 2.0**shadows)


@beartype
def synthesize_exposures(
  image: torch.Tensor,
  exposure: float,
  shadows: float,
  highlights: float,
  enable_local_tonemapping: bool = True,
  out: torch.Tensor | None = None,
) -> torch.Tensor:
  """
  Tonemap three virtual exposures of an HDR image and pack their luminances.

  The shadow-biased exposure is brightened by `shadows` stops, the highlight-biased
  one darkened by `highlights` stops. With local tone mapping disabled all three
  exposures are identical.

  Args:
      image: Linear HDR image tensor of shape (H, W, 3)
      exposure: Global linear gain applied before tone mapping
      shadows: Exposure compensation in stops for the shadow exposure
      highlights: Exposure compensation in stops for the highlight exposure
      enable_local_tonemapping: Spread the synthetic exposures apart
      out: Optional (H, W, 3) buffer to write into

  Returns:
      (H, W, 3) tensor of perceptual luminances (highlights, midtones, shadows)
  """
  check_image(image)
  color = sanitize(image) * exposure

  multipliers = exposure_multipliers(shadows, highlights, enable_local_tonemapping)
  exposures = torch.stack([tonemapped_luminance(color * m) for m in multipliers], dim=-1)
  return store(exposures, out)


@beartype
def exposure_weights(exposures: torch.Tensor, sigma: float, out: torch.Tensor | None = None) -> torch.Tensor:
  """
  Soft per-pixel preference for the best exposed synthetic exposure.

  Each channel gets a Gaussian falloff of its distance from mid-gray, the
  three weights are then normalized to sum to one.

  Args:
      exposures: (H, W, 3) exposure luminances
      sigma: Sharpness of the preference, larger values favour mid-gray more strongly
      out: Optional (H, W, 3) buffer to write into

  Returns:
      (H, W, 3) normalized weights
  """
  assert exposures.dim() == 3 and exposures.size(2) == 3, f'exposures must be (H, W, 3), got {exposures.shape}'

  diff = exposures - 0.5
  weights = torch.exp(-0.5 * diff * diff * (sigma * sigma))
  weights = weights / (weights.sum(dim=-1, keepdim=True) + WEIGHT_EPS)
  return store(weights, out)


__all__ = [
  'HIGHLIGHTS',
  'MIDTONES',
  'SHADOWS',
  'WEIGHT_EPS',
  'exposure_multipliers',
  'exposure_weights',
  'synthesize_exposures',
]
