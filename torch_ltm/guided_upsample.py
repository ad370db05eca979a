"""Guided upsampling of the blended luminance back to full resolution.

A local linear model guide -> accumulation is fit in a 3x3 neighbourhood of the
coarse grids and evaluated against the full resolution luminance, see
https://bartwronski.com/2019/09/22/local-linear-models-guided-filter/
"""

import math

from beartype import beartype
import torch

from .tonemap import aces_filmic, check_image, luminance, perceptual, sanitize
from .util import PyramidShapeError, lerp, to_nchw

NEIGHBOURHOOD_SIGMA = 0.7
VARIANCE_EPS = 1e-5
LUMINANCE_EPS = 1e-5

# Multipliers of pixels darker than this are eased toward 1
DARK_THRESHOLD = 0.007


def _pixel_centres(size: int, device: torch.device) -> torch.Tensor:
  return (torch.arange(size, device=device, dtype=torch.float32) + 0.5) * (2.0 / size) - 1.0


@beartype
def sample_neighbourhood(coarse: torch.Tensor, size: tuple[int, int], offset: tuple[int, int]) -> torch.Tensor:
  """
  Bilinearly sample a coarse grid at every full resolution pixel centre.

  Args:
      coarse: (h, w) or (h, w, C) grid
      size: (height, width) of the full resolution grid
      offset: (dx, dy) offset in coarse pixels

  Returns:
      (C, height, width) samples, edge clamped
  """
  height, width = size
  coarse_height, coarse_width = coarse.shape[:2]
  dx, dy = offset

  xs = _pixel_centres(width, coarse.device) + dx * (2.0 / coarse_width)
  ys = _pixel_centres(height, coarse.device) + dy * (2.0 / coarse_height)
  grid_y, grid_x = torch.meshgrid(ys, xs, indexing='ij')
  grid = torch.stack([grid_x, grid_y], dim=-1).unsqueeze(0).to(coarse.dtype)

  samples = torch.nn.functional.grid_sample(
    to_nchw(coarse), grid, mode='bilinear', padding_mode='border', align_corners=False
  )
  return samples.squeeze(0)


@beartype
def local_linear_model(
  guide: torch.Tensor, accumulation: torch.Tensor, size: tuple[int, int]
) -> tuple[torch.Tensor, torch.Tensor]:
  """
  Fit accumulation ~ A * guide + B around every full resolution pixel.

  Args:
      guide: (h, w) coarse guide luminance
      accumulation: (h, w) coarse blended luminance
      size: (height, width) of the full resolution grid

  Returns:
      Slope A and intercept B, each (height, width)
  """
  if guide.shape != accumulation.shape:
    raise PyramidShapeError(f'Guide shape {tuple(guide.shape)} != accumulation shape {tuple(accumulation.shape)}')

  coarse = torch.stack([guide, accumulation], dim=-1)

  moment_x = moment_y = moment_x2 = moment_xy = 0.0
  total = 0.0
  for dy in (-1, 0, 1):
    for dx in (-1, 0, 1):
      w = math.exp(-0.5 * (dx * dx + dy * dy) / (NEIGHBOURHOOD_SIGMA * NEIGHBOURHOOD_SIGMA))
      x, y = sample_neighbourhood(coarse, size, (dx, dy))

      moment_x = moment_x + x * w
      moment_y = moment_y + y * w
      moment_x2 = moment_x2 + x * x * w
      moment_xy = moment_xy + x * y * w
      total += w

  moment_x = moment_x / total
  moment_y = moment_y / total
  moment_x2 = moment_x2 / total
  moment_xy = moment_xy / total

  variance = (moment_x2 - moment_x * moment_x).clamp(min=0.0)
  slope = (moment_xy - moment_x * moment_y) / (variance + VARIANCE_EPS)
  intercept = moment_y - slope * moment_x
  return slope, intercept


@beartype
def exposure_multiplier(slope: torch.Tensor, intercept: torch.Tensor, lum: torch.Tensor) -> torch.Tensor:
  """Per-pixel exposure gain predicted by the linear model, eased toward 1 in near black pixels."""
  multiplier = (slope * lum + intercept).clamp(min=0.0) / lum

  ease = (lum / DARK_THRESHOLD) ** 2
  return torch.where(lum > DARK_THRESHOLD, multiplier, lerp(torch.ones_like(multiplier), multiplier, ease))


@beartype
def guided_upsample(
  accumulation: torch.Tensor, guide: torch.Tensor, image: torch.Tensor, exposure: float
) -> torch.Tensor:
  """
  Reconstruct the full resolution tonemapped image from the blended luminance.

  Args:
      accumulation: (h, w) blended luminance at the display level
      guide: (h, w) midtone exposure luminance at the display level
      image: (H, W, 3) linear HDR source image
      exposure: Global linear gain

  Returns:
      (H, W, 3) display referred image with values in [0, 1]
  """
  check_image(image)
  size = tuple(image.shape[:2])
  slope, intercept = local_linear_model(guide, accumulation, size)

  color = sanitize(image) * exposure
  lum = luminance(perceptual(aces_filmic(color))) + LUMINANCE_EPS
  multiplier = exposure_multiplier(slope, intercept, lum)

  return perceptual(aces_filmic(color * multiplier.unsqueeze(-1)))


__all__ = [
  'DARK_THRESHOLD',
  'exposure_multiplier',
  'guided_upsample',
  'local_linear_model',
  'sample_neighbourhood',
]
