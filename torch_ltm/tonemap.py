"""Tone curve, luminance and perceptual remap shared by the fusion stages."""

from beartype import beartype
import torch

# Fixed weights used to reduce a tonemapped RGB triple to a luminance scalar
LUMINANCE_WEIGHTS = (0.1, 0.7, 0.2)

# Largest value representable in a half float, inputs are clamped to it
HDR_MAX = 65504.0

# ACES filmic fit (Stephen Hill), row-major so that out = color @ M.T
_ACES_INPUT = (
  (0.59719, 0.35458, 0.04823),
  (0.07600, 0.90834, 0.01566),
  (0.02840, 0.13383, 0.83777),
)

_ACES_OUTPUT = (
  (1.60475, -0.53108, -0.07367),
  (-0.10208, 1.10813, -0.00605),
  (-0.00327, -0.07276, 1.07602),
)

_ACES_EXPOSURE_BIAS = 1.0 / 0.6


def _matrix(values, like: torch.Tensor) -> torch.Tensor:
  return torch.tensor(values, device=like.device, dtype=like.dtype)


@beartype
def check_image(image: torch.Tensor) -> None:
  """Raise ValueError unless image is a floating point (H, W, 3) tensor."""
  if image.dim() != 3 or image.size(2) != 3:
    raise ValueError(f'Image must have shape (H, W, 3), got {tuple(image.shape)}')
  if not image.is_floating_point():
    raise ValueError(f'Image must be a floating point tensor, got {image.dtype}')


@beartype
def sanitize(image: torch.Tensor) -> torch.Tensor:
  """Replace NaN and negative samples by zero and clamp to the half float range."""
  image = torch.nan_to_num(image, nan=0.0, posinf=HDR_MAX, neginf=0.0)
  return image.clamp(0.0, HDR_MAX)


@beartype
def aces_filmic(color: torch.Tensor) -> torch.Tensor:
  """
  Apply the ACES filmic tone curve.

  Args:
      color: Linear RGB tensor of shape (..., 3)

  Returns:
      Tonemapped RGB tensor of the same shape, clamped to [0, 1]
  """
  color = (color * _ACES_EXPOSURE_BIAS) @ _matrix(_ACES_INPUT, color).T

  a = color * (color + 0.0245786) - 0.000090537
  b = color * (0.983729 * color + 0.4329510) + 0.238081

  color = (a / b) @ _matrix(_ACES_OUTPUT, color).T
  return color.clamp(0.0, 1.0)


@beartype
def luminance(rgb: torch.Tensor) -> torch.Tensor:
  """Weighted luminance (0.1, 0.7, 0.2) of a (..., 3) tensor, returns (...)."""
  return rgb @ _matrix(LUMINANCE_WEIGHTS, rgb)


@beartype
def perceptual(values: torch.Tensor) -> torch.Tensor:
  """Square root remap, negative and NaN values map to zero."""
  return torch.sqrt(torch.nan_to_num(values, nan=0.0).clamp(min=0.0))


@beartype
def tonemapped_luminance(color: torch.Tensor) -> torch.Tensor:
  """Perceptual luminance of a tonemapped color, used for the synthetic exposures."""
  return perceptual(luminance(aces_filmic(color)))


__all__ = [
  'HDR_MAX',
  'LUMINANCE_WEIGHTS',
  'aces_filmic',
  'check_image',
  'luminance',
  'perceptual',
  'sanitize',
  'tonemapped_luminance',
]
