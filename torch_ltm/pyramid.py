"""Gaussian pyramids of the exposure and weight grids."""

from beartype import beartype
import torch

from .util import PyramidShapeError, from_nchw, store, to_nchw


@beartype
def pyramid_sizes(image_size: tuple[int, int]) -> list[tuple[int, int]]:
  """(width, height) of every pyramid level, halving (rounded up) until a dimension reaches 1."""
  width, height = image_size
  assert width > 0 and height > 0, 'Width and height must be positive'

  sizes = [(width, height)]
  while width > 1 and height > 1:
    width, height = (width + 1) // 2, (height + 1) // 2
    sizes.append((width, height))
  return sizes


@beartype
def downsample(grid: torch.Tensor, out: torch.Tensor | None = None) -> torch.Tensor:
  """
  Halve a (H, W) or (H, W, C) grid with a 2x2 box filter.

  Odd sizes round up, the last row or column is averaged with its edge clamped
  neighbour.
  """
  height, width = grid.shape[:2]
  batch = to_nchw(grid)
  if height % 2 or width % 2:
    batch = torch.nn.functional.pad(batch, (0, width % 2, 0, height % 2), mode='replicate')

  batch = torch.nn.functional.avg_pool2d(batch, kernel_size=2, stride=2)
  return store(from_nchw(batch, grid.dim()), out)


class Pyramid:
  """Per-level exposure, weight and accumulation buffers for one image size.

  All buffers are allocated once and overwritten on every build, so a pyramid
  can be reused for any number of images of the same size.
  """

  @beartype
  def __init__(self, device: torch.device, image_size: tuple[int, int], dtype: torch.dtype = torch.float32):
    """Allocate the pyramid.

    Args:
        device: Device the buffers live on
        image_size: (width, height) of level 0
        dtype: Floating point type of the buffers
    """
    self.device = device
    self.sizes = pyramid_sizes(image_size)

    self.exposures = [torch.zeros((h, w, 3), device=device, dtype=dtype) for w, h in self.sizes]
    self.weights = [torch.zeros((h, w, 3), device=device, dtype=dtype) for w, h in self.sizes]
    self.accumulation = [torch.zeros((h, w), device=device, dtype=dtype) for w, h in self.sizes]

  def __repr__(self) -> str:
    width, height = self.image_size
    return f'Pyramid({width}x{height}, levels={self.num_levels}, device={self.device})'

  @property
  def image_size(self) -> tuple[int, int]:
    return self.sizes[0]

  @property
  def num_levels(self) -> int:
    return len(self.sizes)

  def level_shape(self, level: int) -> tuple[int, int]:
    width, height = self.sizes[level]
    return (height, width)

  @beartype
  def build(self, exposures: torch.Tensor | None = None, weights: torch.Tensor | None = None) -> None:
    """Fill levels 1.. of both chains by repeated box downsampling of level 0.

    Args:
        exposures: Optional (H, W, 3) exposure luminances copied into level 0
        weights: Optional (H, W, 3) normalized weights copied into level 0
    """
    if exposures is not None:
      self._check_level0(exposures, 'exposures')
      self.exposures[0].copy_(exposures)
    if weights is not None:
      self._check_level0(weights, 'weights')
      self.weights[0].copy_(weights)

    for level in range(1, self.num_levels):
      downsample(self.exposures[level - 1], out=self.exposures[level])
      downsample(self.weights[level - 1], out=self.weights[level])

  def _check_level0(self, grid: torch.Tensor, name: str) -> None:
    expected_shape = self.exposures[0].shape
    if grid.shape != expected_shape:
      raise PyramidShapeError(f'Pyramid {name} shape {tuple(grid.shape)} != expected {tuple(expected_shape)}')


__all__ = [
  'Pyramid',
  'PyramidShapeError',
  'downsample',
  'pyramid_sizes',
]
