"""Multiresolution blending of the synthetic exposures."""

from beartype import beartype
import torch

from .pyramid import Pyramid
from .util import PyramidShapeError, resize, store

BASE_EPS = 1e-4
LAPLACIAN_EPS = 1e-5


def _check_paired(a: torch.Tensor, b: torch.Tensor, what: str) -> None:
  if a.shape[:2] != b.shape[:2]:
    raise PyramidShapeError(f'{what}: {tuple(a.shape)} does not match {tuple(b.shape)}')


@beartype
def blend_base(exposures: torch.Tensor, weights: torch.Tensor, out: torch.Tensor | None = None) -> torch.Tensor:
  """
  Weighted average of the exposure luminances, the seed of the accumulation.

  Args:
      exposures: (h, w, 3) exposure luminances at the coarsest level used
      weights: (h, w, 3) weights at the same level
      out: Optional (h, w) buffer to write into

  Returns:
      (h, w) blended luminance
  """
  _check_paired(exposures, weights, 'Base blend weights')
  weights = weights / (weights.sum(dim=-1, keepdim=True) + BASE_EPS)
  return store((exposures * weights).sum(dim=-1), out)


@beartype
def laplacian_weights(laplacians: torch.Tensor, weights: torch.Tensor, boost_local_contrast: bool) -> torch.Tensor:
  """Normalized weights for the per-exposure Laplacians.

  With contrast boost the exposure weights are scaled by the Laplacian magnitude,
  favouring the exposure with the most local detail.
  """
  if boost_local_contrast:
    weights = weights * (laplacians.abs() + LAPLACIAN_EPS)
  return weights / (weights.sum(dim=-1, keepdim=True) + LAPLACIAN_EPS)


@beartype
def weighted_laplacian(
  exposures: torch.Tensor,
  exposures_coarser: torch.Tensor,
  weights: torch.Tensor,
  boost_local_contrast: bool = False,
) -> torch.Tensor:
  """
  Detail added at one level: the weighted sum of the per-exposure Laplacians.

  Args:
      exposures: (h, w, 3) exposure luminances at the finer level
      exposures_coarser: (h', w', 3) exposure luminances at the next coarser level
      weights: (h, w, 3) weights at the finer level
      boost_local_contrast: Bias the weights toward larger Laplacians

  Returns:
      (h, w) weighted Laplacian
  """
  _check_paired(exposures, weights, 'Laplacian weights')
  coarser = resize(exposures_coarser, tuple(exposures.shape[:2]))
  _check_paired(exposures, coarser, 'Upsampled coarser exposures')

  laplacians = exposures - coarser
  return (laplacians * laplacian_weights(laplacians, weights, boost_local_contrast)).sum(dim=-1)


@beartype
def blend_laplacian_level(
  exposures: torch.Tensor,
  exposures_coarser: torch.Tensor,
  weights: torch.Tensor,
  accumulation_coarser: torch.Tensor,
  boost_local_contrast: bool = False,
  out: torch.Tensor | None = None,
) -> torch.Tensor:
  """
  Carry the accumulation one level finer and add that level's weighted Laplacian.

  The coarser exposure and accumulation grids are bilinearly resampled onto the
  finer grid before they are compared.

  Returns:
      (h, w) accumulation at the finer level
  """
  accumulated = resize(accumulation_coarser, tuple(exposures.shape[:2]))
  _check_paired(exposures, accumulated, 'Upsampled accumulation')

  detail = weighted_laplacian(exposures, exposures_coarser, weights, boost_local_contrast)
  return store(accumulated + detail, out)


@beartype
def blend_pyramid(pyramid: Pyramid, mip_level: int, display_mip: int, boost_local_contrast: bool = False) -> torch.Tensor:
  """
  Blend the exposures from level `mip_level` down to `display_mip`.

  The base blend seeds the accumulation at `mip_level`, each finer level up to and
  including `display_mip` then adds its weighted Laplacian. Results are written to
  `pyramid.accumulation`.

  Returns:
      The accumulation at `display_mip`, shape (h, w)
  """
  if not 0 <= display_mip <= mip_level < pyramid.num_levels:
    raise ValueError(
      f'Expected 0 <= display_mip ({display_mip}) <= mip_level ({mip_level}) < {pyramid.num_levels} levels'
    )

  blend_base(pyramid.exposures[mip_level], pyramid.weights[mip_level], out=pyramid.accumulation[mip_level])

  for level in range(mip_level, display_mip, -1):
    blend_laplacian_level(
      pyramid.exposures[level - 1],
      pyramid.exposures[level],
      pyramid.weights[level - 1],
      pyramid.accumulation[level],
      boost_local_contrast,
      out=pyramid.accumulation[level - 1],
    )

  return pyramid.accumulation[display_mip]


__all__ = [
  'BASE_EPS',
  'LAPLACIAN_EPS',
  'blend_base',
  'blend_laplacian_level',
  'blend_pyramid',
  'laplacian_weights',
  'weighted_laplacian',
]
