"""Test base and Laplacian blending."""

import pytest
import torch

from torch_ltm.blend import (
  blend_base,
  blend_laplacian_level,
  blend_pyramid,
  laplacian_weights,
  weighted_laplacian,
)
from torch_ltm.exposures import exposure_weights, synthesize_exposures
from torch_ltm.pyramid import Pyramid, PyramidShapeError
from torch_ltm.util import resize


def build_pyramid(image: torch.Tensor) -> Pyramid:
  height, width = image.shape[:2]
  pyramid = Pyramid(torch.device('cpu'), (width, height))
  exposures = synthesize_exposures(image, 0.7, 1.5, 2.0)
  pyramid.build(exposures, exposure_weights(exposures, 5.0))
  return pyramid


def test_base_blend_uniform_weights():
  exposures = torch.tensor([[[0.2, 0.5, 0.8]]])
  weights = torch.full((1, 1, 3), 1.0 / 3.0)
  assert torch.allclose(blend_base(exposures, weights), torch.tensor([[0.5]]), atol=1e-3)


def test_unboosted_weights_are_exposure_weights():
  generator = torch.Generator().manual_seed(1)
  laplacians = torch.randn((5, 5, 3), generator=generator)
  weights = torch.rand((5, 5, 3), generator=generator)
  weights = weights / weights.sum(dim=-1, keepdim=True)

  assert torch.allclose(laplacian_weights(laplacians, weights, False), weights, atol=1e-4)


def test_boost_favours_larger_laplacian():
  laplacians = torch.tensor([[[0.2, 0.0, -0.01]]])
  weights = torch.full((1, 1, 3), 1.0 / 3.0)

  boosted = laplacian_weights(laplacians, weights, True)
  assert boosted[0, 0, 0] > 0.9
  assert torch.allclose(boosted.sum(dim=-1), torch.ones(1, 1), atol=1e-3)


def test_same_level_blend_is_base(hdr_image):
  pyramid = build_pyramid(hdr_image)
  result = blend_pyramid(pyramid, 2, 2)

  expected = blend_base(pyramid.exposures[2], pyramid.weights[2])
  assert torch.equal(result, expected)


@pytest.mark.parametrize('boost', [False, True])
def test_reconstruction(hdr_image, boost):
  """Accumulation is the upsampled base plus every upsampled weighted Laplacian."""
  pyramid = build_pyramid(hdr_image)
  mip_level, display_mip = 3, 0
  result = blend_pyramid(pyramid, mip_level, display_mip, boost)

  def upsample_to_display(grid: torch.Tensor, level: int) -> torch.Tensor:
    for finer in range(level - 1, display_mip - 1, -1):
      grid = resize(grid, pyramid.level_shape(finer))
    return grid

  expected = upsample_to_display(blend_base(pyramid.exposures[mip_level], pyramid.weights[mip_level]), mip_level)
  for level in range(mip_level, display_mip, -1):
    detail = weighted_laplacian(pyramid.exposures[level - 1], pyramid.exposures[level], pyramid.weights[level - 1], boost)
    expected = expected + upsample_to_display(detail, level - 1)

  assert result.shape == pyramid.level_shape(display_mip)
  assert torch.allclose(result, expected, atol=1e-5)


def test_flat_image_has_no_detail():
  pyramid = build_pyramid(torch.full((8, 8, 3), 0.3))
  result = blend_pyramid(pyramid, 3, 0, True)
  base = blend_base(pyramid.exposures[3], pyramid.weights[3])
  assert torch.allclose(result, base.expand(8, 8), atol=1e-6)


def test_laplacian_level_upsamples_coarser():
  exposures = torch.full((4, 4, 3), 0.6)
  coarser = torch.full((2, 2, 3), 0.5)
  weights = torch.full((4, 4, 3), 1.0 / 3.0)
  accumulation = torch.full((2, 2), 0.4)

  result = blend_laplacian_level(exposures, coarser, weights, accumulation)
  assert torch.allclose(result, torch.full((4, 4), 0.5), atol=1e-4)


def test_mismatched_weights_raise():
  with pytest.raises(PyramidShapeError):
    blend_laplacian_level(
      torch.zeros((4, 4, 3)), torch.zeros((2, 2, 3)), torch.zeros((2, 2, 3)), torch.zeros((2, 2))
    )
  with pytest.raises(PyramidShapeError):
    blend_base(torch.zeros((4, 4, 3)), torch.zeros((2, 4, 3)))


def test_invalid_levels_raise(hdr_image):
  pyramid = build_pyramid(hdr_image)
  with pytest.raises(ValueError):
    blend_pyramid(pyramid, 1, 2)
  with pytest.raises(ValueError):
    blend_pyramid(pyramid, pyramid.num_levels, 0)
