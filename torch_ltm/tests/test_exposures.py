"""Test synthetic exposures and their weights."""

import pytest
import torch

from torch_ltm.exposures import (
  HIGHLIGHTS,
  MIDTONES,
  SHADOWS,
  exposure_multipliers,
  exposure_weights,
  synthesize_exposures,
)


def test_multipliers():
  assert exposure_multipliers(1.5, 2.0) == pytest.approx((0.25, 1.0, 2.0**1.5))
  assert exposure_multipliers(1.5, 2.0, enable_local_tonemapping=False) == (1.0, 1.0, 1.0)


def test_exposure_ordering(hdr_image):
  """Brightened exposures of a gray image are never darker than the neutral one."""
  gray = hdr_image.mean(dim=-1, keepdim=True).expand_as(hdr_image)
  exposures = synthesize_exposures(gray, 1.0, 1.5, 2.0)

  assert exposures.shape == gray.shape
  assert exposures.min() >= 0.0 and exposures.max() <= 1.0 + 1e-6
  assert torch.all(exposures[..., SHADOWS] >= exposures[..., MIDTONES] - 1e-6)
  assert torch.all(exposures[..., MIDTONES] >= exposures[..., HIGHLIGHTS] - 1e-6)


def test_disabled_local_tonemapping_gives_identical_exposures(hdr_image):
  exposures = synthesize_exposures(hdr_image, 0.7, 1.5, 2.0, enable_local_tonemapping=False)
  assert torch.equal(exposures[..., HIGHLIGHTS], exposures[..., MIDTONES])
  assert torch.equal(exposures[..., SHADOWS], exposures[..., MIDTONES])


def test_invalid_samples_are_clamped():
  image = torch.tensor([[[float('nan'), -1.0, 2.0], [float('inf'), 0.5, -float('inf')]]])
  exposures = synthesize_exposures(image, 1.0, 1.5, 2.0)
  assert torch.isfinite(exposures).all()
  assert exposures.min() >= 0.0


def test_writes_into_buffer(hdr_image):
  out = torch.zeros_like(hdr_image)
  result = synthesize_exposures(hdr_image, 1.0, 1.5, 2.0, out=out)
  assert result.data_ptr() == out.data_ptr()
  assert out.abs().sum() > 0


def test_weights_sum_to_one(hdr_image):
  for sigma in (1.0, 2.5, 5.0):
    weights = exposure_weights(synthesize_exposures(hdr_image, 0.7, 1.5, 2.0), sigma)
    assert weights.min() >= 0.0
    assert torch.allclose(weights.sum(dim=-1), torch.ones(hdr_image.shape[:2]), atol=1e-3)


def test_uniform_gray_weights():
  """Identical exposures have no preference."""
  image = torch.full((8, 8, 3), 0.5)
  exposures = synthesize_exposures(image, 1.0, 1.5, 2.0, enable_local_tonemapping=False)
  weights = exposure_weights(exposures, 5.0)
  assert torch.allclose(weights, torch.full_like(weights, 1.0 / 3.0), atol=1e-4)


def test_weights_prefer_mid_gray():
  exposures = torch.tensor([[[0.1, 0.5, 0.95]]])
  weights = exposure_weights(exposures, 5.0)
  assert weights[0, 0].argmax().item() == 1
  assert weights[0, 0, 0] > weights[0, 0, 2]
