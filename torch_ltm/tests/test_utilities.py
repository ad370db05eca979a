"""Test image loading and saving."""

import cv2
import numpy as np
import pytest
import torch

from torch_ltm.utilities import ImageLoadError, load_hdr_image, save_ldr_image, to_uint8


def test_save_and_load_png(tmp_path):
  image = torch.zeros((4, 6, 3))
  image[..., 0] = 1.0
  image[1, 2] = torch.tensor([0.0, 0.5, 1.0])

  path = tmp_path / 'out.png'
  save_ldr_image(path, image)
  loaded = load_hdr_image(path)

  assert loaded.shape == (4, 6, 3)
  assert loaded.dtype == torch.float32
  assert torch.allclose(loaded, image, atol=1.0 / 255.0)


def test_load_radiance_hdr(tmp_path):
  rgb = np.zeros((4, 4, 3), dtype=np.float32)
  rgb[..., 0] = 8.0
  rgb[..., 2] = 0.25
  path = tmp_path / 'image.hdr'
  assert cv2.imwrite(str(path), cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))

  loaded = load_hdr_image(path)
  assert torch.allclose(loaded, torch.from_numpy(rgb), rtol=0.02, atol=1e-3)


def test_load_grayscale(tmp_path):
  path = tmp_path / 'gray.png'
  assert cv2.imwrite(str(path), np.full((3, 5), 255, dtype=np.uint8))

  loaded = load_hdr_image(path)
  assert loaded.shape == (3, 5, 3)
  assert torch.equal(loaded, torch.ones(3, 5, 3))


def test_missing_file(tmp_path):
  with pytest.raises(FileNotFoundError):
    load_hdr_image(tmp_path / 'missing.exr')


def test_undecodable_file(tmp_path):
  path = tmp_path / 'broken.exr'
  path.write_bytes(b'not an image')
  with pytest.raises(ImageLoadError):
    load_hdr_image(path)


def test_to_uint8_clamps():
  values = to_uint8(torch.tensor([[[-1.0, 0.5, 2.0]]]))
  assert values.dtype == np.uint8
  assert values.tolist() == [[[0, 128, 255]]]
