import os
from pathlib import Path

# OpenEXR support is opt-in and must be enabled before cv2 is imported
os.environ.setdefault('OPENCV_IO_ENABLE_OPENEXR', '1')

from beartype import beartype
import cv2
import numpy as np
import torch


class ImageLoadError(RuntimeError):
  """Raised when an image file exists but cannot be decoded."""


@beartype
def load_hdr_image(image_path: Path, device: torch.device = torch.device('cpu')) -> torch.Tensor:
  """Load an HDR (EXR, Radiance) or LDR image as a linear RGB float tensor.

  Integer images are scaled to [0, 1], float images are returned unchanged.

  Returns:
      RGB tensor of shape (H, W, 3), float32
  """
  if not image_path.exists():
    raise FileNotFoundError(f'Image not found: {image_path}')

  image = cv2.imread(str(image_path), cv2.IMREAD_ANYCOLOR | cv2.IMREAD_ANYDEPTH)
  if image is None:
    raise ImageLoadError(f'Could not decode image: {image_path}')

  if image.ndim == 2:
    rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
  elif image.shape[2] == 4:
    rgb = cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
  else:
    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

  if np.issubdtype(rgb.dtype, np.integer):
    rgb_array = rgb.astype(np.float32) / np.iinfo(rgb.dtype).max
  else:
    rgb_array = rgb.astype(np.float32)

  return torch.from_numpy(np.ascontiguousarray(rgb_array)).to(device)


@beartype
def to_uint8(image: torch.Tensor) -> np.ndarray:
  """Quantize a [0, 1] RGB tensor to a uint8 (H, W, 3) array."""
  return (image.clamp(0.0, 1.0) * 255.0 + 0.5).to(torch.uint8).cpu().numpy()


@beartype
def save_ldr_image(save_path: Path, image: torch.Tensor, jpeg_quality: int = 95) -> None:
  """Save a [0, 1] RGB tensor as an 8-bit image, format chosen by the file suffix."""
  bgr = cv2.cvtColor(to_uint8(image), cv2.COLOR_RGB2BGR)

  encode_params = []
  if save_path.suffix.lower() in ('.jpg', '.jpeg'):
    encode_params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]

  if not cv2.imwrite(str(save_path), bgr, encode_params):
    raise RuntimeError(f'Failed to write image: {save_path}')
