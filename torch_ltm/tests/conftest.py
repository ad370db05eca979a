import pytest
import torch


def make_checkerboard(size: int = 4, tile: int = 2, low: float = 0.1, high: float = 0.9):
  """Gray checkerboard of (tile x tile) squares, returns the image and the bright mask."""
  ys, xs = torch.meshgrid(torch.arange(size), torch.arange(size), indexing='ij')
  bright = ((ys // tile + xs // tile) % 2) == 1
  values = torch.where(bright, torch.tensor(high), torch.tensor(low))
  return values.unsqueeze(-1).expand(size, size, 3).contiguous(), bright


@pytest.fixture
def hdr_image() -> torch.Tensor:
  """Random linear HDR image spanning several stops, 12x16."""
  generator = torch.Generator().manual_seed(0)
  return torch.rand((12, 16, 3), generator=generator) ** 4 * 16.0


@pytest.fixture
def checkerboard():
  return make_checkerboard()
