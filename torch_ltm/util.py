import torch


class PyramidShapeError(RuntimeError):
  """Raised when two grids paired by a pipeline stage do not have matching dimensions."""


def clamp(x, lower, upper):
  return min(max(x, lower), upper)


def lerp(a: torch.Tensor, b: torch.Tensor, t: torch.Tensor | float) -> torch.Tensor:
  return a + (b - a) * t


def to_nchw(grid: torch.Tensor) -> torch.Tensor:
  """(H, W) or (H, W, C) grid to a (1, C, H, W) batch."""
  if grid.dim() == 2:
    grid = grid.unsqueeze(-1)
  return grid.permute(2, 0, 1).unsqueeze(0)


def from_nchw(batch: torch.Tensor, dim: int) -> torch.Tensor:
  """Inverse of to_nchw, dim is the number of dimensions of the original grid."""
  grid = batch.squeeze(0).permute(1, 2, 0)
  if dim == 2:
    grid = grid.squeeze(-1)
  return grid.contiguous()


def resize(grid: torch.Tensor, size: tuple[int, int]) -> torch.Tensor:
  """Bilinear resample of a grid to (height, width), edge clamped with pixel centres aligned."""
  if tuple(grid.shape[:2]) == size:
    return grid
  batch = torch.nn.functional.interpolate(to_nchw(grid), size=size, mode='bilinear', align_corners=False)
  return from_nchw(batch, grid.dim())


def store(result: torch.Tensor, out: torch.Tensor | None) -> torch.Tensor:
  """Write result into a preallocated buffer when one is given."""
  if out is None:
    return result
  if out.shape != result.shape:
    raise PyramidShapeError(f'Output buffer shape {tuple(out.shape)} != result shape {tuple(result.shape)}')
  return out.copy_(result)
