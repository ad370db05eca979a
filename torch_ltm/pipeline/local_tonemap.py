"""Local tone mapping pipeline: exposure fusion followed by guided upsampling."""

from beartype import beartype
import torch

from torch_ltm.blend import blend_pyramid
from torch_ltm.exposures import MIDTONES, exposure_weights, synthesize_exposures
from torch_ltm.guided_upsample import guided_upsample
from torch_ltm.pyramid import Pyramid
from torch_ltm.tonemap import check_image

from .config import LocalToneMapSettings


@beartype
class LocalToneMapper:
  @beartype
  def __init__(
    self,
    device: torch.device,
    image_size: tuple[int, int],
    settings: LocalToneMapSettings | None = None,
  ):
    """Allocate the pyramid workspace for images of one size.

    Args:
        device: Device to process on
        image_size: Image dimensions as (width, height)
        settings: Default settings used when process() is given none
    """
    self.device = device
    self.settings = settings if settings is not None else LocalToneMapSettings()
    self.pyramid = Pyramid(device, image_size)

  def __repr__(self) -> str:
    width, height = self.image_size
    s = self.settings
    return (
      f'LocalToneMapper('
      f'size={width}x{height}, '
      f'levels={self.pyramid.num_levels}, '
      f'device={self.device}, '
      f'ltm={s.enable_local_tonemapping}, '
      f'boost={s.boost_local_contrast}, '
      f'exposure={s.exposure}, '
      f'mip={s.mip_level}, '
      f'display_mip={s.display_mip})'
    )

  @property
  def image_size(self) -> tuple[int, int]:
    return self.pyramid.image_size

  def resize(self, image_size: tuple[int, int]) -> None:
    """Reallocate the pyramid when the image size changes."""
    if image_size != self.image_size:
      self.pyramid = Pyramid(self.device, image_size)

  def levels(self, settings: LocalToneMapSettings | None = None) -> tuple[int, int]:
    """(mip_level, display_mip) actually used for the current image size."""
    settings = settings if settings is not None else self.settings
    return settings.clamped_levels(self.pyramid.num_levels)

  def process(self, image: torch.Tensor, settings: LocalToneMapSettings | None = None) -> torch.Tensor:
    """
    Tone map an HDR image.

    Args:
        image: Linear HDR image tensor of shape (H, W, 3)
        settings: Settings for this call, defaults to the mapper's settings

    Returns:
        (H, W, 3) float32 image with values in [0, 1]
    """
    check_image(image)
    settings = settings if settings is not None else self.settings

    height, width = image.shape[:2]
    self.resize((width, height))
    image = image.to(device=self.device, dtype=torch.float32)

    with torch.no_grad():
      return self._process(image, settings)

  def _process(self, image: torch.Tensor, settings: LocalToneMapSettings) -> torch.Tensor:
    pyramid = self.pyramid
    synthesize_exposures(
      image,
      settings.exposure,
      settings.shadows,
      settings.highlights,
      settings.enable_local_tonemapping,
      out=pyramid.exposures[0],
    )
    exposure_weights(pyramid.exposures[0], settings.weight_sigma, out=pyramid.weights[0])
    pyramid.build()

    mip_level, display_mip = self.levels(settings)
    accumulation = blend_pyramid(pyramid, mip_level, display_mip, settings.boost_local_contrast)

    guide = pyramid.exposures[display_mip][..., MIDTONES]
    return guided_upsample(accumulation, guide, image, settings.exposure)


@beartype
def local_tonemap(image: torch.Tensor, settings: LocalToneMapSettings | None = None) -> torch.Tensor:
  """One-shot local tone mapping of an (H, W, 3) image on its own device."""
  check_image(image)
  height, width = image.shape[:2]
  return LocalToneMapper(image.device, (width, height), settings).process(image)
