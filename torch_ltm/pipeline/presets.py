"""Local tone mapping presets."""

from beartype import beartype

from .config import LocalToneMapSettings


@beartype
def get_preset(name: str) -> LocalToneMapSettings:
  """Get a preset by name."""
  if name not in presets:
    raise ValueError(f'Unknown preset: {name}. Available: {list(presets.keys())}')
  return presets[name]


default = LocalToneMapSettings()

# Single global tone curve, the synthetic exposures are identical
neutral = LocalToneMapSettings(
  enable_local_tonemapping=False,
  exposure=1.0,
)

punchy = LocalToneMapSettings(
  boost_local_contrast=True,
  shadows=2.0,
  highlights=2.5,
  display_mip=1,
)

soft = LocalToneMapSettings(
  shadows=1.0,
  highlights=1.0,
  mip_level=4,
  display_mip=2,
  weight_sigma=3.0,
)

presets: dict[str, LocalToneMapSettings] = {
  'default': default,
  'neutral': neutral,
  'punchy': punchy,
  'soft': soft,
}
