import argparse
from pathlib import Path
import time

import cv2
import numpy as np
import torch

from torch_ltm import LocalToneMapper, LocalToneMapSettings, get_preset, presets
from torch_ltm.pipeline.config import Bool, Float, Int, get_validator
from torch_ltm.tonemap import aces_filmic, perceptual, sanitize
from torch_ltm.utilities import load_hdr_image, save_ldr_image, to_uint8


def global_tonemap(image: torch.Tensor, exposure: float) -> torch.Tensor:
  """The same tone curve without any local adjustment, for comparison."""
  return perceptual(aces_filmic(sanitize(image) * exposure))


def add_settings_arguments(parser: argparse.ArgumentParser) -> None:
  """One optional flag per settings field, typed and documented by the field's validator."""
  group = parser.add_argument_group('settings overrides')
  for name in LocalToneMapSettings.model_fields:
    validator = get_validator(LocalToneMapSettings, name)
    flag = '--' + name

    if isinstance(validator, Bool):
      group.add_argument(flag, dest=name, action=argparse.BooleanOptionalAction, default=None,
                         help=validator.description)
    elif isinstance(validator, (Float, Int)):
      low, high = validator.range
      group.add_argument(flag, dest=name, type=float if isinstance(validator, Float) else int, default=None,
                         help=f'{validator.description} [{low}, {high}]')


def settings_from_args(args) -> LocalToneMapSettings:
  settings = LocalToneMapSettings.load_json(args.settings) if args.settings else get_preset(args.preset)

  overrides = {
    name: getattr(args, name)
    for name in LocalToneMapSettings.model_fields
    if getattr(args, name, None) is not None
  }
  if not overrides:
    return settings
  return LocalToneMapSettings.model_validate({**settings.model_dump(), **overrides})


def parse_args(argv: list[str] | None = None):
  parser = argparse.ArgumentParser(description='Local tone mapping of an HDR image by exposure fusion')
  parser.add_argument('image', type=Path, help='Input HDR image (EXR, HDR or any OpenCV readable format)')
  parser.add_argument('--output', '-o', type=Path, default=None, help='Output image path (e.g. snapshot.jpg)')
  parser.add_argument('--jpeg_quality', type=int, default=95, help='JPEG quality of the output, default: 95')
  parser.add_argument('--preset', type=str, default='default', choices=list(presets.keys()),
                      help='Settings preset, default: default')
  parser.add_argument('--settings', type=Path, default=None, help='Load settings from a JSON file')
  parser.add_argument('--save_settings', type=Path, default=None, help='Save the effective settings to JSON')
  parser.add_argument('--device', type=str, default='cuda' if torch.cuda.is_available() else 'cpu',
                      help='Torch device to process on')
  parser.add_argument('--show', action='store_true', help='Show global | local tone mapped side by side')
  add_settings_arguments(parser)
  return parser.parse_args(argv)


def main(argv: list[str] | None = None):
  args = parse_args(argv)
  device = torch.device(args.device)
  settings = settings_from_args(args)

  print(f'Loading image: {args.image}')
  image = load_hdr_image(args.image, device)
  height, width = image.shape[:2]

  print(f'Image size: {width}x{height}')
  print(f'RGB range: {image.min().item():.3f} - {image.max().item():.3f}')

  mapper = LocalToneMapper(device, (width, height), settings)
  mip_level, display_mip = mapper.levels()
  print(mapper)
  print(f'Pyramid levels: {mapper.pyramid.num_levels}, blending {mip_level} -> {display_mip}')

  start = time.perf_counter()
  result = mapper.process(image)
  if device.type == 'cuda':
    torch.cuda.synchronize(device)
  print(f'Tone mapped in {(time.perf_counter() - start) * 1000.0:.1f}ms')
  print(f'Output range: {result.min().item():.3f} - {result.max().item():.3f}')

  if args.save_settings is not None:
    settings.save_json(args.save_settings)
    print(f'Saved settings: {args.save_settings}')

  if args.output is not None:
    save_ldr_image(args.output, result, jpeg_quality=args.jpeg_quality)
    print(f'Saved: {args.output}')

  if args.show:
    combined = np.hstack([to_uint8(global_tonemap(image, settings.exposure)), to_uint8(result)])

    print('Showing results (global | local)...')
    print('Press any key to close')

    cv2.namedWindow('Image', cv2.WINDOW_NORMAL)
    cv2.imshow('Image', cv2.cvtColor(combined, cv2.COLOR_RGB2BGR))
    cv2.waitKey(0)
    cv2.destroyAllWindows()


if __name__ == '__main__':
  main()
