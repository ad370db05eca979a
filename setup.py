from setuptools import find_namespace_packages, setup

setup(
  name='torch-ltm',
  version='0.1.0',
  description='Local tone mapping of HDR images by exposure fusion, in PyTorch',
  python_requires='>=3.10',
  packages=find_namespace_packages(include=['torch_ltm', 'torch_ltm.*']),
  install_requires=[
    'torch',
    'numpy',
    'beartype',
    'pydantic>=2',
    'opencv-python',
  ],
  extras_require={'test': ['pytest']},
  entry_points={'console_scripts': ['torch-ltm=torch_ltm.scripts.tonemap_hdr:main']},
)
