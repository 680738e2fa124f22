# setup.py
from setuptools import setup, find_packages

setup(
    name="flexmesh",
    version="0.1.0",
    author="wsl",
    description="Unstructured 2D mesh topology and interpolation",
    license="MIT",

    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    # default configuration, loaded through importlib.resources
    package_data={'flexmesh': ['config.yaml']},
    include_package_data=True,

    install_requires=[
        'numpy',
        'scipy',
        'pandas',
        'PyYAML',
        'meshio',
        'shapely>=2.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.9',
)
