###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from setuptools import setup, find_packages


setup(
    name='TraceStitch',
    version='0.1.0',
    packages=find_packages(where='.', include=['TraceStitch', 'TraceStitch.*']),
    package_dir={"": "."},
    install_requires=[
        'pandas<3',
        'tqdm',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description="A library for stitching trace events across timelines into execution groups",
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.11',
)
