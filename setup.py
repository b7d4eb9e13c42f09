#!/usr/bin/env python

import setuptools

name = 'ircwire'
description = 'IRC (Internet Relay Chat) client engine and bot for Python'

params = dict(
    name=name,
    version='1.0.0',
    description=description or name,
    packages=setuptools.find_packages(),
    package_data={name: ['codes.txt']},
    include_package_data=True,
    python_requires='>=3.9',
    install_requires=[
        'jaraco.text',
        'jaraco.logging',
        'jaraco.functools>=1.20',
        'jaraco.stream',
        'more_itertools',
    ],
    extras_require={
        'testing': [
            # upstream
            'pytest>=3.5,!=3.7.3',
            'pytest-sugar>=0.9.1',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
    entry_points={
        'console_scripts': [
            'ircwire = ircwire.__main__:main',
        ],
    },
)
if __name__ == '__main__':
    setuptools.setup(**params)
