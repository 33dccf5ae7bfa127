#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
from pathlib import Path

setup(
    name='chapter-engine',
    version='1.0.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    install_requires=[
        'pyyaml>=6.0.2',
        'regex>=2024.11.6',
        'rich>=14.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=8.0.0',
            'pytest-cov>=5.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'chapter-engine=chapter_engine.chapter_cli:main',
        ],
    },
    author='Emasoft',
    author_email='713559+Emasoft@users.noreply.github.com',
    description='chapter-engine - Rule-driven chapter segmentation for Chinese and English long-form text',
    long_description=open('README.md', encoding='utf-8').read() if Path('README.md').exists() else '',
    long_description_content_type='text/markdown',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Text Processing :: Linguistic',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
    python_requires='>=3.10',
)
