"""
Setup script for cyclo-analytics
Run: pip install -e .[test]
"""

from setuptools import find_packages, setup

setup(
    name='cyclo-analytics',
    version='1.0.0',
    description='Cycling performance analytics: segment metrics, VO2max estimation, HR and power zones',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.9',
    install_requires=[
        'fitparse',
        'numpy',
        'pandas',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'cyclo-analytics=cyclo_analytics.cli:main',
        ],
    },
)
