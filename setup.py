from setuptools import setup, find_packages

setup(
    name='proxcomplete',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'pandas',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Log-density and gradient oracle for Moreau-Yosida smoothed Bayesian matrix completion.',
)
