from setuptools import setup, find_packages


setup(
    name='torch_sbd',
    version='0.1.0',
    packages=find_packages(include=['torch_sbd', 'torch_sbd.*']),
    install_requires=[
        'torch>=2.0.0',
        'numpy',
    ],
    extras_require={
        'scipy':['scipy'],
        'test':['pytest','numpy','scipy'],
        'docs':['sphinx','furo']
    }
)
