from setuptools import setup, find_packages

setup(
    name='rnnlearn',
    version='0.1.0',
    packages=find_packages(include=['rnnlearn', 'rnnlearn.*']),
    description='Recurrent neural networks trained with truncated '
                'backpropagation through time.',
    license='BSD 3-clause license',
    long_description=open('README.rst').read(),
    install_requires=['numpy>=1.17', 'pyyaml'],
    extras_require={
        'test': ['pytest<9.1'],
    },
    entry_points={
        'console_scripts': [
            'rnnlearn-train = rnnlearn.scripts.train:main',
        ],
    },
)
